"""
Allowed-value providers for constrained string fields.

A provider supplies the set of values a string field may take. Providers
can be expensive (they may scan the filesystem or a host application), so
their results are memoized by a ProviderCache. The cache is an explicit
object owned by whoever validates or generates schemas; it lives as long
as its owner and is never shared process-wide.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import logging as _logging
import typing as _typing

import sigrun.errors as errors

_logger = _logging.getLogger(__name__)


@_typing.runtime_checkable
class OptionsProvider(_typing.Protocol):
    """Anything that can list the allowed values of a field."""

    def get_options(self) -> list[str]: ...


class StaticOptions:
    """A fixed list of allowed values."""

    def __init__(self, values: _typing.Iterable[str]) -> None:
        if isinstance(values, str):
            raise errors.InvalidArgumentError(
                "Options must be an iterable of strings, not a single string",
                argument="values",
            )
        self._values = list(values)

    def get_options(self) -> list[str]:
        return list(self._values)

    def __repr__(self) -> str:
        return f"StaticOptions({self._values!r})"


@_dataclasses.dataclass(frozen=True)
class Discriminated:
    """
    Selects a provider based on the value of a sibling field.

    Example:
        A ``unit`` field whose allowed values depend on ``spec_type``:

        >>> Discriminated(
        ...     by="spec_type",
        ...     providers={"length": StaticOptions(["mm", "m"]), "mass": StaticOptions(["kg"])},
        ... )
    """

    by: str
    """Name of the sibling field whose value selects the provider."""

    providers: _typing.Mapping[str, OptionsProvider]
    """Provider per discriminator value."""

    default: OptionsProvider | None = None
    """Provider used when the discriminator value has no entry."""

    def select(self, siblings: _typing.Mapping[str, _typing.Any] | None) -> OptionsProvider | None:
        """
        Pick the provider for an object.

        Args:
            siblings: The object holding the field, or None when there is
                no concrete document (schema generation).

        Returns:
            The selected provider, or None when nothing applies (the field
            is then unconstrained).
        """
        if siblings is None:
            return self.default
        value = siblings.get(self.by)
        if isinstance(value, str) and value in self.providers:
            return self.providers[value]
        return self.default


OptionsSpec: _typing.TypeAlias = OptionsProvider | Discriminated
"""Either a direct provider or a discriminated selection of providers."""


class ProviderCache:
    """
    Memoizes provider results.

    Keyed by provider identity: the same provider object is asked once per
    cache, however many fields or documents reference it.
    """

    def __init__(self) -> None:
        self._entries: dict[int, tuple[OptionsProvider, list[str]]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def options_for(self, provider: OptionsProvider) -> list[str]:
        """Return the provider's options, computing them on first use."""
        key = id(provider)
        entry = self._entries.get(key)
        if entry is None:
            options = list(provider.get_options())
            _logger.debug("Loaded %d option(s) from %r", len(options), provider)
            # Keep the provider alive so its id is not reused while cached
            entry = (provider, options)
            self._entries[key] = entry
        return list(entry[1])

    def resolve(
        self,
        spec: OptionsSpec | None,
        siblings: _typing.Mapping[str, _typing.Any] | None = None,
    ) -> list[str] | None:
        """
        Allowed values for a field, or None when unconstrained.

        Args:
            spec: The field's options spec.
            siblings: The object holding the field (for Discriminated).
        """
        if spec is None:
            return None
        provider = spec.select(siblings) if isinstance(spec, Discriminated) else spec
        if provider is None:
            return None
        return self.options_for(provider)

    def clear(self) -> None:
        """Forget all cached results."""
        self._entries.clear()
