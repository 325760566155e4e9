"""Tests for option providers and the provider cache."""

import pytest as _pytest

import sigrun.errors as errors
import sigrun.schema as schema


class CountingProvider:
    """Provider that records how often it is asked."""

    def __init__(self, values: list[str]) -> None:
        self.values = values
        self.calls = 0

    def get_options(self) -> list[str]:
        self.calls += 1
        return list(self.values)


class TestStaticOptions:
    def test_values(self) -> None:
        assert schema.StaticOptions(["a", "b"]).get_options() == ["a", "b"]

    def test_single_string_rejected(self) -> None:
        """A bare string would silently become a list of characters."""
        with _pytest.raises(errors.InvalidArgumentError):
            schema.StaticOptions("abc")

    def test_is_provider(self) -> None:
        assert isinstance(schema.StaticOptions([]), schema.OptionsProvider)


class TestDiscriminated:
    """Sibling-selected providers."""

    def test_select_by_sibling(self) -> None:
        length = schema.StaticOptions(["mm"])
        mass = schema.StaticOptions(["kg"])
        spec = schema.Discriminated(by="kind", providers={"length": length, "mass": mass})
        assert spec.select({"kind": "mass"}) is mass

    def test_unknown_value_uses_default(self) -> None:
        fallback = schema.StaticOptions(["x"])
        spec = schema.Discriminated(by="kind", providers={}, default=fallback)
        assert spec.select({"kind": "other"}) is fallback
        assert spec.select(None) is fallback

    def test_no_default_is_unconstrained(self) -> None:
        spec = schema.Discriminated(by="kind", providers={})
        assert spec.select({"kind": 3}) is None


class TestProviderCache:
    """Memoization."""

    def test_provider_queried_once(self) -> None:
        provider = CountingProvider(["a"])
        cache = schema.ProviderCache()
        assert cache.options_for(provider) == ["a"]
        assert cache.options_for(provider) == ["a"]
        assert provider.calls == 1
        assert len(cache) == 1

    def test_returned_list_is_a_copy(self) -> None:
        provider = CountingProvider(["a"])
        cache = schema.ProviderCache()
        cache.options_for(provider).append("b")
        assert cache.options_for(provider) == ["a"]

    def test_clear(self) -> None:
        provider = CountingProvider(["a"])
        cache = schema.ProviderCache()
        cache.options_for(provider)
        cache.clear()
        cache.options_for(provider)
        assert provider.calls == 2

    def test_separate_caches_do_not_share(self) -> None:
        provider = CountingProvider(["a"])
        schema.ProviderCache().options_for(provider)
        schema.ProviderCache().options_for(provider)
        assert provider.calls == 2

    def test_resolve_spec(self) -> None:
        cache = schema.ProviderCache()
        spec = schema.Discriminated(by="k", providers={"x": schema.StaticOptions(["1"])})
        assert cache.resolve(None) is None
        assert cache.resolve(spec, {"k": "x"}) == ["1"]
        assert cache.resolve(spec, {"k": "y"}) is None
        assert cache.resolve(schema.StaticOptions(["z"])) == ["z"]
