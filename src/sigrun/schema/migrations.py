"""
Migration rules applied before sanitization.

A migration repairs a document written for an older shape of the schema
(a renamed property, a scalar that became a list) so the user's value is
kept instead of being dropped as unknown and replaced by a default.

Migrations run on every object level the descriptor describes, before
defaults are added and unknown properties removed. Each application is
recorded as ``"<migration name>: <property path>"``.
"""

from __future__ import annotations

import abc as _abc
import typing as _typing

import sigrun.schema.descriptor as descriptor
import sigrun.tree as tree


class Migration(_abc.ABC):
    """Base class for migration rules."""

    name: _typing.ClassVar[str] = ""

    @_abc.abstractmethod
    def apply(
        self,
        obj: tree.JsonObject,
        schema: descriptor.SchemaDescriptor,
        path: str,
    ) -> list[str]:
        """
        Migrate one object in place.

        Args:
            obj: The object to migrate (a private copy, safe to mutate).
            schema: Descriptor for this object level.
            path: Dotted location of ``obj`` in the document ("" for root).

        Returns:
            One description per change made.
        """

    def _record(self, path: str, key: str) -> str:
        return f"{self.name}: {join_path(path, key)}"


def join_path(prefix: str, key: str) -> str:
    """Join a dotted prefix and a key."""
    return f"{prefix}.{key}" if prefix else key


class StringToList(Migration):
    """A string where the schema expects an array becomes a one-item array."""

    name = "string-to-list"

    def apply(
        self,
        obj: tree.JsonObject,
        schema: descriptor.SchemaDescriptor,
        path: str,
    ) -> list[str]:
        applied = []
        for field in schema:
            value = obj.get(field.name)
            if field.kind is descriptor.FieldKind.ARRAY and isinstance(value, str):
                obj[field.name] = [value]
                applied.append(self._record(path, field.name))
        return applied


class NumberToString(Migration):
    """A number where the schema expects a string becomes its text form."""

    name = "number-to-string"

    def apply(
        self,
        obj: tree.JsonObject,
        schema: descriptor.SchemaDescriptor,
        path: str,
    ) -> list[str]:
        applied = []
        for field in schema:
            value = obj.get(field.name)
            if (
                field.kind is descriptor.FieldKind.STRING
                and isinstance(value, (int, float))
                and not isinstance(value, bool)
            ):
                obj[field.name] = str(value)
                applied.append(self._record(path, field.name))
        return applied


class RenameField(Migration):
    """
    Move a property from an old name to its new one.

    Applies only at the object level named by ``at`` (dotted, "" for the
    root) and only when the new name is known to the schema and not already
    present.
    """

    name = "rename-field"

    def __init__(self, old: str, new: str, *, at: str = "") -> None:
        self.old = old
        self.new = new
        self.at = at

    def apply(
        self,
        obj: tree.JsonObject,
        schema: descriptor.SchemaDescriptor,
        path: str,
    ) -> list[str]:
        if path != self.at or self.old not in obj or self.new in obj:
            return []
        if self.new not in schema:
            return []
        # Rebuild to keep the renamed key in the old key's position
        items = [(self.new if k == self.old else k, v) for k, v in obj.items()]
        obj.clear()
        obj.update(items)
        return [f"{self.name}: {join_path(path, self.old)} -> {join_path(path, self.new)}"]

    def __repr__(self) -> str:
        return f"RenameField({self.old!r}, {self.new!r}, at={self.at!r})"


DEFAULT_MIGRATIONS: tuple[Migration, ...] = (StringToList(), NumberToString())
"""Migrations applied when the caller does not pass its own list."""
