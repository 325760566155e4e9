"""
Array composition from reusable fragment files.

Usage in JSON:

    {
      "Fields": [
        { "$include": "_fragments/header-fields" },
        { "ParameterName": "CustomField" },
        { "$include": "_fragments/footer-fields" }
      ]
    }

Each ``$include`` item is replaced, in place, by the contents of the
referenced fragment. A fragment file may be:
- a JSON array: all of its items are spliced in, in order
- an object with an ``Items`` array: those items are spliced in
- any other object: spliced in as a single item

Fragment references are relative to the base directory and must resolve
inside it. Fragments are flat content: a ``$extends`` key inside a fragment
is never followed. Fragments may include other fragments; a fragment that
reappears on its own include stack is a cycle.
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib
import typing as _typing

import sigrun.composition.loader as loader
import sigrun.composition.paths as paths
import sigrun.constants as constants
import sigrun.errors as errors
import sigrun.tree as tree

_logger = _logging.getLogger(__name__)


def is_include_directive(value: _typing.Any) -> bool:
    """Check whether an array item is an ``{"$include": ...}`` directive."""
    return isinstance(value, dict) and constants.INCLUDE_KEY in value


def contains_include_directives(value: _typing.Any) -> bool:
    """Check whether any array anywhere in the tree holds an include directive."""
    if isinstance(value, dict):
        return any(contains_include_directives(item) for item in value.values())
    if isinstance(value, list):
        return any(
            is_include_directive(item) or contains_include_directives(item) for item in value
        )
    return False


class IncludeExpander:
    """
    Expands ``$include`` directives inside arrays of a document.

    When ``includable_paths`` is given, only arrays at those key paths accept
    directives (array levels do not add to the path, so ``("fields", "tags")``
    addresses the ``tags`` array inside each item of ``fields``). Without it,
    every array is scanned.
    """

    def __init__(
        self,
        base_directory: _pathlib.Path,
        includable_paths: _typing.AbstractSet[tree.Path] | None = None,
    ) -> None:
        """
        Initialize the expander.

        Args:
            base_directory: Directory fragment references are relative to.
                Also the trust boundary: fragments must live inside it.
            includable_paths: Key paths of arrays that accept directives.
                None means all arrays.
        """
        self._root = base_directory.resolve()
        self._includable = frozenset(includable_paths) if includable_paths is not None else None

    def expand(self, document: tree.JsonObject) -> tree.JsonObject:
        """
        Return a copy of ``document`` with every include directive expanded.

        Raises:
            PathEscapeError: If a reference escapes the base directory.
            MissingIncludeTargetError: If a fragment file does not exist.
            InvalidDirectiveError: If a directive is malformed.
            CompositionCycleError: If fragments include each other in a loop.
            FileFormatError: If a fragment is unreadable or has the wrong shape.
        """
        return self._expand_object(document, (), ())

    def _accepts_includes(self, path: tree.Path) -> bool:
        return self._includable is None or path in self._includable

    def _expand_object(
        self,
        obj: tree.JsonObject,
        prefix: tree.Path,
        stack: tuple[_pathlib.Path, ...],
    ) -> tree.JsonObject:
        result: tree.JsonObject = {}
        for key, value in obj.items():
            path = (*prefix, key)
            if isinstance(value, list):
                result[key] = self._expand_array(value, path, stack)
            elif isinstance(value, dict):
                result[key] = self._expand_object(value, path, stack)
            else:
                result[key] = value
        return result

    def _expand_array(
        self,
        items: list[_typing.Any],
        path: tree.Path,
        stack: tuple[_pathlib.Path, ...],
    ) -> list[_typing.Any]:
        accepts = self._accepts_includes(path)
        result: list[_typing.Any] = []

        for item in items:
            if accepts and is_include_directive(item):
                fragment_path, fragment_items = self._load_fragment(item, stack)
                _logger.debug(
                    "Splicing %d item(s) from %s into %s",
                    len(fragment_items),
                    fragment_path,
                    tree.format_path(path),
                )
                result.extend(self._expand_array(fragment_items, path, (*stack, fragment_path)))
            elif isinstance(item, dict):
                result.append(self._expand_object(item, path, stack))
            else:
                result.append(tree.deep_clone(item))

        return result

    def _load_fragment(
        self,
        directive: tree.JsonObject,
        stack: tuple[_pathlib.Path, ...],
    ) -> tuple[_pathlib.Path, list[_typing.Any]]:
        reference = directive[constants.INCLUDE_KEY]
        if not isinstance(reference, str) or not reference.strip():
            found = "empty string" if isinstance(reference, str) else tree.kind_of(reference)
            raise errors.InvalidDirectiveError(constants.INCLUDE_KEY, found)

        extra = sorted(key for key in directive if key != constants.INCLUDE_KEY)
        if extra:
            raise errors.InvalidDirectiveError(
                constants.INCLUDE_KEY,
                f"unexpected sibling keys {extra}",
            )

        # Escape check happens before the file is touched
        fragment_path = paths.resolve_within(self._root, reference.strip())

        if fragment_path in stack:
            chain = [paths.relative_name(p, self._root) for p in (*stack, fragment_path)]
            raise errors.CompositionCycleError(
                chain,
                path=fragment_path,
                directive=constants.INCLUDE_KEY,
            )

        if not fragment_path.is_file():
            raise errors.MissingIncludeTargetError(reference, fragment_path)

        return fragment_path, self._fragment_items(fragment_path)

    @staticmethod
    def _fragment_items(fragment_path: _pathlib.Path) -> list[_typing.Any]:
        data = loader.load_json(fragment_path)

        if isinstance(data, list):
            return data

        if isinstance(data, dict):
            if constants.FRAGMENT_ITEMS_KEY in data:
                items = data[constants.FRAGMENT_ITEMS_KEY]
                if not isinstance(items, list):
                    raise errors.FileFormatError(
                        fragment_path,
                        f"'{constants.FRAGMENT_ITEMS_KEY}' must be an array, "
                        f"got {tree.kind_of(items)}",
                    )
                return items
            return [{k: v for k, v in data.items() if k != constants.SCHEMA_KEY}]

        raise errors.FileFormatError(
            fragment_path,
            f"fragment must be a JSON array or object, got {tree.kind_of(data)}",
        )


def expand_includes(
    document: tree.JsonObject,
    base_directory: _pathlib.Path,
    includable_paths: _typing.AbstractSet[tree.Path] | None = None,
) -> tree.JsonObject:
    """
    Convenience wrapper around :class:`IncludeExpander`.

    Args:
        document: Document to expand (not modified).
        base_directory: Directory fragment references are relative to.
        includable_paths: Key paths of arrays that accept directives, or None
            for all arrays.

    Returns:
        A new document with all directives replaced by fragment contents.
    """
    return IncludeExpander(base_directory, includable_paths).expand(document)
