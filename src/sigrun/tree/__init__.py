"""
JSON value trees with deep merge and sparse diff.

Example:
    >>> import sigrun.tree as tree
    >>> base = {"color": "red", "tags": ["a"]}
    >>> child = {"tags": ["b"], "color": None}
    >>> tree.merge(base, child)
    {'tags': ['a', 'b']}
    >>> tree.create_patch({"tags": ["a"]}, {"tags": ["a"], "size": 5})
    {'size': 5}
"""

from sigrun.tree._diff import create_child_profile, create_patch
from sigrun.tree._merge import merge, merge_chain
from sigrun.tree._types import JsonObject, JsonValue, Path, format_path
from sigrun.tree._values import deep_clone, deep_equal, is_array, is_object, iter_paths, kind_of

__all__ = [
    "JsonObject",
    "JsonValue",
    "Path",
    "create_child_profile",
    "create_patch",
    "deep_clone",
    "deep_equal",
    "format_path",
    "is_array",
    "is_object",
    "iter_paths",
    "kind_of",
    "merge",
    "merge_chain",
]
