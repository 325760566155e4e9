"""
Profile composition for Sigrun.

Resolves ``$extends`` inheritance chains and ``$include`` fragment
directives into a single flattened JSON document.
"""

from sigrun.composition.includes import (
    IncludeExpander,
    contains_include_directives,
    expand_includes,
    is_include_directive,
)
from sigrun.composition.loader import dump_json, load_json, load_json_object
from sigrun.composition.paths import relative_name, resolve_within
from sigrun.composition.profile import Profile, parse_profile
from sigrun.composition.resolver import BaseHook, ProfileResolver

__all__ = [
    "BaseHook",
    "IncludeExpander",
    "Profile",
    "ProfileResolver",
    "contains_include_directives",
    "dump_json",
    "expand_includes",
    "is_include_directive",
    "load_json",
    "load_json_object",
    "parse_profile",
    "relative_name",
    "resolve_within",
]
