"""
Sigrun - composable JSON configuration profiles.

Resolves multi-file profiles built from inheritance (``$extends``) and
fragment inclusion (``$include``), deep-merges them into one effective
document, keeps it in line with a schema, and turns edits back into
minimal child profiles.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("sigrun")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)
__author__ = "Sigrun Contributors"

from sigrun.composition import ProfileResolver  # noqa: E402
from sigrun.errors import ErrorKind, SigrunError  # noqa: E402
from sigrun.storage import Behavior, ComposableDocument, Storage  # noqa: E402

__all__ = [
    "Behavior",
    "ComposableDocument",
    "ErrorKind",
    "ProfileResolver",
    "SigrunError",
    "Storage",
    "__version__",
    "__version_info__",
]
