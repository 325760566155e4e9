"""
File storage for Sigrun: behavior policies, composable documents, and the
settings / state / output directory managers.
"""

from sigrun.storage.behavior import Behavior, BehaviorPolicy, MissingFile
from sigrun.storage.csv_store import CsvStore
from sigrun.storage.document import ComposableDocument, ReadResult
from sigrun.storage.managers import (
    OutputManager,
    SettingsManager,
    SettingsSubDir,
    StateManager,
    Storage,
    list_json_files,
    timestamp,
)

__all__ = [
    "Behavior",
    "BehaviorPolicy",
    "ComposableDocument",
    "CsvStore",
    "MissingFile",
    "OutputManager",
    "ReadResult",
    "SettingsManager",
    "SettingsSubDir",
    "StateManager",
    "Storage",
    "list_json_files",
    "timestamp",
]
