"""
Configuration module for Sigrun.

Uses pydantic-settings for environment variable loading.
"""

from sigrun.config.settings import Settings, find_project_root
from sigrun.config.sources import ConfigFileError

__all__ = ["ConfigFileError", "Settings", "find_project_root"]
