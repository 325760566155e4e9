"""
Command-line interface for Sigrun.
"""

from sigrun.cli.main import cli, main

__all__ = ["cli", "main"]
