"""Application module: command-line interface, runner and rendering."""

from __future__ import annotations

from diskhound.app.cli import cli
from diskhound.app.runner import ApplicationRunner, OutputFormat

__all__ = [
    "ApplicationRunner",
    "OutputFormat",
    "cli",
]
