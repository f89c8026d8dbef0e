"""Exception hierarchy for disk usage scans.

Only ``InvalidRootError`` and ``InvalidArgumentError`` (and configuration
errors raised by :mod:`diskhound.core.config`) ever reach callers of a scan.
``EntryIOError`` is raised and absorbed inside the traversal engine.
"""

from __future__ import annotations

from pathlib import Path


class DiskhoundError(Exception):
    """Base exception for all diskhound errors."""

    def __init__(self, message: str, context: dict[str, object] | None = None) -> None:
        """Initialize DiskhoundError.

        Args:
            message: Error message
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.message: str = message
        self.context: dict[str, object] = context or {}


class InvalidRootError(DiskhoundError):
    """Raised when the scan root is missing or is not a directory."""

    def __init__(self, root: Path, reason: str) -> None:
        """Initialize InvalidRootError.

        Args:
            root: The root path that was rejected
            reason: Human-readable reason for the rejection
        """
        super().__init__(f"Invalid root {str(root)!r}: {reason}", {"root": str(root)})
        self.root: Path = root
        self.reason: str = reason


class InvalidArgumentError(DiskhoundError, ValueError):
    """Raised when a scan argument is out of range or malformed."""

    def __init__(self, argument: str, message: str) -> None:
        """Initialize InvalidArgumentError.

        Args:
            argument: Name of the offending argument (e.g. ``top_n``)
            message: Human-readable description of the problem
        """
        super().__init__(message, {"argument": argument})
        self.argument: str = argument


class SizeParseError(InvalidArgumentError):
    """Raised when a human-readable size string cannot be parsed."""

    def __init__(self, text: str, reason: str) -> None:
        super().__init__("min_size", f"Invalid size {text!r}: {reason}")
        self.text: str = text


class EntryIOError(DiskhoundError):
    """A single filesystem entry could not be listed or stat'ed.

    Always recovered locally by the traversal engine: the entry is skipped
    and traversal continues.
    """

    def __init__(self, path: Path, error: OSError) -> None:
        """Initialize EntryIOError.

        Args:
            path: Path of the entry that failed
            error: The underlying OS error
        """
        super().__init__(
            f"Cannot access {str(path)!r}: {error.strerror or error}",
            {"path": str(path), "errno": error.errno},
        )
        self.path: Path = path
        self.error: OSError = error


class ConfigurationError(DiskhoundError):
    """Raised when a configuration file cannot be loaded or is invalid."""


class AggregatorFinalizedError(RuntimeError):
    """Raised when an aggregator is used after ``finalize()``.

    This signals a programming error, not a recoverable runtime condition.
    """
