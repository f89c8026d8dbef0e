"""Logging setup for the diskhound command-line tool.

Log records go to stderr so that report output on stdout stays clean and
machine-readable. Structured context passed through ``extra={...}`` is
appended to each line as ``key=value`` pairs.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Final, override

DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Rotating file handler defaults
DEFAULT_MAX_BYTES: Final[int] = 5 * 1024 * 1024
DEFAULT_BACKUP_COUNT: Final[int] = 3

# Attributes every LogRecord carries; anything else came from ``extra``
_STANDARD_ATTRS: Final[frozenset[str]] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Formatter that appends ``extra`` fields as sorted ``key=value`` pairs."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()  # pyright: ignore[reportAny]
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if not context:
            return base
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{base} [{pairs}]"


def create_rotating_file_handler(
    filename: Path | str,
    *,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.handlers.RotatingFileHandler:
    """Create a size-rotated file handler, creating parent directories.

    Args:
        filename: Path to log file
        max_bytes: Maximum file size before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured rotating file handler
    """
    filepath = Path(filename).expanduser()
    filepath.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        str(filepath),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


def configure_logging(
    *,
    log_level: str = "WARNING",
    log_file: Path | None = None,
    enable_console: bool = True,
) -> None:
    """Configure root logging for a diskhound run.

    Removes any existing root handlers first so repeated calls do not
    duplicate output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file receiving the same records, size-rotated
        enable_console: Enable the stderr handler

    Example:
        >>> configure_logging(log_level="INFO")
        >>> logging.getLogger("diskhound").info("Scan complete", extra={"files": 12})
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.WARNING))
    root_logger.handlers.clear()

    formatter = ContextFormatter(DEFAULT_LOG_FORMAT)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file is not None:
        try:
            file_handler = create_rotating_file_handler(log_file)
        except OSError as exc:
            # Logging to a file is optional; keep running on the console handler
            print(f"Warning: Could not open log file {log_file}: {exc}", file=sys.stderr)
        else:
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
