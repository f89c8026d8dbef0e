"""Pure formatting utilities for human-readable sizes and durations.

This module provides stateless functions for converting between raw byte
counts and human-readable strings. All functions are pure with no side
effects.

Size units are binary (1024-based). Suffixes written the decimal way
(``KB``, ``MB``, ``GB``, ``TB``) are accepted as synonyms of their binary
counterparts (``KiB``, ``MiB``, ...) rather than SI multiples: ``"100MB"``
means ``100 * 1024 * 1024`` bytes.
"""

from __future__ import annotations

import os
import re
from decimal import Decimal, InvalidOperation
from typing import Final

from diskhound.core.exceptions import SizeParseError

# Binary unit constants (1024-based)
_KIB: Final[int] = 1024
_MIB: Final[int] = _KIB * 1024  # 1,048,576
_GIB: Final[int] = _MIB * 1024  # 1,073,741,824
_TIB: Final[int] = _GIB * 1024  # 1,099,511,627,776
_PIB: Final[int] = _TIB * 1024

# Largest first; format_size picks the first unit the value reaches
_DISPLAY_UNITS: Final[tuple[tuple[int, str], ...]] = (
    (_PIB, "PiB"),
    (_TIB, "TiB"),
    (_GIB, "GiB"),
    (_MIB, "MiB"),
    (_KIB, "KiB"),
)

_SUFFIX_MULTIPLIERS: Final[dict[str, int]] = {
    "": 1,
    "b": 1,
    "k": _KIB,
    "kb": _KIB,
    "kib": _KIB,
    "m": _MIB,
    "mb": _MIB,
    "mib": _MIB,
    "g": _GIB,
    "gb": _GIB,
    "gib": _GIB,
    "t": _TIB,
    "tb": _TIB,
    "tib": _TIB,
}

_SIZE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<number>\d+(?:\.\d*)?|\.\d+)\s*(?P<suffix>[A-Za-z]*)$"
)

_MINUTE: Final[int] = 60


def parse_size(text: str) -> int:
    """Parse a human-readable size string into a byte count.

    Accepts a non-negative integer or fractional number immediately followed
    (optionally after whitespace) by a case-insensitive unit suffix. Without
    a suffix the number is taken as bytes. Fractional byte counts are
    truncated.

    Args:
        text: Size string such as ``"512"``, ``"1KB"``, ``"2.5 GiB"``

    Returns:
        Size in bytes

    Raises:
        SizeParseError: If the text is empty, negative, non-numeric, or
            carries an unknown suffix

    Examples:
        >>> parse_size("100MB")
        104857600
        >>> parse_size("1.5k")
        1536
        >>> parse_size("42")
        42
    """
    stripped = text.strip()
    if not stripped:
        raise SizeParseError(text, "size is empty")

    if stripped.startswith("-"):
        raise SizeParseError(text, "size must be non-negative")

    match = _SIZE_PATTERN.match(stripped)
    if match is None:
        raise SizeParseError(text, "expected a number followed by an optional unit (B, KB, MiB, ...)")

    suffix = match.group("suffix").lower()
    multiplier = _SUFFIX_MULTIPLIERS.get(suffix)
    if multiplier is None:
        raise SizeParseError(text, f"unknown unit {match.group('suffix')!r}")

    try:
        number = Decimal(match.group("number"))
    except InvalidOperation as e:
        raise SizeParseError(text, "not a number") from e

    return int(number * multiplier)


def format_size(bytes: int) -> str:
    """Convert bytes to a human-readable size string.

    Uses the largest binary unit for which the value is at least 1, with two
    decimal places. Values below 1 KiB are shown as whole bytes.

    Args:
        bytes: Number of bytes to format (must be non-negative)

    Returns:
        Human-readable size string

    Examples:
        >>> format_size(512)
        '512 B'
        >>> format_size(104857600)
        '100.00 MiB'
        >>> format_size(1335842133)
        '1.24 GiB'
    """
    if bytes < 0:
        msg = "bytes must be non-negative"
        raise ValueError(msg)

    for index, (threshold, unit) in enumerate(_DISPLAY_UNITS):
        if bytes >= threshold:
            # 1023.999 KiB must print as 1.00 MiB, not 1024.00 KiB
            if index > 0 and round(bytes / threshold, 2) >= _KIB:
                threshold, unit = _DISPLAY_UNITS[index - 1]
            return f"{bytes / threshold:.2f} {unit}"

    return f"{bytes} B"


def format_duration(seconds: float) -> str:
    """Convert an elapsed time in seconds to a compact string.

    Args:
        seconds: Duration in seconds (must be non-negative)

    Returns:
        ``"850ms"`` below one second, ``"2.4s"`` below one minute,
        ``"1m 05s"`` above.
    """
    if seconds < 0:
        msg = "seconds must be non-negative"
        raise ValueError(msg)

    if seconds < 1:
        return f"{int(seconds * 1000)}ms"

    if round(seconds, 1) < _MINUTE:
        return f"{seconds:.1f}s"

    minutes, remaining = divmod(round(seconds), _MINUTE)
    return f"{minutes}m {remaining:02d}s"


def printable_name(name: str) -> str:
    """Make a filesystem name safe to print.

    Names that are not valid UTF-8 reach Python with surrogate escapes and
    cannot be written to a UTF-8 stream. Their undecodable bytes are
    replaced with U+FFFD.
    """
    return os.fsencode(name).decode("utf-8", errors="replace")


def format_percent(fraction: float) -> str:
    """Render a 0..1 fraction as a percentage with one decimal place."""
    return f"{fraction * 100:.1f}%"
