"""Size measurement for regular files."""

from __future__ import annotations

import os
from enum import Enum


class SizeMode(str, Enum):
    """Enumeration for size calculation modes."""

    APPARENT = "apparent"  # Apparent size (file content size)
    DISK_USAGE = "disk_usage"  # Actual disk usage (considering filesystem blocks)


def size_from_stat(stat: os.stat_result, mode: SizeMode = SizeMode.APPARENT) -> int:
    """Calculate a file's size from its stat result.

    Args:
        stat: ``os.stat_result`` obtained without following symlinks
        mode: Size calculation mode

    Returns:
        File size in bytes
    """
    if mode == SizeMode.APPARENT:
        return stat.st_size

    # st_blocks is in 512-byte blocks on POSIX; absent on Windows
    blocks = getattr(stat, "st_blocks", None)
    if blocks is None:
        return stat.st_size
    return blocks * 512
