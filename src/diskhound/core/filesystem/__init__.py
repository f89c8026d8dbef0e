"""Filesystem operations module for directory traversal and size measurement."""

from __future__ import annotations

from .exclusions import PathMatcher
from .scanner import DirectoryScanner, ScanEntry, ScanStrategy, group_key_for
from .size_calculator import SizeMode, size_from_stat

__all__ = [
    "DirectoryScanner",
    "PathMatcher",
    "ScanEntry",
    "ScanStrategy",
    "SizeMode",
    "group_key_for",
    "size_from_stat",
]
