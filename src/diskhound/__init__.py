"""diskhound - find the largest subdirectories in a given path.

This package walks a directory tree without following symlinks, prunes
excluded subtrees before reading them, and reports the directories that
consume the most space, optionally broken down by depth.
"""

from diskhound.__main__ import main

__all__ = ["main"]
