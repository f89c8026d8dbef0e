"""Exact-name exclusion matching for directory pruning."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class PathMatcher:
    """Decide whether a directory's subtree is excluded from a scan.

    Matching is exact and case-sensitive on the directory's base name only;
    there is no glob or path-prefix matching. The matcher is immutable, so a
    single instance is shared read-only by every traversal worker.

    Examples:
        >>> matcher = PathMatcher.from_names([".git", "node_modules", ".git"])
        >>> matcher.is_excluded(".git")
        True
        >>> matcher.is_excluded("src")
        False
    """

    names: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_names(cls, names: Iterable[str]) -> PathMatcher:
        """Build a matcher from any iterable of names.

        Repeated names collapse into one entry. Surrounding whitespace is
        stripped and blank names are ignored.

        Args:
            names: Directory names to exclude

        Returns:
            A new PathMatcher
        """
        return cls(frozenset(stripped for name in names if (stripped := name.strip())))

    def is_excluded(self, name: str) -> bool:
        """Check whether a directory base name is excluded.

        Args:
            name: Base name of the directory (not a full path)

        Returns:
            True if the directory and its whole subtree must be skipped
        """
        return name in self.names

    def __len__(self) -> int:
        return len(self.names)
