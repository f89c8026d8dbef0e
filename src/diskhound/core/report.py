"""Selection, ordering and truncation of finalized scan aggregates.

Groups are filtered by a minimum size, then ranked independently per depth
level: largest first, ties broken by path in ascending lexicographic order,
so the same tree always produces the same report. Totals are carried
through untouched; they describe the whole scan, never the filtered view.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Final

from diskhound.core.aggregator import AggregateResult, DirStats, GroupKey, ScanTotals, display_path
from diskhound.core.exceptions import InvalidArgumentError
from diskhound.utils.formatting import printable_name

DEFAULT_TOP_N: Final[int] = 10


@dataclass(slots=True, frozen=True)
class ReportEntry:
    """One finalized line of a report."""

    key: GroupKey
    bytes: int
    files: int
    percentage: float  # fraction of the scan total, 0.0 to 1.0

    @property
    def path(self) -> str:
        return display_path(self.key)

    @property
    def name(self) -> str:
        return printable_name(self.key[-1])

    @property
    def level(self) -> int:
        return len(self.key)


@dataclass(slots=True, frozen=True)
class Report:
    """Ordered report entries plus whole-scan totals.

    ``entries`` holds level 1 first, then level 2, and so on; within a level
    entries are ranked. ``included_count`` is the number of groups that
    passed the size filter and ``total_count`` the number of groups found,
    both across all levels.
    """

    entries: tuple[ReportEntry, ...]
    totals: ScanTotals
    included_count: int
    total_count: int

    def levels(self) -> Iterator[tuple[int, tuple[ReportEntry, ...]]]:
        """Yield ``(level, entries)`` pairs in ascending level order."""
        current: list[ReportEntry] = []
        for entry in self.entries:
            if current and entry.level != current[0].level:
                yield current[0].level, tuple(current)
                current = []
            current.append(entry)
        if current:
            yield current[0].level, tuple(current)

    def __len__(self) -> int:
        return len(self.entries)


def percentage_of(part: int, total: int) -> float:
    """Return ``part / total``, or 0.0 when the total is zero."""
    if total <= 0:
        return 0.0
    return part / total


class ReportBuilder:
    """Build a :class:`Report` from finalized aggregates."""

    def __init__(self, *, min_size_bytes: int = 0, top_n: int = DEFAULT_TOP_N) -> None:
        """Initialize the report builder.

        Args:
            min_size_bytes: Groups smaller than this are dropped
            top_n: Maximum number of entries kept per depth level

        Raises:
            InvalidArgumentError: If ``top_n`` is not positive or
                ``min_size_bytes`` is negative
        """
        if top_n <= 0:
            msg = f"top must be a positive integer, got {top_n}"
            raise InvalidArgumentError("top_n", msg)
        if min_size_bytes < 0:
            msg = f"min_size must be non-negative, got {min_size_bytes}"
            raise InvalidArgumentError("min_size", msg)

        self.min_size_bytes: int = min_size_bytes
        self.top_n: int = top_n

    def build(self, aggregates: AggregateResult) -> Report:
        """Filter, rank and truncate the aggregated groups.

        Args:
            aggregates: Output of ``Aggregator.finalize()``

        Returns:
            The finished report
        """
        totals = aggregates.totals
        by_level: defaultdict[int, list[tuple[GroupKey, DirStats]]] = defaultdict(list)
        included = 0

        for key, stats in aggregates.groups.items():
            if stats.bytes < self.min_size_bytes:
                continue
            included += 1
            by_level[len(key)].append((key, stats))

        entries: list[ReportEntry] = []
        for level in sorted(by_level):
            ranked = sorted(by_level[level], key=lambda item: (-item[1].bytes, display_path(item[0]), item[0]))
            entries.extend(
                ReportEntry(
                    key=key,
                    bytes=stats.bytes,
                    files=stats.files,
                    percentage=percentage_of(stats.bytes, totals.bytes),
                )
                for key, stats in ranked[: self.top_n]
            )

        return Report(
            entries=tuple(entries),
            totals=totals,
            included_count=included,
            total_count=len(aggregates.groups),
        )
