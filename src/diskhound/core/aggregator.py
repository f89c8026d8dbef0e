"""Thread-safe accumulation of traversal observations into group totals.

Traversal workers either call :meth:`Aggregator.observe` directly (every
call takes the aggregator lock) or, on the hot path, fill a worker-local
:class:`AggregatorShard` that is merged once with :meth:`Aggregator.merge`
when the worker's subtree is done. Merging is a plain sum, so the order in
which shards arrive never changes the result.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from diskhound.core.exceptions import AggregatorFinalizedError
from diskhound.utils.formatting import printable_name

# Path components relative to the scan root, truncated to the grouping depth
type GroupKey = tuple[str, ...]


def display_path(key: GroupKey) -> str:
    """Render a group key as a printable POSIX-style relative path."""
    return "/".join(printable_name(part) for part in key)


@dataclass(slots=True, frozen=True)
class DirStats:
    """Finalized totals for one group."""

    bytes: int = 0
    files: int = 0


@dataclass(slots=True, frozen=True)
class ScanTotals:
    """Whole-scan totals, independent of any report filter.

    ``directories`` does not include the scan root itself. ``skipped`` counts
    entries that could not be listed or stat'ed.
    """

    bytes: int = 0
    files: int = 0
    directories: int = 0
    skipped: int = 0


@dataclass(slots=True, frozen=True)
class AggregateResult:
    """Immutable output of :meth:`Aggregator.finalize`."""

    groups: Mapping[GroupKey, DirStats]
    totals: ScanTotals

    def level(self, depth: int) -> dict[GroupKey, DirStats]:
        """Return only the groups whose key has exactly ``depth`` components."""
        return {key: stats for key, stats in self.groups.items() if len(key) == depth}


class _GroupAccumulator:
    __slots__ = ("bytes", "files")

    def __init__(self) -> None:
        self.bytes: int = 0
        self.files: int = 0


class AggregatorShard:
    """Unsynchronized accumulator owned by a single worker.

    Has the same ``observe`` contract as :class:`Aggregator`. Not safe to
    share between threads.
    """

    def __init__(self) -> None:
        self._groups: dict[GroupKey, _GroupAccumulator] = {}
        self.total_bytes: int = 0
        self.total_files: int = 0
        self.total_directories: int = 0
        self.skipped: int = 0

    def observe(
        self,
        group_key: GroupKey | None,
        byte_size: int,
        is_file: bool,
        *,
        is_dir: bool = False,
    ) -> None:
        """Record one traversed entry.

        Updates the scan totals once, then adds the entry to ``group_key``
        and every enclosing group (each prefix of the key).

        Args:
            group_key: Deepest group the entry belongs to, or None to count
                it in the totals only
            byte_size: Bytes contributed by the entry (0 for directories)
            is_file: Whether the entry is a regular file
            is_dir: Whether the entry is a directory
        """
        if byte_size < 0:
            msg = f"byte_size must be non-negative, got {byte_size}"
            raise ValueError(msg)

        self.total_bytes += byte_size
        if is_file:
            self.total_files += 1
        if is_dir:
            self.total_directories += 1

        if not group_key:
            return

        for depth in range(1, len(group_key) + 1):
            prefix = group_key[:depth]
            accumulator = self._groups.get(prefix)
            if accumulator is None:
                accumulator = self._groups[prefix] = _GroupAccumulator()
            accumulator.bytes += byte_size
            if is_file:
                accumulator.files += 1

    def record_skipped(self, count: int = 1) -> None:
        """Count entries lost to per-entry I/O errors."""
        self.skipped += count

    def absorb(self, other: AggregatorShard) -> None:
        """Add another shard's counts into this one."""
        for key, incoming in other._groups.items():
            accumulator = self._groups.get(key)
            if accumulator is None:
                accumulator = self._groups[key] = _GroupAccumulator()
            accumulator.bytes += incoming.bytes
            accumulator.files += incoming.files

        self.total_bytes += other.total_bytes
        self.total_files += other.total_files
        self.total_directories += other.total_directories
        self.skipped += other.skipped

    def snapshot(self) -> AggregateResult:
        """Freeze the current counts into an :class:`AggregateResult`."""
        groups = {key: DirStats(bytes=acc.bytes, files=acc.files) for key, acc in self._groups.items()}
        totals = ScanTotals(
            bytes=self.total_bytes,
            files=self.total_files,
            directories=self.total_directories,
            skipped=self.skipped,
        )
        return AggregateResult(groups=MappingProxyType(groups), totals=totals)


class Aggregator:
    """Shared, lock-protected accumulator for a single scan.

    Valid for exactly one scan: after :meth:`finalize` every mutating call
    raises :class:`AggregatorFinalizedError`.

    Example:
        >>> aggregator = Aggregator()
        >>> aggregator.observe(("A",), 0, False, is_dir=True)
        >>> aggregator.observe(("A",), 100, True)
        >>> result = aggregator.finalize()
        >>> result.groups[("A",)]
        DirStats(bytes=100, files=1)
    """

    def __init__(self) -> None:
        self._lock: threading.Lock = threading.Lock()
        self._state: AggregatorShard = AggregatorShard()
        self._finalized: bool = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def observe(
        self,
        group_key: GroupKey | None,
        byte_size: int,
        is_file: bool,
        *,
        is_dir: bool = False,
    ) -> None:
        """Thread-safe version of :meth:`AggregatorShard.observe`."""
        with self._lock:
            self._ensure_open()
            self._state.observe(group_key, byte_size, is_file, is_dir=is_dir)

    def record_skipped(self, count: int = 1) -> None:
        """Thread-safe count of entries lost to per-entry I/O errors."""
        with self._lock:
            self._ensure_open()
            self._state.record_skipped(count)

    def shard(self) -> AggregatorShard:
        """Create an empty worker-local shard to be merged later."""
        return AggregatorShard()

    def merge(self, shard: AggregatorShard) -> None:
        """Fold a worker's shard into the shared totals.

        Args:
            shard: Shard filled by exactly one worker; must not be modified
                afterwards
        """
        with self._lock:
            self._ensure_open()
            self._state.absorb(shard)

    def finalize(self) -> AggregateResult:
        """Close the aggregator and return the immutable result.

        Must be called once, after every traversal worker has completed.

        Returns:
            Per-group stats and whole-scan totals

        Raises:
            AggregatorFinalizedError: If called more than once
        """
        with self._lock:
            self._ensure_open()
            self._finalized = True
            return self._state.snapshot()

    def _ensure_open(self) -> None:
        if self._finalized:
            msg = "Aggregator has already been finalized"
            raise AggregatorFinalizedError(msg)
