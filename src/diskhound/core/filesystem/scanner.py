"""Directory scanner for disk usage traversal.

Walks a directory tree without ever following symbolic links, prunes
excluded directories before opening them, and absorbs per-entry I/O errors.
Two entry points are offered:

- :meth:`DirectoryScanner.walk` lazily yields every entry below a root on
  the calling thread.
- :meth:`DirectoryScanner.scan` partitions the tree at the first directory
  level, walks each top-level subtree on a bounded thread pool into a
  worker-local shard, and merges the shards into an :class:`Aggregator`.
"""

from __future__ import annotations

import logging
import os
import stat
import threading
from collections import deque
from collections.abc import Callable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from diskhound.core.aggregator import Aggregator, AggregatorShard, GroupKey
from diskhound.core.exceptions import EntryIOError, InvalidArgumentError

from .exclusions import PathMatcher
from .size_calculator import SizeMode, size_from_stat

logger = logging.getLogger(__name__)

type ErrorHandler = Callable[[EntryIOError], None]


def default_worker_count() -> int:
    """Default pool size, matching ``ThreadPoolExecutor``'s own default."""
    return min(32, (os.cpu_count() or 1) + 4)


class ScanStrategy(str, Enum):
    """Enumeration for directory scanning strategies."""

    DEPTH_FIRST = "depth_first"
    BREADTH_FIRST = "breadth_first"


@dataclass(slots=True, frozen=True)
class ScanEntry:
    """One observed filesystem entry.

    Symlinks, sockets, FIFOs and device nodes have ``is_dir`` and
    ``is_file`` both False and a size of 0.
    """

    path: Path
    is_dir: bool
    size: int
    is_file: bool = False


def group_key_for(parts: tuple[str, ...], is_dir: bool, max_depth: int) -> GroupKey:
    """Compute the deepest group an entry contributes to.

    Directories group under themselves, truncated to ``max_depth``. Files
    group under their parent directory, truncated the same way, so a file
    nested deeper than ``max_depth`` counts toward its ancestor at exactly
    that level. A file directly inside the root forms its own group.

    Args:
        parts: Path components of the entry relative to the scan root
        is_dir: Whether the entry is a directory
        max_depth: Grouping depth (1 = immediate children of the root)

    Returns:
        The group key

    Examples:
        >>> group_key_for(("A", "x", "y", "f.bin"), False, 2)
        ('A', 'x')
        >>> group_key_for(("A", "f.bin"), False, 2)
        ('A',)
        >>> group_key_for(("notes.txt",), False, 1)
        ('notes.txt',)
    """
    if is_dir:
        return parts[:max_depth]

    parent = parts[:-1]
    if not parent:
        return parts
    return parent[:max_depth]


class DirectoryScanner:
    """Scanner for traversing directory trees with exact-name exclusions.

    Provides directory traversal with support for:
    - Subtree pruning before any I/O on excluded directories
    - Depth-first or breadth-first ordering
    - Apparent or block-based file sizes
    - Graceful handling of permission and transient I/O errors
    - Parallel traversal of disjoint top-level subtrees

    Symlinks are never followed; they are reported as zero-size leaves.
    """

    def __init__(
        self,
        matcher: PathMatcher | None = None,
        *,
        size_mode: SizeMode = SizeMode.APPARENT,
        strategy: ScanStrategy = ScanStrategy.DEPTH_FIRST,
        max_workers: int | None = None,
    ) -> None:
        """Initialize the directory scanner.

        Args:
            matcher: Exclusion matcher (None excludes nothing)
            size_mode: How regular file sizes are measured
            strategy: Traversal order within a subtree
            max_workers: Thread pool size for :meth:`scan` (None for the
                default, 1 to walk on the calling thread)

        Raises:
            InvalidArgumentError: If ``max_workers`` is less than 1
        """
        if max_workers is not None and max_workers < 1:
            msg = f"max_workers must be at least 1, got {max_workers}"
            raise InvalidArgumentError("max_workers", msg)

        self.matcher: PathMatcher = matcher or PathMatcher()
        self.size_mode: SizeMode = size_mode
        self.strategy: ScanStrategy = strategy
        self.max_workers: int = max_workers or default_worker_count()

    def walk(self, root: Path, on_error: ErrorHandler | None = None) -> Iterator[ScanEntry]:
        """Yield every entry below ``root``, respecting exclusions.

        The root itself is not yielded. The generator is one-shot; walking
        again means calling this method again.

        Args:
            root: Directory to walk
            on_error: Called for each entry skipped because of an I/O error

        Yields:
            ScanEntry for every reachable, non-excluded entry
        """
        handler = on_error or _log_skipped
        for _parts, entry in self._walk_from(Path(root), (), handler):
            yield entry

    def scan(self, root: Path, aggregator: Aggregator, max_depth: int) -> None:
        """Traverse ``root`` and push every observation into ``aggregator``.

        Lists the top level on the calling thread, then walks each
        non-excluded top-level directory as an independent task. Returns
        once every task has been merged; the caller finalizes the
        aggregator.

        Args:
            root: Directory to scan
            aggregator: Destination for observations
            max_depth: Grouping depth (at least 1)

        Raises:
            InvalidArgumentError: If ``max_depth`` is less than 1
        """
        if max_depth < 1:
            msg = f"max_depth must be at least 1, got {max_depth}"
            raise InvalidArgumentError("max_depth", msg)

        root = Path(root)
        try:
            top_level = self._list_directory(root)
        except EntryIOError as exc:
            logger.warning("Cannot read scan root", extra={"path": str(root), "error": exc.message})
            aggregator.record_skipped()
            return

        subtrees: list[tuple[Path, tuple[str, ...]]] = []
        for dir_entry in top_level:
            try:
                entry = self._describe(dir_entry)
            except EntryIOError as exc:
                _log_skipped(exc)
                aggregator.record_skipped()
                continue

            if entry.is_dir and self.matcher.is_excluded(dir_entry.name):
                logger.debug("Excluded directory pruned", extra={"path": dir_entry.path})
                continue

            parts = (dir_entry.name,)
            aggregator.observe(
                group_key_for(parts, entry.is_dir, max_depth),
                entry.size,
                entry.is_file,
                is_dir=entry.is_dir,
            )
            if entry.is_dir:
                subtrees.append((entry.path, parts))

        if self.max_workers == 1 or len(subtrees) <= 1:
            for directory, parts in subtrees:
                aggregator.merge(self._scan_subtree(aggregator.shard(), directory, parts, max_depth, None))
            return

        self._scan_parallel(subtrees, aggregator, max_depth)

    def _scan_parallel(
        self,
        subtrees: list[tuple[Path, tuple[str, ...]]],
        aggregator: Aggregator,
        max_depth: int,
    ) -> None:
        cancelled = threading.Event()
        pool = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(subtrees)),
            thread_name_prefix="diskhound-scan",
        )
        try:
            futures: list[Future[AggregatorShard]] = [
                pool.submit(self._scan_subtree, aggregator.shard(), directory, parts, max_depth, cancelled)
                for directory, parts in subtrees
            ]
            for future in futures:
                aggregator.merge(future.result())
        except BaseException:
            # Interrupted or a worker raised: stop the others without waiting
            cancelled.set()
            pool.shutdown(wait=False, cancel_futures=True)
            raise
        else:
            pool.shutdown()

    def _scan_subtree(
        self,
        shard: AggregatorShard,
        directory: Path,
        parts: tuple[str, ...],
        max_depth: int,
        cancelled: threading.Event | None,
    ) -> AggregatorShard:
        """Walk one top-level subtree into ``shard`` and return it."""

        def on_error(exc: EntryIOError) -> None:
            _log_skipped(exc)
            shard.record_skipped()

        for entry_parts, entry in self._walk_from(directory, parts, on_error):
            if cancelled is not None and cancelled.is_set():
                break
            shard.observe(
                group_key_for(entry_parts, entry.is_dir, max_depth),
                entry.size,
                entry.is_file,
                is_dir=entry.is_dir,
            )
        return shard

    def _walk_from(
        self,
        directory: Path,
        parts: tuple[str, ...],
        on_error: ErrorHandler,
    ) -> Iterator[tuple[tuple[str, ...], ScanEntry]]:
        """Walk below ``directory`` whose components relative to the root are ``parts``."""
        pending: deque[tuple[Path, tuple[str, ...]]] = deque([(directory, parts)])
        depth_first = self.strategy == ScanStrategy.DEPTH_FIRST

        while pending:
            current, current_parts = pending.pop() if depth_first else pending.popleft()

            try:
                children = self._list_directory(current)
            except EntryIOError as exc:
                on_error(exc)
                continue

            for dir_entry in children:
                try:
                    entry = self._describe(dir_entry)
                except EntryIOError as exc:
                    on_error(exc)
                    continue

                if entry.is_dir and self.matcher.is_excluded(dir_entry.name):
                    logger.debug("Excluded directory pruned", extra={"path": dir_entry.path})
                    continue

                entry_parts = (*current_parts, dir_entry.name)
                yield entry_parts, entry

                if entry.is_dir:
                    pending.append((entry.path, entry_parts))

    def _list_directory(self, path: Path) -> list[os.DirEntry[str]]:
        """List a directory's entries, sorted by name for stable traversal order.

        Raises:
            EntryIOError: If the directory cannot be opened or read
        """
        try:
            with os.scandir(path) as it:
                return sorted(it, key=lambda dir_entry: dir_entry.name)
        except OSError as e:
            raise EntryIOError(path, e) from e

    def _describe(self, dir_entry: os.DirEntry[str]) -> ScanEntry:
        """Classify an entry and measure it without following symlinks.

        Raises:
            EntryIOError: If the entry cannot be stat'ed
        """
        path = Path(dir_entry.path)
        try:
            st = dir_entry.stat(follow_symlinks=False)
        except OSError as e:
            raise EntryIOError(path, e) from e

        if stat.S_ISDIR(st.st_mode):
            return ScanEntry(path=path, is_dir=True, size=0)
        if stat.S_ISREG(st.st_mode):
            return ScanEntry(path=path, is_dir=False, size=size_from_stat(st, self.size_mode), is_file=True)

        # Symlinks and special files are leaves with no size contribution
        return ScanEntry(path=path, is_dir=False, size=0)


def _log_skipped(exc: EntryIOError) -> None:
    logger.debug("Skipping unreadable entry", extra={"path": str(exc.path), "error": exc.message})
