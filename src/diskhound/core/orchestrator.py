"""Scan orchestration: validate inputs, traverse, aggregate, report.

Every argument is validated before the first directory is opened, so an
``InvalidArgumentError`` or ``InvalidRootError`` always means no I/O on the
tree took place. Per-entry I/O problems during traversal never surface
here; they are counted in ``ScanTotals.skipped``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from diskhound.core.aggregator import Aggregator
from diskhound.core.exceptions import InvalidArgumentError, InvalidRootError
from diskhound.core.filesystem.exclusions import PathMatcher
from diskhound.core.filesystem.scanner import DirectoryScanner, ScanStrategy
from diskhound.core.filesystem.size_calculator import SizeMode
from diskhound.core.report import DEFAULT_TOP_N, Report, ReportBuilder
from diskhound.utils.formatting import parse_size

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ScanSettings:
    """Explicit inputs for one scan. Nothing is read from global state."""

    root: Path
    top_n: int = DEFAULT_TOP_N
    exclude: frozenset[str] = field(default_factory=frozenset)
    min_size_bytes: int = 0
    max_depth: int = 1
    size_mode: SizeMode = SizeMode.APPARENT
    strategy: ScanStrategy = ScanStrategy.DEPTH_FIRST
    max_workers: int | None = None

    def validate(self) -> None:
        """Check argument ranges.

        Raises:
            InvalidArgumentError: On the first out-of-range argument
        """
        if self.top_n <= 0:
            msg = f"top must be a positive integer, got {self.top_n}"
            raise InvalidArgumentError("top_n", msg)
        if self.max_depth < 1:
            msg = f"depth must be at least 1, got {self.max_depth}"
            raise InvalidArgumentError("max_depth", msg)
        if self.min_size_bytes < 0:
            msg = f"min_size must be non-negative, got {self.min_size_bytes}"
            raise InvalidArgumentError("min_size", msg)
        if self.max_workers is not None and self.max_workers < 1:
            msg = f"workers must be at least 1, got {self.max_workers}"
            raise InvalidArgumentError("max_workers", msg)


@dataclass(slots=True, frozen=True)
class ScanOutcome:
    """A finished scan: where, how deep, what was found, how long it took."""

    root: Path
    max_depth: int
    report: Report
    elapsed_seconds: float


def validate_root(root: Path | str) -> Path:
    """Check that the scan root exists and is a directory.

    Args:
        root: Path supplied by the caller

    Returns:
        The absolute root path

    Raises:
        InvalidRootError: If the path is missing or not a directory
    """
    path = Path(root).expanduser()
    try:
        if not path.exists():
            raise InvalidRootError(path, "path does not exist")
        if not path.is_dir():
            raise InvalidRootError(path, "not a directory")
    except OSError as e:
        raise InvalidRootError(path, e.strerror or str(e)) from e
    return path.absolute()


def run_scan(settings: ScanSettings) -> ScanOutcome:
    """Run a complete scan and build its report.

    Args:
        settings: Validated or unvalidated scan settings

    Returns:
        The scan outcome

    Raises:
        InvalidArgumentError: If a setting is out of range
        InvalidRootError: If the root is missing or not a directory
    """
    settings.validate()
    builder = ReportBuilder(min_size_bytes=settings.min_size_bytes, top_n=settings.top_n)
    root = validate_root(settings.root)

    matcher = PathMatcher.from_names(settings.exclude)
    scanner = DirectoryScanner(
        matcher,
        size_mode=settings.size_mode,
        strategy=settings.strategy,
        max_workers=settings.max_workers,
    )
    aggregator = Aggregator()

    logger.info(
        "Starting scan",
        extra={
            "root": str(root),
            "depth": settings.max_depth,
            "excluded_names": sorted(matcher.names),
            "workers": scanner.max_workers,
        },
    )
    started = time.perf_counter()
    scanner.scan(root, aggregator, settings.max_depth)
    aggregates = aggregator.finalize()
    elapsed = time.perf_counter() - started

    report = builder.build(aggregates)
    totals = report.totals
    logger.info(
        "Scan complete",
        extra={
            "root": str(root),
            "total_bytes": totals.bytes,
            "files": totals.files,
            "directories": totals.directories,
            "groups": report.total_count,
            "elapsed_seconds": round(elapsed, 3),
        },
    )
    if totals.skipped:
        logger.warning(
            "Some entries could not be read; totals may be under-counted",
            extra={"skipped": totals.skipped, "root": str(root)},
        )

    return ScanOutcome(root=root, max_depth=settings.max_depth, report=report, elapsed_seconds=elapsed)


def scan_directory(
    root: Path | str,
    *,
    top_n: int = DEFAULT_TOP_N,
    exclude: Iterable[str] = (),
    min_size: int | str = 0,
    max_depth: int = 1,
    size_mode: SizeMode = SizeMode.APPARENT,
    max_workers: int | None = None,
) -> ScanOutcome:
    """Keyword convenience wrapper around :func:`run_scan`.

    ``min_size`` may be a byte count or a size string such as ``"1KB"``.

    Example:
        >>> outcome = scan_directory(".", top_n=5, exclude=[".git"], min_size="1MiB")
        >>> [entry.path for entry in outcome.report.entries]  # doctest: +SKIP
        ['src', 'docs']
    """
    min_size_bytes = parse_size(min_size) if isinstance(min_size, str) else min_size
    settings = ScanSettings(
        root=Path(root),
        top_n=top_n,
        exclude=frozenset(exclude),
        min_size_bytes=min_size_bytes,
        max_depth=max_depth,
        size_mode=size_mode,
        max_workers=max_workers,
    )
    return run_scan(settings)
