"""Property-based tests for aggregation and report invariants using Hypothesis.

These tests verify properties that must hold for every directory tree:
group sizes add up, deeper levels never exceed their parents, reports are
ordered and bounded, and thread scheduling never changes the outcome.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from types import MappingProxyType

from hypothesis import given, settings, strategies as st

from diskhound.core.aggregator import AggregateResult, AggregatorShard, DirStats, ScanTotals
from diskhound.core.orchestrator import ScanSettings, run_scan
from diskhound.core.report import ReportBuilder

names = st.text(alphabet="abcdefghij", min_size=1, max_size=4)

# Recursive tree: directory -> {name: subtree or file size}
nodes = st.recursive(
    st.integers(min_value=0, max_value=5000),
    lambda children: st.dictionaries(names, children, max_size=4),
    max_leaves=20,
)
trees = st.dictionaries(names, nodes, max_size=5)


def _materialize(root: Path, tree: dict[str, object]) -> None:
    root.mkdir(parents=True, exist_ok=True)
    for name, node in tree.items():
        target = root / name
        if isinstance(node, int):
            target.touch()
            os.truncate(target, node)
        else:
            _materialize(target, node)  # pyright: ignore[reportArgumentType]


def _file_sizes(tree: dict[str, object]) -> list[int]:
    sizes: list[int] = []
    for node in tree.values():
        if isinstance(node, int):
            sizes.append(node)
        else:
            sizes.extend(_file_sizes(node))  # pyright: ignore[reportArgumentType]
    return sizes


class TestScanInvariants:
    """Properties of complete scans over generated trees."""

    @settings(max_examples=30, deadline=None)
    @given(trees, st.integers(min_value=1, max_value=3))
    def test_sizes_consistent(self, tree: dict[str, object], depth: int) -> None:
        """Property: level-one groups sum to the total, and children never exceed parents."""
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "root"
            _materialize(root, tree)

            outcome = run_scan(ScanSettings(root=root, max_depth=depth, top_n=1000, max_workers=1))

        report = outcome.report
        sizes = _file_sizes(tree)
        assert report.totals.bytes == sum(sizes)
        assert report.totals.files == len(sizes)

        by_key = {entry.key: entry for entry in report.entries}
        assert sum(entry.bytes for entry in report.entries if entry.level == 1) == report.totals.bytes
        for key, entry in by_key.items():
            if len(key) > 1:
                assert entry.bytes <= by_key[key[:-1]].bytes
            assert 0.0 <= entry.percentage <= 1.0

    @settings(max_examples=15, deadline=None)
    @given(trees)
    def test_parallel_equals_inline(self, tree: dict[str, object]) -> None:
        """Property: the thread pool produces the same report as a single thread."""
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir) / "root"
            _materialize(root, tree)

            inline = run_scan(ScanSettings(root=root, max_depth=2, max_workers=1))
            parallel = run_scan(ScanSettings(root=root, max_depth=2, max_workers=4))

        assert inline.report == parallel.report


group_sizes = st.dictionaries(
    st.lists(names, min_size=1, max_size=3).map(tuple),
    st.integers(min_value=0, max_value=10**9),
    max_size=30,
)


class TestReportInvariants:
    """Properties of report building over arbitrary aggregates."""

    @given(group_sizes, st.integers(min_value=1, max_value=10), st.integers(min_value=0, max_value=10**9))
    def test_ordered_bounded_filtered(
        self, sizes: dict[tuple[str, ...], int], top_n: int, min_size: int
    ) -> None:
        """Property: each level is sorted, truncated to top_n, and above the minimum."""
        aggregates = AggregateResult(
            groups=MappingProxyType({key: DirStats(bytes=size, files=0) for key, size in sizes.items()}),
            totals=ScanTotals(bytes=sum(sizes.values())),
        )

        report = ReportBuilder(min_size_bytes=min_size, top_n=top_n).build(aggregates)

        assert report.totals == aggregates.totals
        assert report.included_count == sum(1 for size in sizes.values() if size >= min_size)
        for _level, entries in report.levels():
            assert len(entries) <= top_n
            ranking = [(-entry.bytes, entry.path) for entry in entries]
            assert ranking == sorted(ranking)
            assert all(entry.bytes >= min_size for entry in entries)


class TestShardInvariants:
    """Properties of worker-local shards."""

    @given(st.lists(st.tuples(st.lists(names, min_size=1, max_size=3).map(tuple), st.integers(0, 10**6)), max_size=40))
    def test_split_and_merge(self, observations: list[tuple[tuple[str, ...], int]]) -> None:
        """Property: splitting observations across shards and merging changes nothing."""
        whole = AggregatorShard()
        left = AggregatorShard()
        right = AggregatorShard()
        for index, (key, size) in enumerate(observations):
            whole.observe(key, size, True)
            (left if index % 2 else right).observe(key, size, True)

        left.absorb(right)

        assert dict(left.snapshot().groups) == dict(whole.snapshot().groups)
        assert left.snapshot().totals == whole.snapshot().totals
