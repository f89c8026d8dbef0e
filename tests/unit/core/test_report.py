"""Tests for report building."""

from __future__ import annotations

from types import MappingProxyType

import pytest

from diskhound.core.aggregator import AggregateResult, DirStats, GroupKey, ScanTotals
from diskhound.core.exceptions import InvalidArgumentError
from diskhound.core.report import DEFAULT_TOP_N, Report, ReportBuilder, ReportEntry, percentage_of


def _aggregates(sizes: dict[GroupKey, int], total: int | None = None) -> AggregateResult:
    groups = {key: DirStats(bytes=size, files=1) for key, size in sizes.items()}
    level_one = sum(size for key, size in sizes.items() if len(key) == 1)
    totals = ScanTotals(bytes=level_one if total is None else total, files=len(sizes), directories=len(sizes))
    return AggregateResult(groups=MappingProxyType(groups), totals=totals)


class TestReportBuilderValidation:
    """Test ReportBuilder argument checks."""

    def test_defaults(self) -> None:
        """Test default settings."""
        builder = ReportBuilder()

        assert builder.top_n == DEFAULT_TOP_N == 10
        assert builder.min_size_bytes == 0

    @pytest.mark.parametrize("top_n", [0, -3])
    def test_non_positive_top_rejected(self, top_n: int) -> None:
        """Test that top must be positive."""
        with pytest.raises(InvalidArgumentError, match="top must be a positive integer") as exc_info:
            _ = ReportBuilder(top_n=top_n)
        assert exc_info.value.argument == "top_n"

    def test_negative_min_size_rejected(self) -> None:
        """Test that min size must be non-negative."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            _ = ReportBuilder(min_size_bytes=-1)
        assert exc_info.value.argument == "min_size"


class TestReportBuilderBuild:
    """Test ReportBuilder.build."""

    def test_sorted_largest_first(self) -> None:
        """Test descending order by size."""
        report = ReportBuilder().build(_aggregates({("small",): 1, ("big",): 100, ("mid",): 10}))

        assert [entry.path for entry in report.entries] == ["big", "mid", "small"]

    def test_top_truncates(self) -> None:
        """Test that only the largest group is kept with top 1."""
        report = ReportBuilder(top_n=1).build(_aggregates({("A",): 5, ("B",): 3, ("C",): 3}))

        assert [(entry.path, entry.bytes) for entry in report.entries] == [("A", 5)]
        assert report.total_count == 3
        assert report.included_count == 3

    def test_ties_broken_by_path(self) -> None:
        """Test that equal sizes are ordered by ascending path."""
        report = ReportBuilder().build(_aggregates({("zeta",): 3, ("alpha",): 3, ("mid",): 3}))

        assert [entry.path for entry in report.entries] == ["alpha", "mid", "zeta"]

    def test_min_size_filters_entries_not_totals(self) -> None:
        """Test that the size filter never changes the scan totals."""
        aggregates = _aggregates({("A",): 500, ("B",): 5})

        report = ReportBuilder(min_size_bytes=100).build(aggregates)

        assert [entry.path for entry in report.entries] == ["A"]
        assert report.totals == aggregates.totals
        assert report.totals.bytes == 505
        assert report.included_count == 1
        assert report.total_count == 2

    def test_min_size_inclusive(self) -> None:
        """Test that a group exactly at the minimum is kept."""
        report = ReportBuilder(min_size_bytes=10).build(_aggregates({("A",): 10, ("B",): 9}))

        assert [entry.path for entry in report.entries] == ["A"]

    def test_percentages(self) -> None:
        """Test that percentages are fractions of the scan total."""
        report = ReportBuilder().build(_aggregates({("A",): 75, ("B",): 25}))

        assert [entry.percentage for entry in report.entries] == [0.75, 0.25]

    def test_zero_total(self) -> None:
        """Test that an all-empty scan yields zero percentages."""
        report = ReportBuilder().build(_aggregates({("empty",): 0}))

        assert report.entries[0].percentage == 0.0

    def test_empty_aggregates(self) -> None:
        """Test that no groups yield an empty report."""
        report = ReportBuilder().build(_aggregates({}))

        assert report.entries == ()
        assert len(report) == 0
        assert list(report.levels()) == []

    def test_top_applies_per_level(self) -> None:
        """Test that each depth level is ranked and truncated on its own."""
        aggregates = _aggregates(
            {
                ("A",): 300,
                ("B",): 200,
                ("C",): 100,
                ("A", "x"): 250,
                ("A", "y"): 50,
                ("B", "z"): 200,
            }
        )

        report = ReportBuilder(top_n=2).build(aggregates)

        assert [entry.path for entry in report.entries] == ["A", "B", "A/x", "B/z"]
        levels = dict(report.levels())
        assert [entry.path for entry in levels[1]] == ["A", "B"]
        assert [entry.path for entry in levels[2]] == ["A/x", "B/z"]
        assert report.included_count == 6


class TestReportEntry:
    """Test ReportEntry properties."""

    def test_path_name_level(self) -> None:
        """Test derived properties of a nested entry."""
        entry = ReportEntry(key=("A", "x", "y"), bytes=1, files=1, percentage=0.1)

        assert entry.path == "A/x/y"
        assert entry.name == "y"
        assert entry.level == 3

    def test_name_is_printable(self) -> None:
        """Test that undecodable bytes are replaced in displayed names only."""
        entry = ReportEntry(key=("caf\udce9",), bytes=1, files=1, percentage=1.0)

        assert entry.name == "caf\ufffd"
        assert entry.path == "caf\ufffd"
        assert entry.key == ("caf\udce9",)


def test_percentage_of() -> None:
    """Test fraction computation with a zero guard."""
    assert percentage_of(50, 200) == 0.25
    assert percentage_of(5, 0) == 0.0


def test_report_len() -> None:
    """Test that len counts entries."""
    report = Report(entries=(), totals=ScanTotals(), included_count=0, total_count=0)

    assert len(report) == 0
