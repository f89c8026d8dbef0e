"""Tests for scan orchestration."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from diskhound.core.exceptions import InvalidArgumentError, InvalidRootError
from diskhound.core.orchestrator import ScanSettings, run_scan, scan_directory, validate_root

MIB = 1024 * 1024


class TestValidateRoot:
    """Test validate_root."""

    def test_missing_path(self, tmp_path: Path) -> None:
        """Test that a missing root is rejected."""
        with pytest.raises(InvalidRootError, match="does not exist") as exc_info:
            _ = validate_root(tmp_path / "missing")
        assert exc_info.value.reason == "path does not exist"

    def test_file_path(self, tmp_path: Path) -> None:
        """Test that a regular file is rejected."""
        target = tmp_path / "file.txt"
        _ = target.write_text("x")

        with pytest.raises(InvalidRootError, match="not a directory"):
            _ = validate_root(target)

    def test_returns_absolute_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that relative roots are made absolute."""
        (tmp_path / "data").mkdir()
        monkeypatch.chdir(tmp_path)

        resolved = validate_root("data")

        assert resolved.is_absolute()
        assert resolved.resolve() == (tmp_path / "data").resolve()


class TestScanSettingsValidation:
    """Test ScanSettings.validate."""

    @pytest.mark.parametrize(
        ("overrides", "argument"),
        [
            ({"top_n": 0}, "top_n"),
            ({"max_depth": 0}, "max_depth"),
            ({"min_size_bytes": -1}, "min_size"),
            ({"max_workers": 0}, "max_workers"),
        ],
    )
    def test_out_of_range(self, tmp_path: Path, overrides: dict[str, int], argument: str) -> None:
        """Test that each out-of-range argument is reported by name."""
        settings = ScanSettings(root=tmp_path, **overrides)  # pyright: ignore[reportArgumentType]

        with pytest.raises(InvalidArgumentError) as exc_info:
            settings.validate()
        assert exc_info.value.argument == argument

    def test_arguments_checked_before_root(self, tmp_path: Path) -> None:
        """Test that a bad argument wins over a bad root, so no I/O happens."""
        settings = ScanSettings(root=tmp_path / "missing", top_n=0)

        with pytest.raises(InvalidArgumentError):
            _ = run_scan(settings)


class TestRunScan:
    """Test run_scan and scan_directory."""

    def test_basic_scan(self, make_tree: Callable[..., Path]) -> None:
        """Test a scan with a file nested under a single directory."""
        root = make_tree({"A": {"x": {"f.bin": 100}}})

        outcome = run_scan(ScanSettings(root=root))

        entries = outcome.report.entries
        assert [(entry.path, entry.bytes, entry.files) for entry in entries] == [("A", 100, 1)]
        assert entries[0].percentage == 1.0
        assert outcome.root == root
        assert outcome.max_depth == 1
        assert outcome.elapsed_seconds >= 0

    def test_excluded_directory_not_counted(self, make_tree: Callable[..., Path]) -> None:
        """Test that an excluded directory contributes nothing anywhere."""
        root = make_tree({"src": {"main.py": 1000}, ".git": {"objects": {"pack": 50 * MIB}}})

        outcome = scan_directory(root, exclude=[".git"])

        assert [entry.path for entry in outcome.report.entries] == ["src"]
        assert outcome.report.totals.bytes == 1000

    def test_min_size_string(self, make_tree: Callable[..., Path]) -> None:
        """Test that the minimum size may be given as a size string."""
        root = make_tree({"big": {"f.bin": 10 * MIB}, "small": {"f.bin": 1024}})

        outcome = scan_directory(root, min_size="1MB")

        assert [entry.path for entry in outcome.report.entries] == ["big"]
        assert outcome.report.totals.bytes == 10 * MIB + 1024

    def test_invalid_min_size_string(self, tmp_path: Path) -> None:
        """Test that a malformed size string is rejected."""
        with pytest.raises(InvalidArgumentError):
            _ = scan_directory(tmp_path, min_size="lots")

    def test_empty_root(self, tmp_path: Path) -> None:
        """Test that an empty directory yields an empty report."""
        outcome = scan_directory(tmp_path)

        assert outcome.report.entries == ()
        assert outcome.report.totals.bytes == 0

    def test_logs_start_and_completion(self, make_tree: Callable[..., Path], caplog: pytest.LogCaptureFixture) -> None:
        """Test that the scan logs its start and its totals."""
        root = make_tree({"A": {"f.bin": 1}})

        with caplog.at_level(logging.INFO, logger="diskhound"):
            _ = scan_directory(root)

        messages = [record.getMessage() for record in caplog.records]
        assert "Starting scan" in messages
        assert "Scan complete" in messages

    def test_warns_when_entries_skipped(
        self, make_tree: Callable[..., Path], caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that skipped entries produce a warning and a positive count."""
        root = make_tree({"A": {"locked": {"f.bin": 1}}})
        real_scandir = os.scandir

        def fake_scandir(path: Path) -> object:
            if Path(path).name == "locked":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        with (
            patch("diskhound.core.filesystem.scanner.os.scandir", side_effect=fake_scandir),
            caplog.at_level(logging.WARNING, logger="diskhound"),
        ):
            outcome = scan_directory(root)

        assert outcome.report.totals.skipped == 1
        assert any("could not be read" in record.getMessage() for record in caplog.records)
