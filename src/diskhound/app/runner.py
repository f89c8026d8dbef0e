"""Application runner tying a scan to its rendered output."""

from __future__ import annotations

from enum import Enum

from diskhound.app.render import render_human, render_json
from diskhound.core.orchestrator import ScanOutcome, ScanSettings, run_scan


class OutputFormat(str, Enum):
    """Supported report formats."""

    TEXT = "text"
    JSON = "json"


class ApplicationRunner:
    """Runs one scan and renders it in the requested format."""

    def __init__(self, settings: ScanSettings, output_format: OutputFormat = OutputFormat.TEXT) -> None:
        """Initialize the application runner.

        Args:
            settings: Scan settings assembled from CLI and configuration
            output_format: Report format written to stdout
        """
        self.settings: ScanSettings = settings
        self.output_format: OutputFormat = output_format
        self.outcome: ScanOutcome | None = None

    def run(self) -> str:
        """Run the scan and return the rendered report.

        Raises:
            InvalidArgumentError: If a setting is out of range
            InvalidRootError: If the root is missing or not a directory
        """
        self.outcome = run_scan(self.settings)
        if self.output_format == OutputFormat.JSON:
            return render_json(self.outcome)
        return render_human(self.outcome)
