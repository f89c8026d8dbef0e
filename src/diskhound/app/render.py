"""Human and machine-readable rendering of scan outcomes."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Final

from diskhound.core.orchestrator import ScanOutcome
from diskhound.core.report import ReportEntry
from diskhound.utils.formatting import format_duration, format_percent, format_size, printable_name

FOLDER_ICON: Final[str] = "\U0001f4c1"
MIN_NAME_WIDTH: Final[int] = 20


@dataclass
class RenderConfig:
    """Options for the human-readable view."""

    bar_length: int = 30
    filled_char: str = "█"
    empty_char: str = "░"
    show_icons: bool = True


def render_bar(fraction: float, config: RenderConfig | None = None) -> str:
    """Draw a fixed-width bar filled in proportion to ``fraction``.

    Args:
        fraction: Fill ratio, clamped to 0.0..1.0
        config: Bar settings

    Returns:
        Bar string of exactly ``config.bar_length`` characters
    """
    config = config or RenderConfig()
    fraction = min(max(fraction, 0.0), 1.0)
    filled_length = round(config.bar_length * fraction)
    # Non-zero entries always get at least one block
    if fraction > 0 and filled_length == 0:
        filled_length = 1
    return config.filled_char * filled_length + config.empty_char * (config.bar_length - filled_length)


def _entry_label(entry: ReportEntry, show_icons: bool) -> str:
    indent = "  " * (entry.level - 1)
    icon = f"{FOLDER_ICON} " if show_icons else ""
    return f"{indent}{icon}{entry.path}"


def render_human(outcome: ScanOutcome, config: RenderConfig | None = None) -> str:
    """Render an outcome as aligned bar-chart lines with a totals footer.

    Bars are scaled to the largest entry of the same depth level.
    """
    config = config or RenderConfig()
    report = outcome.report
    totals = report.totals

    if not report.entries:
        lines = [f"No subdirectories found in {printable_name(str(outcome.root))}"]
    else:
        labels = {entry.key: _entry_label(entry, config.show_icons) for entry in report.entries}
        name_width = max(MIN_NAME_WIDTH, *(len(label) for label in labels.values()))
        size_width = max(len(format_size(entry.bytes)) for entry in report.entries)

        lines = []
        multi_level = outcome.max_depth > 1
        for level, entries in report.levels():
            if multi_level:
                if lines:
                    lines.append("")
                lines.append(f"Depth {level}:")
            largest = entries[0].bytes
            for entry in entries:
                bar = render_bar(entry.bytes / largest if largest else 0.0, config)
                files = "file" if entry.files == 1 else "files"
                lines.append(
                    f"{labels[entry.key]:<{name_width}}  {bar}  "
                    f"{format_size(entry.bytes):>{size_width}}  "
                    f"{format_percent(entry.percentage):>6}  "
                    f"({entry.files} {files})"
                )

    lines.append("")
    lines.append(
        f"Total: {format_size(totals.bytes)} in {totals.files} files, "
        f"{totals.directories} directories "
        f"(showing top {len(report.entries)} of {report.total_count}; "
        f"{report.included_count} matched filters) in {format_duration(outcome.elapsed_seconds)}"
    )
    if totals.skipped:
        lines.append(f"Skipped {totals.skipped} unreadable entries; sizes may be under-counted.")
    return "\n".join(lines)


def outcome_to_dict(outcome: ScanOutcome) -> dict[str, object]:
    """Convert an outcome to a JSON-serializable dictionary."""
    report = outcome.report
    totals = report.totals
    return {
        "root": printable_name(str(outcome.root)),
        "depth": outcome.max_depth,
        "entries": [
            {
                "path": entry.path,
                "level": entry.level,
                "bytes": entry.bytes,
                "size": format_size(entry.bytes),
                "files": entry.files,
                "percent": round(entry.percentage * 100, 2),
            }
            for entry in report.entries
        ],
        "totals": {
            "bytes": totals.bytes,
            "size": format_size(totals.bytes),
            "files": totals.files,
            "directories": totals.directories,
            "skipped": totals.skipped,
        },
        "included_count": report.included_count,
        "total_count": report.total_count,
        "elapsed_seconds": round(outcome.elapsed_seconds, 3),
    }


def render_json(outcome: ScanOutcome) -> str:
    """Render an outcome as indented JSON."""
    return json.dumps(outcome_to_dict(outcome), indent=2, ensure_ascii=False)
