"""Command-line interface for diskhound."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Final

import click

from diskhound.core.config import DiskhoundConfig, discover_config_file, load_config
from diskhound.core.exceptions import ConfigurationError, InvalidArgumentError, InvalidRootError
from diskhound.core.filesystem.size_calculator import SizeMode
from diskhound.core.orchestrator import ScanSettings
from diskhound.utils.formatting import parse_size
from diskhound.utils.logging import configure_logging

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS: Final[int] = 0
EXIT_INVALID_ROOT: Final[int] = 1
EXIT_INVALID_ARGUMENT: Final[int] = 2
EXIT_INTERRUPTED: Final[int] = 130

try:
    __version__ = version("diskhound")
except PackageNotFoundError:
    __version__ = "unknown"


def validate_positive(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,
    value: int | None,
) -> int | None:
    """Reject zero and negative integers for ``--top``, ``--depth`` and ``--workers``.

    Raises:
        click.BadParameter: If the value is less than 1
    """
    if value is not None and value < 1:
        raise click.BadParameter(f"must be a positive integer, got {value}", param=param)
    return value


def validate_min_size(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: str | None,
) -> int | None:
    """Parse ``--min-size`` into bytes.

    Raises:
        click.BadParameter: If the size string is malformed
    """
    if value is None:
        return None
    try:
        return parse_size(value)
    except InvalidArgumentError as e:
        raise click.BadParameter(e.message) from e


def validate_config_path(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: Path | None,
) -> Path | None:
    """Validate configuration file path.

    Raises:
        click.BadParameter: If the path is a directory or not a YAML file
    """
    if value is None:
        return value

    if value.exists() and value.is_dir():
        raise click.BadParameter("Configuration path must be a file, not a directory")

    if value.suffix.lower() not in {".yaml", ".yml"}:
        raise click.BadParameter("Configuration file must have a .yaml or .yml extension")

    return value


def validate_log_level(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: str | None,
) -> str | None:
    """Validate and normalize log level.

    Raises:
        click.BadParameter: If the level is unknown
    """
    if value is None:
        return value

    normalized_value = value.upper().strip()
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if normalized_value not in valid_levels:
        raise click.BadParameter(
            f'Invalid log level "{value}". Valid options: {", ".join(sorted(valid_levels))}'
        )
    return normalized_value


def build_settings(
    config: DiskhoundConfig,
    *,
    path: Path,
    top: int | None,
    exclude: tuple[str, ...],
    min_size: int | None,
    depth: int | None,
    disk_usage: bool,
    workers: int | None,
) -> ScanSettings:
    """Merge command-line options over configuration file defaults.

    Options given on the command line win. Exclusion names from both
    sources accumulate.
    """
    scan = config.scan
    return ScanSettings(
        root=path,
        top_n=top if top is not None else scan.top,
        exclude=frozenset((*scan.exclude, *exclude)),
        min_size_bytes=min_size if min_size is not None else scan.min_size,
        max_depth=depth if depth is not None else scan.depth,
        size_mode=SizeMode.DISK_USAGE if disk_usage else scan.size_mode,
        max_workers=workers if workers is not None else scan.workers,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("path", type=click.Path(path_type=Path), default=Path("."), required=False)
@click.option("--top", "-n", type=int, default=None, callback=validate_positive,
              help="Number of entries to show per depth level (default: 10)")
@click.option("--exclude", "-e", multiple=True, metavar="NAME",
              help="Skip directories with this exact name; repeatable")
@click.option("--min-size", "-m", type=str, default=None, callback=validate_min_size, metavar="SIZE",
              help="Hide entries smaller than SIZE, e.g. 500KB or 1.5GiB (default: 0)")
@click.option("--depth", "-d", type=int, default=None, callback=validate_positive,
              help="Group sizes down to this many levels below PATH (default: 1)")
@click.option("--json", "as_json", is_flag=True, help="Emit the report as JSON")
@click.option("--disk-usage", is_flag=True, help="Measure allocated blocks instead of apparent file sizes")
@click.option("--workers", "-w", type=int, default=None, callback=validate_positive,
              help="Number of traversal threads (default: automatic)")
@click.option("--config", "-c", "config_path", type=click.Path(path_type=Path), default=None,
              callback=validate_config_path,
              help="YAML file with default options. If not specified, searches standard locations.")
@click.option("--log-level", "-l", type=str, default=None, callback=validate_log_level,
              help="Logging verbosity on stderr (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
@click.version_option(version=__version__, prog_name="diskhound")
@click.pass_context
def cli(
    ctx: click.Context,
    path: Path,
    top: int | None,
    exclude: tuple[str, ...],
    min_size: int | None,
    depth: int | None,
    as_json: bool,
    disk_usage: bool,
    workers: int | None,
    config_path: Path | None,
    log_level: str | None,
) -> None:
    """Find the largest subdirectories in PATH (default: current directory).

    Examples:

        # Ten largest directories below the current one
        diskhound

        # Skip VCS metadata and hide anything under 1 MiB
        diskhound ~/src --exclude .git --exclude node_modules --min-size 1MB

        # Two levels deep, machine-readable
        diskhound /var --depth 2 --json
    """
    from diskhound.app.runner import ApplicationRunner, OutputFormat

    resolved_config_path = config_path if config_path is not None else discover_config_file()
    try:
        config = load_config(resolved_config_path) if resolved_config_path is not None else DiskhoundConfig()
    except ConfigurationError as exc:
        click.echo(f"Configuration error:\n{exc}", err=True)
        ctx.exit(EXIT_INVALID_ARGUMENT)

    configure_logging(
        log_level=log_level or config.logging.level,
        log_file=config.logging.file,
    )
    if resolved_config_path is not None:
        logger.info("Loaded configuration", extra={"config_path": str(resolved_config_path)})

    settings = build_settings(
        config,
        path=path,
        top=top,
        exclude=exclude,
        min_size=min_size,
        depth=depth,
        disk_usage=disk_usage,
        workers=workers,
    )
    runner = ApplicationRunner(settings, OutputFormat.JSON if as_json else OutputFormat.TEXT)

    try:
        output = runner.run()
    except InvalidRootError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(EXIT_INVALID_ROOT)
    except InvalidArgumentError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(EXIT_INVALID_ARGUMENT)
    except KeyboardInterrupt:
        click.echo("\nScan interrupted", err=True)
        ctx.exit(EXIT_INTERRUPTED)

    click.echo(output)


if __name__ == "__main__":
    cli()
