"""Entry point for ``python -m diskhound``."""

from __future__ import annotations

from diskhound.app.cli import cli

__all__ = ["main"]


def main() -> None:
    """Run the diskhound command-line interface."""
    cli()


if __name__ == "__main__":
    main()
