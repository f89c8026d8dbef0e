"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Generator, Mapping
from pathlib import Path

import pytest

# Nested mapping describing a tree: a str key maps either to a sub-mapping
# (directory) or to an int (regular file of that many bytes)
type TreeLayout = Mapping[str, TreeLayout | int]


def build_tree(root: Path, layout: TreeLayout) -> None:
    """Materialize ``layout`` below ``root``.

    Files are created sparse with ``os.truncate`` so large sizes cost no
    real disk space in apparent-size mode.
    """
    root.mkdir(parents=True, exist_ok=True)
    for name, node in layout.items():
        target = root / name
        if isinstance(node, int):
            target.touch()
            os.truncate(target, node)
        else:
            build_tree(target, node)


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory building a directory tree and returning its root."""

    def factory(layout: TreeLayout, name: str = "root") -> Path:
        root = tmp_path / name
        build_tree(root, layout)
        return root

    return factory


@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None, None, None]:
    """Undo handler and level changes made by ``configure_logging``."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
