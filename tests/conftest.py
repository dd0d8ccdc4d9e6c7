"""Shared pytest fixtures for msatrigger tests."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest

from msatrigger.core.config import TriggerConfig

ConfigFactory = Callable[..., TriggerConfig]
FileFactory = Callable[..., list[Path]]


@pytest.fixture
def output_root(tmp_path: Path) -> Path:
    """Transfer destination root."""
    return tmp_path / "output"


@pytest.fixture
def make_config(tmp_path: Path, output_root: Path) -> ConfigFactory:
    """Build a TriggerConfig pointing at temporary directories."""

    def _make(**overrides: Any) -> TriggerConfig:
        values: dict[str, Any] = {
            "output_directory": str(output_root),
            "lock_directory": str(tmp_path / "locks"),
            "lock_timeout": 5.0,
        }
        values.update(overrides)
        return TriggerConfig(**values)

    return _make


@pytest.fixture
def write_files() -> FileFactory:
    """Create files of a given size in a directory."""

    def _write(directory: Path, names: Iterable[str], size: int = 32) -> list[Path]:
        directory.mkdir(parents=True, exist_ok=True)
        paths = []
        for name in names:
            path = directory / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"x" * size)
            paths.append(path)
        return paths

    return _write
