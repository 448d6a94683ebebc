"""
Shared test fixtures and configuration.

Dependency graphs are synthetic: library files under a fake system
root hold arbitrary bytes, and a MockInspector says what each file
name imports.
"""

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def system_root(tmp_path: Path) -> Path:
    """An empty MinGW-style system root with a bin/ library directory."""
    root = tmp_path / "sys-root" / "mingw"
    (root / "bin").mkdir(parents=True)
    return root


@pytest.fixture
def stage_dir(tmp_path: Path) -> Path:
    """The directory the top-level binary is staged in."""
    path = tmp_path / "build" / "win64" / "bin"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def add_library(system_root: Path) -> Callable[..., Path]:
    """Factory: drop a library file into the system root."""

    def _add(name: str, subdir: str = "bin", content: bytes | None = None) -> Path:
        path = system_root / subdir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content if content is not None else f"MZ {name}".encode())
        return path

    return _add


@pytest.fixture
def make_subject(stage_dir: Path) -> Callable[..., Path]:
    """Factory: create the top-level binary in the stage directory."""

    def _make(name: str = "app.exe") -> Path:
        path = stage_dir / name
        path.write_bytes(b"MZ subject")
        return path

    return _make
