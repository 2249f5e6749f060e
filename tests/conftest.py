"""Shared test fixtures for winswitch tests."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from winswitch.models import BackupPlan

# Whole multiple of 100ns so the value survives a round trip through ticks.
T0_NS = 1_700_000_000_123_456_700

FileFactory = Callable[..., Path]


@pytest.fixture
def make_file() -> FileFactory:
    """Return a helper that writes bytes and stamps a fixed mtime."""

    def _make(path: Path, data: bytes, mtime_ns: int = T0_NS) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        os.utime(path, ns=(mtime_ns, mtime_ns))
        return path

    return _make


@pytest.fixture
def source_tree(tmp_path: Path, make_file: FileFactory) -> Path:
    """Create ``{a.txt (10 bytes), sub/b.txt (20 bytes)}`` stamped at T0."""
    src = tmp_path / "source"
    make_file(src / "a.txt", b"0123456789")
    make_file(src / "sub" / "b.txt", b"abcdefghijklmnopqrst")
    return src


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    dest = tmp_path / "drive"
    dest.mkdir()
    return dest


@pytest.fixture
def plan_for(destination: Path) -> Callable[..., BackupPlan]:
    """Return a helper building a plan for the given sources."""

    def _plan(*sources: Path, notes: str | None = None) -> BackupPlan:
        return BackupPlan(
            sources=tuple(sources),
            destination_root=destination,
            human_timestamp="2025-09-02 09:15:22",
            notes=notes,
        )

    return _plan


@pytest.fixture
def t0_ns() -> int:
    """The mtime stamped on files created by :func:`make_file`."""
    return T0_NS
