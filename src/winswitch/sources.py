"""Source folder selection."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from winswitch.models import SourceItem

# (name, path relative to the home directory, selected by default)
_KNOWN_FOLDERS: list[tuple[str, str, bool]] = [
    ("Desktop", "Desktop", True),
    ("Documents", "Documents", True),
    ("Pictures", "Pictures", True),
    ("Videos", "Videos", False),
    ("Music", "Music", False),
    ("Downloads", "Downloads", False),
]


def default_sources(home: str | Path | None = None) -> list[SourceItem]:
    """Return the well-known user folders offered for backup."""
    base = Path(home) if home is not None else Path.home()
    return [
        SourceItem(name=name, path=str(base / rel), selected=selected)
        for name, rel, selected in _KNOWN_FOLDERS
    ]


def _selection_key(path: Path) -> str:
    return os.path.normcase(os.path.abspath(path)).casefold()


def distinct_roots(paths: Iterable[str | Path]) -> list[Path]:
    """Drop repeated roots, comparing absolute paths case-insensitively."""
    roots: list[Path] = []
    seen: set[str] = set()
    for raw in paths:
        path = Path(raw)
        key = _selection_key(path)
        if key not in seen:
            seen.add(key)
            roots.append(path)
    return roots


def resolve_sources(paths: Iterable[str | Path]) -> list[Path]:
    """Turn user-picked paths into the ordered source selection.

    Blank entries and paths that are not existing directories are dropped.
    Duplicates are detected case-insensitively on the absolute path and the
    first spelling wins.
    """
    existing: list[Path] = []
    for raw in paths:
        text = str(raw).strip()
        if not text:
            continue
        path = Path(os.path.abspath(os.path.expanduser(text)))
        if path.is_dir():
            existing.append(path)
    return distinct_roots(existing)
