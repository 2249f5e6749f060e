"""Size and modification-time change detection."""

from __future__ import annotations

import os
import stat
from enum import StrEnum
from pathlib import Path
from typing import NamedTuple


class CopyDecision(StrEnum):
    """Whether a source file must be streamed into the backup set."""

    COPY_NEEDED = "copy_needed"
    SKIP_IDENTICAL = "skip_identical"


class FileStamp(NamedTuple):
    size: int
    mtime_ns: int


def decide(
    source_size: int,
    source_mtime_ns: int,
    destination_exists: bool,
    destination_size: int = 0,
    destination_mtime_ns: int = 0,
) -> CopyDecision:
    """Classify a source file against a stored copy.

    A file is skipped only when the stored copy exists with exactly the same
    size and modification time. Content is never compared: a file whose bytes
    changed while its mtime was reset to the old value is skipped. Touching a
    file without changing it causes a re-copy.
    """
    if (
        destination_exists
        and destination_size == source_size
        and destination_mtime_ns == source_mtime_ns
    ):
        return CopyDecision.SKIP_IDENTICAL
    return CopyDecision.COPY_NEEDED


def stamp_of(path: Path) -> FileStamp | None:
    """Return size and mtime of a regular file, or ``None`` if absent."""
    try:
        st = os.stat(path, follow_symlinks=False)
    except OSError:
        return None
    if not stat.S_ISREG(st.st_mode):
        return None
    return FileStamp(st.st_size, st.st_mtime_ns)


def classify(source_size: int, source_mtime_ns: int, destination: Path) -> CopyDecision:
    """Stat *destination* and apply :func:`decide`."""
    stamp = stamp_of(destination)
    if stamp is None:
        return decide(source_size, source_mtime_ns, False)
    return decide(source_size, source_mtime_ns, True, stamp.size, stamp.mtime_ns)
