"""Recursive source tree enumeration."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from winswitch.cancellation import CancellationToken
from winswitch.models import SourceFile

logger = logging.getLogger(__name__)


class TreeEnumerator:
    """Walks a directory tree lazily, yielding every regular file.

    Policy:
        - symlinks and junctions are never followed, whether they point to
          files or directories, so cyclic links cannot recurse forever;
        - directories that cannot be listed are skipped, including the root;
        - files that cannot be stat'ed are dropped individually.
    """

    def walk(
        self, root: str | Path, token: CancellationToken | None = None
    ) -> Iterator[SourceFile]:
        """Yield a :class:`SourceFile` for every file beneath *root*.

        Cancellation is checked once per yielded file.
        """
        root_path = Path(root)
        pending = [root_path]
        while pending:
            directory = pending.pop()
            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as exc:
                if directory == root_path:
                    logger.warning("Skipping unreadable source root %s: %s", directory, exc)
                else:
                    logger.debug("Skipping unreadable directory %s: %s", directory, exc)
                continue

            subdirs: list[Path] = []
            for entry in entries:
                if token is not None:
                    token.raise_if_cancelled()
                try:
                    if entry.is_symlink() or entry.is_junction():
                        continue
                    if entry.is_dir(follow_symlinks=False):
                        subdirs.append(Path(entry.path))
                        continue
                    if not entry.is_file(follow_symlinks=False):
                        continue
                    st = entry.stat(follow_symlinks=False)
                except OSError as exc:
                    logger.debug("Dropping %s: %s", entry.path, exc)
                    continue
                yield SourceFile(
                    root=root_path,
                    path=Path(entry.path),
                    size=st.st_size,
                    mtime_ns=st.st_mtime_ns,
                )
            # Reversed so the stack pops subdirectories in name order.
            pending.extend(reversed(subdirs))
