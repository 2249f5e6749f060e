"""Buffered, cancellable file copying that preserves modification time."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

from winswitch.cancellation import CancellationToken
from winswitch.settings import DEFAULT_BUFFER_SIZE

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".partial"


class CopyError(Exception):
    """Raised when a single file cannot be copied."""

    def __init__(self, source: Path, destination: Path, cause: BaseException) -> None:
        self.source = source
        self.destination = destination
        self.cause = cause
        super().__init__(f"Cannot copy {source} to {destination}: {cause}")


class CopyEngine:
    """Streams files through one reusable buffer."""

    def __init__(self, buffer: bytearray | None = None) -> None:
        self._buffer = buffer if buffer is not None else bytearray(DEFAULT_BUFFER_SIZE)

    @property
    def buffer(self) -> bytearray:
        return self._buffer

    def copy(
        self,
        source: str | Path,
        destination: str | Path,
        *,
        mtime_ns: int | None = None,
        token: CancellationToken | None = None,
        on_chunk: Callable[[int], None] | None = None,
    ) -> int:
        """Copy *source* to *destination* chunk by chunk.

        Missing parent directories are created. Bytes go to a hidden sibling
        file that replaces *destination* only once the copy is complete, so a
        failed or cancelled copy leaves an existing destination untouched and
        a hard-linked file shared with another backup set is never written in
        place. The destination mtime is set to *mtime_ns* (or the source's
        mtime).

        Args:
            source: File to read.
            destination: File to create or replace.
            mtime_ns: Modification time to stamp on the destination.
            token: Checked before every chunk read.
            on_chunk: Called with the byte count of every chunk written.

        Returns:
            Number of bytes written.

        Raises:
            CopyError: If reading, writing or stamping fails.
            OperationCancelledError: If *token* was cancelled mid-copy.
        """
        src = Path(source)
        dst = Path(destination)
        partial = dst.with_name(f".{dst.name}{PARTIAL_SUFFIX}")
        view = memoryview(self._buffer)
        written = 0
        try:
            with open(src, "rb") as fin:
                if mtime_ns is None:
                    mtime_ns = os.fstat(fin.fileno()).st_mtime_ns
                dst.parent.mkdir(parents=True, exist_ok=True)
                try:
                    with open(partial, "wb") as fout:
                        while True:
                            if token is not None:
                                token.raise_if_cancelled()
                            read = fin.readinto(view)
                            if not read:
                                break
                            fout.write(view[:read])
                            written += read
                            if on_chunk is not None:
                                on_chunk(read)
                    os.utime(partial, ns=(os.stat(partial).st_atime_ns, mtime_ns))
                    os.replace(partial, dst)
                except BaseException:
                    partial.unlink(missing_ok=True)
                    raise
        except OSError as exc:
            raise CopyError(src, dst, exc) from exc

        logger.debug("Copied %s -> %s (%d bytes)", src, dst, written)
        return written

    def link(self, existing: str | Path, destination: str | Path) -> bool:
        """Hard-link *existing* to *destination* without copying bytes.

        Returns ``False`` when the filesystem refuses the link (different
        volume, no hard-link support, permission), leaving no destination.
        """
        dst = Path(destination)
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            dst.unlink(missing_ok=True)
            os.link(existing, dst)
        except OSError as exc:
            logger.debug("Hard link failed for %s: %s", dst, exc)
            return False
        logger.debug("Linked %s -> %s", existing, dst)
        return True
