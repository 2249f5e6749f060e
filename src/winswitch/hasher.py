"""Streaming SHA-256 digests over stored files."""

from __future__ import annotations

import hashlib
from pathlib import Path

from winswitch.cancellation import CancellationToken
from winswitch.settings import DEFAULT_BUFFER_SIZE


class ContentHasher:
    """Hashes files through a reusable buffer.

    The buffer may be shared with a :class:`~winswitch.copy_engine.CopyEngine`
    of the same run; the two never stream at the same time.
    """

    def __init__(self, buffer: bytearray | None = None) -> None:
        self._buffer = buffer if buffer is not None else bytearray(DEFAULT_BUFFER_SIZE)

    def digest(self, path: str | Path, token: CancellationToken | None = None) -> str:
        """Return the lowercase hex SHA-256 of *path*.

        Cancellation is checked before every chunk read.
        """
        sha = hashlib.sha256()
        view = memoryview(self._buffer)
        with open(path, "rb") as fh:
            while True:
                if token is not None:
                    token.raise_if_cancelled()
                read = fh.readinto(view)
                if not read:
                    break
                sha.update(view[:read])
        return sha.hexdigest()
