"""Map source files to collision-free locations inside a backup set."""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path, PurePath
from typing import NamedTuple

_UNSAFE_CHARS = re.compile(r'[<>:"|?*\x00-\x1f]')


class MappedPath(NamedTuple):
    destination: Path
    relative: str


def source_token(root: PurePath) -> str:
    """Derive a flat, filesystem-safe name for a source root.

    The drive or UNC share loses its separators and colon, the remaining
    components are joined with ``_``::

        C:\\Users\\ana\\Documents  ->  C_Users_ana_Documents
        /home/ana/Documents       ->  home_ana_Documents
    """
    drive = re.sub(r"[\\/]+", "_", root.drive.replace(":", "")).strip("_")
    rest = root.parts[1:] if root.anchor else root.parts
    token = "_".join(part for part in (drive, *rest) if part)
    return _UNSAFE_CHARS.sub("_", token)


class PathMapper:
    """Assigns every selected root its own namespace under ``data/``.

    Distinct roots can flatten to the same token (``/a/b_c`` and ``/a_b/c``)
    or to tokens that differ only in case, which a FAT or exFAT destination
    cannot tell apart. Later roots in selection order receive a numeric
    suffix so every root keeps a separate subtree.
    """

    def __init__(self, data_dir: str | Path, roots: Iterable[str | Path]) -> None:
        self._data_dir = Path(data_dir)
        self._tokens: dict[Path, str] = {}
        taken: set[str] = set()
        for raw in roots:
            root = Path(raw)
            if root in self._tokens:
                continue
            base = source_token(root)
            token = base
            n = 1
            while token.casefold() in taken:
                n += 1
                token = f"{base}_{n}"
            taken.add(token.casefold())
            self._tokens[root] = token

    def token_for(self, root: str | Path) -> str:
        return self._tokens[Path(root)]

    def map(self, root: str | Path, file_path: str | Path) -> MappedPath:
        """Return the stored location and manifest path of *file_path*.

        Raises:
            KeyError: If *root* was not given to the mapper.
            ValueError: If *file_path* is not under *root*.
        """
        token = self.token_for(root)
        rel = Path(file_path).relative_to(Path(root))
        destination = self._data_dir / token / rel if token else self._data_dir / rel
        relative = "/".join(part for part in (token, rel.as_posix()) if part)
        return MappedPath(destination, relative)
