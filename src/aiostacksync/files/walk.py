"""Directory walking shared by change detection, copying and file listing."""

from __future__ import annotations

import os
import stat
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

# Never descend into VCS metadata of a staged clone.
SKIP_DIRS: frozenset[str] = frozenset({".git"})


@dataclass(frozen=True, slots=True)
class FileEntry:
    """A regular file found under a walk root."""

    path: Path
    rel_path: str
    mtime_ns: int
    size: int


def iter_files(
    root: Path,
    *,
    skip_dirs: frozenset[str] = SKIP_DIRS,
) -> Iterator[FileEntry]:
    """Yield every regular file under *root* in a stable, sorted order.

    ``rel_path`` always uses forward slashes.  Errors while listing or
    stat-ing propagate as :class:`OSError`.
    """

    def _raise(exc: OSError) -> None:
        raise exc

    for dirpath, dirs, files in os.walk(root, onerror=_raise):
        dirs[:] = sorted(d for d in dirs if d not in skip_dirs)

        rel_root = os.path.relpath(dirpath, root)
        if rel_root == ".":
            rel_root = ""

        for filename in sorted(files):
            full_path = os.path.join(dirpath, filename)
            st = os.stat(full_path)
            if not stat.S_ISREG(st.st_mode):
                continue
            rel_path = os.path.join(rel_root, filename) if rel_root else filename
            yield FileEntry(
                path=Path(full_path),
                rel_path=rel_path.replace(os.sep, "/"),
                mtime_ns=st.st_mtime_ns,
                size=st.st_size,
            )


def walk_files(
    root: Path,
    visitor: Callable[[FileEntry], bool | None],
    *,
    skip_dirs: frozenset[str] = SKIP_DIRS,
) -> bool:
    """Call *visitor* for each file under *root*.

    The walk stops as soon as *visitor* returns ``True``; the return value
    tells whether that happened.
    """
    for entry in iter_files(root, skip_dirs=skip_dirs):
        if visitor(entry):
            return True
    return False


def snapshot_mtimes(root: Path) -> dict[str, int]:
    """Return ``{rel_path: mtime_ns}`` for every file under *root*."""
    return {entry.rel_path: entry.mtime_ns for entry in iter_files(root)}
