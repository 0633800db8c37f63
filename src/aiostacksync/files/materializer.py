"""Staged tree → target tree copying.

Filesystem-only: walks the staged source, keeps the files accepted by a path
predicate and copies them into the target tree, preserving relative layout.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from ..exceptions import MaterializeError
from ..output import CancelToken
from .filters import PathPredicate
from .walk import iter_files

logger = logging.getLogger(__name__)


def _materialize_sync(
    source_root: Path,
    target_root: Path,
    predicate: PathPredicate,
    *,
    cancel: CancelToken | None = None,
    on_copy: Callable[[str], None] | None = None,
) -> list[str]:
    """Synchronous copy — called via ``asyncio.to_thread``."""
    copied: list[str] = []
    try:
        target_root.mkdir(parents=True, exist_ok=True)

        for entry in iter_files(source_root):
            if cancel is not None:
                cancel.raise_if_cancelled()
            if not predicate(entry.rel_path):
                continue

            dst = target_root / entry.rel_path
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(entry.path, dst)
            copied.append(entry.rel_path)
            logger.debug("Copied %s -> %s", entry.rel_path, dst)
            if on_copy is not None:
                on_copy(entry.rel_path)
    except OSError as exc:
        logger.error("Materialization into %s failed after %d files: %s", target_root, len(copied), exc)
        raise MaterializeError(f"Failed to copy into {target_root}: {exc}") from exc

    logger.info("Copied %d files into %s", len(copied), target_root)
    return copied


async def materialize(
    source_root: Path,
    target_root: Path,
    predicate: PathPredicate,
    *,
    cancel: CancelToken | None = None,
    on_copy: Callable[[str], None] | None = None,
) -> list[str]:
    """Copy every file under *source_root* accepted by *predicate* into *target_root*.

    Existing destination files are overwritten.  Returns the copied relative
    paths in walk order.  Any I/O error aborts the copy with
    :class:`MaterializeError`; files already written are left in place.
    """
    return await asyncio.to_thread(
        _materialize_sync,
        source_root,
        target_root,
        predicate,
        cancel=cancel,
        on_copy=on_copy,
    )


def _list_matching_sync(source_root: Path, predicate: PathPredicate) -> list[str]:
    return [e.rel_path for e in iter_files(source_root) if predicate(e.rel_path)]


async def list_matching_files(source_root: Path, predicate: PathPredicate) -> list[str]:
    """Return the relative paths under *source_root* accepted by *predicate*."""
    return await asyncio.to_thread(_list_matching_sync, source_root, predicate)
