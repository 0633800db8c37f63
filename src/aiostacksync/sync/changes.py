"""Timestamp-based change detection against an in-memory baseline.

The baseline maps each repository identity (its url, or ``internal:<path>``
for local sources) to ``{relative path: mtime_ns}``.  It lives only as long
as the :class:`ChangeDetector` instance, so a fresh process always treats
every repository as changed.

This is a heuristic, not a content hash: a touched but unchanged file counts
as changed, and an edit whose timestamp was restored does not.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from ..files.walk import FileEntry, snapshot_mtimes, walk_files
from ..models.config import RepositoryConfig

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Owns the per-repository mtime baselines."""

    def __init__(self) -> None:
        self._baselines: dict[str, dict[str, int]] = {}

    def _has_changes_sync(self, identity: str, source_root: Path) -> bool:
        """Synchronous check — called via ``asyncio.to_thread``."""
        if not source_root.is_dir():
            return True

        baseline = self._baselines.get(identity, {})

        def _is_newer(entry: FileEntry) -> bool:
            last = baseline.get(entry.rel_path)
            if last is None or entry.mtime_ns > last:
                logger.debug("Change detected in %s: %s", identity, entry.rel_path)
                return True
            return False

        return walk_files(source_root, _is_newer)

    async def has_changes(self, repo: RepositoryConfig, source_root: Path) -> bool:
        """Return ``True`` if any file under *source_root* is new or newer than its baseline."""
        return await asyncio.to_thread(self._has_changes_sync, repo.identity, source_root)

    async def update_baseline(self, repo: RepositoryConfig, source_root: Path) -> None:
        """Replace *repo*'s baseline with the current state of *source_root*."""
        snapshot = await asyncio.to_thread(snapshot_mtimes, source_root)
        self._baselines[repo.identity] = snapshot
        logger.debug("Baseline for %s updated (%d files)", repo.identity, len(snapshot))

    def baseline(self, repo: RepositoryConfig) -> dict[str, int]:
        return dict(self._baselines.get(repo.identity, {}))

    def forget(self, repo: RepositoryConfig) -> None:
        """Drop *repo*'s baseline so its next check reports changes."""
        self._baselines.pop(repo.identity, None)

    def clear(self) -> None:
        self._baselines.clear()
