"""Sync run history.

The engine only appends; reading back and statistics are for front ends.
History is kept newest-first and capped at ``max_items`` entries.
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
import string
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

import aiofiles
from pydantic import ValidationError

from ..exceptions import StackSyncError
from ..models.sync import SyncHistoryItem, SyncStatistics

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 100

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_history_id(now_ms: int | None = None) -> str:
    """Return ``<epoch ms>-<9 random base36 chars>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{now_ms}-{suffix}"


def compute_statistics(items: Sequence[SyncHistoryItem]) -> SyncStatistics:
    """Aggregate *items* (newest first)."""
    if not items:
        return SyncStatistics()
    return SyncStatistics(
        total_syncs=len(items),
        successful_syncs=sum(1 for i in items if i.status == "success"),
        failed_syncs=sum(1 for i in items if i.status == "failed"),
        total_files=sum(len(i.files) for i in items),
        average_duration=sum(i.duration for i in items) / len(items),
        last_sync=items[0].timestamp,
    )


@runtime_checkable
class HistoryStore(Protocol):
    """Append-only sink for run records."""

    async def add(self, item: SyncHistoryItem) -> None: ...


class MemoryHistoryStore:
    """History kept in memory for the lifetime of the process."""

    def __init__(self, *, max_items: int = DEFAULT_MAX_ITEMS) -> None:
        self.max_items = max_items
        self._items: list[SyncHistoryItem] = []

    async def add(self, item: SyncHistoryItem) -> None:
        self._items.insert(0, item)
        del self._items[self.max_items :]

    async def get_history(self) -> list[SyncHistoryItem]:
        return list(self._items)

    async def delete(self, item_id: str) -> bool:
        before = len(self._items)
        self._items = [i for i in self._items if i.id != item_id]
        return len(self._items) != before

    async def clear(self) -> None:
        self._items.clear()

    async def statistics(self) -> SyncStatistics:
        return compute_statistics(self._items)


class JsonHistoryStore:
    """History persisted as a JSON array in a single file."""

    def __init__(self, path: Path, *, max_items: int = DEFAULT_MAX_ITEMS) -> None:
        self.path = path
        self.max_items = max_items
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    async def _read(self) -> list[SyncHistoryItem]:
        if not self.path.exists():
            return []
        async with aiofiles.open(self.path, encoding="utf-8") as fh:
            content = await fh.read()
        if not content.strip():
            return []
        try:
            raw = json.loads(content)
            return [SyncHistoryItem.model_validate(entry) for entry in raw]
        except (json.JSONDecodeError, TypeError, ValidationError) as exc:
            raise StackSyncError(f"Corrupt history file {self.path}: {exc}") from exc

    async def _write(self, items: list[SyncHistoryItem]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(
            [i.model_dump(mode="json", by_alias=True) for i in items],
            indent=2,
            ensure_ascii=False,
        )
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as fh:
            await fh.write(payload)
        tmp_path.replace(self.path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def add(self, item: SyncHistoryItem) -> None:
        """Prepend *item*, dropping the oldest entries beyond ``max_items``."""
        async with self._lock:
            items = await self._read()
            items.insert(0, item)
            await self._write(items[: self.max_items])
        logger.debug("Recorded history item %s for %s", item.id, item.repository)

    async def get_history(self) -> list[SyncHistoryItem]:
        async with self._lock:
            return await self._read()

    async def delete(self, item_id: str) -> bool:
        """Remove the entry with *item_id*; returns whether one was found."""
        async with self._lock:
            items = await self._read()
            remaining = [i for i in items if i.id != item_id]
            if len(remaining) == len(items):
                return False
            await self._write(remaining)
            return True

    async def clear(self) -> None:
        async with self._lock:
            await self._write([])

    async def statistics(self) -> SyncStatistics:
        return compute_statistics(await self.get_history())
