"""Run history stores."""

from .store import (
    DEFAULT_MAX_ITEMS,
    HistoryStore,
    JsonHistoryStore,
    MemoryHistoryStore,
    compute_statistics,
    new_history_id,
)

__all__ = [
    "DEFAULT_MAX_ITEMS",
    "HistoryStore",
    "JsonHistoryStore",
    "MemoryHistoryStore",
    "compute_statistics",
    "new_history_id",
]
