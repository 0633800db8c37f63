"""Pydantic models for aiostacksync."""

from .config import (
    DEFAULT_AUTO_SYNC_INTERVAL,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_FILE_PATTERNS,
    AutoSyncConfig,
    InternalSyncConfig,
    PostSyncCommand,
    RepositoryConfig,
    SyncSettings,
)
from .sync import (
    CommandResult,
    FetchResult,
    SyncHistoryItem,
    SyncResult,
    SyncState,
    SyncStatistics,
    SyncStatus,
    SyncType,
)

__all__ = [
    "DEFAULT_AUTO_SYNC_INTERVAL",
    "DEFAULT_EXCLUDE_PATTERNS",
    "DEFAULT_FILE_PATTERNS",
    "AutoSyncConfig",
    "CommandResult",
    "FetchResult",
    "InternalSyncConfig",
    "PostSyncCommand",
    "RepositoryConfig",
    "SyncHistoryItem",
    "SyncResult",
    "SyncSettings",
    "SyncState",
    "SyncStatistics",
    "SyncStatus",
    "SyncType",
]
