"""aiostacksync — Async Python library for mirroring remote repository subdirectories."""

from ._version import __version__
from .config import ConfigStore
from .engine import SyncEngine
from .exceptions import (
    CancelledSyncError,
    CommandError,
    FetchError,
    MaterializeError,
    StackSyncError,
    SyncConfigError,
    SyncInProgressError,
)
from .files import build_predicate, is_includable, materialize, matches
from .git import RemoteFetcher
from .history import JsonHistoryStore, MemoryHistoryStore
from .models import (
    AutoSyncConfig,
    CommandResult,
    FetchResult,
    InternalSyncConfig,
    PostSyncCommand,
    RepositoryConfig,
    SyncHistoryItem,
    SyncResult,
    SyncSettings,
    SyncState,
    SyncStatistics,
)
from .output import CancelToken, LoggingOutputSink, MemoryOutputSink
from .sync import ChangeDetector, SyncOrchestrator, SyncScheduler, run_post_sync_commands

__all__ = [
    "AutoSyncConfig",
    "CancelToken",
    "CancelledSyncError",
    "ChangeDetector",
    "CommandError",
    "CommandResult",
    "ConfigStore",
    "FetchError",
    "FetchResult",
    "InternalSyncConfig",
    "JsonHistoryStore",
    "LoggingOutputSink",
    "MaterializeError",
    "MemoryHistoryStore",
    "MemoryOutputSink",
    "PostSyncCommand",
    "RemoteFetcher",
    "RepositoryConfig",
    "StackSyncError",
    "SyncConfigError",
    "SyncEngine",
    "SyncHistoryItem",
    "SyncInProgressError",
    "SyncOrchestrator",
    "SyncResult",
    "SyncScheduler",
    "SyncSettings",
    "SyncState",
    "SyncStatistics",
    "__version__",
    "build_predicate",
    "is_includable",
    "materialize",
    "matches",
    "run_post_sync_commands",
]
