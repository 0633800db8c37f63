"""Sync engine: change detection, hooks, orchestration and scheduling."""

from .changes import ChangeDetector
from .commands import resolve_command_dir, run_command, run_post_sync_commands
from .orchestrator import SyncOrchestrator
from .scheduler import SyncScheduler

__all__ = [
    "ChangeDetector",
    "SyncOrchestrator",
    "SyncScheduler",
    "resolve_command_dir",
    "run_command",
    "run_post_sync_commands",
]
