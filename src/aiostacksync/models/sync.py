"""Sync run, fetch and history models."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SyncType = Literal["manual", "auto"]
SyncStatus = Literal["success", "failed"]


class SyncState(StrEnum):
    """Stages of one orchestrated run."""

    IDLE = "idle"
    FETCHING = "fetching"
    CHECKING_CHANGES = "checking_changes"
    NO_CHANGES = "no_changes"
    MATERIALIZING = "materializing"
    RUNNING_HOOKS = "running_hooks"
    RECORDING_HISTORY = "recording_history"
    CLEANING_UP = "cleaning_up"


class FetchResult(BaseModel):
    """Where the staged source tree for one run lives."""

    mode: Literal["remote", "internal"]
    source_root: Path
    staging_path: Path | None = None
    commit: str | None = None


class CommandResult(BaseModel):
    """Outcome of a single post-sync command."""

    directory: str
    command: str
    status: Literal["success", "failed", "skipped"]
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None


class SyncResult(BaseModel):
    """Outcome of one ``check_and_sync`` run."""

    repository: str
    branch: str
    sync_type: SyncType = "manual"
    status: SyncStatus
    changed: bool = False
    files: list[str] = Field(default_factory=list)
    commands: list[CommandResult] = Field(default_factory=list)
    commit: str | None = None
    error: str | None = None
    duration_ms: int = 0
    history_id: str | None = None

    @property
    def success(self) -> bool:
        return self.status == "success"


class SyncHistoryItem(BaseModel):
    """Immutable record appended after each run.

    Serialised with camelCase keys (``syncType``) in the history file.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    timestamp: int
    repository: str
    branch: str
    files: list[str] = Field(default_factory=list)
    status: SyncStatus
    error: str | None = None
    duration: int
    sync_type: SyncType


class SyncStatistics(BaseModel):
    """Aggregates over the stored history."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_syncs: int = 0
    successful_syncs: int = 0
    failed_syncs: int = 0
    total_files: int = 0
    average_duration: float = 0.0
    last_sync: int = 0
