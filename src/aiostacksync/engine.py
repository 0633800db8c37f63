"""The sync engine: one object owning the baselines, orchestrator and timers.

Construct it once at start-up and pass it to whatever triggers syncs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from .config.store import ConfigStore
from .git.fetcher import RemoteFetcher
from .history.store import HistoryStore
from .models.config import RepositoryConfig, SyncSettings
from .models.sync import SyncResult, SyncType
from .output import CancelToken, LoggingOutputSink, OutputSink, ProgressReporter
from .sync.changes import ChangeDetector
from .sync.orchestrator import SyncOrchestrator
from .sync.scheduler import SyncScheduler

logger = logging.getLogger(__name__)


class SyncEngine:
    """Facade over :class:`SyncOrchestrator` and :class:`SyncScheduler`."""

    def __init__(
        self,
        workspace_root: Path | None,
        *,
        history: HistoryStore | None = None,
        output: OutputSink | None = None,
        fetcher: RemoteFetcher | None = None,
        staging_root: Path | None = None,
        command_timeout: float | None = None,
    ) -> None:
        self.detector = ChangeDetector()
        self.orchestrator = SyncOrchestrator(
            workspace_root,
            fetcher=fetcher,
            detector=self.detector,
            history=history,
            output=output if output is not None else LoggingOutputSink(),
            staging_root=staging_root,
            command_timeout=command_timeout,
        )
        self.scheduler = SyncScheduler(self._auto_sync)
        self._unsubscribe: Callable[[], None] | None = None

    async def _auto_sync(self, repo: RepositoryConfig) -> SyncResult:
        return await self.orchestrator.check_and_sync(repo, "auto")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, repositories: Iterable[RepositoryConfig]) -> None:
        """Start timers for every auto-sync repository."""
        self.scheduler.reconcile(repositories)
        logger.info("Sync engine started (%d auto-sync timers)", len(self.scheduler.intervals))

    def reconcile(self, repositories: Iterable[RepositoryConfig]) -> None:
        self.scheduler.reconcile(repositories)

    def bind(self, store: ConfigStore) -> None:
        """Reconcile timers whenever *store* saves new settings."""
        if self._unsubscribe is not None:
            self._unsubscribe()

        def _on_change(settings: SyncSettings) -> None:
            logger.info("Settings changed, reconciling auto-sync timers")
            self.scheduler.reconcile(settings.repositories)

        self._unsubscribe = store.subscribe(_on_change)

    def stop_all(self) -> None:
        self.scheduler.stop_all()

    async def aclose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.scheduler.aclose()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def sync(
        self,
        repo: RepositoryConfig,
        sync_type: SyncType = "manual",
        *,
        force: bool = False,
        progress: ProgressReporter | None = None,
        cancel: CancelToken | None = None,
    ) -> SyncResult:
        return await self.orchestrator.check_and_sync(
            repo, sync_type, force=force, progress=progress, cancel=cancel
        )

    async def has_updates(self, repo: RepositoryConfig) -> bool:
        return await self.orchestrator.preview(repo)

    async def list_available_files(self, repo: RepositoryConfig) -> list[str]:
        return await self.orchestrator.list_available_files(repo)

    def forget(self, repo: RepositoryConfig) -> None:
        """Drop *repo*'s baseline so the next run copies everything."""
        self.detector.forget(repo)
