"""One repository's sync run: fetch, detect, copy, hooks, history, cleanup.

Stages of a run execute strictly in order.  Fetch and copy errors end the
run as ``failed``; hook errors never do.  History is recorded exactly once
per run and the staging directory is always removed.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
import time
import uuid
from pathlib import Path

from ..exceptions import StackSyncError, SyncConfigError, SyncInProgressError
from ..files.filters import build_predicate
from ..files.materializer import list_matching_files, materialize
from ..git.fetcher import RemoteFetcher
from ..history.store import HistoryStore, new_history_id
from ..models.config import RepositoryConfig
from ..models.sync import SyncHistoryItem, SyncResult, SyncState, SyncType
from ..output import CancelToken, OutputSink, ProgressReporter
from .changes import ChangeDetector
from .commands import run_post_sync_commands

logger = logging.getLogger(__name__)

STAGING_PREFIX = "aiostacksync"


class SyncOrchestrator:
    """Runs syncs for any number of repositories.

    A run for a repository name that is already syncing is rejected with
    :class:`SyncInProgressError`; runs for different repositories are
    independent.
    """

    def __init__(
        self,
        workspace_root: Path | None,
        *,
        fetcher: RemoteFetcher | None = None,
        detector: ChangeDetector | None = None,
        history: HistoryStore | None = None,
        output: OutputSink | None = None,
        staging_root: Path | None = None,
        command_timeout: float | None = None,
    ) -> None:
        self.workspace_root = workspace_root.resolve() if workspace_root else None
        self.fetcher = fetcher or RemoteFetcher()
        self.detector = detector or ChangeDetector()
        self.history = history
        self.output = output
        self.staging_root = staging_root
        self.command_timeout = command_timeout

        self._states: dict[str, SyncState] = {}
        self._in_flight: set[str] = set()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _emit(self, line: str) -> None:
        if self.output is not None:
            self.output.append_line(line)

    def _set_state(self, repo: RepositoryConfig, state: SyncState) -> None:
        self._states[repo.name] = state
        logger.debug("%s: %s", repo.name, state.value)

    def state(self, name: str) -> SyncState:
        return self._states.get(name, SyncState.IDLE)

    def is_running(self, name: str) -> bool:
        return name in self._in_flight

    def _require_workspace(self) -> Path:
        if self.workspace_root is None:
            raise SyncConfigError("No workspace folder is open")
        return self.workspace_root

    def resolve_target(self, repo: RepositoryConfig) -> Path:
        """Return the absolute target directory of *repo*."""
        workspace = self._require_workspace()
        if not repo.target_directory:
            raise SyncConfigError(f"Repository {repo.name!r} has no target directory")
        target = Path(repo.target_directory).expanduser()
        if not target.is_absolute():
            target = workspace / target
        return target.resolve()

    def new_staging_path(self, kind: str = "sync") -> Path:
        """Return a fresh, unique staging path (not yet created)."""
        root = self.staging_root or Path(tempfile.gettempdir())
        stamp = int(time.time() * 1000)
        return root / f"{STAGING_PREFIX}-{kind}-{stamp}-{uuid.uuid4().hex[:8]}"

    async def _cleanup(self, staging_path: Path | None) -> None:
        if staging_path is None or not staging_path.exists():
            return
        try:
            await asyncio.to_thread(shutil.rmtree, staging_path)
            logger.debug("Removed staging directory %s", staging_path)
        except OSError as exc:
            logger.warning("Failed to remove staging directory %s: %s", staging_path, exc)
            self._emit(f"Failed to clean up temporary directory: {exc}")

    async def _record(self, result: SyncResult) -> None:
        item = SyncHistoryItem(
            id=new_history_id(),
            timestamp=int(time.time() * 1000),
            repository=result.repository,
            branch=result.branch,
            files=result.files,
            status=result.status,
            error=result.error,
            duration=result.duration_ms,
            sync_type=result.sync_type,
        )
        result.history_id = item.id
        if self.history is None:
            return
        try:
            await self.history.add(item)
        except Exception as exc:
            logger.error("Failed to record history for %s: %s", result.repository, exc)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def check_for_changes(self, repo: RepositoryConfig, staging_path: Path) -> bool:
        """Stage *repo* into *staging_path* and report whether it changed.

        Does not touch the baseline; the caller owns *staging_path*.
        """
        fetched = await self.fetcher.stage(repo, staging_path)
        return await self.detector.has_changes(repo, fetched.source_root)

    async def preview(self, repo: RepositoryConfig) -> bool:
        """Like :meth:`check_for_changes` with a private, cleaned-up staging area."""
        staging_path = self.new_staging_path("check")
        try:
            return await self.check_for_changes(repo, staging_path)
        finally:
            await self._cleanup(staging_path)

    async def list_available_files(self, repo: RepositoryConfig) -> list[str]:
        """Return the pattern-matching relative paths *repo* could sync."""
        staging_path = self.new_staging_path("list")
        try:
            fetched = await self.fetcher.stage(repo, staging_path)
            return await list_matching_files(
                fetched.source_root, build_predicate(repo, patterns_only=True)
            )
        finally:
            await self._cleanup(staging_path)

    async def check_and_sync(
        self,
        repo: RepositoryConfig,
        sync_type: SyncType = "manual",
        *,
        force: bool = False,
        progress: ProgressReporter | None = None,
        cancel: CancelToken | None = None,
    ) -> SyncResult:
        """Run the full sync chain for *repo*.

        Configuration problems raise :class:`SyncConfigError` before anything
        is fetched.  Fetch and copy failures are returned as a ``failed``
        result.  With *force* the baseline is ignored and files are always
        copied.
        """
        if repo.name in self._in_flight:
            raise SyncInProgressError(f"A sync for {repo.name!r} is already running")

        workspace = self._require_workspace()
        target_root = self.resolve_target(repo)

        self._in_flight.add(repo.name)
        started = time.monotonic()
        staging_path: Path | None = None
        result = SyncResult(
            repository=repo.name,
            branch=repo.branch,
            sync_type=sync_type,
            status="success",
        )
        interrupted: asyncio.CancelledError | None = None
        self._emit(f"[{sync_type}] Checking {repo.name} for updates...")

        try:
            try:
                self._set_state(repo, SyncState.FETCHING)
                if progress is not None:
                    progress.report(30, "Fetching repository...")
                if not repo.uses_internal_source:
                    staging_path = self.new_staging_path(sync_type)
                    self._emit(f"Cloning {repo.url} ({repo.branch}) into {staging_path}")
                fetched = await self.fetcher.stage(repo, staging_path)
                result.commit = fetched.commit

                self._set_state(repo, SyncState.CHECKING_CHANGES)
                if progress is not None:
                    progress.report(50, "Checking files...")
                if cancel is not None:
                    cancel.raise_if_cancelled()
                changed = force or await self.detector.has_changes(repo, fetched.source_root)
                result.changed = changed

                if not changed:
                    self._set_state(repo, SyncState.NO_CHANGES)
                    self._emit(f"No updates detected for {repo.name}")
                else:
                    self._set_state(repo, SyncState.MATERIALIZING)
                    self._emit(f"Updates detected for {repo.name}, copying to {target_root}")
                    result.files = await materialize(
                        fetched.source_root,
                        target_root,
                        build_predicate(repo),
                        cancel=cancel,
                        on_copy=lambda rel_path: self._emit(f"Updated file: {rel_path}"),
                    )
                    await self.detector.update_baseline(repo, fetched.source_root)

                    self._set_state(repo, SyncState.RUNNING_HOOKS)
                    if repo.post_sync_commands:
                        self._emit("Running post-sync commands:")
                        result.commands = await run_post_sync_commands(
                            repo.post_sync_commands,
                            workspace,
                            output=self.output,
                            timeout=self.command_timeout,
                        )
                    self._emit(f"{repo.name} synced ({len(result.files)} files)")
            except asyncio.CancelledError as exc:
                # Task cancellation (timer shutdown, Ctrl-C) still gets a history entry.
                logger.warning("Sync of %s cancelled", repo.name)
                result.status = "failed"
                result.error = "Sync cancelled"
                self._emit("Sync failed: Sync cancelled")
                interrupted = exc
            except Exception as exc:
                if not isinstance(exc, StackSyncError):
                    logger.exception("Unexpected error while syncing %s", repo.name)
                else:
                    logger.error("Sync of %s failed: %s", repo.name, exc)
                result.status = "failed"
                result.error = str(exc)
                self._emit(f"Sync failed: {exc}")

            result.duration_ms = int((time.monotonic() - started) * 1000)
            self._set_state(repo, SyncState.RECORDING_HISTORY)
            await self._record(result)
        finally:
            self._set_state(repo, SyncState.CLEANING_UP)
            await self._cleanup(staging_path)
            self._set_state(repo, SyncState.IDLE)
            self._in_flight.discard(repo.name)
            if progress is not None:
                progress.report(20, "Done")

        if interrupted is not None:
            raise interrupted
        return result

