"""Recurring auto-sync timers, one per repository.

Each timer is an asyncio task that fires every ``interval`` seconds and
starts the sync in its own task, so a slow or failing repository never
delays another one's ticks.  Failures are logged and the timer keeps going.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import SyncInProgressError
from ..models.config import RepositoryConfig

logger = logging.getLogger(__name__)

SyncCallback = Callable[[RepositoryConfig], Awaitable[Any]]


@dataclass
class _Timer:
    repo: RepositoryConfig
    interval: float
    task: asyncio.Task[None] | None = None
    runs: set[asyncio.Task[None]] = field(default_factory=set)


class SyncScheduler:
    """Owns the auto-sync timers.

    :meth:`reconcile` and :meth:`stop_all` must be called from a running
    event loop.
    """

    def __init__(self, callback: SyncCallback) -> None:
        self._callback = callback
        self._timers: dict[str, _Timer] = {}

    @property
    def intervals(self) -> dict[str, float]:
        """Currently scheduled repositories and their intervals in seconds."""
        return {name: timer.interval for name, timer in self._timers.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._timers

    # ------------------------------------------------------------------
    # Timer lifecycle
    # ------------------------------------------------------------------

    def _start(self, repo: RepositoryConfig, interval: float) -> None:
        timer = _Timer(repo=repo, interval=interval)
        timer.task = asyncio.get_running_loop().create_task(
            self._tick_loop(timer), name=f"aiostacksync-timer-{repo.name}"
        )
        self._timers[repo.name] = timer
        logger.info("Auto-sync started for %s every %ss", repo.name, interval)

    def _stop(self, name: str) -> None:
        timer = self._timers.pop(name, None)
        if timer is None:
            return
        if timer.task is not None:
            timer.task.cancel()
        logger.info("Auto-sync stopped for %s", name)

    async def _tick_loop(self, timer: _Timer) -> None:
        while True:
            await asyncio.sleep(timer.interval)
            run = asyncio.get_running_loop().create_task(self._fire(timer))
            timer.runs.add(run)
            run.add_done_callback(timer.runs.discard)

    async def _fire(self, timer: _Timer) -> None:
        repo = timer.repo
        try:
            await self._callback(repo)
        except SyncInProgressError:
            logger.info("Skipping auto-sync tick for %s: previous run still active", repo.name)
        except Exception as exc:
            logger.error("Auto-sync of %s failed: %s", repo.name, exc)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reconcile(self, repositories: Iterable[RepositoryConfig]) -> None:
        """Bring the running timers in line with *repositories*.

        Idempotent: unchanged repositories keep their existing timer.
        """
        wanted: dict[str, RepositoryConfig] = {}
        for repo in repositories:
            if repo.auto_sync_enabled and repo.auto_sync and repo.auto_sync.interval > 0:
                wanted[repo.name] = repo

        for name in list(self._timers):
            if name not in wanted:
                self._stop(name)

        for name, repo in wanted.items():
            interval = float(repo.auto_sync.interval) if repo.auto_sync else 0.0
            timer = self._timers.get(name)
            if timer is None:
                self._start(repo, interval)
            elif timer.interval != interval:
                self._stop(name)
                self._start(repo, interval)
                logger.info("Auto-sync interval for %s changed to %ss", name, interval)
            else:
                timer.repo = repo

    def stop_all(self) -> None:
        """Cancel every timer."""
        for name in list(self._timers):
            self._stop(name)

    async def aclose(self) -> None:
        """Cancel every timer and in-flight tick, and wait for them to finish."""
        tasks: list[asyncio.Task[None]] = []
        for timer in self._timers.values():
            if timer.task is not None:
                tasks.append(timer.task)
            tasks.extend(timer.runs)
        self.stop_all()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
