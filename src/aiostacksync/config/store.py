"""YAML-backed settings store.

Reads and writes ``{repositories: [...]}`` (optionally nested under a
``stackFileSync`` key) and notifies subscribers whenever the settings are
saved, so the scheduler can reconcile its timers.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import aiofiles
import yaml
from pydantic import ValidationError

from ..exceptions import SyncConfigError
from ..models.config import DEFAULT_AUTO_SYNC_INTERVAL, AutoSyncConfig, RepositoryConfig, SyncSettings

logger = logging.getLogger(__name__)

SETTINGS_NAMESPACE = "stackFileSync"

SettingsListener = Callable[[SyncSettings], Awaitable[None] | None]


def parse_settings(data: Any) -> SyncSettings:
    """Validate raw settings data into :class:`SyncSettings`."""
    if data is None:
        data = {}
    if isinstance(data, dict) and SETTINGS_NAMESPACE in data:
        data = data[SETTINGS_NAMESPACE] or {}
    if isinstance(data, list):
        data = {"repositories": data}
    if not isinstance(data, dict):
        raise SyncConfigError("Settings must be a mapping with a 'repositories' list")
    try:
        return SyncSettings.model_validate(data)
    except ValidationError as exc:
        raise SyncConfigError(f"Invalid settings: {exc}") from exc


class ConfigStore:
    """Load, save and watch the repository settings file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._settings: SyncSettings | None = None
        self._listeners: list[SettingsListener] = []

    @property
    def settings(self) -> SyncSettings:
        """The last loaded or saved settings (empty before the first load)."""
        return self._settings or SyncSettings()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def load(self) -> SyncSettings:
        """Read and validate the settings file; a missing file means no repositories."""
        if not self.path.exists():
            logger.info("Settings file %s not found, no repositories configured", self.path)
            self._settings = SyncSettings()
            return self._settings

        try:
            async with aiofiles.open(self.path, encoding="utf-8") as fh:
                content = await fh.read()
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise SyncConfigError(f"Invalid YAML in {self.path}: {exc}") from exc
        except OSError as exc:
            raise SyncConfigError(f"Cannot read settings file {self.path}: {exc}") from exc

        self._settings = parse_settings(data)
        logger.info("Loaded %d repositories from %s", len(self._settings.repositories), self.path)
        return self._settings

    async def save(self, settings: SyncSettings) -> None:
        """Write *settings* back and notify subscribers."""
        payload = {"repositories": [r.to_settings_dict() for r in settings.repositories]}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = yaml.safe_dump(payload, sort_keys=False, allow_unicode=True)
        async with aiofiles.open(self.path, "w", encoding="utf-8") as fh:
            await fh.write(content)
        self._settings = settings
        logger.info("Saved %d repositories to %s", len(settings.repositories), self.path)
        await self._notify(settings)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def get(self, name: str) -> RepositoryConfig:
        """Return the repository called *name* or raise :class:`SyncConfigError`."""
        if not self.settings.repositories:
            raise SyncConfigError("No repositories configured")
        repo = self.settings.get(name)
        if repo is None:
            raise SyncConfigError(f"Unknown repository: {name}")
        return repo

    async def set_auto_sync(
        self,
        name: str,
        enabled: bool,
        interval: float | None = None,
    ) -> RepositoryConfig:
        """Enable or disable auto-sync for *name*, keeping its interval unless given."""
        current = self.get(name)
        if interval is None:
            interval = current.auto_sync.interval if current.auto_sync else DEFAULT_AUTO_SYNC_INTERVAL
        updated = current.model_copy(
            update={"auto_sync": AutoSyncConfig(enabled=enabled, interval=interval)}
        )
        repositories = [updated if r.name == name else r for r in self.settings.repositories]
        await self.save(SyncSettings(repositories=repositories))
        logger.info(
            "Auto-sync %s for %s (interval %ss)",
            "enabled" if enabled else "disabled",
            name,
            interval,
        )
        return updated

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Call *listener* after every save; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def _notify(self, settings: SyncSettings) -> None:
        for listener in list(self._listeners):
            try:
                outcome = listener(settings)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                logger.error("Settings listener failed: %s", exc)
