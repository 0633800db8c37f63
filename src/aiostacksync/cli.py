"""aiostacksync CLI — sync remote repository subdirectories into a workspace."""

from __future__ import annotations

import asyncio
import datetime
import logging
from pathlib import Path

import click

from ._version import __version__
from .config.store import ConfigStore
from .engine import SyncEngine
from .exceptions import StackSyncError
from .history.store import JsonHistoryStore
from .models.config import RepositoryConfig

DEFAULT_CONFIG = ".stacksync.yaml"
DEFAULT_HISTORY = ".stacksync-history.json"


class _EchoSink:
    """Output sink that prints each line."""

    def append_line(self, line: str) -> None:
        click.echo(line)


class _Context:
    def __init__(self, config: Path, workspace: Path, history: Path | None) -> None:
        self.store = ConfigStore(config)
        self.workspace = workspace
        self.history = JsonHistoryStore(history or workspace / DEFAULT_HISTORY)

    def engine(self) -> SyncEngine:
        return SyncEngine(self.workspace, history=self.history, output=_EchoSink())

    async def repo(self, name: str) -> RepositoryConfig:
        await self.store.load()
        return self.store.get(name)


def _run(coro):
    try:
        return asyncio.run(coro)
    except StackSyncError as exc:
        raise click.ClickException(str(exc)) from exc


def _format_ts(ms: int) -> str:
    return datetime.datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


@click.group()
@click.version_option(__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG,
    show_default=True,
    help="Settings YAML file.",
)
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    help="Workspace root used for relative target and command directories.",
)
@click.option(
    "--history",
    "history_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"History JSON file [default: <workspace>/{DEFAULT_HISTORY}].",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx, config_path, workspace, history_path, verbose):
    """Mirror remote repository subdirectories into this workspace."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = _Context(config_path, workspace.resolve(), history_path)


@main.command("list")
@click.pass_obj
def list_repos(obj: _Context):
    """List configured repositories."""
    settings = _run(obj.store.load())
    if not settings.repositories:
        click.echo("No repositories configured.")
        return
    for repo in settings.repositories:
        source = (
            f"internal:{repo.internal_sync.path}"
            if repo.uses_internal_source and repo.internal_sync
            else f"{repo.url}@{repo.branch}"
        )
        auto = (
            f" (auto every {repo.auto_sync.interval:g}s)"
            if repo.auto_sync_enabled and repo.auto_sync
            else ""
        )
        click.echo(f"{repo.name}\t{source}:{repo.source_directory or '/'} -> {repo.target_directory}{auto}")


@main.command()
@click.argument("name")
@click.option("--force", is_flag=True, help="Copy even if no change was detected.")
@click.pass_obj
def sync(obj: _Context, name, force):
    """Sync repository NAME now."""

    async def _sync():
        repo = await obj.repo(name)
        return await obj.engine().sync(repo, "manual", force=force)

    result = _run(_sync())
    if not result.success:
        raise click.ClickException(f"Sync of {name} failed: {result.error}")
    if not result.changed:
        click.echo(f"{name}: no changes")
    else:
        click.echo(f"{name}: {len(result.files)} files synced in {result.duration_ms}ms")


@main.command()
@click.argument("name")
@click.pass_obj
def check(obj: _Context, name):
    """Fetch repository NAME and report whether it has updates."""

    async def _check():
        repo = await obj.repo(name)
        return await obj.engine().has_updates(repo)

    click.echo("updates available" if _run(_check()) else "up to date")


@main.command()
@click.argument("name")
@click.pass_obj
def files(obj: _Context, name):
    """List the files repository NAME would sync."""

    async def _files():
        repo = await obj.repo(name)
        return await obj.engine().list_available_files(repo)

    for rel_path in _run(_files()):
        click.echo(rel_path)


@main.command("enable-auto")
@click.argument("name")
@click.option("--interval", type=click.IntRange(min=1), default=None, help="Seconds between syncs.")
@click.pass_obj
def enable_auto(obj: _Context, name, interval):
    """Enable auto-sync for repository NAME."""

    async def _enable():
        await obj.store.load()
        return await obj.store.set_auto_sync(name, True, interval)

    repo = _run(_enable())
    click.echo(f"Auto-sync enabled for {name} every {repo.auto_sync.interval:g}s")


@main.command("disable-auto")
@click.argument("name")
@click.pass_obj
def disable_auto(obj: _Context, name):
    """Disable auto-sync for repository NAME."""

    async def _disable():
        await obj.store.load()
        return await obj.store.set_auto_sync(name, False)

    _run(_disable())
    click.echo(f"Auto-sync disabled for {name}")


@main.command()
@click.option(
    "--reload-interval",
    type=float,
    default=5.0,
    show_default=True,
    help="Seconds between settings file checks.",
)
@click.pass_obj
def watch(obj: _Context, reload_interval):
    """Run auto-sync timers until interrupted."""

    async def _watch():
        engine = obj.engine()
        settings = await obj.store.load()
        engine.bind(obj.store)
        engine.start(settings.repositories)
        click.echo(f"Watching {len(engine.scheduler.intervals)} repositories (Ctrl-C to stop)")

        last_mtime = obj.store.path.stat().st_mtime if obj.store.path.exists() else None
        try:
            while True:
                await asyncio.sleep(reload_interval)
                mtime = obj.store.path.stat().st_mtime if obj.store.path.exists() else None
                if mtime == last_mtime:
                    continue
                last_mtime = mtime
                try:
                    settings = await obj.store.load()
                except StackSyncError as exc:
                    click.echo(f"WARNING: {exc}", err=True)
                    continue
                click.echo("Settings changed, updating timers")
                engine.reconcile(settings.repositories)
        finally:
            await engine.aclose()

    try:
        _run(_watch())
    except KeyboardInterrupt:
        click.echo("\nStopped watching.")


@main.command()
@click.option("--limit", type=int, default=20, show_default=True)
@click.pass_obj
def history(obj: _Context, limit):
    """Show recent sync runs."""
    items = _run(obj.history.get_history())
    if not items:
        click.echo("No sync history.")
        return
    for item in items[:limit]:
        line = (
            f"{_format_ts(item.timestamp)}  {item.status:<7}  {item.sync_type:<6}  "
            f"{item.repository} ({item.branch})  {len(item.files)} files  {item.duration}ms"
        )
        if item.error:
            line += f"  error: {item.error}"
        click.echo(line)


@main.command()
@click.pass_obj
def stats(obj: _Context):
    """Show aggregate sync statistics."""
    s = _run(obj.history.statistics())
    click.echo(f"Total syncs:      {s.total_syncs}")
    click.echo(f"Successful:       {s.successful_syncs}")
    click.echo(f"Failed:           {s.failed_syncs}")
    click.echo(f"Files synced:     {s.total_files}")
    click.echo(f"Average duration: {s.average_duration:.0f}ms")
    if s.last_sync:
        click.echo(f"Last sync:        {_format_ts(s.last_sync)}")
