"""Post-sync shell hooks.

Every command is best-effort: a missing directory is skipped, a failure is
logged and recorded, and neither stops the remaining commands nor fails the
sync run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from .._process import kill_and_wait, session_kwargs
from ..exceptions import CommandError
from ..models.config import PostSyncCommand
from ..models.sync import CommandResult
from ..output import OutputSink

logger = logging.getLogger(__name__)


def resolve_command_dir(directory: str, workspace_root: Path) -> Path:
    """Resolve *directory* against *workspace_root* unless it is absolute."""
    path = Path(directory).expanduser()
    if not path.is_absolute():
        path = workspace_root / path
    return path.resolve()


async def _execute(command: str, cwd: Path, timeout: float | None) -> tuple[int, str, str]:
    try:
        proc = await asyncio.create_subprocess_shell(
            command,
            cwd=str(cwd),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            **session_kwargs(),
        )
    except OSError as exc:
        raise CommandError(f"Failed to start command: {exc}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        raise CommandError(f"Command timed out after {timeout:.0f}s") from None
    finally:
        await kill_and_wait(proc)

    return (
        proc.returncode if proc.returncode is not None else -1,
        stdout.decode(errors="replace"),
        stderr.decode(errors="replace"),
    )


async def run_command(
    cmd: PostSyncCommand,
    workspace_root: Path,
    *,
    output: OutputSink | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run one post-sync command and report what happened."""
    cwd = resolve_command_dir(cmd.directory, workspace_root)

    if not cwd.is_dir():
        logger.warning("Skipping post-sync command %r: directory %s does not exist", cmd.command, cwd)
        if output is not None:
            output.append_line(f"Warning: directory does not exist: {cwd}")
        return CommandResult(directory=str(cwd), command=cmd.command, status="skipped")

    logger.info("Running post-sync command in %s: %s", cwd, cmd.command)
    if output is not None:
        output.append_line(f"Running in {cwd}: {cmd.command}")

    returncode: int | None = None
    stdout = stderr = ""
    try:
        returncode, stdout, stderr = await _execute(cmd.command, cwd, timeout)
        if returncode != 0:
            raise CommandError(f"Command exited with code {returncode}: {stderr.strip()[:500]}")
    except CommandError as exc:
        logger.error("Post-sync command %r failed: %s", cmd.command, exc)
        if output is not None:
            output.append_line(f"Command failed: {exc}")
        return CommandResult(
            directory=str(cwd),
            command=cmd.command,
            status="failed",
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            error=str(exc),
        )

    if output is not None:
        if stdout:
            output.append_line("Command output:")
            output.append_line(stdout.rstrip("\n"))
        output.append_line("Command succeeded")
    return CommandResult(
        directory=str(cwd),
        command=cmd.command,
        status="success",
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
    )


async def run_post_sync_commands(
    commands: Sequence[PostSyncCommand],
    workspace_root: Path,
    *,
    output: OutputSink | None = None,
    timeout: float | None = None,
) -> list[CommandResult]:
    """Run *commands* in order, each isolated from the others' failures."""
    results: list[CommandResult] = []
    for cmd in commands:
        results.append(await run_command(cmd, workspace_root, output=output, timeout=timeout))
    return results
