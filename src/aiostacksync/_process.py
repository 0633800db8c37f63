"""Child process helpers shared by git fetching and post-sync commands."""

from __future__ import annotations

import asyncio
import contextlib
import os
import signal
from typing import Any


def session_kwargs() -> dict[str, Any]:
    """Extra spawn arguments that put the child in its own process group."""
    if os.name == "nt":
        return {}
    return {"start_new_session": True}


async def kill_and_wait(proc: asyncio.subprocess.Process) -> None:
    """Kill *proc* and its process group if it is still running, then reap it."""
    if proc.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        if os.name == "nt":
            proc.kill()
        else:
            # Grandchildren (git helpers, commands under ``sh -c``) share the group.
            os.killpg(proc.pid, signal.SIGKILL)
    await proc.wait()
