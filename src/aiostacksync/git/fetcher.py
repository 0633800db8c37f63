"""Narrow fetch of one branch/subdirectory into a staging directory.

Remote sources are cloned with the ``git`` binary (shallow, blob-filtered,
checkout deferred) and then narrowed with cone-mode sparse checkout, so
neither unrelated history nor unrelated files are downloaded.  Local or
network sources skip the fetch and are read in place.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from dulwich.repo import Repo

from .._process import kill_and_wait, session_kwargs
from ..exceptions import FetchError
from ..models.config import RepositoryConfig
from ..models.sync import FetchResult

logger = logging.getLogger(__name__)

DEFAULT_GIT_TIMEOUT = 600.0


def sparse_directory(source_directory: str) -> str:
    """Return *source_directory* as a cone-mode sparse-checkout entry.

    Cone mode checks out the files directly inside every ancestor of the
    entry plus the entry itself recursively; siblings of the ancestors stay
    out of the working tree.
    """
    return "/".join(p for p in source_directory.replace("\\", "/").split("/") if p)


def normalize_source_path(raw_path: str) -> Path:
    """Normalise a local or network source root.

    ``\\\\host\\share`` and ``//host/share`` are network (UNC) paths and are
    kept in the platform's native UNC form; anything else is expanded and
    made absolute.
    """
    raw_path = raw_path.strip()
    if raw_path.startswith(("\\\\", "//")):
        tail = raw_path.lstrip("\\/")
        if os.name == "nt":
            return Path("\\\\" + tail.replace("/", "\\"))
        return Path("//" + tail.replace("\\", "/"))
    return Path(raw_path).expanduser().resolve()


def read_head_commit(repo_path: Path) -> str | None:
    """Return the hex commit id HEAD points at, or ``None`` if unreadable."""
    try:
        repo = Repo(str(repo_path))
    except Exception as exc:
        logger.debug("Cannot open %s as a git repository: %s", repo_path, exc)
        return None
    try:
        return repo.head().decode("ascii")
    except KeyError:
        return None
    finally:
        repo.close()


def _check_local_source_sync(source_root: Path) -> None:
    if not source_root.exists():
        raise FetchError(f"Source path does not exist: {source_root}")
    if not source_root.is_dir():
        raise FetchError(f"Source path is not a directory: {source_root}")
    if not os.access(source_root, os.R_OK | os.X_OK):
        raise FetchError(f"Source path is not readable: {source_root}")


class RemoteFetcher:
    """Stage source trees for sync runs.

    The constructor accepts plain values; nothing is read from the
    environment.
    """

    def __init__(
        self,
        *,
        git_binary: str = "git",
        timeout: float = DEFAULT_GIT_TIMEOUT,
    ) -> None:
        self.git_binary = git_binary
        self.timeout = timeout

    # ------------------------------------------------------------------
    # git plumbing
    # ------------------------------------------------------------------

    async def _run_git(self, *args: str, cwd: Path | None = None) -> str:
        """Run one git command and return its stdout.

        Raises :class:`FetchError` on spawn failure, timeout or non-zero exit.
        """
        env = dict(os.environ)
        # Fail instead of blocking on a credential prompt.
        env["GIT_TERMINAL_PROMPT"] = "0"

        try:
            proc = await asyncio.create_subprocess_exec(
                self.git_binary,
                *args,
                cwd=str(cwd) if cwd else None,
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                **session_kwargs(),
            )
        except FileNotFoundError:
            raise FetchError(
                f"git binary not found ({self.git_binary}); install git to fetch remote sources"
            ) from None
        except OSError as exc:
            raise FetchError(f"Failed to start git: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except TimeoutError:
            raise FetchError(
                f"git {args[0]} timed out after {self.timeout:.0f}s"
            ) from None
        finally:
            # Also reached on task cancellation: never leave git writing
            # into a staging directory that is about to be removed.
            await kill_and_wait(proc)

        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            raise FetchError(
                f"git {' '.join(args[:2])} failed (exit code {proc.returncode}): {message[:500]}"
            )
        return stdout.decode(errors="replace")

    async def git_available(self) -> bool:
        """Return ``True`` if the configured git binary can be executed."""
        try:
            await self._run_git("--version")
        except FetchError:
            return False
        return True

    # ------------------------------------------------------------------
    # Remote fetch
    # ------------------------------------------------------------------

    async def fetch(
        self,
        url: str,
        branch: str,
        source_directory: str,
        staging_path: Path,
    ) -> FetchResult:
        """Clone *branch* of *url* into *staging_path*, narrowed to *source_directory*.

        The returned ``source_root`` is ``staging_path / source_directory``.
        """
        logger.info(
            "Fetching %s (branch %s, path %s) into %s",
            url,
            branch,
            source_directory or "/",
            staging_path,
        )
        staging_path.mkdir(parents=True, exist_ok=True)

        # --branch/--single-branch: a depth-1 clone otherwise only carries
        # the default branch.
        await self._run_git(
            "clone",
            "--depth",
            "1",
            "--filter=blob:none",
            "--no-checkout",
            "--branch",
            branch,
            "--single-branch",
            url,
            str(staging_path),
        )

        sparse_dir = sparse_directory(source_directory)
        if sparse_dir:
            await self._run_git("sparse-checkout", "init", "--cone", cwd=staging_path)
            await self._run_git("sparse-checkout", "set", sparse_dir, cwd=staging_path)

        await self._run_git("checkout", branch, cwd=staging_path)

        source_root = staging_path / source_directory if source_directory else staging_path
        if not source_root.is_dir():
            raise FetchError(
                f"Source directory {source_directory!r} not found in branch {branch!r} of {url}"
            )

        commit = await asyncio.to_thread(read_head_commit, staging_path)
        logger.info("Fetched %s at %s", url, commit[:8] if commit else "unknown commit")
        return FetchResult(
            mode="remote",
            source_root=source_root,
            staging_path=staging_path,
            commit=commit,
        )

    # ------------------------------------------------------------------
    # Local / network source
    # ------------------------------------------------------------------

    async def resolve_local(self, repo: RepositoryConfig) -> FetchResult:
        """Validate and return the in-place source root of an internal-sync repository."""
        if repo.internal_sync is None or not repo.internal_sync.path:
            raise FetchError(f"Repository {repo.name!r} has no internal sync path")

        base = normalize_source_path(repo.internal_sync.path)
        source_root = base / repo.source_directory if repo.source_directory else base
        await asyncio.to_thread(_check_local_source_sync, source_root)
        logger.info("Using local source %s for %s", source_root, repo.name)
        return FetchResult(mode="internal", source_root=source_root)

    async def stage(self, repo: RepositoryConfig, staging_path: Path | None) -> FetchResult:
        """Stage *repo*'s source tree using whichever source mode it selects.

        *staging_path* is only used (and required) for remote sources.
        """
        if repo.uses_internal_source:
            return await self.resolve_local(repo)
        if staging_path is None:
            raise FetchError(f"Repository {repo.name!r} needs a staging path for a remote fetch")
        return await self.fetch(repo.url, repo.branch, repo.source_directory, staging_path)
