"""Shared fixtures for aiostacksync tests."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from aiostacksync.models import RepositoryConfig


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create *files* (relative path → content) under *root*."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


def set_mtime(path: Path, mtime_ns: int) -> None:
    os.utime(path, ns=(mtime_ns, mtime_ns))


@pytest.fixture
def write_files() -> Callable[[Path, dict[str, str]], Path]:
    return write_tree


@pytest.fixture
def touch() -> Callable[[Path, int], None]:
    return set_mtime


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """A staged source tree with included, excluded and unrelated files."""
    return write_tree(
        tmp_path / "source",
        {
            "user/user.proto": 'syntax = "proto3";\n',
            "user/profile/avatar.proto": "message Avatar {}\n",
            "order.proto": "message Order {}\n",
            "backend/internal.proto": "message Internal {}\n",
            "user/README.md": "# user\n",
            ".hidden/secret.proto": "message Hidden {}\n",
        },
    )


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    ws = tmp_path / "workspace"
    ws.mkdir()
    return ws


@pytest.fixture
def make_repo() -> Callable[..., RepositoryConfig]:
    """Factory for remote-mode repository descriptors."""

    def _make(**overrides: Any) -> RepositoryConfig:
        data: dict[str, Any] = {
            "name": "protos",
            "url": "https://example.com/org/api.git",
            "branch": "main",
            "sourceDirectory": "proto",
            "targetDirectory": "third_party/proto",
        }
        data.update(overrides)
        return RepositoryConfig.model_validate(data)

    return _make


@pytest.fixture
def internal_repo(source_tree: Path) -> Callable[..., RepositoryConfig]:
    """Factory for repositories reading *source_tree* in place."""

    def _make(**overrides: Any) -> RepositoryConfig:
        data: dict[str, Any] = {
            "name": "local",
            "sourceDirectory": "",
            "targetDirectory": "out",
            "internalSync": {"enabled": True, "path": str(source_tree)},
        }
        data.update(overrides)
        return RepositoryConfig.model_validate(data)

    return _make


# -- real git repositories ----------------------------------------------------


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


@pytest.fixture
def git_source(tmp_path: Path) -> Path:
    """A local git repository with a nested proto directory on ``main`` and ``dev``."""
    if shutil.which("git") is None:
        pytest.skip("git binary not available")
    repo = tmp_path / "upstream"
    write_tree(
        repo,
        {
            "api/v1/proto/user.proto": "message User {}\n",
            "api/v1/proto/backend/db.proto": "message Db {}\n",
            "api/v1/README.md": "v1\n",
            "api/v2/big/other.proto": "message Other {}\n",
            "docs/guide.md": "guide\n",
            "service/main.go": "package main\n",
        },
    )
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    # Allow --filter=blob:none over file://
    _git(repo, "config", "uploadpack.allowFilter", "true")
    _git(repo, "add", "-A")
    _git(repo, "commit", "-q", "-m", "initial")
    _git(repo, "checkout", "-q", "-b", "dev")
    write_tree(repo, {"api/v1/proto/dev_only.proto": "message DevOnly {}\n"})
    _git(repo, "add", "-A")
    _git(repo, "commit", "-q", "-m", "dev change")
    _git(repo, "checkout", "-q", "main")
    return repo


@pytest.fixture
def git_head(git_source: Path) -> str:
    return _git(git_source, "rev-parse", "main").strip()
