"""Tests for mtime-based change detection."""

from __future__ import annotations

from pathlib import Path

from aiostacksync.sync.changes import ChangeDetector


class TestChangeDetector:
    async def test_no_baseline_means_changed(self, source_tree: Path, make_repo) -> None:
        assert await ChangeDetector().has_changes(make_repo(), source_tree) is True

    async def test_unchanged_after_baseline(self, source_tree: Path, make_repo) -> None:
        detector = ChangeDetector()
        repo = make_repo()
        await detector.update_baseline(repo, source_tree)
        assert await detector.has_changes(repo, source_tree) is False

    async def test_newer_file_is_change(self, source_tree: Path, make_repo, touch) -> None:
        detector = ChangeDetector()
        repo = make_repo()
        target = source_tree / "user" / "user.proto"
        touch(target, 1_000_000_000_000)
        await detector.update_baseline(repo, source_tree)

        touch(target, 2_000_000_000_000)
        assert await detector.has_changes(repo, source_tree) is True

    async def test_equal_mtime_is_not_change(self, source_tree: Path, make_repo, touch) -> None:
        detector = ChangeDetector()
        repo = make_repo()
        target = source_tree / "order.proto"
        touch(target, 1_500_000_000_000)
        await detector.update_baseline(repo, source_tree)

        target.write_text("rewritten\n")
        touch(target, 1_500_000_000_000)
        assert await detector.has_changes(repo, source_tree) is False

    async def test_older_mtime_is_not_change(self, source_tree: Path, make_repo, touch) -> None:
        detector = ChangeDetector()
        repo = make_repo()
        target = source_tree / "order.proto"
        touch(target, 2_000_000_000_000)
        await detector.update_baseline(repo, source_tree)

        touch(target, 1_000_000_000_000)
        assert await detector.has_changes(repo, source_tree) is False

    async def test_new_file_is_change(self, source_tree: Path, make_repo) -> None:
        detector = ChangeDetector()
        repo = make_repo()
        await detector.update_baseline(repo, source_tree)

        (source_tree / "payment.proto").write_text("message Payment {}\n")
        assert await detector.has_changes(repo, source_tree) is True

    async def test_deleted_file_is_not_change(self, source_tree: Path, make_repo) -> None:
        detector = ChangeDetector()
        repo = make_repo()
        await detector.update_baseline(repo, source_tree)

        (source_tree / "order.proto").unlink()
        assert await detector.has_changes(repo, source_tree) is False

    async def test_missing_root_is_change(self, tmp_path: Path, make_repo) -> None:
        detector = ChangeDetector()
        repo = make_repo()
        await detector.update_baseline(repo, tmp_path)
        assert await detector.has_changes(repo, tmp_path / "gone") is True

    async def test_baselines_keyed_by_identity(self, source_tree: Path, make_repo) -> None:
        detector = ChangeDetector()
        first = make_repo()
        same_url = make_repo(name="renamed")
        other = make_repo(url="https://example.com/org/other.git")
        await detector.update_baseline(first, source_tree)

        assert await detector.has_changes(same_url, source_tree) is False
        assert await detector.has_changes(other, source_tree) is True

    async def test_baseline_contents(self, source_tree: Path, make_repo) -> None:
        detector = ChangeDetector()
        repo = make_repo()
        await detector.update_baseline(repo, source_tree)
        baseline = detector.baseline(repo)
        assert "user/profile/avatar.proto" in baseline
        assert baseline["order.proto"] == (source_tree / "order.proto").stat().st_mtime_ns

    async def test_forget(self, source_tree: Path, make_repo) -> None:
        detector = ChangeDetector()
        repo = make_repo()
        await detector.update_baseline(repo, source_tree)
        detector.forget(repo)
        assert detector.baseline(repo) == {}
        assert await detector.has_changes(repo, source_tree) is True

    async def test_clear(self, source_tree: Path, make_repo) -> None:
        detector = ChangeDetector()
        repo = make_repo()
        await detector.update_baseline(repo, source_tree)
        detector.clear()
        assert await detector.has_changes(repo, source_tree) is True
