"""Tests for glob path filters."""

from __future__ import annotations

import pytest

from aiostacksync.files.filters import (
    build_predicate,
    is_includable,
    matches,
    normalize_rel_path,
)

DEFAULT_INCLUDE = ["**/*.proto"]
DEFAULT_EXCLUDE = ["**/backend/**"]


class TestMatches:
    def test_globstar_matches_any_depth(self) -> None:
        assert matches("**/*.proto", "a.proto") is True
        assert matches("**/*.proto", "user/a.proto") is True
        assert matches("**/*.proto", "a/b/c/d.proto") is True

    def test_star_stays_within_segment(self) -> None:
        assert matches("*.proto", "a.proto") is True
        assert matches("*.proto", "user/a.proto") is False
        assert matches("user/*.proto", "user/a.proto") is True
        assert matches("user/*.proto", "user/sub/a.proto") is False

    def test_question_mark(self) -> None:
        assert matches("user/?.proto", "user/a.proto") is True
        assert matches("user/?.proto", "user/ab.proto") is False

    def test_dot_segments_matched(self) -> None:
        assert matches("**/*.proto", ".hidden/secret.proto") is True
        assert matches("**/*", ".env") is True

    def test_directory_globstar(self) -> None:
        assert matches("**/backend/**", "backend/a.proto") is True
        assert matches("**/backend/**", "svc/backend/deep/a.proto") is True
        assert matches("**/backend/**", "backends/a.proto") is False

    def test_no_directory_prefix_matching(self) -> None:
        assert matches("proto/*", "proto/x.proto") is True
        assert matches("proto/*", "proto/sub/x.proto") is False
        assert matches("**/*.proto", "gen.proto/readme.md") is False
        assert matches("api/v1", "api/v1") is True
        assert matches("api/v1", "api/v1/x.proto") is False

    def test_globstar_inside_pattern(self) -> None:
        assert matches("api/**/*.proto", "api/x.proto") is True
        assert matches("api/**/*.proto", "api/v1/v2/x.proto") is True
        assert matches("api/**/*.proto", "other/x.proto") is False

    def test_case_sensitive(self) -> None:
        assert matches("**/*.proto", "A.PROTO") is False

    def test_negation(self) -> None:
        assert matches("!**/*.proto", "a.txt") is True
        assert matches("!**/*.proto", "a.proto") is False

    def test_empty_pattern_matches_nothing(self) -> None:
        assert matches("", "a.proto") is False

    def test_backslash_paths_normalised(self) -> None:
        assert matches("user/*.proto", "user\\a.proto") is True


class TestIsIncludable:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("user/a.proto", True),
            ("backend/a.proto", False),
            ("user/a.txt", False),
            ("svc/backend/x/a.proto", False),
            ("a.proto", True),
        ],
    )
    def test_default_rules(self, path: str, expected: bool) -> None:
        assert is_includable(path, DEFAULT_INCLUDE, DEFAULT_EXCLUDE) is expected

    def test_no_include_patterns_includes_nothing(self) -> None:
        assert is_includable("a.proto", [], []) is False

    def test_any_include_pattern_suffices(self) -> None:
        assert is_includable("docs/a.md", ["**/*.proto", "docs/**"], []) is True

    def test_exclude_wins(self) -> None:
        assert is_includable("gen/a.proto", ["**/*.proto"], ["gen/**"]) is False


class TestNormalizeRelPath:
    def test_strips_dot_slash(self) -> None:
        assert normalize_rel_path("./a/b.proto") == "a/b.proto"

    def test_strips_leading_slash(self) -> None:
        assert normalize_rel_path("/a/b.proto") == "a/b.proto"

    def test_backslashes(self) -> None:
        assert normalize_rel_path("a\\b.proto") == "a/b.proto"


class TestBuildPredicate:
    def test_patterns(self, make_repo) -> None:
        pred = build_predicate(make_repo())
        assert pred("user/a.proto") is True
        assert pred("backend/a.proto") is False

    def test_selected_files_override_patterns(self, make_repo) -> None:
        repo = make_repo(selectedFiles=["a/x.proto", "backend/y.proto"])
        pred = build_predicate(repo)
        assert pred("a/x.proto") is True
        assert pred("a/y.proto") is False
        # Excludes do not apply to an explicit selection
        assert pred("backend/y.proto") is True

    def test_patterns_only_ignores_selection(self, make_repo) -> None:
        repo = make_repo(selectedFiles=["a/x.proto"])
        pred = build_predicate(repo, patterns_only=True)
        assert pred("a/y.proto") is True

    def test_empty_selection_selects_nothing(self, make_repo) -> None:
        pred = build_predicate(make_repo(selectedFiles=[]))
        assert pred("a/x.proto") is False
