"""Path filtering — decide which staged files belong in the target tree.

Patterns use glob syntax: ``**`` spans directories, ``*`` and ``?`` stay
within one path segment, and dot-files are matched like any other name.
This module is pure logic with no filesystem side-effects.
"""

from __future__ import annotations

import fnmatch
import os
import re
from collections.abc import Callable, Iterable, Sequence
from functools import lru_cache

from ..models.config import RepositoryConfig

PathPredicate = Callable[[str], bool]


def normalize_rel_path(rel_path: str) -> str:
    """Return *rel_path* with forward slashes and no leading ``./`` or ``/``."""
    rel_path = rel_path.replace(os.sep, "/").replace("\\", "/")
    while rel_path.startswith("./"):
        rel_path = rel_path[2:]
    return rel_path.lstrip("/")


# None stands for a bare ``**`` segment.
_Segment = re.Pattern[str] | None


@lru_cache(maxsize=512)
def _compile(pattern: str) -> tuple[_Segment, ...]:
    return tuple(
        None if segment == "**" else re.compile(fnmatch.translate(segment))
        for segment in normalize_rel_path(pattern).split("/")
    )


def _match_segments(segments: Sequence[_Segment], names: Sequence[str]) -> bool:
    if not segments:
        return not names
    head, rest = segments[0], segments[1:]
    if head is None:
        return any(_match_segments(rest, names[i:]) for i in range(len(names) + 1))
    if not names or head.match(names[0]) is None:
        return False
    return _match_segments(rest, names[1:])


def matches(pattern: str, rel_path: str) -> bool:
    """Return ``True`` if *rel_path* matches the glob *pattern*.

    A leading ``!`` negates the pattern.
    """
    if pattern.startswith("!"):
        return not matches(pattern[1:], rel_path)
    if not pattern:
        return False
    return _match_segments(_compile(pattern), normalize_rel_path(rel_path).split("/"))


def is_includable(
    rel_path: str,
    file_patterns: Iterable[str],
    exclude_patterns: Iterable[str] = (),
) -> bool:
    """A file is includable iff it matches an include and no exclude pattern."""
    if not any(matches(p, rel_path) for p in file_patterns):
        return False
    return not any(matches(p, rel_path) for p in exclude_patterns)


def build_predicate(repo: RepositoryConfig, *, patterns_only: bool = False) -> PathPredicate:
    """Return the inclusion rule for *repo*.

    An explicit ``selected_files`` list replaces pattern filtering entirely,
    unless *patterns_only* is set (used when listing candidate files).
    """
    if repo.selected_files is not None and not patterns_only:
        selected = frozenset(normalize_rel_path(p) for p in repo.selected_files)
        return lambda rel_path: normalize_rel_path(rel_path) in selected

    file_patterns = tuple(repo.file_patterns)
    exclude_patterns = tuple(repo.exclude_patterns)
    return lambda rel_path: is_includable(rel_path, file_patterns, exclude_patterns)
