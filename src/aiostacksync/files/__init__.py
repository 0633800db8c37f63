"""File selection, walking and copying."""

from .filters import build_predicate, is_includable, matches, normalize_rel_path
from .materializer import list_matching_files, materialize
from .walk import FileEntry, iter_files, snapshot_mtimes, walk_files

__all__ = [
    "FileEntry",
    "build_predicate",
    "is_includable",
    "iter_files",
    "list_matching_files",
    "matches",
    "materialize",
    "normalize_rel_path",
    "snapshot_mtimes",
    "walk_files",
]
