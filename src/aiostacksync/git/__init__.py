"""Remote source staging via narrow git clones."""

from .fetcher import (
    RemoteFetcher,
    normalize_source_path,
    read_head_commit,
    sparse_directory,
)

__all__ = [
    "RemoteFetcher",
    "normalize_source_path",
    "read_head_commit",
    "sparse_directory",
]
