"""Exception hierarchy for aiostacksync."""


class StackSyncError(Exception):
    """Base exception for all aiostacksync errors."""


class SyncConfigError(StackSyncError):
    """Invalid or missing configuration (workspace, repositories, target)."""


class FetchError(StackSyncError):
    """The source tree could not be staged (clone, checkout or local path)."""


class MaterializeError(StackSyncError):
    """Copying staged files into the target tree failed."""


class CommandError(StackSyncError):
    """A post-sync command failed to run or exited non-zero."""


class SyncInProgressError(StackSyncError):
    """A sync for the same repository is already running."""


class CancelledSyncError(StackSyncError):
    """The run was cancelled between file operations."""
