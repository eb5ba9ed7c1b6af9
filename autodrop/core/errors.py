"""
Error Types

Exception hierarchy shared by the move engine, the journal and the undo
coordinator.

Author: AutoDrop Project
License: MIT
"""


class AutoDropError(Exception):
    """Base error for the project."""


class ValidationError(AutoDropError, ValueError):
    """A required path or argument is blank or invalid."""


class NotFoundError(AutoDropError, FileNotFoundError):
    """A source or destination that must exist is missing."""


class FileOperationError(AutoDropError, OSError):
    """A filesystem operation failed (locked file, permission denied, ...)."""


class OperationCancelledError(AutoDropError):
    """
    The operation was cancelled through its cancellation token.

    A cancelled batch attaches what it completed before stopping as
    partial_result.
    """

    def __init__(self, message: str = "Operation was cancelled", partial_result=None):
        super().__init__(message)
        self.partial_result = partial_result


class ConflictError(AutoDropError):
    """A duplicate needed a decision and none was provided."""
