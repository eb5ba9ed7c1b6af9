"""
AutoDrop Core Module

Data model, error taxonomy, cancellation, durable storage, the operation
journal and the one-click undo coordinator.

Author: AutoDrop Project
License: MIT
"""

from .cancellation import CancellationToken
from .errors import (
    AutoDropError,
    ConflictError,
    FileOperationError,
    NotFoundError,
    OperationCancelledError,
    ValidationError,
)
from .models import (
    BatchFileGroup,
    BatchOperationError,
    BatchOperationResult,
    BatchProgressReport,
    DroppedItem,
    DuplicateCheckResult,
    DuplicateComparisonMethod,
    DuplicateDecision,
    DuplicateHandling,
    MoveOperation,
    OperationHistoryItem,
    OperationStatus,
    OperationType,
)

__all__ = [
    'CancellationToken',
    'AutoDropError', 'ConflictError', 'FileOperationError', 'NotFoundError',
    'OperationCancelledError', 'ValidationError',
    'BatchFileGroup', 'BatchOperationError', 'BatchOperationResult', 'BatchProgressReport',
    'DroppedItem', 'DuplicateCheckResult', 'DuplicateComparisonMethod', 'DuplicateDecision',
    'DuplicateHandling', 'MoveOperation', 'OperationHistoryItem', 'OperationStatus',
    'OperationType',
]
