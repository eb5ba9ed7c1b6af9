"""
Data Models

Dropped items, batch groups and results, move operations and the
persisted operation history.

Author: AutoDrop Project
License: MIT
"""

import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from . import categories


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ============================================================================
# Dropped items and batch planning
# ============================================================================

@dataclass
class DroppedItem:
    """A file or folder handed to the engine for organizing."""
    full_path: str
    category: str
    is_directory: bool = False
    size: int = 0

    @property
    def name(self) -> str:
        return Path(self.full_path).name

    @property
    def extension(self) -> str:
        """File extension including the dot, empty for folders."""
        if self.is_directory:
            return ""
        return Path(self.full_path).suffix

    @classmethod
    def from_path(cls, path: str) -> 'DroppedItem':
        """
        Create a DroppedItem by inspecting a path on disk.

        Args:
            path: File or folder path

        Returns:
            DroppedItem with size and category filled in
        """
        is_directory = os.path.isdir(path)
        if is_directory:
            category = categories.FOLDER
        else:
            category = categories.get_category(Path(path).suffix)

        size = 0
        if not is_directory and os.path.isfile(path):
            size = os.path.getsize(path)

        return cls(
            full_path=str(path),
            category=category,
            is_directory=is_directory,
            size=size
        )


@dataclass
class BatchFileGroup:
    """Items sharing a category and extension, bound for one destination."""
    category: str
    extension: str
    destination_path: str = ""
    destination_display_name: str = ""
    items: List[DroppedItem] = field(default_factory=list)
    is_selected: bool = True

    @property
    def file_count(self) -> int:
        return len(self.items)

    @property
    def total_size(self) -> int:
        return sum(item.size for item in self.items)

    @property
    def display_text(self) -> str:
        """Short label such as '5 PNGs' or '1 folder'."""
        count = len(self.items)
        if count == 0:
            return ""

        ext = self.extension.lstrip('.').upper()
        if not ext or ext == "FOLDER":
            return "1 folder" if count == 1 else f"{count} folders"
        return f"1 {ext}" if count == 1 else f"{count} {ext}s"


@dataclass(frozen=True)
class DestinationSuggestion:
    """A destination folder proposed for an item."""
    full_path: str
    display_name: str
    confidence: int = 50
    is_from_rule: bool = False
    is_recommended: bool = False


# ============================================================================
# Duplicate detection
# ============================================================================

class DuplicateComparisonMethod(str, Enum):
    """Method used to compare two files."""
    NONE = "none"
    SIZE_ONLY = "size_only"
    SIZE_AND_DATE = "size_and_date"
    HASH = "hash"


class DuplicateHandling(str, Enum):
    """Policy applied when the destination already holds a colliding item."""
    ASK = "ask"
    SKIP_ALL = "skip_all"
    REPLACE_ALL = "replace_all"
    KEEP_BOTH_ALL = "keep_both_all"
    DELETE_SOURCE_ALL = "delete_source_all"


@dataclass(frozen=True)
class FileComparisonInfo:
    """Size, modification time and optional hash of a compared file."""
    file_path: str = ""
    size: int = 0
    last_modified: Optional[datetime] = None
    hash: Optional[str] = None


@dataclass
class DuplicateCheckResult:
    """Result of comparing a source file with a destination path."""
    is_duplicate: bool = False
    is_exact_match: bool = False
    comparison_method: DuplicateComparisonMethod = DuplicateComparisonMethod.NONE
    source: FileComparisonInfo = field(default_factory=FileComparisonInfo)
    destination: FileComparisonInfo = field(default_factory=FileComparisonInfo)
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return not self.error_message

    @classmethod
    def no_duplicate(cls) -> 'DuplicateCheckResult':
        return cls()

    @classmethod
    def error(cls, message: str) -> 'DuplicateCheckResult':
        return cls(error_message=message)


@dataclass(frozen=True)
class DuplicateDecision:
    """Answer to an Ask-policy prompt."""
    handling: DuplicateHandling
    apply_to_all: bool = False
    cancelled: bool = False


# ============================================================================
# Move operations and batch results
# ============================================================================

@dataclass
class MoveOperation:
    """A completed move, kept for undo."""
    source_path: str
    destination_path: str
    item_name: str
    is_directory: bool = False
    size_bytes: int = 0
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=utc_now)
    can_undo: bool = True


@dataclass
class BatchOperationError:
    """Error that occurred for one item of a batch."""
    item_name: str
    error_message: str
    source_path: str = ""
    destination_path: str = ""


@dataclass
class BatchOperationResult:
    """Aggregated outcome of a batch move."""
    total_items: int = 0
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    destination_count: int = 0
    errors: List[BatchOperationError] = field(default_factory=list)
    operations: List[MoveOperation] = field(default_factory=list)

    @property
    def is_full_success(self) -> bool:
        return self.success_count == self.total_items and self.failed_count == 0

    @property
    def is_full_failure(self) -> bool:
        return self.failed_count == self.total_items and self.success_count == 0

    def get_summary_message(self) -> str:
        """Human readable summary, e.g. '3 succeeded, 1 failed, 2 skipped'."""
        def files(count: int) -> str:
            return "file" if count == 1 else "files"

        if self.is_full_success:
            if self.destination_count == 1:
                return f"Organized {self.success_count} {files(self.success_count)} successfully"
            return (
                f"Organized {self.success_count} {files(self.success_count)} "
                f"to {self.destination_count} folders"
            )

        if self.is_full_failure:
            return f"Failed to organize {self.failed_count} {files(self.failed_count)}"

        parts = []
        if self.success_count > 0:
            parts.append(f"{self.success_count} succeeded")
        if self.failed_count > 0:
            parts.append(f"{self.failed_count} failed")
        if self.skipped_count > 0:
            parts.append(f"{self.skipped_count} skipped")
        return ", ".join(parts)


@dataclass(frozen=True)
class BatchProgressReport:
    """Progress of a running batch."""
    current_index: int
    total_items: int
    current_item: str
    status: str

    @property
    def percent(self) -> int:
        if self.total_items == 0:
            return 0
        return self.current_index * 100 // self.total_items


# ============================================================================
# Undo notifications
# ============================================================================

@dataclass(frozen=True)
class UndoAvailableEvent:
    """Raised when the one-click undo window opens or grows."""
    description: str
    expiration_seconds: int
    total_count: int


@dataclass(frozen=True)
class UndoExecutedEvent:
    """Raised after the pending undo actions have run."""
    success: bool
    description: str
    undone_count: int
    failed_count: int
    error_message: Optional[str] = None


# ============================================================================
# Persisted history
# ============================================================================

class OperationType(str, Enum):
    """Type of file operation."""
    MOVE = "Move"
    COPY = "Copy"
    RENAME = "Rename"


class OperationStatus(str, Enum):
    """Status of a history entry."""
    PENDING = "Pending"
    SUCCESS = "Success"
    FAILED = "Failed"
    UNDONE = "Undone"


class OperationHistoryItem(BaseModel):
    """A recorded file operation that can be rolled back."""

    id: str = Field(default_factory=_new_id)
    source_path: str
    destination_path: str
    item_name: str
    is_directory: bool = False
    size_bytes: int = 0
    operation_type: OperationType = OperationType.MOVE
    status: OperationStatus = OperationStatus.SUCCESS
    timestamp: datetime = Field(default_factory=utc_now)
    undone_at: Optional[datetime] = None
    ai_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    error_message: Optional[str] = None

    @property
    def can_undo(self) -> bool:
        """Whether the entry succeeded and its item still sits at the destination."""
        if self.status != OperationStatus.SUCCESS:
            return False
        if self.is_directory:
            return os.path.isdir(self.destination_path)
        return os.path.isfile(self.destination_path)

    def to_move_operation(self) -> MoveOperation:
        """Build the MoveOperation the mover needs to reverse this entry."""
        return MoveOperation(
            id=self.id,
            source_path=self.source_path,
            destination_path=self.destination_path,
            item_name=self.item_name,
            is_directory=self.is_directory,
            size_bytes=self.size_bytes,
            timestamp=self.timestamp,
            can_undo=self.status == OperationStatus.SUCCESS
        )


class OperationHistoryData(BaseModel):
    """The durable history document."""

    version: int = 1
    max_items: int = 100
    items: List[OperationHistoryItem] = Field(default_factory=list)

    @field_validator("max_items")
    @classmethod
    def validate_max_items(cls, v):
        """Ensure the cap is positive."""
        if v <= 0:
            raise ValueError(f"max_items must be positive: {v}")
        return v
