"""
Operation Journal

Durable, capped history of executed file operations with per-item and bulk
undo. The whole document is rewritten after every mutation; all access to
the in-memory list and the backing file goes through one lock.

Author: AutoDrop Project
License: MIT
"""

import asyncio
import os
from typing import Callable, Iterable, List, Optional, Tuple, TYPE_CHECKING

from ..utils.file_ops import is_blank
from ..utils.logger import get_logger
from .cancellation import CancellationToken, check_cancelled
from .errors import FileOperationError, ValidationError
from .models import (
    OperationHistoryData,
    OperationHistoryItem,
    OperationStatus,
    OperationType,
    utc_now,
)
from .storage import JsonStore

if TYPE_CHECKING:
    from ..engine.file_mover import FileMover

logger = get_logger(__name__)


class OperationJournal:
    """
    History of file operations, newest first.

    Features:
    - Whole-document persistence after every mutation
    - Capacity cap with oldest-first eviction
    - Undo of single entries or of many entries independently
    - Change listeners notified outside the lock
    """

    DEFAULT_MAX_ITEMS = 100

    def __init__(
        self,
        store: JsonStore,
        mover: "FileMover",
        file_name: str = "history.json",
        max_items: int = DEFAULT_MAX_ITEMS
    ):
        """
        Initialize journal.

        Args:
            store: JSON document store
            mover: Mover used to reverse operations
            file_name: History document name
            max_items: Entries kept before the oldest are evicted
        """
        if max_items <= 0:
            raise ValidationError(f"max_items must be positive: {max_items}")

        self.store = store
        self.mover = mover
        self.file_name = file_name
        self.max_items = max_items
        self.on_changed: List[Callable[[], None]] = []

        self._data = OperationHistoryData(max_items=max_items)
        self._loaded = False
        self._lock = asyncio.Lock()

    @property
    def total_count(self) -> int:
        return len(self._data.items)

    @property
    def undoable_count(self) -> int:
        return sum(1 for item in self._data.items if item.can_undo)

    async def initialize(self):
        """Load the history document. Must be awaited before first use."""
        async with self._lock:
            await self._ensure_loaded()

    async def _ensure_loaded(self):
        if self._loaded:
            return

        data = await asyncio.to_thread(self.store.read, self.file_name, OperationHistoryData)
        if data is None:
            data = OperationHistoryData(max_items=self.max_items)

        # The configured cap wins over the stored one
        data.max_items = self.max_items
        del data.items[self.max_items:]

        self._data = data
        self._loaded = True
        logger.debug(f"Loaded {len(self._data.items)} history items")

    async def _save(self):
        try:
            await asyncio.to_thread(self.store.write, self.file_name, self._data)
        except OSError as e:
            logger.error(f"Failed to save history: {e}")
            raise FileOperationError(f"Failed to save history: {e}") from e

    def _notify(self):
        for listener in list(self.on_changed):
            try:
                listener()
            except Exception as e:
                logger.warning(f"History listener failed: {e}")

    def _find(self, operation_id: str) -> Optional[OperationHistoryItem]:
        return next((item for item in self._data.items if item.id == operation_id), None)

    async def add(self, item: OperationHistoryItem):
        """
        Insert an entry at the top of the history and persist.

        Args:
            item: Entry to add
        """
        async with self._lock:
            await self._ensure_loaded()

            self._data.items.insert(0, item)
            evicted = len(self._data.items) - self.max_items
            if evicted > 0:
                del self._data.items[self.max_items:]
                logger.debug(f"Evicted {evicted} oldest history items")

            await self._save()
            logger.debug(f"Operation added to history: {item.item_name} -> {item.destination_path}")

        self._notify()

    async def record(
        self,
        source_path: str,
        destination_path: str,
        operation_type: OperationType = OperationType.MOVE,
        ai_confidence: Optional[float] = None,
        operation_id: Optional[str] = None,
        is_directory: Optional[bool] = None,
        size_bytes: Optional[int] = None
    ) -> OperationHistoryItem:
        """
        Record an operation that has already happened on disk.

        Args:
            source_path: Original path
            destination_path: Path after the operation
            operation_type: Move, Copy or Rename
            ai_confidence: Optional suggestion confidence (0.0 - 1.0)
            operation_id: Optional id to reuse (e.g. the MoveOperation id)
            is_directory: Item kind; detected from the destination when omitted
            size_bytes: Item size; read from the destination when omitted

        Returns:
            The new Success entry

        Raises:
            ValidationError: If a path is blank
        """
        if is_blank(source_path) or is_blank(destination_path):
            raise ValidationError("Source and destination paths are required")

        if is_directory is None:
            is_directory = os.path.isdir(destination_path)
        if size_bytes is None:
            size_bytes = 0
            if not is_directory and os.path.isfile(destination_path):
                size_bytes = os.path.getsize(destination_path)

        fields = dict(
            source_path=source_path,
            destination_path=destination_path,
            item_name=os.path.basename(os.path.normpath(source_path)),
            is_directory=is_directory,
            size_bytes=size_bytes,
            operation_type=operation_type,
            status=OperationStatus.SUCCESS,
            ai_confidence=ai_confidence
        )
        if operation_id:
            fields["id"] = operation_id

        item = OperationHistoryItem(**fields)
        await self.add(item)
        return item

    async def get_all(self) -> List[OperationHistoryItem]:
        async with self._lock:
            await self._ensure_loaded()
            return list(self._data.items)

    async def get_recent(self, count: int = 20) -> List[OperationHistoryItem]:
        if count <= 0:
            count = 20
        async with self._lock:
            await self._ensure_loaded()
            return self._data.items[:count]

    async def get_undoable(self) -> List[OperationHistoryItem]:
        async with self._lock:
            await self._ensure_loaded()
            return [item for item in self._data.items if item.can_undo]

    async def get(self, operation_id: str) -> Optional[OperationHistoryItem]:
        async with self._lock:
            await self._ensure_loaded()
            return self._find(operation_id)

    async def mark_failed(self, operation_id: str, error_message: str):
        """
        Mark an entry as failed. Unknown ids are ignored.

        Args:
            operation_id: Entry id
            error_message: Reason stored on the entry
        """
        async with self._lock:
            await self._ensure_loaded()

            item = self._find(operation_id)
            if item is None:
                return

            item.status = OperationStatus.FAILED
            item.error_message = error_message
            await self._save()
            logger.warning(f"Operation marked as failed: {item.item_name}, error: {error_message}")

        self._notify()

    async def undo(self, operation_id: str) -> bool:
        """
        Move an entry's item back to its original location.

        Only Success entries whose item still exists at the destination can
        be undone.

        Args:
            operation_id: Entry id

        Returns:
            True if undone, False if the entry is unknown or not undoable

        Raises:
            FileOperationError: If moving the item back fails; the entry keeps
                its status and records the error
        """
        async with self._lock:
            await self._ensure_loaded()

            item = self._find(operation_id)
            if item is None:
                logger.warning(f"Operation not found for undo: {operation_id}")
                return False

            if not item.can_undo:
                logger.warning(f"Operation cannot be undone: {item.item_name}, status: {item.status.value}")
                return False

            try:
                undone = await self.mover.undo(item.to_move_operation())
            except FileOperationError as e:
                item.error_message = str(e)
                await self._save()
                raise

            if not undone:
                return False

            item.status = OperationStatus.UNDONE
            item.undone_at = utc_now()
            item.error_message = None
            await self._save()
            logger.info(f"Undone operation: {item.item_name}")

        self._notify()
        return True

    async def undo_multiple(
        self,
        operation_ids: Iterable[str],
        cancel: Optional[CancellationToken] = None
    ) -> Tuple[int, int]:
        """
        Undo several entries independently, in the order given.

        Args:
            operation_ids: Entry ids
            cancel: Optional cancellation token, checked between entries

        Returns:
            Tuple of (succeeded, failed)
        """
        succeeded = 0
        failed = 0

        for operation_id in list(operation_ids):
            check_cancelled(cancel)
            try:
                if await self.undo(operation_id):
                    succeeded += 1
                else:
                    failed += 1
            except Exception as e:
                logger.error(f"Failed to undo operation {operation_id}: {e}")
                failed += 1

        logger.info(f"Undo multiple completed: {succeeded} succeeded, {failed} failed")
        return succeeded, failed

    async def clear(self):
        """Remove every entry and persist the empty history."""
        async with self._lock:
            self._data.items.clear()
            self._loaded = True
            await self._save()
            logger.info("History cleared")

        self._notify()

    async def refresh(self):
        """Reload the history document from disk."""
        async with self._lock:
            self._loaded = False
            await self._ensure_loaded()

        self._notify()
