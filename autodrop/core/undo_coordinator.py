"""
Undo Coordinator

One-click undo window. Undo actions registered in quick succession are
collected into one pending set; the set is discarded after a period of
inactivity, or executed together newest first.

Author: AutoDrop Project
License: MIT
"""

import inspect
import threading
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Union

from ..utils.file_ops import is_blank
from ..utils.logger import get_logger
from .errors import ValidationError
from .models import UndoAvailableEvent, UndoExecutedEvent

logger = get_logger(__name__)

UndoAction = Callable[[], Union[bool, Awaitable[bool]]]


@dataclass(frozen=True)
class _PendingUndo:
    description: str
    action: UndoAction


class UndoCoordinator:
    """
    Timer-bounded aggregator of undo actions.

    The pending list, the timer and the timer generation are guarded by a
    single lock. Observers are called outside the lock.
    """

    DEFAULT_EXPIRATION_SECONDS = 10

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: List[_PendingUndo] = []
        self._timer: Optional[threading.Timer] = None
        self._generation = 0

        self.undo_available: List[Callable[[UndoAvailableEvent], None]] = []
        self.undo_executed: List[Callable[[UndoExecutedEvent], None]] = []

        logger.debug("UndoCoordinator initialized")

    @property
    def can_undo(self) -> bool:
        with self._lock:
            return len(self._pending) > 0

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def current_description(self) -> Optional[str]:
        with self._lock:
            return self._describe(self._pending)

    @staticmethod
    def _describe(pending: List[_PendingUndo]) -> Optional[str]:
        if not pending:
            return None
        if len(pending) == 1:
            return pending[0].description
        return f"{len(pending)} items"

    def register(
        self,
        description: str,
        undo_action: UndoAction,
        expiration_seconds: int = DEFAULT_EXPIRATION_SECONDS
    ):
        """
        Add an undo action to the pending set and restart the expiration timer.

        Args:
            description: Short text shown to the user
            undo_action: Callable returning True on success (may be a coroutine function)
            expiration_seconds: Inactivity window before the pending set is discarded

        Raises:
            ValidationError: If description is blank, action missing or expiration not positive
        """
        if is_blank(description):
            raise ValidationError("Undo description is required")
        if undo_action is None:
            raise ValidationError("Undo action is required")
        if expiration_seconds <= 0:
            raise ValidationError(f"Expiration must be positive: {expiration_seconds}")

        with self._lock:
            self._cancel_timer()
            self._pending.append(_PendingUndo(description, undo_action))
            total_count = len(self._pending)
            display = self._describe(self._pending)

            self._generation += 1
            self._timer = threading.Timer(expiration_seconds, self._expire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

            logger.debug(f"Undo registered: {description}, total pending: {total_count}")

        self._emit(self.undo_available, UndoAvailableEvent(
            description=display,
            expiration_seconds=expiration_seconds,
            total_count=total_count
        ))

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _expire(self, generation: int):
        with self._lock:
            # A newer registration restarted the window
            if generation != self._generation:
                return
            if self._pending:
                logger.debug(f"Undo expired: {len(self._pending)} operations cleared")
                self._pending.clear()
            self._timer = None

    async def execute_undo(self) -> bool:
        """
        Run every pending undo action, most recent first.

        Returns:
            True only if at least one action was pending and all succeeded
        """
        with self._lock:
            if not self._pending:
                logger.warning("execute_undo called but no undo operations available")
                return False

            self._cancel_timer()
            self._generation += 1
            to_undo = list(reversed(self._pending))
            self._pending.clear()

        logger.info(f"Executing undo for {len(to_undo)} operations")

        undone: List[str] = []
        failed_count = 0

        for pending in to_undo:
            try:
                outcome = pending.action()
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception as e:
                failed_count += 1
                logger.error(f"Undo failed: {pending.description}: {e}")
                continue

            if outcome:
                undone.append(pending.description)
                logger.debug(f"Undo successful: {pending.description}")
            else:
                failed_count += 1
                logger.warning(f"Undo returned false: {pending.description}")

        if len(undone) == 1:
            description = undone[0]
        else:
            description = f"{len(undone)} items"

        self._emit(self.undo_executed, UndoExecutedEvent(
            success=failed_count == 0,
            description=description,
            undone_count=len(undone),
            failed_count=failed_count,
            error_message=f"Failed to undo {failed_count} item(s)" if failed_count else None
        ))

        logger.info(f"Undo completed: {len(undone)} succeeded, {failed_count} failed")
        return failed_count == 0

    def clear_undo(self):
        """Discard pending actions without running them."""
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            self._pending.clear()
        logger.debug("All undo operations cleared")

    def close(self):
        """Stop the expiration timer."""
        self.clear_undo()

    @staticmethod
    def _emit(listeners, event):
        for listener in list(listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Undo listener failed: {e}")
