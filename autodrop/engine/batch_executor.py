"""
Batch Executor

Executes a planned batch one item at a time: duplicate check, policy
resolution, move, journal entry, progress report. One item's failure never
aborts the rest of the batch.

Author: AutoDrop Project
License: MIT
"""

import os
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional, TYPE_CHECKING

from ..core.cancellation import CancellationToken, check_cancelled
from ..core.errors import ConflictError, OperationCancelledError, ValidationError
from ..core.models import (
    BatchFileGroup,
    BatchOperationError,
    BatchOperationResult,
    BatchProgressReport,
    DroppedItem,
    DuplicateCheckResult,
    DuplicateDecision,
    DuplicateHandling,
    MoveOperation,
    OperationType,
)
from ..utils.file_ops import is_blank
from ..utils.logger import get_logger
from .deduplicator import Deduplicator
from .file_mover import FileMover

if TYPE_CHECKING:
    from ..core.journal import OperationJournal
    from .rules import RuleStore

logger = get_logger(__name__)

DuplicateResolver = Callable[[DuplicateCheckResult, bool], Awaitable[DuplicateDecision]]
ProgressCallback = Callable[[BatchProgressReport], None]


@dataclass
class _BatchState:
    """Mutable state scoped to one execute_batch_move call."""
    handling: DuplicateHandling


class BatchExecutor:
    """
    Sequential batch mover.

    Items run in plan order so an "apply to all" duplicate decision affects
    exactly the items after it, and journal order matches execution order.
    """

    def __init__(
        self,
        deduplicator: Deduplicator,
        mover: FileMover,
        journal: Optional["OperationJournal"] = None,
        rule_store: Optional["RuleStore"] = None,
        duplicate_resolver: Optional[DuplicateResolver] = None
    ):
        """
        Initialize executor.

        Args:
            deduplicator: Duplicate detector
            mover: Primitive file mover
            journal: Optional journal receiving one entry per completed move
            rule_store: Optional rule store whose usage counters are bumped
            duplicate_resolver: Coroutine asked for a decision under the ASK policy
        """
        self.deduplicator = deduplicator
        self.mover = mover
        self.journal = journal
        self.rule_store = rule_store
        self.duplicate_resolver = duplicate_resolver

    async def execute_batch_move(
        self,
        groups: Iterable[BatchFileGroup],
        duplicate_handling: DuplicateHandling = DuplicateHandling.KEEP_BOTH_ALL,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancellationToken] = None,
        confidence: Optional[float] = None
    ) -> BatchOperationResult:
        """
        Move every item of every selected group.

        Args:
            groups: Planned groups, processed in order
            duplicate_handling: Policy for destinations that already hold the content
            progress: Optional callback receiving a BatchProgressReport per item
            cancel: Optional cancellation token, checked between items
            confidence: Optional suggestion confidence stored in the journal

        Returns:
            BatchOperationResult with counts, errors and operations in execution order

        Raises:
            ValidationError: If a selected group has no destination
            OperationCancelledError: If cancelled; completed moves stay in place
                and are available as partial_result
        """
        selected = [group for group in groups if group.is_selected]
        for group in selected:
            if group.items and is_blank(group.destination_path):
                raise ValidationError(f"Group '{group.extension}' has no destination")

        work = [(group, item) for group in selected for item in group.items]
        result = BatchOperationResult(total_items=len(work))

        if not work:
            logger.debug("No items to process in batch operation")
            return result

        logger.info(f"Starting batch move for {len(work)} items in {len(selected)} groups")

        state = _BatchState(handling=DuplicateHandling(duplicate_handling))
        destinations = set()

        try:
            for index, (group, item) in enumerate(work, start=1):
                check_cancelled(cancel)
                destinations.add(os.path.normcase(os.path.normpath(group.destination_path)))
                has_more = index < len(work)

                try:
                    status = await self._process_item(group, item, state, result, cancel, confidence, has_more)
                except OperationCancelledError:
                    raise
                except Exception as e:
                    logger.error(f"Failed to move {item.name} to {group.destination_path}: {e}")
                    result.errors.append(BatchOperationError(
                        item_name=item.name,
                        error_message=str(e),
                        source_path=item.full_path,
                        destination_path=group.destination_path
                    ))
                    status = f"Failed: {item.name}"

                if progress is not None:
                    progress(BatchProgressReport(
                        current_index=index,
                        total_items=len(work),
                        current_item=item.name,
                        status=status
                    ))
        except OperationCancelledError as e:
            self._finalize(result, destinations)
            logger.info(f"Batch move cancelled after {len(result.operations)} moves")
            raise OperationCancelledError(str(e), partial_result=result) from e

        self._finalize(result, destinations)

        if progress is not None:
            progress(BatchProgressReport(
                current_index=len(work),
                total_items=len(work),
                current_item="Complete",
                status="Batch operation complete"
            ))

        logger.info(f"Batch move completed: {result.get_summary_message()}")
        return result

    @staticmethod
    def _finalize(result: BatchOperationResult, destinations: set):
        result.failed_count = len(result.errors)
        result.destination_count = len(destinations)

    async def _process_item(
        self,
        group: BatchFileGroup,
        item: DroppedItem,
        state: _BatchState,
        result: BatchOperationResult,
        cancel: Optional[CancellationToken],
        confidence: Optional[float],
        has_more: bool
    ) -> str:
        overwrite = False

        if not item.is_directory:
            destination_file = os.path.join(group.destination_path, item.name)
            duplicate = await self.deduplicator.check_for_duplicate(item.full_path, destination_file, cancel)

            if not duplicate.success:
                logger.warning(f"Duplicate check failed for {item.name}: {duplicate.error_message}")

            if duplicate.is_duplicate:
                logger.debug(f"Duplicate detected for {item.name}: {duplicate.comparison_method.value}")
                handling = await self._resolve_handling(duplicate, state, has_more, item)

                if handling == DuplicateHandling.SKIP_ALL:
                    logger.debug(f"Skipping duplicate: {item.name}")
                    result.skipped_count += 1
                    return f"Skipped duplicate: {item.name}"

                if handling == DuplicateHandling.DELETE_SOURCE_ALL and duplicate.is_exact_match:
                    await self.mover.delete_source(item.full_path, cancel)
                    result.skipped_count += 1
                    return f"Removed duplicate source: {item.name}"

                if handling == DuplicateHandling.REPLACE_ALL:
                    logger.debug(f"Replacing destination: {item.name}")
                    overwrite = True

        operation = await self.mover.move(item.full_path, group.destination_path, cancel, overwrite=overwrite)
        result.operations.append(operation)
        result.success_count += 1
        logger.debug(f"Moved {item.name} to {operation.destination_path}")

        await self._after_move(operation, item, confidence)
        return f"Moved to {group.destination_display_name or group.destination_path}"

    async def _resolve_handling(
        self,
        duplicate: DuplicateCheckResult,
        state: _BatchState,
        has_more: bool,
        item: DroppedItem
    ) -> DuplicateHandling:
        if state.handling != DuplicateHandling.ASK:
            return state.handling

        if self.duplicate_resolver is None:
            raise ConflictError(f"Duplicate needs a decision but no resolver is set: {item.name}")

        decision = await self.duplicate_resolver(duplicate, has_more)
        if decision.cancelled:
            raise OperationCancelledError("Batch cancelled at duplicate prompt")

        handling = DuplicateHandling(decision.handling)
        if handling == DuplicateHandling.ASK:
            raise ConflictError(f"Duplicate left unresolved: {item.name}")

        if decision.apply_to_all:
            logger.debug(f"Applying {handling.value} to remaining duplicates")
            state.handling = handling
        return handling

    async def _after_move(self, operation: MoveOperation, item: DroppedItem, confidence: Optional[float]):
        # Bookkeeping failures never fail an item that already moved
        if self.journal is not None:
            try:
                await self.journal.record(
                    operation.source_path,
                    operation.destination_path,
                    OperationType.MOVE,
                    ai_confidence=confidence,
                    operation_id=operation.id,
                    is_directory=operation.is_directory,
                    size_bytes=operation.size_bytes
                )
            except Exception as e:
                logger.error(f"Failed to record {item.name} in history: {e}")

        if self.rule_store is not None and not item.is_directory and item.extension:
            try:
                await self.rule_store.update_rule_usage(item.extension)
            except Exception as e:
                logger.warning(f"Failed to update rule usage for {item.extension}: {e}")

    async def undo_batch(
        self,
        operations: List[MoveOperation],
        cancel: Optional[CancellationToken] = None
    ) -> int:
        """
        Undo moves newest first.

        Args:
            operations: Operations in execution order
            cancel: Optional cancellation token, checked between items

        Returns:
            Number of items restored
        """
        if not operations:
            return 0

        logger.info(f"Undoing batch of {len(operations)} operations")

        restored = 0
        for operation in reversed(operations):
            check_cancelled(cancel)
            try:
                if await self.mover.undo(operation):
                    restored += 1
            except Exception as e:
                logger.error(f"Failed to undo operation for {operation.item_name}: {e}")

        logger.info(f"Batch undo completed: {restored}/{len(operations)}")
        return restored
