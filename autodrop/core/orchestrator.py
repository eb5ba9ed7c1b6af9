"""
Orchestrator

Wires the move engine, the journal and the undo coordinator together and
runs the full drop flow: plan, execute, journal, one-click undo.

Author: AutoDrop Project
License: MIT
"""

import asyncio
import os
from typing import Dict, Iterable, List, Optional

from ..config.schema import Config
from ..engine.batch_executor import BatchExecutor, DuplicateResolver, ProgressCallback
from ..engine.batch_planner import BatchPlanner, SuggestionResolver
from ..engine.deduplicator import Deduplicator
from ..engine.file_mover import FileMover
from ..engine.rules import RuleStore
from ..engine.suggestions import DestinationSuggester
from ..utils.file_ops import is_blank
from ..utils.logger import get_logger
from .cancellation import CancellationToken
from .categories import normalize_extension
from .errors import OperationCancelledError, ValidationError
from .journal import OperationJournal
from .models import (
    BatchFileGroup,
    BatchOperationResult,
    DroppedItem,
    DuplicateHandling,
    MoveOperation,
)
from .storage import JsonStore
from .undo_coordinator import UndoCoordinator

logger = get_logger(__name__)


class AutoDropOrchestrator:
    """
    Main entry point for organizing dropped items.

    Builds every component from the configuration and exposes the drop
    flow together with history and undo access.
    """

    def __init__(
        self,
        config: Config,
        duplicate_resolver: Optional[DuplicateResolver] = None,
        suggester: Optional[SuggestionResolver] = None
    ):
        """
        Initialize orchestrator.

        Args:
            config: Application configuration
            duplicate_resolver: Coroutine answering Ask-policy duplicate prompts
            suggester: Destination resolver; defaults to the rule/category suggester
        """
        self.config = config

        self.store = JsonStore(config.storage.data_dir)
        self.mover = FileMover()
        self.deduplicator = Deduplicator.from_config(config.duplicates)
        self.rule_store = RuleStore(
            self.store,
            file_name=config.storage.rules_file,
            cache_seconds=config.destinations.rule_cache_seconds
        )
        self.suggester = suggester or DestinationSuggester.from_config(config.destinations, self.rule_store)
        self.planner = BatchPlanner(self.suggester)
        self.journal = OperationJournal(
            self.store,
            self.mover,
            file_name=config.storage.history_file,
            max_items=config.history.max_items
        )
        self.executor = BatchExecutor(
            self.deduplicator,
            self.mover,
            journal=self.journal,
            rule_store=self.rule_store,
            duplicate_resolver=duplicate_resolver
        )
        self.undo = UndoCoordinator()

        self._initialized = False
        self._batches_run = 0

        logger.info("Orchestrator created")

    async def initialize(self):
        """Load persisted history. Errors propagate to the caller."""
        await self.journal.initialize()
        self._initialized = True
        logger.info(f"Orchestrator initialized ({self.journal.total_count} history items)")

    async def plan(
        self,
        paths: Iterable[str],
        cancel: Optional[CancellationToken] = None
    ) -> List[BatchFileGroup]:
        """
        Build the groups for a set of paths without touching the filesystem.

        Raises:
            ValidationError: If a path is blank
        """
        paths = list(paths)
        for path in paths:
            if is_blank(path):
                raise ValidationError("Dropped paths cannot be blank")

        items = [await asyncio.to_thread(DroppedItem.from_path, path) for path in paths]
        return await self.planner.group_items_by_destination(items, cancel)

    async def organize(
        self,
        paths: Iterable[str],
        duplicate_handling: Optional[DuplicateHandling] = None,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancellationToken] = None,
        destination_overrides: Optional[Dict[str, str]] = None
    ) -> BatchOperationResult:
        """
        Organize dropped paths and open a one-click undo window for the batch.

        Args:
            paths: Files and folders to organize
            duplicate_handling: Policy; defaults to the configured one
            progress: Optional progress callback
            cancel: Optional cancellation token
            destination_overrides: Extension (or "folder") -> destination folder

        Returns:
            BatchOperationResult of the batch
        """
        if not self._initialized:
            await self.initialize()

        groups = await self.plan(paths, cancel)
        if destination_overrides:
            self._apply_overrides(groups, destination_overrides)

        return await self.execute(groups, duplicate_handling, progress, cancel)

    async def execute(
        self,
        groups: List[BatchFileGroup],
        duplicate_handling: Optional[DuplicateHandling] = None,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancellationToken] = None
    ) -> BatchOperationResult:
        """Execute already planned groups and register the batch for undo."""
        if not self._initialized:
            await self.initialize()

        handling = DuplicateHandling(duplicate_handling or self.config.duplicates.default_handling)

        try:
            result = await self.executor.execute_batch_move(groups, handling, progress, cancel)
        except OperationCancelledError as e:
            if e.partial_result is not None:
                self._register_batch_undo(e.partial_result.operations)
            raise

        self._batches_run += 1
        self._register_batch_undo(result.operations)
        return result

    @staticmethod
    def _apply_overrides(groups: List[BatchFileGroup], overrides: Dict[str, str]):
        normalized = {}
        for key, folder in overrides.items():
            key = key.strip().lower()
            normalized[key if key == "folder" else normalize_extension(key)] = folder

        for group in groups:
            folder = normalized.get(group.extension)
            if folder:
                group.destination_path = folder
                group.destination_display_name = os.path.basename(os.path.normpath(folder)) or folder

    def _register_batch_undo(self, operations: List[MoveOperation]):
        if not operations:
            return

        operations = list(operations)
        if len(operations) == 1:
            description = operations[0].item_name
        else:
            description = f"{len(operations)} items"

        async def undo_batch() -> bool:
            return await self._undo_operations(operations)

        self.undo.register(description, undo_batch, self.config.undo.expiration_seconds)

    async def _undo_operations(self, operations: List[MoveOperation]) -> bool:
        """Revert a batch newest first through the journal, or the mover for unjournaled moves."""
        all_undone = True
        for operation in reversed(operations):
            try:
                if await self.journal.get(operation.id) is not None:
                    undone = await self.journal.undo(operation.id)
                else:
                    undone = await self.mover.undo(operation)
            except Exception as e:
                logger.error(f"Failed to undo {operation.item_name}: {e}")
                undone = False
            all_undone = all_undone and undone
        return all_undone

    async def undo_last_batch(self) -> bool:
        """Execute the pending one-click undo."""
        return await self.undo.execute_undo()

    def get_status(self) -> dict:
        """
        Get current orchestrator status.

        Returns:
            Dictionary with status information
        """
        return {
            "initialized": self._initialized,
            "batches_run": self._batches_run,
            "history_count": self.journal.total_count,
            "undoable_count": self.journal.undoable_count,
            "pending_undo": self.undo.pending_count,
            "pending_undo_description": self.undo.current_description,
            "duplicate_detection": self.deduplicator.is_enabled,
        }

    def close(self):
        """Stop timers."""
        self.undo.close()
