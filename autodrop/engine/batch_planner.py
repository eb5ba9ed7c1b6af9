"""
Batch Planner

Groups dropped items by category and extension and resolves one
destination per group. Performs no moves and creates no directories.

Author: AutoDrop Project
License: MIT
"""

from typing import Dict, Iterable, List, Optional, Tuple, Protocol

from ..core.cancellation import CancellationToken, check_cancelled
from ..core.models import BatchFileGroup, DestinationSuggestion, DroppedItem
from ..utils.logger import get_logger

logger = get_logger(__name__)

FOLDER_EXTENSION = "folder"


class SuggestionResolver(Protocol):
    async def suggest(self, item: DroppedItem) -> DestinationSuggestion:
        ...


class BatchPlanner:
    """Pure grouping step in front of the batch executor."""

    def __init__(self, suggester: SuggestionResolver):
        """
        Initialize planner.

        Args:
            suggester: Collaborator resolving a destination for an item
        """
        self.suggester = suggester

    @staticmethod
    def group_key(item: DroppedItem) -> Tuple[str, str]:
        extension = FOLDER_EXTENSION if item.is_directory else item.extension.lower()
        return item.category, extension

    async def group_items_by_destination(
        self,
        items: Iterable[DroppedItem],
        cancel: Optional[CancellationToken] = None
    ) -> List[BatchFileGroup]:
        """
        Partition items into groups and resolve each group's destination.

        Groups are ordered by descending size, then by extension. Every group
        starts selected. Errors from the suggester propagate unchanged.

        Args:
            items: Dropped items
            cancel: Optional cancellation token

        Returns:
            Ordered list of BatchFileGroup
        """
        items = list(items)
        if not items:
            return []

        logger.debug(f"Grouping {len(items)} items by category and extension")

        grouped: Dict[Tuple[str, str], List[DroppedItem]] = {}
        for item in items:
            check_cancelled(cancel)
            grouped.setdefault(self.group_key(item), []).append(item)

        ordered = sorted(grouped.items(), key=lambda entry: (-len(entry[1]), entry[0][1], entry[0][0]))

        groups = []
        for (category, extension), members in ordered:
            check_cancelled(cancel)
            suggestion = await self.suggester.suggest(members[0])
            groups.append(BatchFileGroup(
                category=category,
                extension=extension,
                destination_path=suggestion.full_path,
                destination_display_name=suggestion.display_name,
                items=members,
                is_selected=True
            ))

        logger.debug(f"Created {len(groups)} groups from {len(items)} items")
        return groups
