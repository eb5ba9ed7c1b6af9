"""
Destination Suggestions

Picks a destination folder for a dropped item: a matching extension rule
first, then the configured folder for its category, then the fallback.

Author: AutoDrop Project
License: MIT
"""

import os
from typing import Dict, Optional

from ..config.schema import DestinationConfig
from ..core.models import DestinationSuggestion, DroppedItem
from ..utils.logger import get_logger
from .rules import RuleStore

logger = get_logger(__name__)


def _display_name(path: str) -> str:
    return os.path.basename(os.path.normpath(path)) or path


class DestinationSuggester:
    """Rule and category based destination resolver."""

    def __init__(
        self,
        fallback_folder: str,
        category_folders: Optional[Dict[str, str]] = None,
        rule_store: Optional[RuleStore] = None
    ):
        self.fallback_folder = fallback_folder
        self.category_folders = dict(category_folders or {})
        self.rule_store = rule_store

    @classmethod
    def from_config(cls, config: DestinationConfig, rule_store: Optional[RuleStore] = None) -> 'DestinationSuggester':
        return cls(
            fallback_folder=config.fallback_folder,
            category_folders=config.category_folders,
            rule_store=rule_store
        )

    async def suggest(self, item: DroppedItem) -> DestinationSuggestion:
        """
        Suggest a destination for an item.

        Args:
            item: Dropped file or folder

        Returns:
            The best DestinationSuggestion
        """
        if self.rule_store is not None and not item.is_directory and item.extension:
            rule = await self.rule_store.get_rule_for_extension(item.extension)
            if rule is not None and os.path.isdir(rule.destination):
                logger.debug(f"Rule match for {item.name}: {rule.destination}")
                return DestinationSuggestion(
                    full_path=rule.destination,
                    display_name=_display_name(rule.destination),
                    confidence=100,
                    is_from_rule=True,
                    is_recommended=True
                )

        category_folder = self.category_folders.get(item.category)
        if category_folder:
            return DestinationSuggestion(
                full_path=category_folder,
                display_name=_display_name(category_folder),
                confidence=80,
                is_recommended=True
            )

        return DestinationSuggestion(
            full_path=self.fallback_folder,
            display_name=_display_name(self.fallback_folder),
            confidence=50
        )
