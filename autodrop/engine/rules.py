"""
Extension Rules

Persistent extension -> destination rules, stored in rules.json next to
the history document.

Author: AutoDrop Project
License: MIT
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator

from ..core.categories import normalize_extension
from ..core.errors import ValidationError
from ..core.models import utc_now
from ..core.storage import JsonStore
from ..utils.file_ops import is_blank
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class FileRule(BaseModel):
    """Move files with this extension to destination."""

    extension: str
    destination: str
    auto_move: bool = False
    is_enabled: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    last_used_at: Optional[datetime] = None
    use_count: int = 0

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v):
        """Store extensions lowercase with a leading dot."""
        normalized = normalize_extension(v)
        if not normalized:
            raise ValueError("extension cannot be blank")
        return normalized


class RulesConfiguration(BaseModel):
    """The durable rules document."""

    version: int = 1
    rules: List[FileRule] = Field(default_factory=list)


@dataclass
class CachedValue(Generic[T]):
    """A value together with the monotonic time it stops being valid."""
    value: T
    expires_at: float

    @property
    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class RuleStore:
    """
    Async access to the rules document.

    Reads are served from a snapshot that expires after cache_seconds;
    writes go straight to disk and refresh the snapshot.
    """

    def __init__(self, store: JsonStore, file_name: str = "rules.json", cache_seconds: float = 5.0):
        self.store = store
        self.file_name = file_name
        self.cache_seconds = cache_seconds
        self._cached: Optional[CachedValue[RulesConfiguration]] = None
        self._lock = asyncio.Lock()

    async def _load(self) -> RulesConfiguration:
        if self._cached is not None and not self._cached.is_expired:
            return self._cached.value

        data = await asyncio.to_thread(self.store.read, self.file_name, RulesConfiguration)
        configuration = data or RulesConfiguration()
        self._cached = CachedValue(configuration, time.monotonic() + self.cache_seconds)
        return configuration

    async def _save(self, configuration: RulesConfiguration):
        await asyncio.to_thread(self.store.write, self.file_name, configuration)
        self._cached = CachedValue(configuration, time.monotonic() + self.cache_seconds)

    def invalidate(self):
        """Drop the cached snapshot so the next read hits the disk."""
        self._cached = None

    async def get_all_rules(self) -> List[FileRule]:
        async with self._lock:
            configuration = await self._load()
            return list(configuration.rules)

    async def get_rule_for_extension(self, extension: str) -> Optional[FileRule]:
        """
        Find the enabled rule for an extension.

        Args:
            extension: Extension with or without the leading dot

        Returns:
            Matching rule or None
        """
        normalized = normalize_extension(extension)
        if not normalized:
            return None

        async with self._lock:
            configuration = await self._load()
            for rule in configuration.rules:
                if rule.is_enabled and rule.extension == normalized:
                    return rule
        return None

    async def save_rule(self, extension: str, destination: str, auto_move: bool = False) -> FileRule:
        """
        Create or update the rule for an extension.

        Raises:
            ValidationError: If extension or destination is blank
        """
        if is_blank(extension) or is_blank(destination):
            raise ValidationError("Extension and destination are required")

        normalized = normalize_extension(extension)
        logger.info(f"Saving rule: {normalized} -> {destination} (auto_move={auto_move})")

        async with self._lock:
            configuration = await self._load()
            rule = next((r for r in configuration.rules if r.extension == normalized), None)
            if rule is not None:
                rule.destination = destination
                rule.auto_move = auto_move
                rule.last_used_at = utc_now()
            else:
                rule = FileRule(extension=normalized, destination=destination, auto_move=auto_move)
                configuration.rules.append(rule)
            await self._save(configuration)
            return rule

    async def remove_rule(self, extension: str) -> bool:
        normalized = normalize_extension(extension)
        async with self._lock:
            configuration = await self._load()
            remaining = [r for r in configuration.rules if r.extension != normalized]
            if len(remaining) == len(configuration.rules):
                return False
            configuration.rules = remaining
            await self._save(configuration)
        logger.info(f"Removed rule for {normalized}")
        return True

    async def update_rule_usage(self, extension: str):
        """Bump the use count of the rule for an extension, if there is one."""
        normalized = normalize_extension(extension)
        if not normalized:
            return

        async with self._lock:
            configuration = await self._load()
            rule = next((r for r in configuration.rules if r.extension == normalized), None)
            if rule is None:
                return
            rule.use_count += 1
            rule.last_used_at = utc_now()
            await self._save(configuration)
