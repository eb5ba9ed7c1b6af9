"""
Configuration Schema and Models

Defines Pydantic models for the configuration schema, providing validation,
default values, and type checking for all configuration options.

Author: AutoDrop Project
License: MIT
"""

import os
from enum import Enum
from typing import Dict, Optional
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.models import DuplicateHandling
from ..utils.file_ops import get_default_data_dir


class LogLevel(str, Enum):
    """Logging level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _expand(path: str) -> str:
    return os.path.expandvars(os.path.expanduser(path))


class AppConfig(BaseModel):
    """Logging and general application settings."""

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application logging level"
    )
    log_to_file: bool = Field(
        default=False,
        description="Enable logging to a rotating file in the data directory"
    )
    log_file_name: str = Field(
        default="autodrop.log",
        description="Log file name inside the data directory"
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON formatted log records"
    )
    log_rotation_size: int = Field(
        default=5242880,  # 5MB
        description="Log file size before rotation (bytes)"
    )
    log_retention_count: int = Field(
        default=3,
        description="Number of rotated log files to keep"
    )


class StorageConfig(BaseModel):
    """Location of the durable JSON documents."""

    data_dir: str = Field(
        default_factory=lambda: str(get_default_data_dir()),
        description="Per-user application data directory"
    )
    history_file: str = Field(
        default="history.json",
        description="Operation history document name"
    )
    rules_file: str = Field(
        default="rules.json",
        description="Extension rules document name"
    )

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, v):
        """Expand ~ and environment variables, then require an absolute path."""
        expanded = _expand(v)
        if not Path(expanded).is_absolute():
            raise ValueError(f"data_dir must be absolute: {v}")
        return expanded

    @property
    def history_path(self) -> Path:
        return Path(self.data_dir) / self.history_file

    @property
    def rules_path(self) -> Path:
        return Path(self.data_dir) / self.rules_file


class DuplicateConfig(BaseModel):
    """Duplicate detection settings."""

    enabled: bool = Field(
        default=True,
        description="Check destinations for equivalent content before moving"
    )
    max_hash_file_size: int = Field(
        default=100 * 1024 * 1024,
        description="Files above this size are compared by size and date only (bytes)"
    )
    chunk_size: int = Field(
        default=8192,
        description="Read size used while hashing (bytes)"
    )
    date_tolerance_seconds: float = Field(
        default=2.0,
        description="Modification time tolerance for size/date comparison"
    )
    default_handling: DuplicateHandling = Field(
        default=DuplicateHandling.KEEP_BOTH_ALL,
        description="Policy used when the caller does not choose one"
    )

    @field_validator("max_hash_file_size", "chunk_size")
    @classmethod
    def validate_positive(cls, v):
        """Ensure sizes are positive."""
        if v <= 0:
            raise ValueError(f"Size must be positive: {v}")
        return v

    @field_validator("date_tolerance_seconds")
    @classmethod
    def validate_tolerance(cls, v):
        """Ensure tolerance is not negative."""
        if v < 0:
            raise ValueError(f"date_tolerance_seconds cannot be negative: {v}")
        return v


class HistoryConfig(BaseModel):
    """Operation journal settings."""

    max_items: int = Field(
        default=100,
        description="Entries kept in the history before the oldest are evicted"
    )

    @field_validator("max_items")
    @classmethod
    def validate_max_items(cls, v):
        """Ensure the cap is positive."""
        if v <= 0:
            raise ValueError(f"max_items must be positive: {v}")
        return v


class UndoConfig(BaseModel):
    """One-click undo window settings."""

    expiration_seconds: int = Field(
        default=10,
        description="Seconds of inactivity before the pending undo is discarded"
    )

    @field_validator("expiration_seconds")
    @classmethod
    def validate_expiration(cls, v):
        """Ensure expiration is positive."""
        if v <= 0:
            raise ValueError(f"expiration_seconds must be positive: {v}")
        return v


class DestinationConfig(BaseModel):
    """Where items go when no rule matches."""

    category_folders: Dict[str, str] = Field(
        default={},
        description="Category name -> destination folder"
    )
    fallback_folder: str = Field(
        default="~/Downloads",
        description="Destination used when nothing else matches"
    )
    rule_cache_seconds: float = Field(
        default=5.0,
        description="How long a loaded rules snapshot stays valid"
    )

    @field_validator("category_folders", mode="before")
    @classmethod
    def normalize_categories(cls, v):
        """Capitalize category keys and expand folder paths."""
        if isinstance(v, dict):
            return {str(k).strip().capitalize(): _expand(str(p)) for k, p in v.items()}
        return v

    @field_validator("fallback_folder")
    @classmethod
    def validate_fallback(cls, v):
        """Expand ~ and environment variables, then require an absolute path."""
        expanded = _expand(v)
        if not Path(expanded).is_absolute():
            raise ValueError(f"fallback_folder must be absolute: {v}")
        return expanded


class Config(BaseModel):
    """
    Root configuration model for AutoDrop.

    Loaded from config.yaml in the data directory and overridable through
    environment variables.
    """

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    app: AppConfig = Field(default_factory=AppConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    duplicates: DuplicateConfig = Field(default_factory=DuplicateConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    undo: UndoConfig = Field(default_factory=UndoConfig)
    destinations: DestinationConfig = Field(default_factory=DestinationConfig)

    @property
    def log_file_path(self) -> Path:
        return Path(self.storage.data_dir) / self.app.log_file_name
