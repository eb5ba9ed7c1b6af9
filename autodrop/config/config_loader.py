"""
Configuration Loader

Handles loading, parsing, and merging configuration from a YAML file and
environment variables, and saving it back.

Author: AutoDrop Project
License: MIT
"""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dotenv import load_dotenv

from .schema import Config
from ..utils.file_ops import get_default_data_dir


class ConfigLoader:
    """
    Configuration loader and manager.

    Loads configuration from YAML file, merges with environment variables
    and validates the structure.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_path: Path to the configuration file. If None, uses
                AUTODROP_CONFIG or config.yaml in the data directory.
        """
        # Load environment variables from .env if present
        load_dotenv()

        self.config_path = config_path or os.getenv(
            "AUTODROP_CONFIG",
            str(get_default_data_dir() / "config.yaml")
        )
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """
        Load and validate configuration.

        Returns:
            Validated Config object

        Raises:
            ValueError: If YAML parsing or configuration validation fails
        """
        config_data = self._load_yaml()
        config_data = self._merge_env_vars(config_data)

        self._config = Config(**config_data)
        return self._config

    def _load_yaml(self) -> Dict[str, Any]:
        """
        Load YAML configuration file.

        Returns:
            Dictionary with configuration data, empty if the file is missing
        """
        config_file = Path(self.config_path)

        if not config_file.exists():
            return {}

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML config: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {config_file}")
        return data

    def _merge_env_vars(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge environment variables into configuration.

        Environment variables override config file values.
        Naming convention: AUTODROP_<SECTION>_<KEY>

        Args:
            config_data: Configuration dictionary from file

        Returns:
            Merged configuration dictionary
        """
        if os.getenv("AUTODROP_LOG_LEVEL"):
            config_data.setdefault("app", {})["log_level"] = os.getenv("AUTODROP_LOG_LEVEL").upper()
        if os.getenv("AUTODROP_LOG_JSON"):
            config_data.setdefault("app", {})["log_json"] = os.getenv("AUTODROP_LOG_JSON").lower() == "true"

        if os.getenv("AUTODROP_DATA_DIR"):
            config_data.setdefault("storage", {})["data_dir"] = os.getenv("AUTODROP_DATA_DIR")

        if os.getenv("AUTODROP_HISTORY_MAX_ITEMS"):
            config_data.setdefault("history", {})["max_items"] = int(os.getenv("AUTODROP_HISTORY_MAX_ITEMS"))

        if os.getenv("AUTODROP_UNDO_EXPIRATION"):
            config_data.setdefault("undo", {})["expiration_seconds"] = int(os.getenv("AUTODROP_UNDO_EXPIRATION"))

        if os.getenv("AUTODROP_DUPLICATES_ENABLED"):
            config_data.setdefault("duplicates", {})["enabled"] = (
                os.getenv("AUTODROP_DUPLICATES_ENABLED").lower() == "true"
            )

        if os.getenv("AUTODROP_FALLBACK_FOLDER"):
            config_data.setdefault("destinations", {})["fallback_folder"] = os.getenv("AUTODROP_FALLBACK_FOLDER")

        return config_data

    def save(self, config: Config, path: Optional[str] = None) -> None:
        """
        Save configuration to YAML file.

        Args:
            config: Config object to save
            path: Path to save to (uses default if None)
        """
        save_path = Path(path or self.config_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = config.model_dump(mode="json")

        with open(save_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

    def reload(self) -> Config:
        """
        Reload configuration from file.

        Returns:
            Reloaded Config object
        """
        return self.load()

    @property
    def config(self) -> Optional[Config]:
        """Get the current configuration object."""
        return self._config


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Convenience function to load configuration.

    Args:
        config_path: Optional path to config file

    Returns:
        Loaded and validated Config object
    """
    loader = ConfigLoader(config_path)
    return loader.load()
