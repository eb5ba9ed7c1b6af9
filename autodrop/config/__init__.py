"""
AutoDrop Configuration Module

Loads, validates and saves the YAML configuration with environment
variable overrides.

Author: AutoDrop Project
License: MIT
"""

from .schema import Config
from .config_loader import ConfigLoader, load_config

__all__ = ['Config', 'ConfigLoader', 'load_config']
