"""
Move Engine Module

Duplicate detection, primitive moves, destination suggestions, batch
planning and batch execution.

Author: AutoDrop Project
License: MIT
"""

from .deduplicator import Deduplicator
from .file_mover import FileMover
from .rules import FileRule, RuleStore
from .suggestions import DestinationSuggester
from .batch_planner import BatchPlanner
from .batch_executor import BatchExecutor

__all__ = [
    'Deduplicator', 'FileMover', 'FileRule', 'RuleStore',
    'DestinationSuggester', 'BatchPlanner', 'BatchExecutor',
]
