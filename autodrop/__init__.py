"""
AutoDrop

Duplicate-aware batch file organizer with a reversible operation journal.

Author: AutoDrop Project
License: MIT
"""

__version__ = "0.1.0"
