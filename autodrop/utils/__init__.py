"""
Shared utilities: logging setup and file helpers.

Author: AutoDrop Project
License: MIT
"""
