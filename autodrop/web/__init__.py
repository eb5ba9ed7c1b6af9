"""
Web API Module
==============

FastAPI-based interface for organizing items and managing undo.

Author: AutoDrop Project
License: MIT
"""

from .app import app
from .routes import api_router

__all__ = ["app", "api_router"]
