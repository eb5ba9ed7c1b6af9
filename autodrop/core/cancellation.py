"""
Cancellation

Cooperative cancellation handle passed through every suspending call.
Backed by a threading.Event so it can be checked from worker threads
(hashing and file moves run off the event loop).

Author: AutoDrop Project
License: MIT
"""

import threading
from typing import Optional

from .errors import OperationCancelledError


class CancellationToken:
    """Thread-safe cancellation flag."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        """Signal cancellation. Idempotent."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self):
        """Raise OperationCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelledError("Operation was cancelled")


def check_cancelled(token: Optional[CancellationToken]):
    """Raise if an optional token has been cancelled."""
    if token is not None:
        token.raise_if_cancelled()
