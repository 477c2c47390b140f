"""Cooperative cancellation shared by the producer and the workers."""
from __future__ import annotations

import threading
from typing import Optional

from common.errors import RunCancelledError


class CancellationToken:
    """Thread-safe flag checked by the producer before each read and by workers before each job."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        if not self._event.is_set():
            self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RunCancelledError(f"run cancelled: {self.reason}" if self.reason else "run cancelled")
