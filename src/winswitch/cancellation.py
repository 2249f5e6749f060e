"""Cooperative cancellation shared by long-running operations."""

from __future__ import annotations

import threading


class OperationCancelledError(Exception):
    """Raised when a cancellation request is observed."""


class CancellationToken:
    """A cancel signal that is checked, never forced.

    The token is set from any thread; workers poll it between chunks and
    between files and stop at the next check.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError("Operation was cancelled")
