# Cooperative cancellation shared by every suspension point of a session.

from __future__ import annotations
import threading


class GenerationCancelled(Exception):
    """Raised internally when a session stops because the user asked it to."""


class CancellationToken:
    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; returns True if cancelled meanwhile."""
        return self._event.wait(timeout=seconds)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelled()
