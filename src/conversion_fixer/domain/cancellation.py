"""Cooperative cancellation signal checked between pipeline steps."""

import threading

from conversion_fixer.domain.exceptions import OperationCancelledError


class CancellationToken:
    """Caller-owned flag; the pipeline only reads it."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def throw_if_cancellation_requested(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError("Conversion fix was cancelled")

    @classmethod
    def none(cls) -> "CancellationToken":
        """A token that is never cancelled."""
        return cls()
