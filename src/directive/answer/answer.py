"""Answer: handle for a directive's eventual typed result."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future
from typing import Callable, Generic, TypeVar

from directive.exceptions import ObjectiveCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Answer(Generic[T]):
    """Future-like handle resolved at most once with a parsed value.

    Usage::

        answer = bot.chat("What is 2 + 3?")
        answer.on_answer(print).on_error(lambda exc: print("failed:", exc))
        value = answer.result(timeout=30)
    """

    def __init__(self, future: Future, cancel_event: threading.Event | None = None) -> None:
        self._future = future
        self._cancel_event = cancel_event or threading.Event()

    @classmethod
    def resolved(cls, value: T) -> Answer[T]:
        """An already-completed answer."""
        future: Future = Future()
        future.set_result(value)
        return cls(future)

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel_event

    def result(self, timeout: float | None = None) -> T:
        """Block until the value is available.

        Raises:
            ObjectiveCancelledError: If the answer was cancelled.
            TimeoutError: If ``timeout`` elapses first.
            DirectiveError: Whatever ended the objective.
        """
        try:
            return self._future.result(timeout)
        except CancelledError:
            raise ObjectiveCancelledError("Answer was cancelled") from None

    def exception(self, timeout: float | None = None) -> BaseException | None:
        try:
            return self._future.exception(timeout)
        except CancelledError:
            return ObjectiveCancelledError("Answer was cancelled")

    def done(self) -> bool:
        return self._future.done()

    def cancelled(self) -> bool:
        if self._future.cancelled():
            return True
        return self._future.done() and isinstance(self._future.exception(), ObjectiveCancelledError)

    def cancel(self) -> bool:
        """Stop the objective.

        A queued objective never starts. A running one stops before its
        next provider round. Returns False if the answer already resolved.
        """
        if self._future.done():
            return False
        self._cancel_event.set()
        self._future.cancel()
        return True

    def on_answer(self, callback: Callable[[T], object]) -> Answer[T]:
        """Call ``callback(value)`` once the answer resolves successfully."""

        def _done(future: Future) -> None:
            if future.cancelled() or future.exception() is not None:
                return
            callback(future.result())

        self._future.add_done_callback(_done)
        return self

    def on_error(self, callback: Callable[[BaseException], object]) -> Answer[T]:
        """Call ``callback(exc)`` once the answer fails or is cancelled."""

        def _done(future: Future) -> None:
            if future.cancelled():
                callback(ObjectiveCancelledError("Answer was cancelled"))
                return
            exc = future.exception()
            if exc is not None:
                callback(exc)

        self._future.add_done_callback(_done)
        return self

    def __repr__(self) -> str:
        state = "done" if self.done() else "pending"
        return f"Answer({state})"
