# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""One-shot, cancellable handle over an in-flight request."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Generator
from typing import Any, Generic, TypeVar

from .errors import RequestError
from .outcome import Failure, Outcome, Success

logger = logging.getLogger(__name__)

V = TypeVar("V")

OutcomeCallback = Callable[[Outcome[Any]], None]
Checkpoint = Callable[[], None]
Operation = Callable[[Checkpoint], Awaitable[V]]

# The event loop only keeps weak references to tasks.
_background_tasks: set[asyncio.Task[Any]] = set()


class RequestHandle(Generic[V]):
    """
    Runs one request as an asyncio task and delivers at most one Outcome.

    ``await handle`` returns the value or raises the RequestError; ``await handle.outcome()``
    returns the Outcome itself. Cancelling before completion stops the transfer, no
    callback fires and awaiting raises ``asyncio.CancelledError``, even when the
    transport swallows the cancellation and returns a response anyway. Cancelling
    afterwards does nothing.
    """

    def __init__(self, operation: Operation[V], *, description: str = "request"):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError(f"{description} must be issued from a running event loop") from None
        self.description = description
        self._outcome: Outcome[V] | None = None
        self._cancel_requested = False
        self._callbacks: list[OutcomeCallback] = []
        self._task: asyncio.Task[Outcome[V]] = loop.create_task(self._run(operation))
        _background_tasks.add(self._task)
        self._task.add_done_callback(_background_tasks.discard)

    def _checkpoint(self) -> None:
        """Raise CancelledError once cancel() has been requested."""
        if self._cancel_requested:
            raise asyncio.CancelledError()

    async def _run(self, operation: Operation[V]) -> Outcome[V]:
        try:
            value = await operation(self._checkpoint)
        except RequestError as exc:
            outcome: Outcome[V] = Failure(exc)
        else:
            outcome = Success(value)
        self._checkpoint()
        self._deliver(outcome)
        return outcome

    def _deliver(self, outcome: Outcome[V]) -> None:
        if self._cancel_requested:
            return
        self._outcome = outcome
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._invoke(callback, outcome)

    def _invoke(self, callback: OutcomeCallback, outcome: Outcome[V]) -> None:
        try:
            callback(outcome)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Completion callback for %s failed: %s", self.description, exc)

    def add_done_callback(self, callback: OutcomeCallback) -> None:
        """Register a callback that receives the Outcome once; never called after cancel()."""
        if self._outcome is not None:
            self._invoke(callback, self._outcome)
            return
        if self._cancel_requested or self._task.cancelled():
            return
        self._callbacks.append(callback)

    def cancel(self) -> bool:
        """Cancel the request if it has not completed. Returns True when cancellation was requested."""
        if self._outcome is not None or self._task.done():
            return False
        self._cancel_requested = True
        self._callbacks.clear()
        self._task.cancel()
        return True

    def cancelled(self) -> bool:
        return self._task.cancelled()

    def done(self) -> bool:
        return self._outcome is not None or self._task.done()

    def result(self) -> V:
        """Return the value of a completed request without waiting."""
        if self._task.cancelled():
            raise asyncio.CancelledError()
        if self._outcome is None:
            raise asyncio.InvalidStateError(f"{self.description} has not completed")
        return self._outcome.unwrap()

    async def outcome(self) -> Outcome[V]:
        """Wait for and return the Outcome (Success or Failure) without raising request errors."""
        return await self._task

    async def _wait(self) -> V:
        outcome = await self._task
        return outcome.unwrap()

    def __await__(self) -> Generator[Any, None, V]:
        return self._wait().__await__()

    def __repr__(self) -> str:
        if self._task.cancelled():
            state = "cancelled"
        elif self._outcome is None:
            state = "pending"
        else:
            state = "success" if self._outcome.ok else "failure"
        return f"<RequestHandle {self.description} {state}>"


__all__ = ["RequestHandle"]
