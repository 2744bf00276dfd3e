"""Abort signal and controller for future cancellation."""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_ABORT_REASON = "aborted"

AbortListener = Callable[["AbortEvent"], Any]


class AbortEvent(BaseModel):
    """Delivered to every abort listener when a signal fires."""

    type: Literal["abort"] = "abort"
    reason: Any = DEFAULT_ABORT_REASON
    timestamp: float = Field(default_factory=time.time)


class AbortSignal:
    """Read-only view of an abort request.

    Listeners run synchronously, in registration order, at the moment the
    signal flips to aborted. Each listener runs at most once.

    Example:
        controller = AbortController()

        async def long_operation(signal: AbortSignal):
            while not signal.aborted:
                await do_work()

        controller.signal.on_abort(lambda event: print(event.reason))
        controller.abort("user cancelled")
    """

    def __init__(self):
        self._aborted = False
        self._reason: Any = None
        self._event: AbortEvent | None = None
        self._listeners: list[AbortListener] = []

    @property
    def aborted(self) -> bool:
        """True if abort() has been called on the controller."""
        return self._aborted

    @property
    def reason(self) -> Any:
        """The reason passed to the first abort() call, None before that."""
        return self._reason

    def _abort(self, reason: Any) -> None:
        """Internal: called by AbortController."""
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason
        self._event = AbortEvent(reason=reason)
        logger.debug(f"Signal aborted: {reason!r}")

        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            self._notify(listener)

    def _notify(self, listener: AbortListener) -> None:
        try:
            listener(self._event)
        except Exception:
            # A failing listener must not stop the others or the abort() caller
            logger.exception(f"Abort listener {listener!r} raised")

    def on_abort(self, listener: AbortListener) -> Callable[[], None]:
        """Register a listener to run when aborted.

        If already aborted, the listener runs immediately with the
        recorded event. Returns an unsubscribe function.

        Example:
            def cleanup(event):
                print("Cancelled:", event.reason)

            unsubscribe = signal.on_abort(cleanup)
            # Later: unsubscribe()
        """
        if self._aborted:
            self._notify(listener)
        else:
            self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def throw_if_aborted(self) -> None:
        """Raise AbortError if aborted.

        Useful for checking at await points:
            signal.throw_if_aborted()
            await some_operation()
        """
        if self._aborted:
            raise AbortError(self._reason, self._event)

    async def wait(self) -> Any:
        """Wait until the signal aborts and return its reason."""
        if self._aborted:
            return self._reason

        waiter = asyncio.get_running_loop().create_future()

        def wake(event: AbortEvent) -> None:
            if not waiter.done():
                waiter.set_result(event.reason)

        unsubscribe = self.on_abort(wake)
        try:
            return await waiter
        finally:
            unsubscribe()


class AbortController:
    """Controller that creates and triggers an AbortSignal.

    Example:
        controller = AbortController()

        # Share the signal with anything that should observe cancellation
        future = CancellableFuture(executor, controller)

        # Abort everything bound to this controller
        controller.abort("shutting down")
    """

    def __init__(self):
        self._signal = AbortSignal()

    @property
    def signal(self) -> AbortSignal:
        """The AbortSignal controlled by this controller."""
        return self._signal

    def abort(self, reason: Any = DEFAULT_ABORT_REASON) -> None:
        """Abort the signal. Calls after the first one are no-ops."""
        self._signal._abort(reason)


class AbortError(Exception):
    """Raised when an operation is aborted.

    The message is the stringified abort reason. The original reason and
    the triggering event are kept on ``reason`` and ``details``.
    """

    name = "AbortError"

    def __init__(self, reason: Any = DEFAULT_ABORT_REASON, details: Any = None):
        if reason is None:
            reason = DEFAULT_ABORT_REASON
        super().__init__(str(reason))
        self.reason = reason
        self.details = details

    @property
    def message(self) -> str:
        return str(self.reason)
