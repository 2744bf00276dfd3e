"""Cancellable future with promise-style chaining and combinators."""

import asyncio
import inspect
import logging
from collections.abc import Callable, Generator, Iterable
from typing import Any, Generic, TypeVar

from . import settle
from .abort import DEFAULT_ABORT_REASON, AbortController, AbortError, AbortEvent, AbortListener, AbortSignal
from .types import SettledResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

Resolve = Callable[..., None]
Reject = Callable[[BaseException | type[BaseException]], None]
Executor = Callable[[Resolve, Reject], Any]


class CancellableFuture(Generic[T]):
    """A promise-like future that can be aborted.

    The executor receives ``resolve`` and ``reject`` callbacks and runs
    synchronously inside the constructor. Aborting the future, or the
    controller it was built with, rejects it with AbortError unless it has
    already settled.

    Example:
        def executor(resolve, reject):
            loop.call_later(5, resolve, "done")

        future = CancellableFuture(executor)
        future.on_abort(lambda event: print("gave up:", event.reason))
        future.abort("too slow")

        try:
            await future
        except AbortError as e:
            print(e.message)  # "too slow"

    Chaining (``then``, ``catch``, ``finally_``) and the combinators
    (``all``, ``all_settled``, ``any``, ``race``, ``resolve``, ``reject``)
    return CancellableFutures with their own controllers.
    """

    def __init__(
        self,
        executor: Executor,
        controller: AbortController | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._loop = loop if loop is not None else asyncio.get_running_loop()
        self._future: asyncio.Future = self._loop.create_future()
        self._controller = controller if controller is not None else AbortController()
        self._adopting = False
        self._executor_task: asyncio.Future | None = None

        # Stays registered after natural settlement; firing then is a no-op
        self._controller.signal.on_abort(self._on_signal_abort)

        try:
            pending = executor(self._resolve, self._reject)
        except Exception as e:
            self._reject(e)
        else:
            if inspect.iscoroutine(pending):
                self._executor_task = asyncio.ensure_future(pending, loop=self._loop)
                self._executor_task.add_done_callback(self._on_executor_done)

    # === Settlement ===

    def _resolve(self, value: Any = None) -> None:
        if self._future.done() or self._adopting:
            return
        if value is self:
            self._future.set_exception(TypeError("Cannot resolve a future with itself"))
            return
        if isinstance(value, CancellableFuture):
            source = value._future
        elif inspect.isawaitable(value):
            source = settle.as_future(value, self._loop)
        else:
            self._future.set_result(value)
            return
        self._adopting = True
        source.add_done_callback(self._adopt)

    def _adopt(self, source: asyncio.Future) -> None:
        settle.copy_state(source, self._future)

    def _reject(self, reason: BaseException | type[BaseException]) -> None:
        """The ``reject`` callback handed to the executor.

        Raises TypeError for anything but an exception instance or class.
        Called from a timer or loop callback, that TypeError goes to the
        loop's exception handler and the future stays pending.
        """
        if isinstance(reason, type) and issubclass(reason, BaseException):
            reason = reason()
        if not isinstance(reason, BaseException):
            raise TypeError(f"Rejection reason must be an exception, got {type(reason).__name__}")
        if self._future.done() or self._adopting:
            return
        self._future.set_exception(reason)

    def _on_signal_abort(self, event: AbortEvent) -> None:
        if self._future.done():
            return
        logger.debug(f"Aborting pending future: {event.reason!r}")
        self._future.set_exception(AbortError(self.signal.reason, event))

    def _on_executor_done(self, task: asyncio.Future) -> None:
        error = settle.outcome(task)
        if error is not None:
            self._reject(error)

    # === Abort ===

    @property
    def controller(self) -> AbortController:
        return self._controller

    @property
    def signal(self) -> AbortSignal:
        """The controller's signal."""
        return self._controller.signal

    @property
    def aborted(self) -> bool:
        return self._controller.signal.aborted

    def on_abort(self, handler: AbortListener) -> Callable[[], None]:
        """Run ``handler`` when the signal aborts. Returns an unsubscribe function.

        Handlers observe the abort request, not the future's result: they
        fire even if the future settled on its own before abort() was called.
        """
        return self._controller.signal.on_abort(handler)

    def abort(self, reason: Any = None) -> None:
        """Abort via the controller. Calls after the first one are no-ops."""
        self._controller.abort(reason if reason is not None else DEFAULT_ABORT_REASON)

    # === Standard future surface ===

    def done(self) -> bool:
        return self._future.done()

    def to_future(self) -> asyncio.Future:
        """The underlying asyncio future."""
        return self._future

    def __await__(self) -> Generator[Any, None, T]:
        return self._future.__await__()

    def __repr__(self) -> str:
        if not self._future.done():
            state = "pending"
        elif self._future.cancelled():
            state = "cancelled"
        elif self._future.exception() is not None:
            state = f"rejected {self._future.exception()!r}"
        else:
            state = f"fulfilled {self._future.result()!r}"
        return f"<{type(self).__name__} {state}>"

    # === Chaining ===

    def then(
        self,
        on_fulfilled: Callable[[Any], Any] | None = None,
        on_rejected: Callable[[BaseException], Any] | None = None,
    ) -> "CancellableFuture[Any]":
        """Derive a future from this one's outcome.

        Handlers run on the loop after this future settles. Their return
        value (or awaitable) fulfills the derived future; an exception they
        raise rejects it. A missing handler passes the outcome through.
        """

        def executor(resolve: Resolve, reject: Reject) -> None:
            def dispatch(source: asyncio.Future) -> None:
                error = settle.outcome(source)
                try:
                    if error is None:
                        value = source.result()
                        resolve(on_fulfilled(value) if on_fulfilled is not None else value)
                    elif on_rejected is not None:
                        resolve(on_rejected(error))
                    else:
                        reject(error)
                except BaseException as e:
                    reject(e)

            self._future.add_done_callback(dispatch)

        return type(self)(executor, loop=self._loop)

    def catch(self, on_rejected: Callable[[BaseException], Any]) -> "CancellableFuture[Any]":
        """Handle a rejection; fulfilled values pass through."""
        return self.then(None, on_rejected)

    def finally_(self, on_finally: Callable[[], Any]) -> "CancellableFuture[T]":
        """Run ``on_finally`` on either outcome and pass the outcome through.

        If the callback raises, or returns an awaitable that fails, the
        derived future rejects with that error instead.
        """

        def executor(resolve: Resolve, reject: Reject) -> None:
            def dispatch(source: asyncio.Future) -> None:
                try:
                    pending = on_finally()
                except BaseException as e:
                    settle.outcome(source)
                    reject(e)
                    return
                if not inspect.isawaitable(pending):
                    _settle_from(source, resolve, reject)
                    return

                def after(waited: asyncio.Future) -> None:
                    error = settle.outcome(waited)
                    if error is None:
                        _settle_from(source, resolve, reject)
                    else:
                        settle.outcome(source)
                        reject(error)

                settle.as_future(pending, self._loop).add_done_callback(after)

            self._future.add_done_callback(dispatch)

        return type(self)(executor, loop=self._loop)

    # === Construction helpers ===

    @classmethod
    def from_(cls, value: Any, *, loop: asyncio.AbstractEventLoop | None = None) -> "CancellableFuture[Any]":
        """Wrap a future, awaitable or plain value.

        An existing CancellableFuture is returned as is. Aborting the wrapper
        does not stop the wrapped operation; its late result is discarded.
        """
        if isinstance(value, CancellableFuture):
            return value
        return cls(lambda resolve, reject: resolve(value), loop=loop)

    @classmethod
    def resolve(cls, value: Any = None, *, loop: asyncio.AbstractEventLoop | None = None) -> "CancellableFuture[Any]":
        """An already-fulfilled future. Awaitables are adopted."""
        return cls.from_(value, loop=loop)

    @classmethod
    def reject(
        cls, reason: BaseException | type[BaseException], *, loop: asyncio.AbstractEventLoop | None = None
    ) -> "CancellableFuture[Any]":
        """An already-rejected future."""
        return cls(lambda resolve, reject: reject(reason), loop=loop)

    # === Combinators ===

    @classmethod
    def all(cls, futures: Iterable[Any], *, loop: asyncio.AbstractEventLoop | None = None) -> "CancellableFuture[list[Any]]":
        """Fulfill with every value in input order; reject with the first failure."""
        return cls._aggregate(settle.gather_all, futures, loop)

    @classmethod
    def all_settled(
        cls, futures: Iterable[Any], *, loop: asyncio.AbstractEventLoop | None = None
    ) -> "CancellableFuture[list[SettledResult]]":
        """Fulfill with a FulfilledResult or RejectedResult per input."""
        return cls._aggregate(settle.gather_settled, futures, loop)

    @classmethod
    def any(cls, futures: Iterable[Any], *, loop: asyncio.AbstractEventLoop | None = None) -> "CancellableFuture[Any]":
        """Fulfill with the first fulfillment; AggregateError if all reject."""
        return cls._aggregate(settle.first_fulfilled, futures, loop)

    @classmethod
    def race(cls, futures: Iterable[Any], *, loop: asyncio.AbstractEventLoop | None = None) -> "CancellableFuture[Any]":
        """Settle like whichever input settles first."""
        return cls._aggregate(settle.first_settled, futures, loop)

    @classmethod
    def _aggregate(
        cls,
        combine: Callable[[list[asyncio.Future], asyncio.AbstractEventLoop], asyncio.Future],
        futures: Iterable[Any],
        loop: asyncio.AbstractEventLoop | None,
    ) -> "CancellableFuture[Any]":
        # Aborting the aggregate leaves the inputs alone
        loop = loop if loop is not None else asyncio.get_running_loop()
        sources = [_as_future(value, loop) for value in futures]

        def executor(resolve: Resolve, reject: Reject) -> None:
            combine(sources, loop).add_done_callback(lambda aggregate: _settle_from(aggregate, resolve, reject))

        return cls(executor, loop=loop)


def _as_future(value: Any, loop: asyncio.AbstractEventLoop) -> asyncio.Future:
    if isinstance(value, CancellableFuture):
        return value.to_future()
    return settle.as_future(value, loop)


def _settle_from(source: asyncio.Future, resolve: Resolve, reject: Reject) -> None:
    error = settle.outcome(source)
    if error is None:
        resolve(source.result())
    else:
        reject(error)
