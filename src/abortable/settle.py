"""Group operations over plain asyncio futures.

These are the non-cancellable building blocks behind the combinators on
CancellableFuture. Every function takes already-normalized asyncio futures
(see as_future) and returns a new asyncio future bound to ``loop``.
"""

import asyncio
import inspect
from collections.abc import Iterable, Sequence
from typing import Any

from .types import AggregateError, FulfilledResult, RejectedResult, SettledResult


def as_future(value: Any, loop: asyncio.AbstractEventLoop) -> asyncio.Future:
    """Normalize a value into an asyncio future.

    Futures pass through, other awaitables are scheduled on ``loop`` and
    plain values become an already-fulfilled future.
    """
    if asyncio.isfuture(value):
        return value
    if inspect.isawaitable(value):
        return asyncio.ensure_future(value, loop=loop)
    future = loop.create_future()
    future.set_result(value)
    return future


def outcome(future: asyncio.Future) -> BaseException | None:
    """Exception of a done future, marking it retrieved.

    Cancellation is reported as a CancelledError instance.
    """
    if future.cancelled():
        return asyncio.CancelledError()
    return future.exception()


def copy_state(source: asyncio.Future, target: asyncio.Future) -> None:
    """Mirror a done future onto a pending one; no-op if target is done."""
    error = outcome(source)
    if target.done():
        return
    if error is None:
        target.set_result(source.result())
    else:
        target.set_exception(error)


def gather_all(futures: Sequence[asyncio.Future], loop: asyncio.AbstractEventLoop) -> asyncio.Future:
    """Fulfill with every result in order; reject with the first failure."""
    if not futures:
        return as_future([], loop)
    aggregate = loop.create_future()
    gathered = asyncio.gather(*futures)
    gathered.add_done_callback(lambda done: copy_state(done, aggregate))
    return aggregate


def gather_settled(futures: Sequence[asyncio.Future], loop: asyncio.AbstractEventLoop) -> asyncio.Future:
    """Always fulfill, with one settled descriptor per input."""
    if not futures:
        return as_future([], loop)
    aggregate = loop.create_future()

    def describe(gathered: asyncio.Future) -> None:
        if aggregate.done():
            return
        results: list[SettledResult] = []
        for source in futures:
            error = outcome(source)
            if error is None:
                results.append(FulfilledResult(value=source.result()))
            else:
                results.append(RejectedResult(reason=error))
        aggregate.set_result(results)

    gathered = asyncio.gather(*futures, return_exceptions=True)
    gathered.add_done_callback(describe)
    return aggregate


def first_settled(futures: Iterable[asyncio.Future], loop: asyncio.AbstractEventLoop) -> asyncio.Future:
    """Mirror whichever input settles first. Empty input never settles."""
    aggregate = loop.create_future()
    for source in futures:
        source.add_done_callback(lambda done: copy_state(done, aggregate))
    return aggregate


def first_fulfilled(futures: Sequence[asyncio.Future], loop: asyncio.AbstractEventLoop) -> asyncio.Future:
    """Fulfill with the first fulfillment.

    Rejects with AggregateError, errors in input order, once every input
    has rejected. Empty input rejects immediately.
    """
    aggregate = loop.create_future()
    if not futures:
        aggregate.set_exception(AggregateError([]))
        return aggregate

    errors: list[BaseException | None] = [None] * len(futures)
    pending = len(futures)

    def settle(index: int, source: asyncio.Future) -> None:
        nonlocal pending
        error = outcome(source)
        if aggregate.done():
            return
        if error is None:
            aggregate.set_result(source.result())
            return
        errors[index] = error
        pending -= 1
        if pending == 0:
            aggregate.set_exception(AggregateError(errors))

    for index, source in enumerate(futures):
        source.add_done_callback(lambda done, index=index: settle(index, done))
    return aggregate
