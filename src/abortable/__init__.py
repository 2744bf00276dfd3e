"""
abortable - Promise-style asyncio futures that can be aborted.

Quick start:
    from abortable import CancellableFuture, AbortError

    future = CancellableFuture(lambda resolve, reject: loop.call_later(1, resolve, "done"))
    future.on_abort(lambda event: print("aborted:", event.reason))
    future.abort("no longer needed")

    try:
        await future
    except AbortError as e:
        print(e.message)  # "no longer needed"

    # Chaining keeps the type
    doubled = CancellableFuture.resolve(21).then(lambda x: x * 2)

    # Combinators return their own abortable future
    both = CancellableFuture.all([first, second])
    both.abort()  # rejects `both`, leaves `first` and `second` running
"""

__version__ = "0.1.0"

# Abort (cancellation)
from .abort import (
    DEFAULT_ABORT_REASON,
    AbortController,
    AbortError,
    AbortEvent,
    AbortSignal,
)

# Future
from .future import CancellableFuture

# Types
from .types import (
    AggregateError,
    FulfilledResult,
    RejectedResult,
    SettledResult,
    SettleStatus,
)

__all__ = [
    # Version
    "__version__",
    # Abort
    "AbortSignal",
    "AbortController",
    "AbortEvent",
    "AbortError",
    "DEFAULT_ABORT_REASON",
    # Future
    "CancellableFuture",
    # Types
    "SettleStatus",
    "FulfilledResult",
    "RejectedResult",
    "SettledResult",
    "AggregateError",
]
