"""Settlement descriptors and aggregate errors."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

# === Enums ===


class SettleStatus(str, Enum):
    """How a future settled."""

    FULFILLED = "fulfilled"
    REJECTED = "rejected"


# === Settled Results ===


class FulfilledResult(BaseModel):
    """An input of all_settled() that fulfilled."""

    status: Literal[SettleStatus.FULFILLED] = SettleStatus.FULFILLED
    value: Any = None


class RejectedResult(BaseModel):
    """An input of all_settled() that rejected."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: Literal[SettleStatus.REJECTED] = SettleStatus.REJECTED
    reason: BaseException


SettledResult = FulfilledResult | RejectedResult


# === Errors ===


class AggregateError(Exception):
    """Raised by any() when every input rejected."""

    def __init__(self, errors: list[BaseException], message: str = "All futures were rejected"):
        super().__init__(message)
        self.errors = list(errors)
