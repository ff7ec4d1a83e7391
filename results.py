"""Tagged results returned across the record-store boundary.

Every store call, capture operation and the timeline loader answers with
either ``Ok(value)`` or ``Err(message, kind)`` instead of raising, so callers
branch on the tag and never see an untyped backend response.
"""
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")

VALIDATION_ERROR = "validation"
STORE_ERROR = "store"
AGGREGATE_FETCH_ERROR = "aggregate_fetch"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    message: str
    kind: str = STORE_ERROR

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[Any], Err]


def validation_error(message: str) -> Err:
    return Err(message, VALIDATION_ERROR)


def http_status(err: Err) -> int:
    """Status code a JSON endpoint answers with for a failed result."""
    return 400 if err.kind == VALIDATION_ERROR else 503
