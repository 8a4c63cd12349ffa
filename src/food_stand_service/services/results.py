"""Typed results returned by the service layer."""

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from food_stand_service.exceptions import PersistenceError
from food_stand_service.models.menu_models import StockLine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorReason(str, Enum):
    """Machine-checkable reason attached to a failed result."""

    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    PERSISTENCE_ERROR = "persistence_error"


@dataclass
class ServiceResult(Generic[T]):
    """Result of a service operation.

    Attributes:
        success: Whether the operation completed
        data: The produced or affected record on success
        error: Failure reason, None on success
        message: Human readable description
        shortages: Ingredient shortages for insufficient stock failures
    """

    success: bool
    data: T | None = None
    error: ErrorReason | None = None
    message: str | None = None
    shortages: list[StockLine] = field(default_factory=list)

    @classmethod
    def ok(cls, data: T | None = None, message: str | None = None) -> "ServiceResult[T]":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(
        cls,
        error: ErrorReason,
        message: str,
        shortages: list[StockLine] | None = None,
    ) -> "ServiceResult[T]":
        return cls(success=False, error=error, message=message, shortages=shortages or [])


def persistence_guarded(
    func: Callable[..., Awaitable[ServiceResult[Any]]],
) -> Callable[..., Awaitable[ServiceResult[Any]]]:
    """Turn a PersistenceError raised by an async service method into a failed result."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> ServiceResult[Any]:
        try:
            return await func(*args, **kwargs)
        except PersistenceError as e:
            logger.error(f"{func.__name__} failed on storage access: {e}")
            return ServiceResult.fail(ErrorReason.PERSISTENCE_ERROR, str(e))

    return wrapper
