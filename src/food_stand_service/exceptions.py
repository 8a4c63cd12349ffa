"""Exception types raised by entities and storage backends.

Entities raise these when a mutation would break an invariant. Services catch
them and turn them into typed results, so they never reach the HTTP layer.
"""

from decimal import Decimal


class FoodStandError(Exception):
    """Base class for all food stand service errors."""


class InvalidArgumentError(FoodStandError, ValueError):
    """Raised when a mutator receives a value outside its allowed range."""


class InsufficientStockError(FoodStandError, ValueError):
    """Raised when a stock decrease exceeds the available quantity."""

    def __init__(self, ingredient_name: str, available: Decimal, requested: Decimal, unit: str) -> None:
        self.ingredient_name = ingredient_name
        self.available = available
        self.requested = requested
        self.unit = unit
        super().__init__(
            f"Insufficient stock for {ingredient_name}. "
            f"Available: {available} {unit}, requested: {requested}"
        )


class PersistenceError(FoodStandError):
    """Raised when the underlying storage fails to read or write a collection."""
