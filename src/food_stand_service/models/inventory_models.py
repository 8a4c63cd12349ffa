"""Inventory models.

An Ingredient is one line of raw-ingredient stock. Every quantity mutation
goes through the unit-keyed rounding policy so repeated fractional deductions
(0.2 kg of beef a few hundred times a day) do not accumulate drift.
"""

import re
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel, Field

from food_stand_service.exceptions import InsufficientStockError, InvalidArgumentError

LITER_UNITS = {"l", "lt", "lts", "litro", "litros", "liter", "liters", "litre", "litres"}


def quantity_precision(unit: str) -> int:
    """Return the number of decimal places kept for quantities in ``unit``.

    Args:
        unit: Unit of measure (e.g. "kg", "ml", "pieces")

    Returns:
        int: 1 for milliliter units, 2 for everything else
    """
    normalized = (unit or "").lower()
    if "ml" in normalized:
        return 1
    if "kg" in normalized:
        return 2
    if LITER_UNITS.intersection(re.split(r"[^a-z]+", normalized)):
        return 2
    return 2


def round_quantity(quantity: Decimal, unit: str) -> Decimal:
    """Round a stock quantity according to its unit.

    Args:
        quantity: Quantity to round
        unit: Unit of measure used to pick the precision

    Returns:
        Decimal: Quantity rounded half-up to the unit's precision
    """
    step = Decimal(1).scaleb(-quantity_precision(unit))
    return Decimal(quantity).quantize(step, rounding=ROUND_HALF_UP)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Ingredient(BaseModel):
    """Raw ingredient kept in the stand's inventory."""

    id: int | None = Field(None, description="Inventory identifier, assigned on creation")
    name: str = Field(..., description="Ingredient name")
    quantity: Decimal = Field(..., description="Quantity in stock", ge=0)
    unit: str = Field(..., description="Unit of measure (kg, pieces, bottles, ...)")
    unit_price: Decimal = Field(..., description="Purchase price per unit", ge=0)
    created_at: datetime = Field(default_factory=_utcnow, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=_utcnow, description="Last update timestamp")

    def decrease(self, amount: Decimal) -> None:
        """Remove ``amount`` from stock.

        Raises:
            InvalidArgumentError: If ``amount`` is negative
            InsufficientStockError: If ``amount`` exceeds the quantity in stock
        """
        amount = Decimal(amount)
        if amount < 0:
            raise InvalidArgumentError("Amount to remove must be positive")
        if amount > self.quantity:
            raise InsufficientStockError(self.name, self.quantity, amount, self.unit)
        self.quantity = round_quantity(self.quantity - amount, self.unit)
        self.updated_at = _utcnow()

    def increase(self, amount: Decimal) -> None:
        """Add ``amount`` to stock.

        Raises:
            InvalidArgumentError: If ``amount`` is negative
        """
        amount = Decimal(amount)
        if amount < 0:
            raise InvalidArgumentError("Amount to add must be positive")
        self.quantity = round_quantity(self.quantity + amount, self.unit)
        self.updated_at = _utcnow()

    def has_sufficient_stock(self, amount: Decimal) -> bool:
        return self.quantity >= Decimal(amount)

    def set_price(self, unit_price: Decimal) -> None:
        unit_price = Decimal(unit_price)
        if unit_price < 0:
            raise InvalidArgumentError("Price cannot be negative")
        self.unit_price = unit_price
        self.updated_at = _utcnow()

    def set_quantity(self, quantity: Decimal) -> None:
        quantity = Decimal(quantity)
        if quantity < 0:
            raise InvalidArgumentError("Quantity cannot be negative")
        self.quantity = round_quantity(quantity, self.unit)
        self.updated_at = _utcnow()

    def total_value(self) -> Decimal:
        """Value of the stock on hand at the current unit price."""
        return self.quantity * self.unit_price

    def is_valid(self) -> bool:
        return (
            bool(self.name and self.name.strip())
            and bool(self.unit and self.unit.strip())
            and self.quantity >= 0
            and self.unit_price >= 0
        )

    def to_record(self) -> dict[str, Any]:
        """Convert to a storage record.

        Returns:
            dict: JSON and DynamoDB compatible representation
        """
        return {
            "id": self.id,
            "name": self.name,
            "quantity": str(self.quantity),
            "unit": self.unit,
            "unit_price": str(self.unit_price),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Ingredient":
        """Create an Ingredient from a storage record.

        Args:
            record: Stored dictionary

        Returns:
            Ingredient: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": int(record["id"]),
            "name": record["name"],
            "quantity": Decimal(str(record["quantity"])),
            "unit": record["unit"],
            "unit_price": Decimal(str(record["unit_price"])),
        }

        if record.get("created_at"):
            data["created_at"] = datetime.fromisoformat(record["created_at"])

        if record.get("updated_at"):
            data["updated_at"] = datetime.fromisoformat(record["updated_at"])

        return cls(**data)


class IngredientCreate(BaseModel):
    """Request body for creating an ingredient."""

    name: str | None = None
    quantity: Decimal | None = None
    unit: str | None = None
    unit_price: Decimal | None = None


class IngredientUpdate(BaseModel):
    """Request body for updating an ingredient. Omitted fields are left unchanged."""

    name: str | None = None
    quantity: Decimal | None = None
    unit: str | None = None
    unit_price: Decimal | None = None
