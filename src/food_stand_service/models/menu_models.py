"""Menu data models.

A MenuItem is a sellable product made from a recipe of inventory ingredients.
The recipe drives cost, margin, stock sufficiency and how many units the
current inventory can still produce.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from food_stand_service.exceptions import InvalidArgumentError
from food_stand_service.models.inventory_models import Ingredient

logger = logging.getLogger(__name__)

MISSING_INGREDIENT_NAME = "Ingredient not found in inventory"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RecipeLine(BaseModel):
    """Quantity of one ingredient consumed per unit sold."""

    ingredient_id: int = Field(..., description="Inventory ingredient identifier")
    quantity_per_unit: Decimal = Field(..., description="Quantity used per unit sold", gt=0)


class StockLine(BaseModel):
    """Required versus available quantity for one ingredient."""

    ingredient_id: int
    name: str
    required_qty: Decimal
    available_qty: Decimal


class StockCheckResult(BaseModel):
    """Outcome of checking a set of requirements against inventory."""

    sufficient: bool
    shortages: list[StockLine] = Field(default_factory=list)
    sufficient_lines: list[StockLine] = Field(default_factory=list)


def check_requirements(
    requirements: Mapping[int, Decimal], inventory: Iterable[Ingredient]
) -> StockCheckResult:
    """Check aggregated ingredient requirements against an inventory snapshot.

    Args:
        requirements: Required quantity keyed by ingredient id
        inventory: Current ingredients

    Returns:
        StockCheckResult: Shortages and sufficient lines, in requirement order
    """
    by_id = {ingredient.id: ingredient for ingredient in inventory}
    shortages: list[StockLine] = []
    sufficient_lines: list[StockLine] = []

    for ingredient_id, required in requirements.items():
        ingredient = by_id.get(ingredient_id)
        if ingredient is None:
            shortages.append(
                StockLine(
                    ingredient_id=ingredient_id,
                    name=MISSING_INGREDIENT_NAME,
                    required_qty=required,
                    available_qty=Decimal(0),
                )
            )
            continue

        line = StockLine(
            ingredient_id=ingredient_id,
            name=ingredient.name,
            required_qty=required,
            available_qty=ingredient.quantity,
        )
        if ingredient.quantity < required:
            shortages.append(line)
        else:
            sufficient_lines.append(line)

    return StockCheckResult(
        sufficient=not shortages,
        shortages=shortages,
        sufficient_lines=sufficient_lines,
    )


class MenuItem(BaseModel):
    """Menu item model."""

    id: int | None = Field(None, description="Menu item identifier, assigned on creation")
    name: str = Field(..., description="Item name")
    price: Decimal = Field(..., description="Selling price", ge=0)
    description: str = Field(default="", description="Item description")
    ingredients: list[RecipeLine] = Field(default_factory=list, description="Recipe lines")
    active: bool = Field(default=True, description="Whether the item can be ordered")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def add_ingredient_line(self, ingredient_id: int, quantity_per_unit: Decimal) -> None:
        """Add an ingredient to the recipe, summing with an existing line for it.

        Raises:
            InvalidArgumentError: If ``quantity_per_unit`` is not positive
        """
        quantity_per_unit = Decimal(quantity_per_unit)
        if quantity_per_unit <= 0:
            raise InvalidArgumentError("Quantity must be greater than 0")

        for line in self.ingredients:
            if line.ingredient_id == ingredient_id:
                line.quantity_per_unit += quantity_per_unit
                break
        else:
            self.ingredients.append(
                RecipeLine(ingredient_id=ingredient_id, quantity_per_unit=quantity_per_unit)
            )
        self.updated_at = _utcnow()

    def remove_ingredient_line(self, ingredient_id: int) -> None:
        self.ingredients = [line for line in self.ingredients if line.ingredient_id != ingredient_id]
        self.updated_at = _utcnow()

    def set_ingredient_line_quantity(self, ingredient_id: int, quantity_per_unit: Decimal) -> None:
        """Set the quantity of a recipe line; zero or less removes the line."""
        quantity_per_unit = Decimal(quantity_per_unit)
        if quantity_per_unit <= 0:
            self.remove_ingredient_line(ingredient_id)
            return

        for line in self.ingredients:
            if line.ingredient_id == ingredient_id:
                line.quantity_per_unit = quantity_per_unit
                self.updated_at = _utcnow()
                return

    def set_active(self, active: bool) -> None:
        self.active = active
        self.updated_at = _utcnow()

    def requirements(self, multiplier: Decimal | int = 1) -> dict[int, Decimal]:
        """Ingredient quantities needed to produce ``multiplier`` units.

        Returns:
            dict: Required quantity keyed by ingredient id
        """
        required: dict[int, Decimal] = {}
        for line in self.ingredients:
            amount = line.quantity_per_unit * Decimal(multiplier)
            required[line.ingredient_id] = required.get(line.ingredient_id, Decimal(0)) + amount
        return required

    def cost_of_ingredients(self, inventory: Iterable[Ingredient]) -> Decimal:
        """Cost of one unit at current ingredient prices.

        Recipe lines pointing at an ingredient that is no longer in inventory
        contribute nothing to the cost and are logged as a data-integrity issue.
        """
        by_id = {ingredient.id: ingredient for ingredient in inventory}
        cost = Decimal(0)
        for line in self.ingredients:
            ingredient = by_id.get(line.ingredient_id)
            if ingredient is None:
                logger.warning(
                    f"Menu item {self.id} ({self.name}) references missing ingredient "
                    f"{line.ingredient_id}; counting it as zero cost"
                )
                continue
            cost += line.quantity_per_unit * ingredient.unit_price
        return cost

    def profit_margin(self, inventory: Iterable[Ingredient]) -> Decimal:
        return self.price - self.cost_of_ingredients(inventory)

    def stock_check(self, inventory: Iterable[Ingredient], multiplier: Decimal | int = 1) -> StockCheckResult:
        """Check whether inventory covers ``multiplier`` units of this item."""
        return check_requirements(self.requirements(multiplier), inventory)

    def max_producible_units(self, inventory: Iterable[Ingredient]) -> int:
        """Largest number of whole units the inventory can produce right now."""
        if not self.ingredients:
            return 0

        by_id = {ingredient.id: ingredient for ingredient in inventory}
        limits = []
        for line in self.ingredients:
            ingredient = by_id.get(line.ingredient_id)
            if ingredient is None:
                return 0
            limits.append(int(ingredient.quantity // line.quantity_per_unit))
        return min(limits)

    def is_valid(self) -> bool:
        return bool(self.name and self.name.strip()) and self.price >= 0 and len(self.ingredients) > 0

    def to_record(self) -> dict[str, Any]:
        """Convert to a storage record.

        Returns:
            dict: JSON and DynamoDB compatible representation
        """
        return {
            "id": self.id,
            "name": self.name,
            "price": str(self.price),
            "description": self.description,
            "ingredients": [
                {"ingredient_id": line.ingredient_id, "quantity_per_unit": str(line.quantity_per_unit)}
                for line in self.ingredients
            ],
            "active": self.active,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "MenuItem":
        """Create a MenuItem from a storage record.

        Args:
            record: Stored dictionary

        Returns:
            MenuItem: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": int(record["id"]),
            "name": record["name"],
            "price": Decimal(str(record["price"])),
            "description": record.get("description") or "",
            "ingredients": [
                RecipeLine(
                    ingredient_id=int(line["ingredient_id"]),
                    quantity_per_unit=Decimal(str(line["quantity_per_unit"])),
                )
                for line in record.get("ingredients", [])
            ],
            "active": bool(record.get("active", True)),
        }

        if record.get("created_at"):
            data["created_at"] = datetime.fromisoformat(record["created_at"])

        if record.get("updated_at"):
            data["updated_at"] = datetime.fromisoformat(record["updated_at"])

        return cls(**data)


class RecipeLineRequest(BaseModel):
    """Recipe line as sent by a client."""

    ingredient_id: int | None = None
    quantity_per_unit: Decimal | None = None


class MenuItemCreate(BaseModel):
    """Request body for creating a menu item."""

    name: str | None = None
    price: Decimal | None = None
    description: str = ""
    ingredients: list[RecipeLineRequest] = Field(default_factory=list)


class MenuItemUpdate(BaseModel):
    """Request body for updating a menu item. A given recipe replaces the old one."""

    name: str | None = None
    price: Decimal | None = None
    description: str | None = None
    ingredients: list[RecipeLineRequest] | None = None
    active: bool | None = None


class MenuItemStatistics(BaseModel):
    """Costing and availability figures for one menu item."""

    menu_item_id: int
    name: str
    price: Decimal
    ingredient_cost: Decimal
    profit_margin: Decimal
    max_producible_units: int
    stock: StockCheckResult
