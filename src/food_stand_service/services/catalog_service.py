"""Inventory and menu maintenance services.

These are the direct-edit write paths for ingredients and menu items. Stock
changes caused by orders go through OrderService instead.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal

from food_stand_service.exceptions import InvalidArgumentError
from food_stand_service.models.inventory_models import (
    Ingredient,
    IngredientCreate,
    IngredientUpdate,
    round_quantity,
)
from food_stand_service.models.menu_models import (
    MenuItem,
    MenuItemCreate,
    MenuItemStatistics,
    MenuItemUpdate,
    RecipeLine,
    RecipeLineRequest,
)
from food_stand_service.repositories.inventory_repositories import (
    IngredientRepository,
    MenuItemRepository,
)
from food_stand_service.services.results import ErrorReason, ServiceResult, persistence_guarded

logger = logging.getLogger(__name__)

DEFAULT_LOW_STOCK_THRESHOLD = Decimal(10)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


class InventoryService:
    """Service for creating, editing and querying inventory ingredients."""

    def __init__(
        self,
        ingredient_repository: IngredientRepository,
        low_stock_threshold: Decimal = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> None:
        """Initialize the InventoryService.

        Args:
            ingredient_repository: Repository for inventory ingredients
            low_stock_threshold: Default threshold for list_low_stock
        """
        self.ingredient_repository = ingredient_repository
        self.low_stock_threshold = Decimal(low_stock_threshold)

    @persistence_guarded
    async def create_ingredient(self, request: IngredientCreate) -> ServiceResult[Ingredient]:
        """Create an ingredient.

        Args:
            request: Name, quantity, unit and unit price (all required)

        Returns:
            ServiceResult with the stored Ingredient
        """
        if _blank(request.name):
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Ingredient name is required")
        if request.quantity is None or request.quantity < 0:
            return ServiceResult.fail(
                ErrorReason.VALIDATION_ERROR, "Quantity must be a number greater than or equal to 0"
            )
        if _blank(request.unit):
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Unit of measure is required")
        if request.unit_price is None or request.unit_price < 0:
            return ServiceResult.fail(
                ErrorReason.VALIDATION_ERROR, "Price must be a number greater than or equal to 0"
            )

        unit = request.unit.strip()
        ingredient = Ingredient(
            name=request.name.strip(),
            quantity=round_quantity(request.quantity, unit),
            unit=unit,
            unit_price=request.unit_price,
        )
        created = self.ingredient_repository.create(ingredient)
        return ServiceResult.ok(created, "Ingredient created")

    @persistence_guarded
    async def update_ingredient(self, ingredient_id: int, request: IngredientUpdate) -> ServiceResult[Ingredient]:
        """Update an ingredient. Fields left out of the request keep their values.

        Args:
            ingredient_id: Ingredient identifier
            request: Fields to change

        Returns:
            ServiceResult with the updated Ingredient
        """
        ingredient = self.ingredient_repository.get_by_id(ingredient_id)
        if ingredient is None:
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Ingredient {ingredient_id} not found")

        if request.name is not None and _blank(request.name):
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Ingredient name is required")
        if request.unit is not None and _blank(request.unit):
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Unit of measure is required")

        try:
            if request.name is not None:
                ingredient.name = request.name.strip()
            if request.unit is not None:
                ingredient.unit = request.unit.strip()
            if request.unit_price is not None:
                ingredient.set_price(request.unit_price)
            # Re-rounds under the (possibly new) unit
            ingredient.set_quantity(request.quantity if request.quantity is not None else ingredient.quantity)
        except InvalidArgumentError as e:
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, str(e))

        updated = self.ingredient_repository.update(ingredient)
        if updated is None:
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Ingredient {ingredient_id} not found")
        return ServiceResult.ok(updated, "Ingredient updated")

    @persistence_guarded
    async def adjust_stock(self, ingredient_id: int, quantity: Decimal | None) -> ServiceResult[Ingredient]:
        """Set the stock on hand of an ingredient directly."""
        if quantity is None:
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Quantity is required")

        ingredient = self.ingredient_repository.get_by_id(ingredient_id)
        if ingredient is None:
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Ingredient {ingredient_id} not found")

        try:
            ingredient.set_quantity(quantity)
        except InvalidArgumentError as e:
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, str(e))

        self.ingredient_repository.update(ingredient)
        logger.info(f"Stock of ingredient {ingredient_id} set to {ingredient.quantity} {ingredient.unit}")
        return ServiceResult.ok(ingredient, "Stock updated")

    @persistence_guarded
    async def delete_ingredient(self, ingredient_id: int) -> ServiceResult[None]:
        if not self.ingredient_repository.delete(ingredient_id):
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Ingredient {ingredient_id} not found")
        return ServiceResult.ok(message="Ingredient deleted")

    @persistence_guarded
    async def get_ingredient(self, ingredient_id: int) -> ServiceResult[Ingredient]:
        ingredient = self.ingredient_repository.get_by_id(ingredient_id)
        if ingredient is None:
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Ingredient {ingredient_id} not found")
        return ServiceResult.ok(ingredient)

    @persistence_guarded
    async def list_ingredients(self) -> ServiceResult[list[Ingredient]]:
        return ServiceResult.ok(self.ingredient_repository.list_all())

    @persistence_guarded
    async def search_ingredients(self, name: str) -> ServiceResult[list[Ingredient]]:
        if _blank(name):
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Search term is required")
        return ServiceResult.ok(self.ingredient_repository.search_by_name(name.strip()))

    @persistence_guarded
    async def list_low_stock(self, threshold: Decimal | None = None) -> ServiceResult[list[Ingredient]]:
        """Ingredients at or below ``threshold`` (the configured default when omitted)."""
        limit = self.low_stock_threshold if threshold is None else Decimal(threshold)
        if limit < 0:
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Threshold cannot be negative")
        return ServiceResult.ok(self.ingredient_repository.list_low_stock(limit))


class MenuService:
    """Service for maintaining the menu and costing its items."""

    def __init__(
        self,
        menu_item_repository: MenuItemRepository,
        ingredient_repository: IngredientRepository,
    ) -> None:
        """Initialize the MenuService.

        Args:
            menu_item_repository: Repository for menu items
            ingredient_repository: Repository used to resolve recipe ingredients
        """
        self.menu_item_repository = menu_item_repository
        self.ingredient_repository = ingredient_repository

    def _build_recipe(self, lines: list[RecipeLineRequest]) -> tuple[list[RecipeLine], str | None]:
        """Validate recipe lines against inventory and merge repeated ingredients.

        Returns:
            tuple: (recipe, None) when valid, ([], message) otherwise
        """
        if not lines:
            return [], "A menu item needs at least one ingredient"

        known_ids = {ingredient.id for ingredient in self.ingredient_repository.list_all()}
        draft = MenuItem(name="draft", price=Decimal(0))
        for position, line in enumerate(lines, start=1):
            if line.ingredient_id is None:
                return [], f"Ingredient {position} must reference an inventory ingredient"
            if line.ingredient_id not in known_ids:
                return [], f"Ingredient {line.ingredient_id} not found in inventory"
            if line.quantity_per_unit is None:
                return [], f"Ingredient {position} must have a quantity greater than 0"
            try:
                draft.add_ingredient_line(line.ingredient_id, line.quantity_per_unit)
            except InvalidArgumentError:
                return [], f"Ingredient {position} must have a quantity greater than 0"
        return draft.ingredients, None

    @persistence_guarded
    async def create_menu_item(self, request: MenuItemCreate) -> ServiceResult[MenuItem]:
        """Create a menu item.

        Every recipe ingredient must exist in inventory at creation time.

        Args:
            request: Name, price, description and recipe lines

        Returns:
            ServiceResult with the stored MenuItem
        """
        if _blank(request.name):
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Menu item name is required")
        if request.price is None or request.price < 0:
            return ServiceResult.fail(
                ErrorReason.VALIDATION_ERROR, "Price must be a number greater than or equal to 0"
            )

        recipe, problem = self._build_recipe(request.ingredients)
        if problem:
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, problem)

        menu_item = MenuItem(
            name=request.name.strip(),
            price=request.price,
            description=(request.description or "").strip(),
            ingredients=recipe,
        )
        created = self.menu_item_repository.create(menu_item)
        return ServiceResult.ok(created, "Menu item created")

    @persistence_guarded
    async def update_menu_item(self, menu_item_id: int, request: MenuItemUpdate) -> ServiceResult[MenuItem]:
        """Update a menu item. A recipe in the request replaces the current one."""
        menu_item = self.menu_item_repository.get_by_id(menu_item_id)
        if menu_item is None:
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Menu item {menu_item_id} not found")

        if request.name is not None:
            if _blank(request.name):
                return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Menu item name is required")
            menu_item.name = request.name.strip()
        if request.price is not None:
            if request.price < 0:
                return ServiceResult.fail(
                    ErrorReason.VALIDATION_ERROR, "Price must be a number greater than or equal to 0"
                )
            menu_item.price = request.price
        if request.description is not None:
            menu_item.description = request.description.strip()
        if request.ingredients is not None:
            recipe, problem = self._build_recipe(request.ingredients)
            if problem:
                return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, problem)
            menu_item.ingredients = recipe
        if request.active is not None:
            menu_item.active = request.active

        menu_item.updated_at = datetime.now(UTC)
        updated = self.menu_item_repository.update(menu_item)
        if updated is None:
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Menu item {menu_item_id} not found")
        return ServiceResult.ok(updated, "Menu item updated")

    @persistence_guarded
    async def set_menu_item_active(self, menu_item_id: int, active: bool) -> ServiceResult[MenuItem]:
        menu_item = self.menu_item_repository.get_by_id(menu_item_id)
        if menu_item is None:
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Menu item {menu_item_id} not found")

        menu_item.set_active(active)
        self.menu_item_repository.update(menu_item)
        state = "activated" if active else "deactivated"
        return ServiceResult.ok(menu_item, f"Menu item {state}")

    @persistence_guarded
    async def delete_menu_item(self, menu_item_id: int) -> ServiceResult[None]:
        if not self.menu_item_repository.delete(menu_item_id):
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Menu item {menu_item_id} not found")
        return ServiceResult.ok(message="Menu item deleted")

    @persistence_guarded
    async def get_menu_item(self, menu_item_id: int) -> ServiceResult[MenuItem]:
        menu_item = self.menu_item_repository.get_by_id(menu_item_id)
        if menu_item is None:
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Menu item {menu_item_id} not found")
        return ServiceResult.ok(menu_item)

    @persistence_guarded
    async def list_menu_items(self) -> ServiceResult[list[MenuItem]]:
        return ServiceResult.ok(self.menu_item_repository.list_all())

    @persistence_guarded
    async def list_active_menu_items(self) -> ServiceResult[list[MenuItem]]:
        return ServiceResult.ok(self.menu_item_repository.list_active())

    @persistence_guarded
    async def search_menu_items(self, name: str) -> ServiceResult[list[MenuItem]]:
        if _blank(name):
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Search term is required")
        return ServiceResult.ok(self.menu_item_repository.search_by_name(name.strip()))

    @persistence_guarded
    async def menu_item_statistics(self, menu_item_id: int) -> ServiceResult[MenuItemStatistics]:
        """Cost, margin and availability of one menu item at current inventory."""
        menu_item = self.menu_item_repository.get_by_id(menu_item_id)
        if menu_item is None:
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Menu item {menu_item_id} not found")

        inventory = self.ingredient_repository.list_all()
        cost = menu_item.cost_of_ingredients(inventory)
        return ServiceResult.ok(
            MenuItemStatistics(
                menu_item_id=menu_item_id,
                name=menu_item.name,
                price=menu_item.price,
                ingredient_cost=cost.quantize(Decimal("0.01")),
                profit_margin=menu_item.profit_margin(inventory).quantize(Decimal("0.01")),
                max_producible_units=menu_item.max_producible_units(inventory),
                stock=menu_item.stock_check(inventory),
            )
        )
