"""Repository classes for ingredients, menu items and orders.

Repositories turn storage records into models and back. Lookups for missing
records return None/False; storage failures and records that cannot be parsed
propagate as PersistenceError so the service layer can report them.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import TypeVar

from food_stand_service.exceptions import PersistenceError
from food_stand_service.models.inventory_models import Ingredient
from food_stand_service.models.menu_models import MenuItem
from food_stand_service.models.order_models import Order, OrderStatusEnum
from food_stand_service.repositories.storage import (
    INGREDIENTS,
    MENU_ITEMS,
    ORDERS,
    Record,
    StorageBackend,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", Ingredient, MenuItem, Order)


def parse_record(model: type[ModelT], record: Record, collection: str) -> ModelT:
    """Build a model from a stored record.

    Args:
        model: Model class with a ``from_record`` constructor
        record: Stored dictionary
        collection: Collection name, used in the error message

    Returns:
        The parsed model

    Raises:
        PersistenceError: If the record lacks a field or holds an invalid value
    """
    try:
        return model.from_record(record)
    except (KeyError, ValueError, TypeError, AttributeError, InvalidOperation) as e:
        logger.error(f"Malformed {collection} record: {type(e).__name__}: {e}")
        raise PersistenceError(f"Malformed {collection} record: {type(e).__name__}: {e}") from e


def record_id(record: Record, collection: str) -> int:
    try:
        return int(record["id"])
    except (KeyError, ValueError, TypeError) as e:
        logger.error(f"Malformed {collection} record without a valid id: {e}")
        raise PersistenceError(f"Malformed {collection} record: missing or invalid id") from e


def next_id(records: Iterable[Record], collection: str) -> int:
    """Return max(existing ids) + 1, or 1 for an empty collection."""
    return max((record_id(record, collection) for record in records), default=0) + 1


class IngredientRepository:
    """Repository for inventory ingredients."""

    def __init__(self, storage: StorageBackend) -> None:
        """Initialize repository.

        Args:
            storage: Storage backend holding the ingredients collection
        """
        self.storage = storage

    def list_all(self) -> list[Ingredient]:
        return [parse_record(Ingredient, record, INGREDIENTS) for record in self.storage.get_ingredients()]

    def get_by_id(self, ingredient_id: int) -> Ingredient | None:
        """Retrieve an ingredient.

        Args:
            ingredient_id: Ingredient identifier

        Returns:
            Ingredient if found, None otherwise
        """
        for record in self.storage.get_ingredients():
            if record_id(record, INGREDIENTS) == ingredient_id:
                return parse_record(Ingredient, record, INGREDIENTS)
        return None

    def create(self, ingredient: Ingredient) -> Ingredient:
        """Store a new ingredient with the next free id.

        Args:
            ingredient: Ingredient to store (its id is ignored)

        Returns:
            Ingredient: The stored ingredient with id and timestamps set
        """
        records = self.storage.get_ingredients()
        now = datetime.now(UTC)
        created = ingredient.model_copy(
            update={"id": next_id(records, INGREDIENTS), "created_at": now, "updated_at": now}
        )
        records.append(created.to_record())
        self.storage.save_ingredients(records)
        logger.info(f"Created ingredient {created.id} ({created.name})")
        return created

    def update(self, ingredient: Ingredient) -> Ingredient | None:
        """Replace a stored ingredient.

        Returns:
            Ingredient if it existed, None otherwise
        """
        updated = self.update_many([ingredient])
        return updated[0] if updated else None

    def update_many(self, ingredients: list[Ingredient]) -> list[Ingredient]:
        """Replace several stored ingredients with a single collection write.

        Ingredients that are not stored are skipped.

        Returns:
            list: The ingredients that were replaced
        """
        records = self.storage.get_ingredients()
        index_by_id = {record_id(record, INGREDIENTS): index for index, record in enumerate(records)}

        replaced = []
        for ingredient in ingredients:
            index = index_by_id.get(ingredient.id) if ingredient.id is not None else None
            if index is None:
                logger.warning(f"Ingredient {ingredient.id} not found, skipping update")
                continue
            records[index] = ingredient.to_record()
            replaced.append(ingredient)

        if replaced:
            self.storage.save_ingredients(records)
        return replaced

    def delete(self, ingredient_id: int) -> bool:
        records = self.storage.get_ingredients()
        remaining = [record for record in records if record_id(record, INGREDIENTS) != ingredient_id]
        if len(remaining) == len(records):
            return False
        self.storage.save_ingredients(remaining)
        return True

    def search_by_name(self, name: str) -> list[Ingredient]:
        """Case-insensitive substring search on ingredient names."""
        needle = name.lower()
        return [ingredient for ingredient in self.list_all() if needle in ingredient.name.lower()]

    def list_low_stock(self, threshold: Decimal) -> list[Ingredient]:
        """Ingredients whose quantity is at or below ``threshold``."""
        return [ingredient for ingredient in self.list_all() if ingredient.quantity <= threshold]


class MenuItemRepository:
    """Repository for menu items."""

    def __init__(self, storage: StorageBackend) -> None:
        """Initialize repository.

        Args:
            storage: Storage backend holding the menu items collection
        """
        self.storage = storage

    def list_all(self) -> list[MenuItem]:
        return [parse_record(MenuItem, record, MENU_ITEMS) for record in self.storage.get_menu_items()]

    def list_active(self) -> list[MenuItem]:
        return [item for item in self.list_all() if item.active]

    def get_by_id(self, menu_item_id: int) -> MenuItem | None:
        for record in self.storage.get_menu_items():
            if record_id(record, MENU_ITEMS) == menu_item_id:
                return parse_record(MenuItem, record, MENU_ITEMS)
        return None

    def create(self, menu_item: MenuItem) -> MenuItem:
        """Store a new menu item with the next free id.

        Returns:
            MenuItem: The stored item with id and timestamps set
        """
        records = self.storage.get_menu_items()
        now = datetime.now(UTC)
        created = menu_item.model_copy(
            update={"id": next_id(records, MENU_ITEMS), "created_at": now, "updated_at": now}
        )
        records.append(created.to_record())
        self.storage.save_menu_items(records)
        logger.info(f"Created menu item {created.id} ({created.name})")
        return created

    def update(self, menu_item: MenuItem) -> MenuItem | None:
        """Replace a stored menu item.

        Returns:
            MenuItem if it existed, None otherwise
        """
        records = self.storage.get_menu_items()
        for index, record in enumerate(records):
            if record_id(record, MENU_ITEMS) == menu_item.id:
                records[index] = menu_item.to_record()
                self.storage.save_menu_items(records)
                return menu_item
        return None

    def delete(self, menu_item_id: int) -> bool:
        records = self.storage.get_menu_items()
        remaining = [record for record in records if record_id(record, MENU_ITEMS) != menu_item_id]
        if len(remaining) == len(records):
            return False
        self.storage.save_menu_items(remaining)
        return True

    def search_by_name(self, name: str) -> list[MenuItem]:
        needle = name.lower()
        return [item for item in self.list_all() if needle in item.name.lower()]


class OrderRepository:
    """Repository for customer orders."""

    def __init__(self, storage: StorageBackend) -> None:
        """Initialize repository.

        Args:
            storage: Storage backend holding the orders collection
        """
        self.storage = storage

    def list_all(self) -> list[Order]:
        return [parse_record(Order, record, ORDERS) for record in self.storage.get_orders()]

    def get_by_id(self, order_id: int) -> Order | None:
        for record in self.storage.get_orders():
            if record_id(record, ORDERS) == order_id:
                return parse_record(Order, record, ORDERS)
        return None

    def create(self, order: Order) -> Order:
        """Store a new order with the next global id.

        Args:
            order: Order to store (its id is ignored)

        Returns:
            Order: The stored order with its id set
        """
        records = self.storage.get_orders()
        created = order.model_copy(update={"id": next_id(records, ORDERS)})
        records.append(created.to_record())
        self.storage.save_orders(records)
        return created

    def update_status(self, order_id: int, status: OrderStatusEnum) -> Order | None:
        """Change the status of a stored order.

        Returns:
            Order with the new status if found, None otherwise
        """
        records = self.storage.get_orders()
        for index, record in enumerate(records):
            if record_id(record, ORDERS) == order_id:
                order = parse_record(Order, record, ORDERS)
                order.status = status
                records[index] = order.to_record()
                self.storage.save_orders(records)
                return order
        return None

    def list_by_status(self, status: OrderStatusEnum) -> list[Order]:
        return [order for order in self.list_all() if order.status == status]

    def list_by_customer(self, customer_name: str) -> list[Order]:
        needle = customer_name.lower()
        return [order for order in self.list_all() if needle in order.customer_name.lower()]

    def list_between(self, start: datetime, end: datetime) -> list[Order]:
        """Orders created in the half-open interval [start, end)."""
        return [order for order in self.list_all() if start <= order.created_at < end]
