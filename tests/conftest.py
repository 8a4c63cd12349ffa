"""Shared pytest fixtures and configuration for all tests."""

import os

# Keep main.py from building the real application at import time
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import UTC, datetime  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from food_stand_service.models.inventory_models import Ingredient  # noqa: E402
from food_stand_service.models.menu_models import MenuItem, RecipeLine  # noqa: E402
from food_stand_service.repositories.inventory_repositories import (  # noqa: E402
    IngredientRepository,
    MenuItemRepository,
    OrderRepository,
)
from food_stand_service.repositories.storage import InMemoryStorage  # noqa: E402
from food_stand_service.services.operating_day import OperatingDayClock  # noqa: E402


class FixedClock:
    """Mutable "now" for an OperatingDayClock."""

    def __init__(self, now: datetime) -> None:
        self.current = now

    def __call__(self) -> datetime:
        return self.current


@pytest.fixture
def fixed_now() -> datetime:
    """Fixture providing 2024-03-15 18:00 UTC (12:00 in a UTC-6 timezone)."""
    return datetime(2024, 3, 15, 18, 0, tzinfo=UTC)


@pytest.fixture
def now_provider(fixed_now: datetime) -> FixedClock:
    return FixedClock(fixed_now)


@pytest.fixture
def clock(now_provider: FixedClock) -> OperatingDayClock:
    """Clock for a UTC-6 business (no DST) whose day starts at midnight."""
    return OperatingDayClock(timezone="America/Mexico_City", start_hour=0, now_provider=now_provider)


@pytest.fixture
def sample_ingredients() -> list[Ingredient]:
    """Fixture providing a small inventory."""
    return [
        Ingredient(id=1, name="Burger bun", quantity=Decimal("50"), unit="pieces", unit_price=Decimal("2.50")),
        Ingredient(id=2, name="Ground beef", quantity=Decimal("20"), unit="kg", unit_price=Decimal("120.00")),
        Ingredient(id=3, name="Cheese", quantity=Decimal("30"), unit="slices", unit_price=Decimal("1.50")),
        Ingredient(id=4, name="Cooking oil", quantity=Decimal("500"), unit="ml", unit_price=Decimal("0.05")),
    ]


@pytest.fixture
def sample_menu_items() -> list[MenuItem]:
    """Fixture providing a burger and a cheese sandwich."""
    return [
        MenuItem(
            id=1,
            name="Burger",
            price=Decimal("65.00"),
            description="House burger",
            ingredients=[
                RecipeLine(ingredient_id=1, quantity_per_unit=Decimal("1")),
                RecipeLine(ingredient_id=2, quantity_per_unit=Decimal("0.2")),
                RecipeLine(ingredient_id=3, quantity_per_unit=Decimal("2")),
            ],
        ),
        MenuItem(
            id=2,
            name="Cheese sandwich",
            price=Decimal("30.00"),
            ingredients=[
                RecipeLine(ingredient_id=1, quantity_per_unit=Decimal("1")),
                RecipeLine(ingredient_id=3, quantity_per_unit=Decimal("3")),
            ],
        ),
    ]


@pytest.fixture
def storage(sample_ingredients: list[Ingredient], sample_menu_items: list[MenuItem]) -> InMemoryStorage:
    """In-memory storage preloaded with the sample inventory and menu."""
    backend = InMemoryStorage()
    backend.connect()
    backend.save_ingredients([ingredient.to_record() for ingredient in sample_ingredients])
    backend.save_menu_items([item.to_record() for item in sample_menu_items])
    return backend


@pytest.fixture
def ingredient_repository(storage: InMemoryStorage) -> IngredientRepository:
    return IngredientRepository(storage)


@pytest.fixture
def menu_item_repository(storage: InMemoryStorage) -> MenuItemRepository:
    return MenuItemRepository(storage)


@pytest.fixture
def order_repository(storage: InMemoryStorage) -> OrderRepository:
    return OrderRepository(storage)
