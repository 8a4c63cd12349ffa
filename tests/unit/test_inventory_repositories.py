"""Unit tests for the entity repositories."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from food_stand_service.exceptions import PersistenceError
from food_stand_service.models.inventory_models import Ingredient
from food_stand_service.models.menu_models import MenuItem, RecipeLine
from food_stand_service.models.order_models import Order, OrderLineItem, OrderStatusEnum
from food_stand_service.repositories.inventory_repositories import (
    IngredientRepository,
    MenuItemRepository,
    OrderRepository,
    next_id,
)
from food_stand_service.repositories.storage import InMemoryStorage, StorageBackend


def make_order(customer_name: str, created_at: datetime, status: OrderStatusEnum = OrderStatusEnum.PENDING) -> Order:
    return Order(
        customer_name=customer_name,
        line_items=[OrderLineItem.create(1, "Burger", Decimal("1"), Decimal("65"))],
        total=Decimal("65"),
        created_at=created_at,
        status=status,
        day_number=1,
        operating_day_date=created_at.date().isoformat(),
    )


@pytest.mark.unit
class TestNextId:
    def test_empty_collection_starts_at_one(self) -> None:
        assert next_id([], "orders") == 1

    def test_uses_max_not_count(self) -> None:
        assert next_id([{"id": 1}, {"id": 7}, {"id": 3}], "orders") == 8

    def test_record_without_id_is_a_persistence_error(self) -> None:
        with pytest.raises(PersistenceError, match="Malformed orders record"):
            next_id([{"id": 1}, {"total": "10"}], "orders")


@pytest.mark.unit
class TestMalformedRecords:
    """Test suite for stored records that cannot be parsed."""

    @pytest.fixture
    def broken_storage(self, storage: InMemoryStorage) -> InMemoryStorage:
        records = storage.get_ingredients()
        del records[0]["unit"]
        records[1]["quantity"] = "plenty"
        storage.save_ingredients(records)
        return storage

    def test_missing_field(self, broken_storage: InMemoryStorage) -> None:
        repository = IngredientRepository(broken_storage)

        with pytest.raises(PersistenceError, match="Malformed ingredients record: KeyError"):
            repository.get_by_id(1)

    def test_invalid_decimal(self, broken_storage: InMemoryStorage) -> None:
        repository = IngredientRepository(broken_storage)

        with pytest.raises(PersistenceError, match="Malformed ingredients record"):
            repository.get_by_id(2)

    def test_list_all_fails_as_a_whole(self, broken_storage: InMemoryStorage) -> None:
        with pytest.raises(PersistenceError):
            IngredientRepository(broken_storage).list_all()

    def test_invalid_order_status(self, storage: InMemoryStorage) -> None:
        repository = OrderRepository(storage)
        repository.create(make_order("Ana", datetime(2024, 3, 15, 18, 0, tzinfo=UTC)))
        records = storage.get_orders()
        records[0]["status"] = "lost"
        storage.save_orders(records)

        with pytest.raises(PersistenceError, match="Malformed orders record"):
            repository.list_all()


@pytest.mark.unit
class TestIngredientRepository:
    """Test suite for IngredientRepository."""

    def test_list_all_parses_records(self, ingredient_repository: IngredientRepository) -> None:
        ingredients = ingredient_repository.list_all()

        assert [i.name for i in ingredients] == ["Burger bun", "Ground beef", "Cheese", "Cooking oil"]
        assert ingredients[1].quantity == Decimal("20")

    def test_get_by_id(self, ingredient_repository: IngredientRepository) -> None:
        assert ingredient_repository.get_by_id(2).name == "Ground beef"
        assert ingredient_repository.get_by_id(99) is None

    def test_create_assigns_next_id(self, ingredient_repository: IngredientRepository) -> None:
        created = ingredient_repository.create(
            Ingredient(name="Onion", quantity=Decimal("2"), unit="kg", unit_price=Decimal("8"))
        )

        assert created.id == 5
        assert ingredient_repository.get_by_id(5).name == "Onion"

    def test_update_replaces_record(self, ingredient_repository: IngredientRepository) -> None:
        beef = ingredient_repository.get_by_id(2)
        beef.decrease(Decimal("5"))

        assert ingredient_repository.update(beef) is not None
        assert ingredient_repository.get_by_id(2).quantity == Decimal("15.00")

    def test_update_unknown_returns_none(self, ingredient_repository: IngredientRepository) -> None:
        ghost = Ingredient(id=42, name="Ghost", quantity=Decimal("1"), unit="kg", unit_price=Decimal("1"))
        assert ingredient_repository.update(ghost) is None

    def test_update_many_writes_once(self, sample_ingredients: list[Ingredient]) -> None:
        storage = MagicMock(spec=StorageBackend)
        storage.get_ingredients.return_value = [i.to_record() for i in sample_ingredients]
        repository = IngredientRepository(storage)

        bun, beef = sample_ingredients[0], sample_ingredients[1]
        bun.decrease(Decimal("2"))
        beef.decrease(Decimal("0.4"))
        replaced = repository.update_many([bun, beef])

        assert len(replaced) == 2
        storage.save_ingredients.assert_called_once()
        saved = storage.save_ingredients.call_args.args[0]
        assert saved[0]["quantity"] == "48.00"
        assert saved[1]["quantity"] == "19.60"

    def test_delete(self, ingredient_repository: IngredientRepository) -> None:
        assert ingredient_repository.delete(3) is True
        assert ingredient_repository.delete(3) is False
        assert ingredient_repository.get_by_id(3) is None

    def test_search_is_case_insensitive_substring(self, ingredient_repository: IngredientRepository) -> None:
        assert [i.id for i in ingredient_repository.search_by_name("BEEF")] == [2]
        assert [i.id for i in ingredient_repository.search_by_name("e")] == [1, 2, 3]

    def test_low_stock_is_inclusive(self, ingredient_repository: IngredientRepository) -> None:
        assert [i.id for i in ingredient_repository.list_low_stock(Decimal("20"))] == [2]
        assert ingredient_repository.list_low_stock(Decimal("19.99")) == []

    def test_storage_errors_propagate(self) -> None:
        storage = MagicMock(spec=StorageBackend)
        storage.get_ingredients.side_effect = PersistenceError("disk full")

        with pytest.raises(PersistenceError):
            IngredientRepository(storage).list_all()


@pytest.mark.unit
class TestMenuItemRepository:
    """Test suite for MenuItemRepository."""

    def test_list_active(self, menu_item_repository: MenuItemRepository) -> None:
        sandwich = menu_item_repository.get_by_id(2)
        sandwich.set_active(False)
        menu_item_repository.update(sandwich)

        assert [item.name for item in menu_item_repository.list_active()] == ["Burger"]

    def test_create_and_search(self, menu_item_repository: MenuItemRepository) -> None:
        created = menu_item_repository.create(
            MenuItem(
                name="Double Burger",
                price=Decimal("90"),
                ingredients=[RecipeLine(ingredient_id=2, quantity_per_unit=Decimal("0.4"))],
            )
        )

        assert created.id == 3
        assert [item.id for item in menu_item_repository.search_by_name("burger")] == [1, 3]

    def test_delete_unknown(self, menu_item_repository: MenuItemRepository) -> None:
        assert menu_item_repository.delete(77) is False


@pytest.mark.unit
class TestOrderRepository:
    """Test suite for OrderRepository."""

    @pytest.fixture
    def repository(self) -> OrderRepository:
        storage = InMemoryStorage()
        storage.connect()
        return OrderRepository(storage)

    def test_ids_are_global_and_monotonic(self, repository: OrderRepository) -> None:
        now = datetime(2024, 3, 15, 18, 0, tzinfo=UTC)

        first = repository.create(make_order("Ana", now))
        second = repository.create(make_order("Luis", now + timedelta(days=1)))

        assert (first.id, second.id) == (1, 2)

    def test_update_status(self, repository: OrderRepository) -> None:
        order = repository.create(make_order("Ana", datetime(2024, 3, 15, 18, 0, tzinfo=UTC)))

        updated = repository.update_status(order.id, OrderStatusEnum.PAID)

        assert updated.status == OrderStatusEnum.PAID
        assert repository.get_by_id(order.id).status == OrderStatusEnum.PAID
        assert repository.update_status(99, OrderStatusEnum.PAID) is None

    def test_list_by_status_and_customer(self, repository: OrderRepository) -> None:
        now = datetime(2024, 3, 15, 18, 0, tzinfo=UTC)
        repository.create(make_order("Ana Lopez", now))
        repository.create(make_order("Luis", now, OrderStatusEnum.CANCELLED))

        assert [o.customer_name for o in repository.list_by_status(OrderStatusEnum.PENDING)] == ["Ana Lopez"]
        assert [o.customer_name for o in repository.list_by_customer("lopez")] == ["Ana Lopez"]

    def test_list_between_is_half_open(self, repository: OrderRepository) -> None:
        start = datetime(2024, 3, 15, 6, 0, tzinfo=UTC)
        end = start + timedelta(days=1)
        repository.create(make_order("at start", start))
        repository.create(make_order("inside", start + timedelta(hours=5)))
        repository.create(make_order("at end", end))

        names = [o.customer_name for o in repository.list_between(start, end)]

        assert names == ["at start", "inside"]
