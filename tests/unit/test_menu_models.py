"""Unit tests for menu composition."""

import logging
from decimal import Decimal

import pytest

from food_stand_service.exceptions import InvalidArgumentError
from food_stand_service.models.inventory_models import Ingredient
from food_stand_service.models.menu_models import (
    MISSING_INGREDIENT_NAME,
    MenuItem,
    RecipeLine,
    check_requirements,
)


@pytest.fixture
def burger() -> MenuItem:
    return MenuItem(
        id=1,
        name="Burger",
        price=Decimal("65.00"),
        ingredients=[
            RecipeLine(ingredient_id=1, quantity_per_unit=Decimal("1")),
            RecipeLine(ingredient_id=2, quantity_per_unit=Decimal("0.2")),
        ],
    )


@pytest.fixture
def inventory() -> list[Ingredient]:
    return [
        Ingredient(id=1, name="Bun", quantity=Decimal("0"), unit="pieces", unit_price=Decimal("2.50")),
        Ingredient(id=2, name="Meat", quantity=Decimal("5"), unit="kg", unit_price=Decimal("120")),
    ]


@pytest.mark.unit
class TestMenuItemCosting:
    """Test suite for cost and margin calculations."""

    def test_cost_of_ingredients(self, burger: MenuItem, inventory: list[Ingredient]) -> None:
        # 1 * 2.50 + 0.2 * 120
        assert burger.cost_of_ingredients(inventory) == Decimal("26.50")

    def test_profit_margin(self, burger: MenuItem, inventory: list[Ingredient]) -> None:
        assert burger.profit_margin(inventory) == Decimal("38.50")

    def test_missing_ingredient_costs_zero_and_warns(
        self, burger: MenuItem, inventory: list[Ingredient], caplog: pytest.LogCaptureFixture
    ) -> None:
        burger.add_ingredient_line(99, Decimal("1"))

        with caplog.at_level(logging.WARNING):
            cost = burger.cost_of_ingredients(inventory)

        assert cost == Decimal("26.50")
        assert "missing ingredient 99" in caplog.text


@pytest.mark.unit
class TestStockCheck:
    """Test suite for stock sufficiency checks."""

    def test_burger_without_buns_is_short(self, burger: MenuItem, inventory: list[Ingredient]) -> None:
        result = burger.stock_check(inventory, 1)

        assert result.sufficient is False
        assert len(result.shortages) == 1
        shortage = result.shortages[0]
        assert shortage.name == "Bun"
        assert shortage.required_qty == Decimal("1")
        assert shortage.available_qty == Decimal("0")
        assert [line.name for line in result.sufficient_lines] == ["Meat"]

    def test_multiplier_scales_requirements(self, burger: MenuItem, inventory: list[Ingredient]) -> None:
        inventory[0].quantity = Decimal("100")

        assert burger.stock_check(inventory, 25).sufficient
        result = burger.stock_check(inventory, 26)
        assert not result.sufficient
        assert result.shortages[0].required_qty == Decimal("5.2")

    def test_missing_ingredient_is_a_shortage(self, inventory: list[Ingredient]) -> None:
        result = check_requirements({42: Decimal("1")}, inventory)

        assert not result.sufficient
        assert result.shortages[0].name == MISSING_INGREDIENT_NAME
        assert result.shortages[0].available_qty == 0

    def test_requirements_sum_repeated_lines(self, burger: MenuItem) -> None:
        burger.ingredients.append(RecipeLine(ingredient_id=2, quantity_per_unit=Decimal("0.1")))
        assert burger.requirements(2)[2] == Decimal("0.6")


@pytest.mark.unit
class TestMaxProducibleUnits:
    """Test suite for producible unit calculations."""

    def test_limited_by_scarcest_ingredient(self, burger: MenuItem, inventory: list[Ingredient]) -> None:
        inventory[0].quantity = Decimal("40")
        # meat: floor(5 / 0.2) = 25, buns: 40
        assert burger.max_producible_units(inventory) == 25

    def test_zero_when_ingredient_missing(self, burger: MenuItem, inventory: list[Ingredient]) -> None:
        assert burger.max_producible_units(inventory[1:]) == 0

    def test_zero_for_empty_recipe(self, inventory: list[Ingredient]) -> None:
        item = MenuItem(id=5, name="Water", price=Decimal("10"))
        assert item.max_producible_units(inventory) == 0


@pytest.mark.unit
class TestRecipeMutators:
    """Test suite for recipe line mutators."""

    def test_add_line_merges_with_existing(self, burger: MenuItem) -> None:
        burger.add_ingredient_line(2, Decimal("0.05"))
        assert burger.requirements()[2] == Decimal("0.25")
        assert len(burger.ingredients) == 2

    def test_add_line_rejects_non_positive(self, burger: MenuItem) -> None:
        with pytest.raises(InvalidArgumentError):
            burger.add_ingredient_line(3, Decimal("0"))

    def test_set_quantity_to_zero_removes_line(self, burger: MenuItem) -> None:
        burger.set_ingredient_line_quantity(1, Decimal("0"))
        assert [line.ingredient_id for line in burger.ingredients] == [2]

    def test_set_quantity_replaces_value(self, burger: MenuItem) -> None:
        burger.set_ingredient_line_quantity(2, Decimal("0.25"))
        assert burger.requirements()[2] == Decimal("0.25")

    def test_remove_line(self, burger: MenuItem) -> None:
        burger.remove_ingredient_line(1)
        burger.remove_ingredient_line(2)
        assert not burger.is_valid()

    def test_set_active(self, burger: MenuItem) -> None:
        burger.set_active(False)
        assert burger.active is False

    def test_record_round_trip(self, burger: MenuItem) -> None:
        record = burger.to_record()
        assert record["ingredients"][1] == {"ingredient_id": 2, "quantity_per_unit": "0.2"}
        assert MenuItem.from_record(record) == burger
