"""Starter inventory and menu for a fresh data store."""

from datetime import UTC, datetime
from typing import Any

_INGREDIENTS = [
    (1, "Burger bun", "50", "pieces", "2.50"),
    (2, "Ground beef", "20", "kg", "120.00"),
    (3, "American cheese", "30", "slices", "1.50"),
    (4, "Lettuce", "5", "kg", "15.00"),
    (5, "Tomato", "3", "kg", "12.00"),
    (6, "Onion", "2", "kg", "8.00"),
    (7, "Ketchup", "10", "bottles", "25.00"),
    (8, "Mustard", "8", "bottles", "20.00"),
    (9, "Mayonnaise", "6", "bottles", "22.00"),
    (10, "French fries", "15", "kg", "35.00"),
]

_MENU_ITEMS = [
    (
        1,
        "Special Burger",
        "65.00",
        "House burger with special sauce",
        [(1, "1"), (2, "0.2"), (3, "2"), (6, "0.05"), (7, "0.03")],
    ),
    (
        2,
        "Hot Dog",
        "35.00",
        "Jumbo sausage hot dog with toppings",
        [(1, "1"), (2, "0.15"), (6, "0.03"), (8, "0.02")],
    ),
    (
        3,
        "Loaded Fries",
        "25.00",
        "Fries with cheese and mayo",
        [(10, "0.2"), (3, "0.05"), (9, "0.03")],
    ),
]


def seed_ingredients() -> list[dict[str, Any]]:
    now = datetime.now(UTC).isoformat()
    return [
        {
            "id": ingredient_id,
            "name": name,
            "quantity": quantity,
            "unit": unit,
            "unit_price": unit_price,
            "created_at": now,
            "updated_at": now,
        }
        for ingredient_id, name, quantity, unit, unit_price in _INGREDIENTS
    ]


def seed_menu_items() -> list[dict[str, Any]]:
    now = datetime.now(UTC).isoformat()
    return [
        {
            "id": item_id,
            "name": name,
            "price": price,
            "description": description,
            "ingredients": [
                {"ingredient_id": ingredient_id, "quantity_per_unit": quantity}
                for ingredient_id, quantity in recipe
            ],
            "active": True,
            "created_at": now,
            "updated_at": now,
        }
        for item_id, name, price, description, recipe in _MENU_ITEMS
    ]
