"""Custom metrics for the food stand service."""

from decimal import Decimal

from opentelemetry import metrics

meter = metrics.get_meter("food-stand-svc")

orders_placed_counter = meter.create_counter(
    name="orders_placed_total",
    description="Total number of orders placed by order kind",
    unit="1",
)

orders_rejected_counter = meter.create_counter(
    name="orders_rejected_total",
    description="Total number of rejected orders by order kind and reason",
    unit="1",
)

ingredient_deducted_counter = meter.create_counter(
    name="ingredient_units_deducted_total",
    description="Ingredient quantity deducted by order placement",
    unit="1",
)

order_total_histogram = meter.create_histogram(
    name="order_total_amount",
    description="Order totals by order kind",
    unit="{currency}",
)


def record_order_placed(kind: str, total: Decimal) -> None:
    """Record a successfully placed order.

    Args:
        kind: "direct" or "menu"
        total: Order total
    """
    orders_placed_counter.add(1, {"kind": kind})
    order_total_histogram.record(float(total), {"kind": kind})


def record_order_rejected(kind: str, reason: str) -> None:
    """Record an order that was not placed.

    Args:
        kind: "direct" or "menu"
        reason: ErrorReason value
    """
    orders_rejected_counter.add(1, {"kind": kind, "reason": reason})


def record_ingredient_deducted(ingredient_name: str, unit: str, amount: Decimal) -> None:
    ingredient_deducted_counter.add(float(amount), {"ingredient": ingredient_name, "unit": unit})
