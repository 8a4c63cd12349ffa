"""Order processing service.

Placing an order is a read-verify-deduct-write sequence over collections that
are replaced as a whole on every save. The sequence runs in a worker thread,
since storage calls block on file or network I/O, and is serialized per
process with an ``asyncio.Lock`` so concurrent orders never check stock
against a stale inventory.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

from food_stand_service.exceptions import PersistenceError
from food_stand_service.models.inventory_models import Ingredient
from food_stand_service.models.menu_models import StockLine, check_requirements
from food_stand_service.models.order_models import (
    DirectOrderRequest,
    MenuOrderRequest,
    Order,
    OrderLineItem,
    OrderStatistics,
    OrderStatusEnum,
)
from food_stand_service.observability.decorators import traced
from food_stand_service.observability.metrics import (
    record_ingredient_deducted,
    record_order_placed,
    record_order_rejected,
)
from food_stand_service.repositories.inventory_repositories import (
    IngredientRepository,
    MenuItemRepository,
    OrderRepository,
)
from food_stand_service.services.operating_day import OperatingDayClock, OperatingDayWindow
from food_stand_service.services.results import ErrorReason, ServiceResult, persistence_guarded

logger = logging.getLogger(__name__)

WALK_IN_CUSTOMER = "Walk-in customer"

DIRECT_ORDER = "direct"
MENU_ORDER = "menu"


def shortage_message(shortages: list[StockLine]) -> str:
    details = ", ".join(
        f"{line.name} (required {line.required_qty}, available {line.available_qty})"
        for line in shortages
    )
    return f"Insufficient stock for: {details}"


class OrderService:
    """Service for placing orders and managing their status.

    Order placement and status changes run under one lock, so ids,
    per-day numbers and stock levels are consistent within a process.
    """

    def __init__(
        self,
        ingredient_repository: IngredientRepository,
        menu_item_repository: MenuItemRepository,
        order_repository: OrderRepository,
        clock: OperatingDayClock,
    ) -> None:
        """Initialize the OrderService.

        Args:
            ingredient_repository: Repository for inventory ingredients
            menu_item_repository: Repository for menu items
            order_repository: Repository for orders
            clock: Operating-day clock used to stamp and number orders
        """
        self.ingredient_repository = ingredient_repository
        self.menu_item_repository = menu_item_repository
        self.order_repository = order_repository
        self.clock = clock
        self._lock = asyncio.Lock()

    @traced("place_direct_order")
    async def place_direct_order(self, request: DirectOrderRequest) -> ServiceResult[Order]:
        """Place an order whose lines reference inventory ingredients directly.

        Every line is verified before any stock is touched. Quantities for the
        same ingredient across lines are summed before the stock check.

        Args:
            request: Customer name, lines with name/quantity/price, optional total

        Returns:
            ServiceResult with the stored Order, or the failure reason
        """
        problem = self._validate_direct_order(request)
        if problem:
            result: ServiceResult[Order] = ServiceResult.fail(ErrorReason.VALIDATION_ERROR, problem)
        else:
            async with self._lock:
                result = await asyncio.to_thread(
                    self._guard_storage, DIRECT_ORDER, self._place_direct_order, request
                )
        return self._record(DIRECT_ORDER, result)

    @traced("place_menu_order")
    async def place_menu_order(self, request: MenuOrderRequest) -> ServiceResult[Order]:
        """Place an order made of menu items.

        Every line is expanded through its recipe and the requirements are
        aggregated per ingredient. Any shortage rejects the whole order and
        leaves inventory untouched.

        Args:
            request: Optional customer name and (menu item id, quantity) lines

        Returns:
            ServiceResult with the stored Order, or the failure reason with
            the shortage list for insufficient stock
        """
        problem = self._validate_menu_order(request)
        if problem:
            result: ServiceResult[Order] = ServiceResult.fail(ErrorReason.VALIDATION_ERROR, problem)
        else:
            async with self._lock:
                result = await asyncio.to_thread(
                    self._guard_storage, MENU_ORDER, self._place_menu_order, request
                )
        return self._record(MENU_ORDER, result)

    @persistence_guarded
    async def change_order_status(self, order_id: int, status: str) -> ServiceResult[Order]:
        """Move an order to another status.

        Any status may move to any other; only the target value is checked.

        Args:
            order_id: Order identifier
            status: Target status name ("pending", "paid" or "cancelled")

        Returns:
            ServiceResult with the updated Order
        """
        try:
            new_status = OrderStatusEnum(str(status).strip().lower())
        except ValueError:
            valid = ", ".join(s.value for s in OrderStatusEnum)
            return ServiceResult.fail(
                ErrorReason.INVALID_STATE_TRANSITION,
                f"Invalid status '{status}'. Valid values: {valid}",
            )

        async with self._lock:
            order = await asyncio.to_thread(self.order_repository.update_status, order_id, new_status)

        if order is None:
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Order {order_id} not found")

        logger.info(f"Order {order_id} moved to {new_status.value}")
        return ServiceResult.ok(order)

    @persistence_guarded
    async def get_order(self, order_id: int) -> ServiceResult[Order]:
        order = self.order_repository.get_by_id(order_id)
        if order is None:
            return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Order {order_id} not found")
        return ServiceResult.ok(order)

    @persistence_guarded
    async def list_orders(self) -> ServiceResult[list[Order]]:
        return ServiceResult.ok(self.order_repository.list_all())

    @persistence_guarded
    async def list_orders_today(self, now: datetime | None = None) -> ServiceResult[list[Order]]:
        return ServiceResult.ok(self._orders_in(self.clock.current_window(now)))

    @persistence_guarded
    async def list_orders_this_week(self, now: datetime | None = None) -> ServiceResult[list[Order]]:
        return ServiceResult.ok(self._orders_in(self.clock.week_window(now)))

    @persistence_guarded
    async def list_orders_this_month(self, now: datetime | None = None) -> ServiceResult[list[Order]]:
        return ServiceResult.ok(self._orders_in(self.clock.month_window(now)))

    @persistence_guarded
    async def list_pending_orders(self) -> ServiceResult[list[Order]]:
        return ServiceResult.ok(self.order_repository.list_by_status(OrderStatusEnum.PENDING))

    @persistence_guarded
    async def list_orders_by_customer(self, customer_name: str) -> ServiceResult[list[Order]]:
        if not customer_name or not customer_name.strip():
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Customer name is required")
        return ServiceResult.ok(self.order_repository.list_by_customer(customer_name.strip()))

    @persistence_guarded
    async def order_statistics(self, start: datetime, end: datetime) -> ServiceResult[OrderStatistics]:
        """Count, sales total and average order for orders created in [start, end)."""
        if start >= end:
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "start must be before end")

        orders = self.order_repository.list_between(start, end)
        total_sales = sum((order.total for order in orders), Decimal(0))
        average = total_sales / len(orders) if orders else Decimal(0)
        return ServiceResult.ok(
            OrderStatistics(
                start=start,
                end=end,
                total_orders=len(orders),
                total_sales=total_sales,
                average_order=average.quantize(Decimal("0.01")),
            )
        )

    def _orders_in(self, window: OperatingDayWindow) -> list[Order]:
        return self.order_repository.list_between(window.window_start_utc, window.window_end_utc)

    def _validate_direct_order(self, request: DirectOrderRequest) -> str | None:
        if not request.customer_name or not request.customer_name.strip():
            return "Customer name is required"
        if not request.items:
            return "Order must contain at least one item"

        total = Decimal(0)
        for position, item in enumerate(request.items, start=1):
            if item.item_id is None:
                return f"Item {position} must reference an ingredient"
            if not item.name or not item.name.strip():
                return f"Item {position} must have a name"
            if item.quantity is None or item.quantity <= 0:
                return f"Item {position} must have a quantity greater than 0"
            if item.unit_price is None or item.unit_price < 0:
                return f"Item {position} must have a non-negative price"
            total += item.quantity * item.unit_price

        if request.total is not None and request.total != total:
            return f"Order total {request.total} does not match the sum of its items ({total})"
        return None

    def _validate_menu_order(self, request: MenuOrderRequest) -> str | None:
        if not request.items:
            return "Order must contain at least one item"
        for position, item in enumerate(request.items, start=1):
            if item.menu_item_id is None:
                return f"Item {position} must reference a menu item"
            if item.quantity is None or item.quantity <= 0:
                return f"Item {position} must have a quantity greater than 0"
        return None

    def _guard_storage(
        self, kind: str, place: Callable[[Any], ServiceResult[Order]], request: Any
    ) -> ServiceResult[Order]:
        try:
            return place(request)
        except PersistenceError as e:
            logger.error(f"Failed to place {kind} order: {e}")
            return ServiceResult.fail(ErrorReason.PERSISTENCE_ERROR, str(e))

    def _place_direct_order(self, request: DirectOrderRequest) -> ServiceResult[Order]:
        inventory = self.ingredient_repository.list_all()
        known_ids = {ingredient.id for ingredient in inventory}

        requirements: dict[int, Decimal] = {}
        line_items = []
        for item in request.items:
            if item.item_id not in known_ids:
                return ServiceResult.fail(ErrorReason.NOT_FOUND, f"Ingredient {item.item_id} not found")
            requirements[item.item_id] = requirements.get(item.item_id, Decimal(0)) + item.quantity
            line_items.append(OrderLineItem.create(item.item_id, item.name.strip(), item.quantity, item.unit_price))

        return self._fulfil(request.customer_name.strip(), line_items, requirements, inventory)

    def _place_menu_order(self, request: MenuOrderRequest) -> ServiceResult[Order]:
        menu = {item.id: item for item in self.menu_item_repository.list_all()}
        inventory = self.ingredient_repository.list_all()

        requirements: dict[int, Decimal] = {}
        line_items = []
        for line in request.items:
            menu_item = menu.get(line.menu_item_id)
            if menu_item is None or not menu_item.active:
                return ServiceResult.fail(
                    ErrorReason.NOT_FOUND, f"Menu item {line.menu_item_id} not found or inactive"
                )
            for ingredient_id, amount in menu_item.requirements(line.quantity).items():
                requirements[ingredient_id] = requirements.get(ingredient_id, Decimal(0)) + amount
            line_items.append(
                OrderLineItem.create(menu_item.id, menu_item.name, Decimal(line.quantity), menu_item.price)
            )

        customer_name = (request.customer_name or "").strip() or WALK_IN_CUSTOMER
        return self._fulfil(customer_name, line_items, requirements, inventory)

    def _fulfil(
        self,
        customer_name: str,
        line_items: list[OrderLineItem],
        requirements: dict[int, Decimal],
        inventory: list[Ingredient],
    ) -> ServiceResult[Order]:
        check = check_requirements(requirements, inventory)
        if not check.sufficient:
            return ServiceResult.fail(
                ErrorReason.INSUFFICIENT_STOCK, shortage_message(check.shortages), check.shortages
            )

        now = self.clock.now()
        window = self.clock.current_window(now)
        day_number = len(self._orders_in(window)) + 1

        by_id = {ingredient.id: ingredient for ingredient in inventory}
        originals = [by_id[ingredient_id].model_copy(deep=True) for ingredient_id in requirements]
        deducted = []
        for ingredient_id, amount in requirements.items():
            ingredient = by_id[ingredient_id]
            ingredient.decrease(amount)
            deducted.append(ingredient)
        self.ingredient_repository.update_many(deducted)

        order = Order(
            customer_name=customer_name,
            line_items=line_items,
            total=sum((line.subtotal for line in line_items), Decimal(0)),
            created_at=now,
            day_number=day_number,
            operating_day_date=window.operating_day_date.isoformat(),
        )
        try:
            created = self.order_repository.create(order)
        except PersistenceError:
            self._restore_inventory(originals)
            raise

        for ingredient_id, amount in requirements.items():
            ingredient = by_id[ingredient_id]
            record_ingredient_deducted(ingredient.name, ingredient.unit, amount)

        logger.info(
            f"Order {created.id} placed for {customer_name}: day number {day_number}, "
            f"total {created.total}"
        )
        return ServiceResult.ok(created)

    def _restore_inventory(self, originals: list[Ingredient]) -> None:
        try:
            self.ingredient_repository.update_many(originals)
            logger.warning(f"Order write failed; restored stock for {len(originals)} ingredients")
        except PersistenceError as e:
            logger.error(f"Order write failed and inventory could not be restored: {e}")

    def _record(self, kind: str, result: ServiceResult[Order]) -> ServiceResult[Order]:
        if result.success and result.data is not None:
            record_order_placed(kind, result.data.total)
        elif result.error is not None:
            record_order_rejected(kind, result.error.value)
            logger.warning(f"Rejected {kind} order ({result.error.value}): {result.message}")
        return result
