"""Sales and inventory reports.

Sales figures only count orders that were not cancelled. Money values are
rounded half-up to cents.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from food_stand_service.models.order_models import Order, OrderStatusEnum
from food_stand_service.models.report_models import (
    CriticalStockLine,
    CriticalStockReport,
    Dashboard,
    DailySales,
    SalesReport,
    StockStatusEnum,
    TopSellingItem,
    TopSellingReport,
)
from food_stand_service.repositories.inventory_repositories import (
    IngredientRepository,
    MenuItemRepository,
    OrderRepository,
)
from food_stand_service.services.operating_day import OperatingDayClock, OperatingDayWindow
from food_stand_service.services.results import ErrorReason, ServiceResult, persistence_guarded

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def _sales(orders: Iterable[Order]) -> list[Order]:
    return [order for order in orders if order.status != OrderStatusEnum.CANCELLED]


def _total(orders: Iterable[Order]) -> Decimal:
    return sum((order.total for order in orders), Decimal(0))


class ReportService:
    """Service producing read-only reports over orders, inventory and menu."""

    def __init__(
        self,
        ingredient_repository: IngredientRepository,
        menu_item_repository: MenuItemRepository,
        order_repository: OrderRepository,
        clock: OperatingDayClock,
        critical_stock_threshold: Decimal = Decimal(10),
    ) -> None:
        """Initialize the ReportService.

        Args:
            ingredient_repository: Repository for inventory ingredients
            menu_item_repository: Repository for menu items
            order_repository: Repository for orders
            clock: Operating-day clock for today/month windows
            critical_stock_threshold: Default threshold for critical_stock
        """
        self.ingredient_repository = ingredient_repository
        self.menu_item_repository = menu_item_repository
        self.order_repository = order_repository
        self.clock = clock
        self.critical_stock_threshold = Decimal(critical_stock_threshold)

    @persistence_guarded
    async def sales_report(self, start: datetime | None, end: datetime | None) -> ServiceResult[SalesReport]:
        """Sales between ``start`` (inclusive) and ``end`` (exclusive).

        Args:
            start: Period start, timezone-aware
            end: Period end, timezone-aware

        Returns:
            ServiceResult with totals and one bucket per operating day
        """
        if start is None or end is None:
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Start and end dates are required")
        if start >= end:
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "start must be before end")

        orders = _sales(self.order_repository.list_between(start, end))
        total_sales = _total(orders)

        buckets: dict[str, list[Order]] = {}
        for order in sorted(orders, key=lambda o: o.created_at):
            buckets.setdefault(order.operating_day_date, []).append(order)

        return ServiceResult.ok(
            SalesReport(
                start=start,
                end=end,
                total_sales=to_money(total_sales),
                total_orders=len(orders),
                average_order=to_money(total_sales / len(orders)) if orders else to_money(Decimal(0)),
                daily=[
                    DailySales(operating_day_date=day, sales=to_money(_total(day_orders)), orders=len(day_orders))
                    for day, day_orders in buckets.items()
                ],
            )
        )

    @persistence_guarded
    async def top_selling_items(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 10,
    ) -> ServiceResult[TopSellingReport]:
        """Items ordered most, by quantity sold.

        Lines are grouped by item id and name, since direct orders reference
        ingredient ids and menu orders reference menu item ids.
        """
        if limit < 1:
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "limit must be at least 1")
        if (start is None) != (end is None):
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Give both start and end, or neither")

        if start is not None and end is not None:
            orders = self.order_repository.list_between(start, end)
        else:
            orders = self.order_repository.list_all()

        sold: dict[tuple[int, str], TopSellingItem] = {}
        for order in _sales(orders):
            for line in order.line_items:
                key = (line.item_id, line.name)
                entry = sold.setdefault(
                    key,
                    TopSellingItem(
                        item_id=line.item_id, name=line.name, quantity_sold=Decimal(0), total_sales=Decimal(0)
                    ),
                )
                entry.quantity_sold += line.quantity
                entry.total_sales += line.subtotal

        ranked = sorted(sold.values(), key=lambda item: item.quantity_sold, reverse=True)[:limit]
        for item in ranked:
            item.total_sales = to_money(item.total_sales)
        return ServiceResult.ok(TopSellingReport(items=ranked, total_items=len(ranked)))

    @persistence_guarded
    async def critical_stock(self, threshold: Decimal | None = None) -> ServiceResult[CriticalStockReport]:
        """Ingredients at or below ``threshold``, split into out-of-stock and low."""
        limit = self.critical_stock_threshold if threshold is None else Decimal(threshold)
        if limit < 0:
            return ServiceResult.fail(ErrorReason.VALIDATION_ERROR, "Threshold cannot be negative")

        ingredients = sorted(self.ingredient_repository.list_low_stock(limit), key=lambda i: i.quantity)
        lines = [
            CriticalStockLine(
                ingredient_id=ingredient.id,
                name=ingredient.name,
                quantity=ingredient.quantity,
                unit=ingredient.unit,
                unit_price=ingredient.unit_price,
                status=StockStatusEnum.OUT_OF_STOCK if ingredient.quantity == 0 else StockStatusEnum.LOW_STOCK,
            )
            for ingredient in ingredients
        ]
        out_of_stock = sum(1 for line in lines if line.status == StockStatusEnum.OUT_OF_STOCK)

        return ServiceResult.ok(
            CriticalStockReport(
                threshold=limit,
                items=lines,
                total_items=len(lines),
                out_of_stock=out_of_stock,
                low_stock=len(lines) - out_of_stock,
                total_value=to_money(sum((i.total_value() for i in ingredients), Decimal(0))),
            )
        )

    @persistence_guarded
    async def dashboard(self, now: datetime | None = None) -> ServiceResult[Dashboard]:
        """Inventory, menu and sales figures for the current operating day and month."""
        now = self.clock.now() if now is None else now
        today = self.clock.current_window(now)
        month = self.clock.month_window(now)

        ingredients = self.ingredient_repository.list_all()
        menu_items = self.menu_item_repository.list_all()
        orders = self.order_repository.list_all()
        sales = _sales(orders)

        return ServiceResult.ok(
            Dashboard(
                operating_day_date=today.operating_day_date.isoformat(),
                inventory_items=len(ingredients),
                inventory_value=to_money(sum((i.total_value() for i in ingredients), Decimal(0))),
                menu_items=len(menu_items),
                active_menu_items=sum(1 for item in menu_items if item.active),
                total_orders=len(orders),
                sales_today=to_money(_total(self._within(sales, today))),
                sales_this_month=to_money(_total(self._within(sales, month))),
            )
        )

    @staticmethod
    def _within(orders: list[Order], window: OperatingDayWindow) -> list[Order]:
        return [order for order in orders if window.contains(order.created_at)]
