"""FastAPI application exposing the food stand services over HTTP."""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any, TypeVar

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from food_stand_service.models.inventory_models import Ingredient, IngredientCreate, IngredientUpdate
from food_stand_service.models.menu_models import (
    MenuItem,
    MenuItemCreate,
    MenuItemStatistics,
    MenuItemUpdate,
)
from food_stand_service.models.order_models import (
    DirectOrderRequest,
    MenuOrderRequest,
    Order,
    OrderStatistics,
    StatusChangeRequest,
)
from food_stand_service.models.report_models import (
    CriticalStockReport,
    Dashboard,
    SalesReport,
    TopSellingReport,
)
from food_stand_service.services.catalog_service import InventoryService, MenuService
from food_stand_service.services.operating_day import OperatingDayClock
from food_stand_service.services.order_service import OrderService
from food_stand_service.services.report_service import ReportService
from food_stand_service.services.results import ErrorReason, ServiceResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATUS_BY_REASON = {
    ErrorReason.VALIDATION_ERROR: 400,
    ErrorReason.NOT_FOUND: 404,
    ErrorReason.INSUFFICIENT_STOCK: 409,
    ErrorReason.INVALID_STATE_TRANSITION: 400,
    ErrorReason.PERSISTENCE_ERROR: 500,
}


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class MessageResponse(BaseModel):
    """Response model for operations without a body."""

    message: str


class StockAdjustmentRequest(BaseModel):
    """Request body for setting an ingredient's stock on hand."""

    quantity: Decimal | None = None


class ActiveStateRequest(BaseModel):
    """Request body for activating or deactivating a menu item."""

    active: bool


def unwrap(result: ServiceResult[T]) -> T:
    """Return the data of a successful result or raise the matching HTTP error.

    Args:
        result: Result returned by a service

    Returns:
        The result data

    Raises:
        HTTPException: With the status mapped from the failure reason
    """
    if result.success:
        return result.data  # type: ignore[return-value]

    reason = result.error or ErrorReason.PERSISTENCE_ERROR
    detail: dict[str, Any] = {"error": reason.value, "message": result.message}
    if result.shortages:
        detail["shortages"] = [line.model_dump(mode="json") for line in result.shortages]
    raise HTTPException(status_code=STATUS_BY_REASON[reason], detail=detail)


def require_aware(value: datetime | None, name: str) -> datetime | None:
    if value is not None and value.tzinfo is None:
        raise HTTPException(
            status_code=400,
            detail={
                "error": ErrorReason.VALIDATION_ERROR.value,
                "message": f"{name} must include a UTC offset",
            },
        )
    return value


def create_app(
    inventory_service: InventoryService,
    menu_service: MenuService,
    order_service: OrderService,
    report_service: ReportService,
    clock: OperatingDayClock,
    lifespan: Callable[[FastAPI], Any] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        inventory_service: Service for inventory ingredients
        menu_service: Service for menu items
        order_service: Service for placing and querying orders
        report_service: Service for sales and stock reports
        clock: Operating-day clock
        lifespan: Optional lifespan context (opens and closes storage)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Food Stand Service API",
        description="Inventory, menu, orders and reports for a food stand",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Store services in app state for access in route handlers
    app.state.inventory_service = inventory_service
    app.state.menu_service = menu_service
    app.state.order_service = order_service
    app.state.report_service = report_service
    app.state.clock = clock

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        return HealthResponse(status="healthy")

    # Ingredients

    @app.get("/ingredients", response_model=list[Ingredient], tags=["Ingredients"])
    async def list_ingredients(name: str | None = None) -> list[Ingredient]:
        """List ingredients, optionally filtered by a name fragment."""
        if name is not None:
            return unwrap(await app.state.inventory_service.search_ingredients(name))
        return unwrap(await app.state.inventory_service.list_ingredients())

    @app.get("/ingredients/low-stock", response_model=list[Ingredient], tags=["Ingredients"])
    async def list_low_stock(threshold: Decimal | None = None) -> list[Ingredient]:
        return unwrap(await app.state.inventory_service.list_low_stock(threshold))

    @app.get("/ingredients/{ingredient_id}", response_model=Ingredient, tags=["Ingredients"])
    async def get_ingredient(ingredient_id: int) -> Ingredient:
        return unwrap(await app.state.inventory_service.get_ingredient(ingredient_id))

    @app.post("/ingredients", response_model=Ingredient, status_code=201, tags=["Ingredients"])
    async def create_ingredient(request: IngredientCreate) -> Ingredient:
        return unwrap(await app.state.inventory_service.create_ingredient(request))

    @app.put("/ingredients/{ingredient_id}", response_model=Ingredient, tags=["Ingredients"])
    async def update_ingredient(ingredient_id: int, request: IngredientUpdate) -> Ingredient:
        return unwrap(await app.state.inventory_service.update_ingredient(ingredient_id, request))

    @app.patch("/ingredients/{ingredient_id}/stock", response_model=Ingredient, tags=["Ingredients"])
    async def adjust_stock(ingredient_id: int, request: StockAdjustmentRequest) -> Ingredient:
        return unwrap(await app.state.inventory_service.adjust_stock(ingredient_id, request.quantity))

    @app.delete("/ingredients/{ingredient_id}", response_model=MessageResponse, tags=["Ingredients"])
    async def delete_ingredient(ingredient_id: int) -> MessageResponse:
        result = await app.state.inventory_service.delete_ingredient(ingredient_id)
        unwrap(result)
        return MessageResponse(message=result.message or "Ingredient deleted")

    # Menu items

    @app.get("/menu-items", response_model=list[MenuItem], tags=["Menu"])
    async def list_menu_items(name: str | None = None) -> list[MenuItem]:
        """List menu items, optionally filtered by a name fragment."""
        if name is not None:
            return unwrap(await app.state.menu_service.search_menu_items(name))
        return unwrap(await app.state.menu_service.list_menu_items())

    @app.get("/menu-items/active", response_model=list[MenuItem], tags=["Menu"])
    async def list_active_menu_items() -> list[MenuItem]:
        return unwrap(await app.state.menu_service.list_active_menu_items())

    @app.get("/menu-items/{menu_item_id}", response_model=MenuItem, tags=["Menu"])
    async def get_menu_item(menu_item_id: int) -> MenuItem:
        return unwrap(await app.state.menu_service.get_menu_item(menu_item_id))

    @app.get("/menu-items/{menu_item_id}/statistics", response_model=MenuItemStatistics, tags=["Menu"])
    async def get_menu_item_statistics(menu_item_id: int) -> MenuItemStatistics:
        return unwrap(await app.state.menu_service.menu_item_statistics(menu_item_id))

    @app.post("/menu-items", response_model=MenuItem, status_code=201, tags=["Menu"])
    async def create_menu_item(request: MenuItemCreate) -> MenuItem:
        return unwrap(await app.state.menu_service.create_menu_item(request))

    @app.put("/menu-items/{menu_item_id}", response_model=MenuItem, tags=["Menu"])
    async def update_menu_item(menu_item_id: int, request: MenuItemUpdate) -> MenuItem:
        return unwrap(await app.state.menu_service.update_menu_item(menu_item_id, request))

    @app.patch("/menu-items/{menu_item_id}/active", response_model=MenuItem, tags=["Menu"])
    async def set_menu_item_active(menu_item_id: int, request: ActiveStateRequest) -> MenuItem:
        return unwrap(await app.state.menu_service.set_menu_item_active(menu_item_id, request.active))

    @app.delete("/menu-items/{menu_item_id}", response_model=MessageResponse, tags=["Menu"])
    async def delete_menu_item(menu_item_id: int) -> MessageResponse:
        result = await app.state.menu_service.delete_menu_item(menu_item_id)
        unwrap(result)
        return MessageResponse(message=result.message or "Menu item deleted")

    # Orders

    @app.get("/orders", response_model=list[Order], tags=["Orders"])
    async def list_orders(customer: str | None = None) -> list[Order]:
        """List orders, optionally filtered by a customer name fragment."""
        if customer is not None:
            return unwrap(await app.state.order_service.list_orders_by_customer(customer))
        return unwrap(await app.state.order_service.list_orders())

    @app.get("/orders/today", response_model=list[Order], tags=["Orders"])
    async def list_orders_today() -> list[Order]:
        return unwrap(await app.state.order_service.list_orders_today())

    @app.get("/orders/week", response_model=list[Order], tags=["Orders"])
    async def list_orders_this_week() -> list[Order]:
        return unwrap(await app.state.order_service.list_orders_this_week())

    @app.get("/orders/month", response_model=list[Order], tags=["Orders"])
    async def list_orders_this_month() -> list[Order]:
        return unwrap(await app.state.order_service.list_orders_this_month())

    @app.get("/orders/pending", response_model=list[Order], tags=["Orders"])
    async def list_pending_orders() -> list[Order]:
        return unwrap(await app.state.order_service.list_pending_orders())

    @app.get("/orders/statistics", response_model=OrderStatistics, tags=["Orders"])
    async def get_order_statistics(start: datetime = Query(...), end: datetime = Query(...)) -> OrderStatistics:
        start = require_aware(start, "start")
        end = require_aware(end, "end")
        return unwrap(await app.state.order_service.order_statistics(start, end))

    @app.get("/orders/{order_id}", response_model=Order, tags=["Orders"])
    async def get_order(order_id: int) -> Order:
        return unwrap(await app.state.order_service.get_order(order_id))

    @app.post("/orders", response_model=Order, status_code=201, tags=["Orders"])
    async def place_direct_order(request: DirectOrderRequest) -> Order:
        """Place an order whose lines reference inventory ingredients.

        Returns 409 with the shortage list when stock is insufficient.
        """
        return unwrap(await app.state.order_service.place_direct_order(request))

    @app.post("/orders/menu", response_model=Order, status_code=201, tags=["Orders"])
    async def place_menu_order(request: MenuOrderRequest) -> Order:
        """Place an order made of menu items.

        Returns 409 with the shortage list when any recipe ingredient is short;
        in that case nothing is deducted.
        """
        logger.info(f"Menu order received with {len(request.items)} lines")
        return unwrap(await app.state.order_service.place_menu_order(request))

    @app.patch("/orders/{order_id}/status", response_model=Order, tags=["Orders"])
    async def change_order_status(order_id: int, request: StatusChangeRequest) -> Order:
        return unwrap(await app.state.order_service.change_order_status(order_id, request.status))

    # Operating day

    @app.get("/operating-day", tags=["Operating Day"])
    async def get_operating_day(at: datetime | None = None) -> dict[str, Any]:
        """Operating-day window containing ``at`` (default: now)."""
        return app.state.clock.current_window(require_aware(at, "at")).to_dict()

    @app.get("/operating-day/next-reset", tags=["Operating Day"])
    async def get_next_reset(at: datetime | None = None) -> dict[str, Any]:
        return app.state.clock.next_reset(require_aware(at, "at")).to_dict()

    @app.get("/operating-day/debug", tags=["Operating Day"])
    async def get_operating_day_debug() -> dict[str, Any]:
        return app.state.clock.debug_info()

    # Reports

    @app.get("/reports/sales", response_model=SalesReport, tags=["Reports"])
    async def get_sales_report(start: datetime = Query(...), end: datetime = Query(...)) -> SalesReport:
        start = require_aware(start, "start")
        end = require_aware(end, "end")
        return unwrap(await app.state.report_service.sales_report(start, end))

    @app.get("/reports/top-selling", response_model=TopSellingReport, tags=["Reports"])
    async def get_top_selling(
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 10,
    ) -> TopSellingReport:
        start = require_aware(start, "start")
        end = require_aware(end, "end")
        return unwrap(await app.state.report_service.top_selling_items(start, end, limit))

    @app.get("/reports/critical-stock", response_model=CriticalStockReport, tags=["Reports"])
    async def get_critical_stock(threshold: Decimal | None = None) -> CriticalStockReport:
        return unwrap(await app.state.report_service.critical_stock(threshold))

    @app.get("/reports/dashboard", response_model=Dashboard, tags=["Reports"])
    async def get_dashboard() -> Dashboard:
        return unwrap(await app.state.report_service.dashboard())

    return app
