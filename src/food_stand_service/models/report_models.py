"""Report models built from orders, inventory and menu snapshots."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class DailySales(BaseModel):
    """Sales of one operating day."""

    operating_day_date: str
    sales: Decimal
    orders: int


class SalesReport(BaseModel):
    """Sales summary for a period, bucketed by operating day."""

    start: datetime
    end: datetime
    total_sales: Decimal
    total_orders: int
    average_order: Decimal
    daily: list[DailySales] = Field(default_factory=list)


class TopSellingItem(BaseModel):
    """Quantity and revenue of one ordered item."""

    item_id: int
    name: str
    quantity_sold: Decimal
    total_sales: Decimal


class TopSellingReport(BaseModel):
    items: list[TopSellingItem] = Field(default_factory=list)
    total_items: int = 0


class StockStatusEnum(str, Enum):
    """Stock condition of an ingredient at or below the critical threshold."""

    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"


class CriticalStockLine(BaseModel):
    ingredient_id: int
    name: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    status: StockStatusEnum


class CriticalStockReport(BaseModel):
    """Ingredients at or below the threshold, lowest quantity first."""

    threshold: Decimal
    items: list[CriticalStockLine] = Field(default_factory=list)
    total_items: int = 0
    out_of_stock: int = 0
    low_stock: int = 0
    total_value: Decimal = Decimal(0)


class Dashboard(BaseModel):
    """Headline figures for the stand."""

    operating_day_date: str
    inventory_items: int
    inventory_value: Decimal
    menu_items: int
    active_menu_items: int
    total_orders: int
    sales_today: Decimal
    sales_this_month: Decimal
