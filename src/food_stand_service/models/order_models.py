"""Order models.

Orders are historical records: line names and prices are copied from the
ingredient or menu item when the order is placed and are never re-derived.
Only the status changes after creation.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class OrderStatusEnum(str, Enum):
    """Enumeration of order status values."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class OrderLineItem(BaseModel):
    """One line of an order with its name and price snapshot."""

    item_id: int = Field(..., description="Ingredient or menu item identifier")
    name: str = Field(..., description="Name at the time of ordering")
    quantity: Decimal = Field(..., description="Quantity ordered", gt=0)
    unit_price: Decimal = Field(..., description="Price at the time of ordering", ge=0)
    subtotal: Decimal = Field(..., description="quantity * unit_price", ge=0)

    @classmethod
    def create(cls, item_id: int, name: str, quantity: Decimal, unit_price: Decimal) -> "OrderLineItem":
        quantity = Decimal(quantity)
        unit_price = Decimal(unit_price)
        return cls(
            item_id=item_id,
            name=name,
            quantity=quantity,
            unit_price=unit_price,
            subtotal=quantity * unit_price,
        )


class Order(BaseModel):
    """Customer order."""

    id: int | None = Field(None, description="Global order identifier, assigned on creation")
    customer_name: str = Field(..., description="Customer name")
    line_items: list[OrderLineItem] = Field(..., description="Ordered lines", min_length=1)
    total: Decimal = Field(..., description="Sum of line subtotals", ge=0)
    created_at: datetime = Field(..., description="Creation instant (UTC)")
    status: OrderStatusEnum = Field(default=OrderStatusEnum.PENDING, description="Order status")
    day_number: int = Field(..., description="Sequence number within the operating day", ge=1)
    operating_day_date: str = Field(..., description="ISO date of the operating day")

    def item_count(self) -> int:
        return len(self.line_items)

    def to_record(self) -> dict[str, Any]:
        """Convert to a storage record.

        Returns:
            dict: JSON and DynamoDB compatible representation
        """
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "line_items": [
                {
                    "item_id": line.item_id,
                    "name": line.name,
                    "quantity": str(line.quantity),
                    "unit_price": str(line.unit_price),
                    "subtotal": str(line.subtotal),
                }
                for line in self.line_items
            ],
            "total": str(self.total),
            "created_at": self.created_at.isoformat(),
            "status": self.status.value,
            "day_number": self.day_number,
            "operating_day_date": self.operating_day_date,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Order":
        """Create an Order from a storage record.

        Args:
            record: Stored dictionary

        Returns:
            Order: Parsed model instance
        """
        return cls(
            id=int(record["id"]),
            customer_name=record["customer_name"],
            line_items=[
                OrderLineItem(
                    item_id=int(line["item_id"]),
                    name=line["name"],
                    quantity=Decimal(str(line["quantity"])),
                    unit_price=Decimal(str(line["unit_price"])),
                    subtotal=Decimal(str(line["subtotal"])),
                )
                for line in record["line_items"]
            ],
            total=Decimal(str(record["total"])),
            created_at=datetime.fromisoformat(record["created_at"]),
            status=OrderStatusEnum(record.get("status", OrderStatusEnum.PENDING.value)),
            day_number=int(record["day_number"]),
            operating_day_date=record["operating_day_date"],
        )


class DirectOrderItemRequest(BaseModel):
    """Order line referencing an inventory ingredient directly."""

    item_id: int | None = None
    name: str | None = None
    quantity: Decimal | None = None
    unit_price: Decimal | None = None


class DirectOrderRequest(BaseModel):
    """Order whose lines already carry name, quantity and price."""

    customer_name: str | None = None
    items: list[DirectOrderItemRequest] = Field(default_factory=list)
    total: Decimal | None = Field(None, description="Optional client total, checked against the lines")


class MenuOrderItemRequest(BaseModel):
    """Order line referencing a menu item."""

    menu_item_id: int | None = None
    quantity: int | None = None


class MenuOrderRequest(BaseModel):
    """Order placed from the menu; prices come from the menu items."""

    customer_name: str | None = None
    items: list[MenuOrderItemRequest] = Field(default_factory=list)


class StatusChangeRequest(BaseModel):
    """Request body for changing an order status."""

    status: str


class OrderStatistics(BaseModel):
    """Aggregate figures for orders in a period."""

    start: datetime
    end: datetime
    total_orders: int
    total_sales: Decimal
    average_order: Decimal
