"""Ordering models."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class FulfillmentType(str, Enum):
    """How a menu item is fulfilled."""

    IMMEDIATE = "immediate"  # Ready to serve, no slot capacity used
    MADE_TO_ORDER = "made-to-order"  # Prepared by the kitchen, consumes slot capacity

    def __str__(self) -> str:
        return self.value


class CartItem(BaseModel):
    """Cart line snapshotting the menu item it was added from."""

    menu_item_id: int
    name: str
    price: int
    is_veg: bool = False
    type: FulfillmentType = FulfillmentType.IMMEDIATE
    quantity: int = Field(default=1, ge=1)

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


class OrderLineRequest(BaseModel):
    """Requested quantity of one menu item."""

    menu_item_id: int
    quantity: int = Field(default=1, ge=1, le=50)


class PlaceOrderRequest(BaseModel):
    """Checkout request submitted by a customer."""

    lines: list[OrderLineRequest]
    time_slot: str
    notes: Optional[str] = None
