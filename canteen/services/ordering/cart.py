"""Cart aggregation."""
from typing import Any, List, Optional

from pydantic import BaseModel

from canteen.services.ordering.models import CartItem, FulfillmentType


class Cart(BaseModel):
    """Working set of cart lines keyed by menu item id.

    Owned by a single order composition; nothing here touches persistence.
    """

    items: List[CartItem] = []

    def get(self, menu_item_id: int) -> Optional[CartItem]:
        """Get the line for a menu item, if present."""
        for item in self.items:
            if item.menu_item_id == menu_item_id:
                return item
        return None

    def add(self, menu_item: Any) -> CartItem:
        """Add one unit of a menu item.

        ``menu_item`` is anything exposing ``id``, ``name``, ``price``, ``is_veg`` and
        ``type`` (an ORM ``MenuItem`` or an equivalent model).
        """
        existing = self.get(menu_item.id)
        if existing:
            existing.quantity += 1
            return existing

        item = CartItem(
            menu_item_id=menu_item.id,
            name=menu_item.name,
            price=menu_item.price,
            is_veg=menu_item.is_veg,
            type=FulfillmentType(menu_item.type),
            quantity=1,
        )
        self.items.append(item)
        return item

    def remove(self, menu_item_id: int) -> None:
        """Remove one unit; the line disappears with its last unit."""
        existing = self.get(menu_item_id)
        if existing is None:
            return
        if existing.quantity > 1:
            existing.quantity -= 1
        else:
            self.items = [i for i in self.items if i.menu_item_id != menu_item_id]

    def clear(self) -> None:
        """Drop every line."""
        self.items = []

    def total(self) -> int:
        """Sum of price x quantity over all lines."""
        return sum(item.line_total for item in self.items)

    def has_made_to_order(self) -> bool:
        """Check whether any line needs kitchen preparation."""
        return any(item.type == FulfillmentType.MADE_TO_ORDER for item in self.items)

    def made_to_order_units(self) -> int:
        """Total quantity of made-to-order lines."""
        return sum(
            item.quantity
            for item in self.items
            if item.type == FulfillmentType.MADE_TO_ORDER
        )

    def is_empty(self) -> bool:
        return not self.items
