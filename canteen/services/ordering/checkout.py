"""Order composition workflow.

An ``OrderComposition`` owns one cart and one selected pickup slot. Every cart change
re-filters the last known slot list, and a selection that is no longer admitted is
cleared so the customer has to pick again before checkout.
"""
import logging
from typing import Any, List, Optional, Sequence

from canteen.core.errors import ValidationError
from canteen.db.models import Order
from canteen.services.ordering.cart import Cart
from canteen.services.persistence.orders import OrderPersistenceService
from canteen.services.slots.availability import available_slots, reconcile_selection

logger = logging.getLogger(__name__)


class OrderComposition:
    """Cart plus pickup slot selection for one in-progress order."""

    def __init__(self, cart: Optional[Cart] = None, slots: Sequence[Any] = ()):
        self.cart = cart or Cart()
        self.slots: List[Any] = list(slots)
        self.selected_slot: Optional[str] = None
        self.admitted_slots: List[Any] = []
        self._refilter()

    def _refilter(self) -> None:
        self.admitted_slots = available_slots(self.slots, self.cart.made_to_order_units())
        self.selected_slot = reconcile_selection(self.selected_slot, self.admitted_slots)

    def update_slots(self, slots: Sequence[Any]) -> List[Any]:
        """Replace the configured slot list, e.g. after a change notification."""
        self.slots = list(slots)
        self._refilter()
        return self.admitted_slots

    def add(self, menu_item: Any) -> None:
        if getattr(menu_item, "available", True) is False:
            raise ValidationError(f"{menu_item.name} is not available right now")
        self.cart.add(menu_item)
        self._refilter()

    def remove(self, menu_item_id: int) -> None:
        self.cart.remove(menu_item_id)
        self._refilter()

    def select_slot(self, time: str) -> None:
        """Select a pickup slot from the admitted set."""
        if not any(slot.time == time for slot in self.admitted_slots):
            raise ValidationError(f"Pickup time {time} is not available for this order")
        self.selected_slot = time

    def clear(self) -> None:
        self.cart.clear()
        self.selected_slot = None
        self._refilter()

    def check_ready(self) -> None:
        """Raise ValidationError unless the order can be submitted."""
        if self.cart.is_empty():
            raise ValidationError("Your cart is empty")
        if not self.admitted_slots:
            raise ValidationError("No available pickup times with current order")
        if not self.selected_slot:
            raise ValidationError("Please select a pickup time")

    async def submit(
        self,
        orders: OrderPersistenceService,
        user_id: str,
        notes: Optional[str] = None,
    ) -> Order:
        """Place the order; the cart and selection are cleared only on success."""
        self.check_ready()
        order = await orders.create_order(
            user_id=user_id,
            cart=self.cart,
            time_slot=self.selected_slot,
            notes=notes,
        )
        self.clear()
        return order
