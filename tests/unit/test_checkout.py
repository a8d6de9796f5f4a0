"""Unit tests for the order composition workflow."""
from unittest.mock import AsyncMock

import pytest

from canteen.core.errors import PersistenceError, ValidationError
from canteen.db.models import MenuItem, TimeSlot
from canteen.services.ordering.checkout import OrderComposition
from canteen.services.persistence.orders import OrderPersistenceService


@pytest.fixture
def slots():
    return [
        TimeSlot(time="12:00", max_orders=25),
        TimeSlot(time="12:30", max_orders=4),
    ]


@pytest.fixture
def biryani():
    return MenuItem(
        id=1, name="Veg Biryani", price=120, is_veg=True, type="made-to-order", available=True
    )


@pytest.fixture
def samosa():
    return MenuItem(id=2, name="Samosa", price=20, is_veg=True, type="immediate", available=True)


class TestSlotSelection:
    """Test slot re-filtering as the cart changes."""

    def test_immediate_items_keep_all_slots(self, slots, samosa):
        composition = OrderComposition(slots=slots)
        for _ in range(10):
            composition.add(samosa)
        assert composition.admitted_slots == slots

    def test_selection_cleared_when_slot_drops(self, slots, biryani):
        composition = OrderComposition(slots=slots)
        composition.add(biryani)
        composition.select_slot("12:30")

        # floor(4/2) + 3 > 4
        composition.add(biryani)
        composition.add(biryani)

        assert [s.time for s in composition.admitted_slots] == ["12:00"]
        assert composition.selected_slot is None

    def test_selection_kept_while_admitted(self, slots, biryani):
        composition = OrderComposition(slots=slots)
        composition.add(biryani)
        composition.select_slot("12:00")
        composition.add(biryani)
        assert composition.selected_slot == "12:00"

    def test_removing_items_readmits_slot(self, slots, biryani):
        composition = OrderComposition(slots=slots)
        for _ in range(3):
            composition.add(biryani)
        assert len(composition.admitted_slots) == 1

        composition.remove(biryani.id)
        assert len(composition.admitted_slots) == 2

    def test_cannot_select_unadmitted_slot(self, slots, biryani):
        composition = OrderComposition(slots=slots)
        for _ in range(3):
            composition.add(biryani)
        with pytest.raises(ValidationError):
            composition.select_slot("12:30")

    def test_update_slots_clears_stale_selection(self, slots, biryani):
        composition = OrderComposition(slots=slots)
        composition.add(biryani)
        composition.select_slot("12:30")

        composition.update_slots([slots[0]])

        assert composition.selected_slot is None

    def test_unavailable_item_rejected(self, slots):
        sold_out = MenuItem(
            id=9, name="Cold Coffee", price=60, is_veg=True, type="immediate", available=False
        )
        composition = OrderComposition(slots=slots)
        with pytest.raises(ValidationError):
            composition.add(sold_out)
        assert composition.cart.is_empty()


class TestSubmit:
    """Test checkout preconditions and cart clearing."""

    @pytest.mark.asyncio
    async def test_empty_cart(self, slots):
        composition = OrderComposition(slots=slots)
        service = AsyncMock()
        with pytest.raises(ValidationError):
            await composition.submit(service, "user-1")
        service.create_order.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_slot_selected(self, slots, samosa):
        composition = OrderComposition(slots=slots)
        composition.add(samosa)
        service = AsyncMock()
        with pytest.raises(ValidationError):
            await composition.submit(service, "user-1")
        service.create_order.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_admitted_slots_blocks_checkout(self, biryani):
        composition = OrderComposition(slots=[TimeSlot(time="12:30", max_orders=2)])
        for _ in range(5):
            composition.add(biryani)
        assert composition.admitted_slots == []

        with pytest.raises(ValidationError):
            composition.check_ready()

    @pytest.mark.asyncio
    async def test_failure_keeps_cart(self, slots, samosa):
        composition = OrderComposition(slots=slots)
        composition.add(samosa)
        composition.select_slot("12:00")
        service = AsyncMock()
        service.create_order.side_effect = PersistenceError("Failed to create order")

        with pytest.raises(PersistenceError):
            await composition.submit(service, "user-1")

        assert not composition.cart.is_empty()
        assert composition.selected_slot == "12:00"

    @pytest.mark.asyncio
    async def test_success_clears_cart(self, test_db, menu_items, time_slots):
        composition = OrderComposition(slots=time_slots)
        composition.add(menu_items["biryani"])
        composition.add(menu_items["biryani"])
        for _ in range(3):
            composition.add(menu_items["samosa"])
        composition.select_slot("12:00")

        order = await composition.submit(
            OrderPersistenceService(test_db), "user-1", notes="less spicy"
        )

        assert order.total == 300
        assert order.notes == "less spicy"
        assert order.time_slot == "12:00"
        assert composition.cart.is_empty()
        assert composition.selected_slot is None
