"""Staff order board: filtering, sorting and summary counts."""
from datetime import date, datetime
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel

from canteen.services.ordering.lifecycle import ACTIVE_STATUSES, OrderStatus

TABS = ("all", "active", "today")
SORT_KEYS = ("newest", "oldest", "highest", "lowest")

_ACTIVE_VALUES = {s.value for s in ACTIVE_STATUSES}


class OrderBoardStats(BaseModel):
    """Order counts shown on the staff board."""

    active: int = 0
    completed: int = 0
    cancelled: int = 0
    today: int = 0


def _placed_on(order: Any, day: date) -> bool:
    return order.placed_at is not None and order.placed_at.date() == day


def filter_orders(
    orders: Sequence[Any],
    tab: str = "all",
    search: str = "",
    status: str = "all",
    sort_by: str = "newest",
    today: Optional[date] = None,
) -> List[Any]:
    """
    Filter and sort orders for the staff board.

    Args:
        orders: Orders exposing id, user_id, status, total and placed_at
        tab: ``all``, ``active`` (not delivered or cancelled) or ``today``
        search: Case-insensitive substring of the order id or user id
        status: Exact status, or ``all``
        sort_by: ``newest``, ``oldest``, ``highest`` or ``lowest`` (by total)
        today: Date used by the ``today`` tab, defaults to the current UTC date
    """
    if tab not in TABS:
        raise ValueError(f"Unknown tab '{tab}'")
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort '{sort_by}'")
    today = today or datetime.utcnow().date()
    needle = search.strip().lower()

    selected = []
    for order in orders:
        if tab == "active" and order.status not in _ACTIVE_VALUES:
            continue
        if tab == "today" and not _placed_on(order, today):
            continue
        if needle and needle not in str(order.id).lower() and needle not in order.user_id.lower():
            continue
        if status != "all" and order.status != status:
            continue
        selected.append(order)

    if sort_by in ("newest", "oldest"):
        return sorted(selected, key=lambda o: o.placed_at, reverse=sort_by == "newest")
    return sorted(selected, key=lambda o: o.total, reverse=sort_by == "highest")


def summarize_orders(orders: Sequence[Any], today: Optional[date] = None) -> OrderBoardStats:
    """Count active, completed, cancelled and today's orders."""
    today = today or datetime.utcnow().date()
    return OrderBoardStats(
        active=sum(1 for o in orders if o.status in _ACTIVE_VALUES),
        completed=sum(1 for o in orders if o.status == OrderStatus.DELIVERED.value),
        cancelled=sum(1 for o in orders if o.status == OrderStatus.CANCELLED.value),
        today=sum(1 for o in orders if _placed_on(o, today)),
    )


def awaiting_collection(orders: Sequence[Any]) -> List[Any]:
    """Active orders whose OTP has not been verified yet."""
    return [o for o in orders if o.status in _ACTIVE_VALUES and not o.otp_verified]
