"""Pickup slot availability.

Configured slots carry a ``max_orders`` capacity shared by all made-to-order demand.
Live per-slot counts are not tracked, so each slot is assumed to already hold a
standing baseline of ``floor(max_orders * baseline_ratio)`` orders.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel

from canteen.core.config import settings

logger = logging.getLogger(__name__)


class PickupTime(BaseModel):
    """Generated short-horizon pickup time."""

    value: str
    label: str


def estimated_load(max_orders: int, baseline_ratio: Optional[float] = None) -> int:
    """Estimate orders already committed to a slot."""
    ratio = settings.slot_baseline_load_ratio if baseline_ratio is None else baseline_ratio
    return math.floor(max_orders * ratio)


def slot_admits(
    max_orders: int, made_to_order_units: int, baseline_ratio: Optional[float] = None
) -> bool:
    """Check whether a slot can take the given made-to-order units."""
    return estimated_load(max_orders, baseline_ratio) + made_to_order_units <= max_orders


def available_slots(
    slots: Sequence[Any],
    made_to_order_units: int,
    baseline_ratio: Optional[float] = None,
) -> List[Any]:
    """
    Return the slots that may still be offered, preserving input order.

    Args:
        slots: Objects exposing ``time`` and ``max_orders``
        made_to_order_units: Made-to-order quantity in the cart

    Returns:
        Admitted slots; all of them when the cart has no made-to-order units
    """
    if made_to_order_units < 0:
        raise ValueError("made_to_order_units must be >= 0")

    if made_to_order_units == 0:
        return list(slots)

    admitted = [
        slot
        for slot in slots
        if slot_admits(slot.max_orders, made_to_order_units, baseline_ratio)
    ]
    if not admitted:
        logger.info(
            f"[SLOTS] No slot can take {made_to_order_units} made-to-order units "
            f"({len(slots)} configured)"
        )
    return admitted


def reconcile_selection(selected: Optional[str], admitted: Sequence[Any]) -> Optional[str]:
    """Keep the selected slot time only while it is still admitted."""
    if selected and any(slot.time == selected for slot in admitted):
        return selected
    if selected:
        logger.debug(f"[SLOTS] Selected slot {selected} no longer available, clearing")
    return None


def format_pickup_time(moment: datetime) -> str:
    """Format as 12-hour clock, e.g. ``1:05 PM``."""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def generate_pickup_times(
    now: Optional[datetime] = None,
    interval_minutes: Optional[int] = None,
    prep_buffer_minutes: Optional[int] = None,
    count: Optional[int] = None,
) -> List[PickupTime]:
    """
    Synthesize walk-in pickup times.

    The current time is rounded up to the next interval boundary, the preparation
    buffer is added, and ``count`` times follow at ``interval_minutes`` spacing.
    Capacity records are not consulted.
    """
    now = now or datetime.now()
    interval = interval_minutes or settings.pickup_interval_minutes
    buffer = settings.pickup_prep_buffer_minutes if prep_buffer_minutes is None else prep_buffer_minutes
    count = settings.pickup_slot_count if count is None else count

    rounded = math.ceil(now.minute / interval) * interval + buffer
    start = now.replace(minute=0, second=0, microsecond=0) + timedelta(minutes=rounded)

    times = []
    for i in range(count):
        value = format_pickup_time(start + timedelta(minutes=i * interval))
        times.append(PickupTime(value=value, label=f"Pickup at {value}"))
    return times
