"""Time slot persistence service."""
import logging
import re
from typing import List

from sqlalchemy import select

from canteen.core.errors import NotFoundError, ValidationError
from canteen.db.models import TimeSlot
from canteen.services.persistence.base import PersistenceService

logger = logging.getLogger(__name__)

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class TimeSlotPersistenceService(PersistenceService):
    """Staff-configured pickup slots."""

    async def list_time_slots(self) -> List[TimeSlot]:
        """List slots ordered by time."""
        result = await self._io(
            self.db.execute(select(TimeSlot).order_by(TimeSlot.time)), "load time slots"
        )
        return list(result.scalars().all())

    async def create_time_slot(self, time: str, max_orders: int) -> TimeSlot:
        """Add a slot; ``time`` is a zero-padded 24-hour ``HH:MM`` label."""
        if not _TIME_PATTERN.match(time or ""):
            raise ValidationError("Slot time must look like HH:MM")
        if max_orders < 1:
            raise ValidationError("Slot capacity must be at least 1")

        existing = await self._io(
            self.db.execute(select(TimeSlot).where(TimeSlot.time == time)), "load time slot"
        )
        if existing.scalar_one_or_none() is not None:
            raise ValidationError(f"A slot at {time} already exists")

        slot = TimeSlot(time=time, max_orders=max_orders)
        self.db.add(slot)
        await self._io(self.db.commit(), "create time slot")
        await self._io(self.db.refresh(slot), "create time slot")
        logger.info(f"[SLOTS] Slot {time} created with capacity {max_orders}")
        return slot

    async def delete_time_slot(self, slot_id: int) -> None:
        result = await self._io(
            self.db.execute(select(TimeSlot).where(TimeSlot.id == slot_id)), "load time slot"
        )
        slot = result.scalar_one_or_none()
        if slot is None:
            raise NotFoundError(f"Time slot {slot_id} not found")
        await self._io(self.db.delete(slot), "delete time slot")
        await self._io(self.db.commit(), "delete time slot")
        logger.info(f"[SLOTS] Slot {slot.time} deleted")
