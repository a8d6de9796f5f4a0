"""Pickup slot API endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from canteen.api.auth import SessionUser, require_staff
from canteen.core.dependencies import get_time_slot_service
from canteen.services.persistence.time_slots import TimeSlotPersistenceService
from canteen.services.slots.availability import (
    PickupTime,
    available_slots,
    generate_pickup_times,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class TimeSlotResponse(BaseModel):
    """Time slot response model."""
    id: int
    time: str
    max_orders: int

    class Config:
        from_attributes = True


class TimeSlotCreate(BaseModel):
    """Time slot creation request."""
    time: str
    max_orders: int = Field(ge=1)


@router.get("/api/time-slots", response_model=List[TimeSlotResponse])
async def list_time_slots(
    slots: TimeSlotPersistenceService = Depends(get_time_slot_service),
):
    """Get all configured pickup slots in time order."""
    return await slots.list_time_slots()


@router.get("/api/time-slots/available", response_model=List[TimeSlotResponse])
async def list_available_slots(
    made_to_order_units: int = Query(0, ge=0),
    slots: TimeSlotPersistenceService = Depends(get_time_slot_service),
):
    """Get the slots that can take the given made-to-order quantity."""
    configured = await slots.list_time_slots()
    admitted = available_slots(configured, made_to_order_units)
    logger.info(
        f"[SLOTS] {len(admitted)}/{len(configured)} slots admitted for "
        f"{made_to_order_units} made-to-order units"
    )
    return admitted


@router.get("/api/time-slots/pickup-times", response_model=List[PickupTime])
async def list_pickup_times():
    """Get generated walk-in pickup times for the next couple of hours."""
    return generate_pickup_times()


@router.post("/api/time-slots", response_model=TimeSlotResponse, status_code=201)
async def create_time_slot(
    slot_data: TimeSlotCreate,
    staff: SessionUser = Depends(require_staff),
    slots: TimeSlotPersistenceService = Depends(get_time_slot_service),
):
    """Add a pickup slot."""
    return await slots.create_time_slot(slot_data.time, slot_data.max_orders)


@router.delete("/api/time-slots/{slot_id}", status_code=204)
async def delete_time_slot(
    slot_id: int,
    staff: SessionUser = Depends(require_staff),
    slots: TimeSlotPersistenceService = Depends(get_time_slot_service),
):
    """Remove a pickup slot."""
    await slots.delete_time_slot(slot_id)
