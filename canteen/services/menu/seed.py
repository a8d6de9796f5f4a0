"""Seed data loader for menu items and pickup slots."""
import logging
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from canteen.db.models import MenuItem, TimeSlot
from canteen.services.ordering.models import FulfillmentType
from canteen.services.persistence.menu import MenuPersistenceService
from canteen.services.persistence.time_slots import TimeSlotPersistenceService

logger = logging.getLogger(__name__)


class SeedMenuItem(BaseModel):
    """Menu item entry in a seed file."""

    name: str
    description: Optional[str] = None
    price: int = Field(gt=0)
    category: str
    is_veg: bool = False
    type: FulfillmentType = FulfillmentType.IMMEDIATE
    available: bool = True


class SeedTimeSlot(BaseModel):
    """Time slot entry in a seed file."""

    time: str
    max_orders: int = Field(gt=0)


class SeedData(BaseModel):
    menu_items: List[SeedMenuItem] = []
    time_slots: List[SeedTimeSlot] = []


def load_seed_file(path: Union[str, Path]) -> SeedData:
    """Load and validate a YAML seed file."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return SeedData(**data)


async def seed_database(db: AsyncSession, path: Union[str, Path]) -> bool:
    """
    Insert seed data when the menu is still empty.

    Returns:
        True if anything was inserted
    """
    menu_service = MenuPersistenceService(db)
    if await menu_service.count_menu_items() > 0:
        logger.info("[SEED] Menu already populated, skipping seed")
        return False

    seed = load_seed_file(path)
    await menu_service.add_menu_items(
        [
            MenuItem(
                name=item.name,
                description=item.description,
                price=item.price,
                category=item.category,
                is_veg=item.is_veg,
                type=item.type.value,
                available=item.available,
            )
            for item in seed.menu_items
        ]
    )

    slot_service = TimeSlotPersistenceService(db)
    for slot in seed.time_slots:
        await slot_service.create_time_slot(slot.time, slot.max_orders)

    logger.info(
        f"[SEED] Loaded {len(seed.menu_items)} menu items and "
        f"{len(seed.time_slots)} time slots from {path}"
    )
    return True
