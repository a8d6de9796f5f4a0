"""FastAPI dependencies."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from canteen.db.database import get_db
from canteen.services.notifications.feed import OrderEventFeed
from canteen.services.persistence.menu import MenuPersistenceService
from canteen.services.persistence.orders import OrderPersistenceService
from canteen.services.persistence.profiles import ProfilePersistenceService
from canteen.services.persistence.time_slots import TimeSlotPersistenceService

# Module-level feed shared by all requests in this process
order_events = OrderEventFeed()


def get_order_events() -> OrderEventFeed:
    """Get the order change feed."""
    return order_events


def get_order_service(
    db: AsyncSession = Depends(get_db),
    events: OrderEventFeed = Depends(get_order_events),
) -> OrderPersistenceService:
    return OrderPersistenceService(db, events=events)


def get_menu_service(db: AsyncSession = Depends(get_db)) -> MenuPersistenceService:
    return MenuPersistenceService(db)


def get_time_slot_service(db: AsyncSession = Depends(get_db)) -> TimeSlotPersistenceService:
    return TimeSlotPersistenceService(db)


def get_profile_service(db: AsyncSession = Depends(get_db)) -> ProfilePersistenceService:
    return ProfilePersistenceService(db)
