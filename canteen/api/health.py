"""Health check endpoint."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from canteen.core.config import settings
from canteen.db.database import get_db
from canteen.services.persistence.base import PersistenceService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Report whether the database answers within the persistence timeout."""
    await PersistenceService(db).ping()
    logger.debug("[HEALTH] Database reachable")
    return {"status": "healthy", "canteen": settings.canteen_name}
