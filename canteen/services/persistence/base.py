"""Shared plumbing for persistence services."""
import asyncio
import logging
from typing import Any, Awaitable, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from canteen.core.config import settings
from canteen.core.errors import PersistenceError

logger = logging.getLogger(__name__)


class PersistenceService:
    """Base class wrapping every database call in a timeout.

    Timeouts become retryable ``PersistenceError``s and never change order state.
    """

    def __init__(self, db: AsyncSession, timeout: Optional[float] = None):
        self.db = db
        self.timeout = settings.persistence_timeout_seconds if timeout is None else timeout

    async def _io(self, awaitable: Awaitable[Any], operation: str) -> Any:
        """Await a database call under the configured timeout."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"[DB] {operation} timed out after {self.timeout}s")
            raise PersistenceError(f"{operation} timed out", retryable=True) from e
        except SQLAlchemyError as e:
            logger.error(f"[DB] {operation} failed: {type(e).__name__}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to {operation}") from e

    async def ping(self) -> None:
        """Round-trip a trivial query."""
        await self._io(self.db.execute(text("SELECT 1")), "health check")
