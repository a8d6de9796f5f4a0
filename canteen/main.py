"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from canteen.api import auth, health, menu, orders, profiles, time_slots
from canteen.core.config import settings
from canteen.core.errors import (
    CanteenError,
    InvalidOTP,
    InvalidTransition,
    NotFoundError,
    PermissionDenied,
    PersistenceError,
    TerminalOrder,
    ValidationError,
)
from canteen.core.logging import setup_logging
from canteen.db.database import AsyncSessionLocal, init_db
from canteen.services.menu.seed import seed_database

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    InvalidOTP: 400,
    PermissionDenied: 403,
    NotFoundError: 404,
    InvalidTransition: 409,
    TerminalOrder: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    if settings.seed_file:
        async with AsyncSessionLocal() as session:
            await seed_database(session, settings.seed_file)
    yield


app = FastAPI(
    title="Canteen Ordering",
    description="Canteen ordering with pickup slots and OTP collection",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(auth.router, tags=["auth"])
app.include_router(menu.router, tags=["menu"])
app.include_router(time_slots.router, tags=["time-slots"])
app.include_router(orders.router, tags=["orders"])
app.include_router(profiles.router, tags=["profiles"])


def error_status(exc: CanteenError) -> int:
    if isinstance(exc, PersistenceError):
        return 503 if exc.retryable else 500
    for kind, status_code in ERROR_STATUS.items():
        if isinstance(exc, kind):
            return status_code
    return 500


@app.exception_handler(CanteenError)
async def canteen_error_handler(request: Request, exc: CanteenError):
    """Render error kinds as JSON with a kind-specific status code."""
    status_code = error_status(exc)
    log = logger.error if status_code >= 500 else logger.info
    log(f"[API] {request.method} {request.url.path} -> {status_code} {exc.kind}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


@app.get("/")
async def root():
    return {
        "message": f"{settings.canteen_name} ordering API",
        "version": "0.1.0",
    }
