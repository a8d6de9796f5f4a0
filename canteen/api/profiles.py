"""Profile API endpoints."""
import logging
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from canteen.api.auth import SessionUser, require_auth, require_staff
from canteen.api.orders import OrderResponse, to_response
from canteen.core.dependencies import get_order_service, get_profile_service
from canteen.core.errors import NotFoundError
from canteen.services.persistence.orders import OrderPersistenceService
from canteen.services.persistence.profiles import ProfilePersistenceService

router = APIRouter()
logger = logging.getLogger(__name__)


class ProfileResponse(BaseModel):
    """Profile response model."""
    id: str
    full_name: Optional[str] = None
    role: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    full_name: str


class RoleUpdate(BaseModel):
    role: Literal["user", "admin"]


@router.get("/api/profile", response_model=ProfileResponse)
async def get_own_profile(
    user: SessionUser = Depends(require_auth),
    profiles: ProfilePersistenceService = Depends(get_profile_service),
):
    profile = await profiles.get_profile(user.user_id)
    if profile is None:
        raise NotFoundError(f"Profile {user.user_id} not found")
    return profile


@router.patch("/api/profile", response_model=ProfileResponse)
async def update_own_profile(
    update: ProfileUpdate,
    user: SessionUser = Depends(require_auth),
    profiles: ProfilePersistenceService = Depends(get_profile_service),
):
    """Change the caller's display name."""
    return await profiles.update_profile(user.user_id, full_name=update.full_name)


@router.get("/api/profiles", response_model=List[ProfileResponse])
async def list_profiles(
    staff: SessionUser = Depends(require_staff),
    profiles: ProfilePersistenceService = Depends(get_profile_service),
):
    return await profiles.list_profiles()


@router.patch("/api/profiles/{profile_id}/role", response_model=ProfileResponse)
async def update_role(
    profile_id: str,
    update: RoleUpdate,
    staff: SessionUser = Depends(require_staff),
    profiles: ProfilePersistenceService = Depends(get_profile_service),
):
    """Grant or revoke the staff role; takes effect at the user's next login."""
    return await profiles.update_profile(profile_id, role=update.role)


@router.post("/api/profiles/{profile_id}/reset-otp", response_model=OrderResponse)
async def reset_user_otp(
    profile_id: str,
    staff: SessionUser = Depends(require_staff),
    profiles: ProfilePersistenceService = Depends(get_profile_service),
    orders: OrderPersistenceService = Depends(get_order_service),
):
    """Issue a new OTP for the user's most recent active order."""
    if await profiles.get_profile(profile_id) is None:
        raise NotFoundError(f"Profile {profile_id} not found")
    order = await orders.reset_latest_otp_for_user(profile_id)
    logger.info(f"[PROFILES] {staff.user_id} reset OTP of order {order.id} for {profile_id}")
    return to_response(order, show_otp=True)
