"""Profile persistence service."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select

from canteen.core.errors import NotFoundError, ValidationError
from canteen.db.models import Profile
from canteen.services.persistence.base import PersistenceService

logger = logging.getLogger(__name__)

ROLES = ("user", "admin")


def is_admin(profile: Optional[Profile]) -> bool:
    return profile is not None and profile.role == "admin"


class ProfilePersistenceService(PersistenceService):
    """Profiles backing role checks."""

    async def get_profile(self, profile_id: str) -> Optional[Profile]:
        result = await self._io(
            self.db.execute(select(Profile).where(Profile.id == profile_id)), "load profile"
        )
        return result.scalar_one_or_none()

    async def list_profiles(self) -> List[Profile]:
        result = await self._io(
            self.db.execute(select(Profile).order_by(Profile.created_at)), "load profiles"
        )
        return list(result.scalars().all())

    async def create_profile(
        self, profile_id: str, full_name: Optional[str] = None, role: str = "user"
    ) -> Profile:
        if role not in ROLES:
            raise ValidationError(f"Unknown role '{role}'")
        profile = Profile(id=profile_id, full_name=full_name, role=role)
        self.db.add(profile)
        await self._io(self.db.commit(), "create profile")
        await self._io(self.db.refresh(profile), "create profile")
        return profile

    async def update_profile(
        self,
        profile_id: str,
        full_name: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Profile:
        """Update display name and/or role."""
        profile = await self.get_profile(profile_id)
        if profile is None:
            raise NotFoundError(f"Profile {profile_id} not found")
        if role is not None and role not in ROLES:
            raise ValidationError(f"Unknown role '{role}'")

        if full_name is not None:
            profile.full_name = full_name
        if role is not None and role != profile.role:
            logger.info(f"[PROFILES] Role of {profile_id}: {profile.role} -> {role}")
            profile.role = role
        profile.updated_at = datetime.utcnow()

        await self._io(self.db.commit(), "update profile")
        await self._io(self.db.refresh(profile), "update profile")
        return profile
