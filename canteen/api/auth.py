"""Authentication endpoints and utilities."""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel

from canteen.core.config import settings
from canteen.core.dependencies import get_profile_service
from canteen.core.errors import PermissionDenied
from canteen.services.persistence.profiles import ProfilePersistenceService

router = APIRouter()
logger = logging.getLogger(__name__)

# In-memory session storage (use Redis in production)
_sessions: dict[str, dict] = {}


class LoginRequest(BaseModel):
    """Login request model."""
    user_id: str
    password: str


class SessionInfo(BaseModel):
    """Session information response."""
    authenticated: bool
    user_id: Optional[str] = None
    role: Optional[str] = None
    expires_at: Optional[str] = None


class SessionUser(BaseModel):
    """Authenticated caller."""
    user_id: str
    role: str = "user"

    @property
    def is_staff(self) -> bool:
        return self.role == "admin"


def create_session_token() -> str:
    """Generate a secure session token."""
    return secrets.token_urlsafe(32)


def create_session(response: Response, user_id: str, role: str) -> str:
    """Create a new session and set cookie."""
    session_token = create_session_token()
    expires_at = datetime.utcnow() + timedelta(hours=settings.session_ttl_hours)

    _sessions[session_token] = {
        "user_id": user_id,
        "role": role,
        "expires_at": expires_at,
        "created_at": datetime.utcnow(),
    }

    # Set HTTP-only cookie
    response.set_cookie(
        key="session_token",
        value=session_token,
        httponly=True,
        max_age=settings.session_ttl_hours * 3600,
        samesite="lax",
    )

    return session_token


def get_session_token(request: Request) -> Optional[str]:
    """Extract session token from cookie."""
    return request.cookies.get("session_token")


def get_session(session_token: Optional[str]) -> Optional[dict]:
    """Return the session for a token if it exists and has not expired."""
    if not session_token:
        return None

    session = _sessions.get(session_token)
    if not session:
        return None

    # Check expiration
    if datetime.utcnow() > session["expires_at"]:
        del _sessions[session_token]
        return None

    return session


async def require_auth(request: Request) -> SessionUser:
    """Dependency to require authentication."""
    session = get_session(get_session_token(request))
    if session is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return SessionUser(user_id=session["user_id"], role=session["role"])


async def require_staff(user: SessionUser = Depends(require_auth)) -> SessionUser:
    """Dependency to require the staff (admin) role."""
    if not user.is_staff:
        raise PermissionDenied("Staff access required")
    return user


@router.post("/api/auth/login")
async def login(
    login_req: LoginRequest,
    response: Response,
    profiles: ProfilePersistenceService = Depends(get_profile_service),
):
    """Login endpoint."""
    # Verify password
    if not secrets.compare_digest(login_req.password, settings.auth_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    profile = await profiles.get_profile(login_req.user_id)
    if profile is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    session_token = create_session(response, profile.id, profile.role)
    logger.info(f"[AUTH] {profile.id} logged in as {profile.role}")

    return {
        "success": True,
        "message": "Login successful",
        "user_id": profile.id,
        "role": profile.role,
        "expires_at": _sessions[session_token]["expires_at"].isoformat(),
    }


@router.post("/api/auth/logout")
async def logout(request: Request, response: Response):
    """Logout endpoint."""
    session_token = get_session_token(request)
    if session_token and session_token in _sessions:
        del _sessions[session_token]

    # Clear cookie
    response.delete_cookie("session_token")

    return {"success": True, "message": "Logged out"}


@router.get("/api/auth/session")
async def get_session_info(request: Request) -> SessionInfo:
    """Get current session information."""
    session = get_session(get_session_token(request))

    if session is not None:
        return SessionInfo(
            authenticated=True,
            user_id=session["user_id"],
            role=session["role"],
            expires_at=session["expires_at"].isoformat(),
        )

    return SessionInfo(authenticated=False)
