"""Dashboard authentication endpoints and utilities."""
from fastapi import APIRouter, Request, Response, HTTPException, Depends
from pydantic import BaseModel
from typing import Optional
import hmac
import logging
import secrets
from datetime import datetime, timedelta

from app.core.config import settings
from app.core.rate_limit import limit_by_client_ip

router = APIRouter()
logger = logging.getLogger(__name__)

SESSION_COOKIE = "session_token"
SESSION_LIFETIME = timedelta(hours=24)

# In-memory dashboard sessions, token -> expiry
_sessions: dict[str, datetime] = {}


class LoginRequest(BaseModel):
    """Login request model."""
    password: str


class SessionInfo(BaseModel):
    """Session information response."""
    authenticated: bool
    expires_at: Optional[str] = None


def create_session_token() -> str:
    """Generate a secure session token."""
    return secrets.token_urlsafe(32)


def password_matches(candidate: str) -> bool:
    """Constant-time comparison against the dashboard password."""
    return hmac.compare_digest(candidate.encode(), settings.dashboard_password.encode())


def create_session(response: Response) -> str:
    """Create a new session and set its cookie."""
    session_token = create_session_token()
    _sessions[session_token] = datetime.utcnow() + SESSION_LIFETIME

    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_token,
        httponly=True,
        max_age=int(SESSION_LIFETIME.total_seconds()),
        samesite="lax",
    )
    return session_token


def get_session_token(request: Request) -> Optional[str]:
    """Extract session token from cookie."""
    return request.cookies.get(SESSION_COOKIE)


def verify_session(session_token: Optional[str]) -> bool:
    """Verify the token exists and has not expired; expired tokens are dropped."""
    if not session_token or session_token not in _sessions:
        return False

    if datetime.utcnow() > _sessions[session_token]:
        del _sessions[session_token]
        return False
    return True


async def require_auth(request: Request) -> bool:
    """Dependency to require authentication."""
    if not verify_session(get_session_token(request)):
        raise HTTPException(status_code=401, detail="Authentication required")
    return True


@router.post("/api/auth/login", dependencies=[Depends(limit_by_client_ip)])
async def login(login_req: LoginRequest, response: Response):
    """Login endpoint."""
    if not password_matches(login_req.password):
        logger.warning("[AUTH] Failed dashboard login")
        raise HTTPException(status_code=401, detail="Invalid password")

    session_token = create_session(response)
    return {
        "success": True,
        "message": "Login successful",
        "expires_at": _sessions[session_token].isoformat(),
    }


@router.post("/api/auth/logout")
async def logout(request: Request, response: Response):
    """Logout endpoint."""
    session_token = get_session_token(request)
    if session_token:
        _sessions.pop(session_token, None)

    response.delete_cookie(SESSION_COOKIE)
    return {"success": True, "message": "Logged out"}


@router.get("/api/auth/session")
async def get_session_info(request: Request) -> SessionInfo:
    """Get current session information."""
    session_token = get_session_token(request)
    if verify_session(session_token):
        return SessionInfo(authenticated=True, expires_at=_sessions[session_token].isoformat())
    return SessionInfo(authenticated=False)
