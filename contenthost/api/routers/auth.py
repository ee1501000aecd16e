# CONTENTHOST BACKEND

# COMPONENT: AUTH ROUTES
# REQUIREMENTS SATISFIED: admin login and bearer-token guard for protected endpoints
"""
contenthost/api/routers/auth.py

    - POST /api/auth : exchange the admin password for a session token

Also exports require_session, the FastAPI dependency every protected route
uses to check the "Authorization: Bearer <token>" header.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from contenthost.schemas.files import AuthRequest, AuthResponse
from contenthost.services.sessions import InvalidPassword, SessionStore, get_session_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def require_session(
    authorization: Optional[str] = Header(None),
    sessions: SessionStore = Depends(get_session_store),
) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")

    token = authorization[len("Bearer "):]
    if not sessions.is_valid(token):
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return token


@router.post("/auth", response_model=AuthResponse)
def login(req: AuthRequest, sessions: SessionStore = Depends(get_session_store)):
    if not req.password:
        raise HTTPException(status_code=400, detail="Password required")

    try:
        token = sessions.login(req.password)
    except InvalidPassword:
        logger.info("Rejected admin login")
        raise HTTPException(status_code=401, detail="Invalid password")
    except RuntimeError as e:
        logger.error(f"Login unavailable: {e}")
        raise HTTPException(status_code=500, detail="Server configuration error")

    logger.info("Admin session issued")
    return AuthResponse(token=token)
