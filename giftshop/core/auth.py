
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt

from giftshop.core.config import Settings, get_settings
from giftshop.core.errors import LoginRequired, Redirect

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

@dataclass(frozen=True)
class User:
    id: str
    email: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.metadata.get("full_name") or "User"

def resolve_user(token: Optional[str], settings: Settings) -> Optional[User]:
    """Map an access token to a User. No session, or any fault on the way, is None."""
    if not token:
        return None
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": False},
        )
        if payload.get("role", "authenticated") != "authenticated" or not payload.get("sub"):
            logger.debug("Session token rejected: role=%s", payload.get("role"))
            return None
        return User(
            id=str(payload["sub"]),
            email=payload.get("email"),
            metadata=dict(payload.get("user_metadata") or {}),
        )
    except jwt.PyJWTError as e:
        logger.debug("No valid session: %s", e)
        return None
    except Exception:
        logger.exception("Error resolving session")
        return None

def get_session_token(request: Request, settings: Settings = Depends(get_settings),
                      creds: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> Optional[str]:
    token = request.cookies.get(settings.SESSION_COOKIE)
    if not token and creds:
        token = creds.credentials
    return token

def get_current_user(token: Optional[str] = Depends(get_session_token),
                     settings: Settings = Depends(get_settings)) -> Optional[User]:
    return resolve_user(token, settings)

def require_user(request: Request, user: Optional[User] = Depends(get_current_user)) -> User:
    if user is None:
        raise LoginRequired(request.url.path)
    return user

def require_admin(user: Optional[User] = Depends(get_current_user),
                  settings: Settings = Depends(get_settings)) -> User:
    if not user or not settings.ADMIN_USER_ID or user.id != settings.ADMIN_USER_ID:
        logger.info("Admin access denied. User: %s", user.id if user else "None")
        raise Redirect("/")
    return user
