"""Authentication dependencies for FastAPI."""

import hmac

from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from ...infrastructure.auth import Identity, verify_token
from ...infrastructure.config import get_env_var
from ...infrastructure.exceptions import AuthenticationError, AuthorizationError
from ...domain.user.service import require_user
from ...domain.user.models import Session, UserType

# auto_error=False so a missing header becomes our 401 body instead of FastAPI's 403
security = HTTPBearer(auto_error=False)


async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    """Verify the bearer token. The user record may not exist yet."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")
    return verify_token(credentials.credentials)


def get_current_session(identity: Identity = Depends(get_identity)) -> Session:
    """Resolve the verified caller to a session backed by the user record."""
    user = require_user(identity.uid)
    return Session(user_id=user.id, user_type=user.type, email=user.email)


def require_user_type(*allowed: UserType):
    """Dependency factory to require one of the given user types."""
    def type_checker(session: Session = Depends(get_current_session)) -> Session:
        if session.user_type not in allowed:
            names = ", ".join(t.value for t in allowed)
            raise AuthorizationError(f"This endpoint requires one of these user types: {names}")
        return session
    return type_checker


# Convenience dependencies
require_volunteer = require_user_type(UserType.VOLUNTEER)
require_disabled = require_user_type(UserType.DISABLED)


def require_admin_key(x_admin_key: Optional[str] = Header(None)) -> None:
    """Guard for back-office endpoints, keyed by a shared secret header."""
    expected = get_env_var("HANDY_ADMIN_API_KEY")
    if not expected:
        raise AuthorizationError("Back-office access is not configured")
    if not x_admin_key or not hmac.compare_digest(x_admin_key, expected):
        raise AuthorizationError("Invalid admin key")
