"""Identity provider: bearer token verification.

Tokens are HS256 JWTs whose ``sub`` claim is the stable user id. The rest of the
application only sees the resulting :class:`Identity`.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from .config import get_env_var
from .exceptions import AuthenticationError
from .logging import get_logger

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"
DEFAULT_SECRET = "dev-secret-change"
DEFAULT_TOKEN_TTL = timedelta(hours=1)


@dataclass(frozen=True)
class Identity:
    """A verified caller."""
    uid: str
    email: Optional[str] = None


def _secret() -> str:
    return get_env_var("HANDY_JWT_SECRET", DEFAULT_SECRET) or DEFAULT_SECRET


def create_token(uid: str, email: Optional[str] = None, ttl: timedelta = DEFAULT_TOKEN_TTL) -> str:
    """Mint a token for ``uid``. Used by the seed script and tests."""
    now = datetime.now(timezone.utc)
    payload = {"sub": uid, "iat": now, "exp": now + ttl}
    if email:
        payload["email"] = email
    audience = get_env_var("HANDY_JWT_AUDIENCE")
    if audience:
        payload["aud"] = audience
    return jwt.encode(payload, _secret(), algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Identity:
    """Verify a bearer token and return the caller identity."""
    audience = get_env_var("HANDY_JWT_AUDIENCE")
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[JWT_ALGORITHM],
            audience=audience,
            options={"require": ["sub", "exp"], "verify_aud": bool(audience)},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        raise AuthenticationError("Invalid token")

    uid = payload.get("sub")
    if not uid or not isinstance(uid, str):
        raise AuthenticationError("Invalid token payload")
    return Identity(uid=uid, email=payload.get("email"))
