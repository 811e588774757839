"""Push token registration routes."""

from fastapi import APIRouter, Depends
from typing import Dict, Any, Optional
from pydantic import BaseModel

from ..middleware.auth import get_current_session
from ...domain.notifications import push_tokens
from ...domain.notifications.notifier import is_expo_push_token
from ...domain.user.models import Session
from ...infrastructure.exceptions import ValidationError

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


class TokenRegister(BaseModel):
    token: Optional[str] = None
    platform: Optional[str] = None


@router.post("/token")
def register_token(payload: TokenRegister, session: Session = Depends(get_current_session)) -> Dict[str, Any]:
    if not payload.token:
        raise ValidationError("Token is required", error="Token is required")
    if not is_expo_push_token(payload.token):
        raise ValidationError("Invalid Expo push token", error="Invalid push token")

    push_tokens.save_token(
        session.user_id, payload.token, payload.platform or "unknown", session.user_type.value
    )
    return {"message": "Push token registered successfully"}


@router.delete("/token")
def remove_token(token: str, session: Session = Depends(get_current_session)) -> Dict[str, Any]:
    removed = push_tokens.remove_user_token(session.user_id, token)
    return {"message": "Push token removed" if removed else "Push token not registered", "removed": removed}
