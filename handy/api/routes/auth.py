"""Registration and profile routes."""

from fastapi import APIRouter, Depends, status
from typing import Dict, Any

from ..middleware.auth import get_current_session, get_identity
from ...domain.user.models import Session, UserRegister, UserUpdate
from ...domain.user.service import create_user, fetch_profile, update_profile
from ...infrastructure.auth import Identity

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, identity: Identity = Depends(get_identity)) -> Dict[str, Any]:
    """Create the profile for a verified identity."""
    user = create_user(
        identity.uid,
        identity.email,
        payload.type,
        name=payload.name,
        surname=payload.surname,
        tel=payload.tel,
    )
    return {"message": "User registered successfully", "user": user.to_public()}


@router.get("/me")
def me(session: Session = Depends(get_current_session)) -> Dict[str, Any]:
    """Current profile. For volunteers this also claims the daily login bonus."""
    user, bonus_granted = fetch_profile(session.user_id)
    return {"user": user.to_public(), "bonusGranted": bonus_granted}


@router.put("/me")
def update_me(payload: UserUpdate, session: Session = Depends(get_current_session)) -> Dict[str, Any]:
    user = update_profile(session.user_id, payload.name, payload.surname, payload.tel)
    return {"message": "Profile updated successfully", "user": user.to_public()}
