"""Redemption API routes."""

from fastapi import APIRouter, Depends, status
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..deps import get_redemption_service
from ..middleware.auth import require_volunteer
from ...domain.redeem.service import RedemptionService
from ...domain.user.models import Session

router = APIRouter(prefix="/api/redeem", tags=["redeem"])


class RedeemCreate(BaseModel):
    """Model for a redeem request. ``points_required`` is checked by the service."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    reward_name: str
    reward_description: Optional[str] = ""
    points_required: Any


@router.post("", status_code=status.HTTP_201_CREATED)
def create_redeem(
    payload: RedeemCreate,
    session: Session = Depends(require_volunteer),
    service: RedemptionService = Depends(get_redemption_service),
) -> Dict[str, Any]:
    redeem = service.create_redeem(
        session, payload.reward_name, payload.reward_description, payload.points_required
    )
    return {"message": "Redeem request created successfully", "redeem": redeem.to_public()}


@router.get("/my-redeems")
def my_redeems(
    session: Session = Depends(require_volunteer),
    service: RedemptionService = Depends(get_redemption_service),
) -> Dict[str, Any]:
    return {"redeems": [r.to_public() for r in service.list_my_redeems(session)]}


@router.get("/{redeem_id}")
def get_redeem(
    redeem_id: str,
    session: Session = Depends(require_volunteer),
    service: RedemptionService = Depends(get_redemption_service),
) -> Dict[str, Any]:
    return {"redeem": service.get_redeem(session, redeem_id).to_public()}
