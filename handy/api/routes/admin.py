"""Back-office routes for the redeem fulfilment workflow."""

from fastapi import APIRouter, Depends
from typing import Dict, Any
from pydantic import BaseModel

from ..deps import get_redemption_service
from ..middleware.auth import require_admin_key
from ...domain.redeem.service import RedemptionService

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin_key)])


class RedeemStatusUpdate(BaseModel):
    """Model for redeem status update."""
    status: str


@router.patch("/redeem/{redeem_id}/status")
def update_redeem_status(
    redeem_id: str,
    payload: RedeemStatusUpdate,
    service: RedemptionService = Depends(get_redemption_service),
) -> Dict[str, Any]:
    """Approve, reject or complete a redemption."""
    redeem = service.update_redeem_status(redeem_id, payload.status)
    return {"message": "Redeem status updated successfully", "redeem": redeem.to_public()}
