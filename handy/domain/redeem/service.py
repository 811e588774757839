"""Redemption service: spending volunteer points on rewards."""

from typing import Any, List, Optional

from ...database.db import get_db
from ...infrastructure.config import get_bool_env_var
from ...infrastructure.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ...infrastructure.logging import get_logger
from ..user import service as users
from ..user.models import Session
from . import store
from .models import REDEEM_TRANSITIONS, Redeem, RedeemStatus

logger = get_logger(__name__)

REFUND_ON_REJECTION_ENV = "HANDY_REFUND_ON_REJECTION"


def _parse_points(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError("Points required must be a positive integer")
    return value


class RedemptionService:
    def __init__(self, refund_on_rejection: Optional[bool] = None):
        if refund_on_rejection is None:
            refund_on_rejection = get_bool_env_var(REFUND_ON_REJECTION_ENV, False)
        self.refund_on_rejection = refund_on_rejection

    def create_redeem(
        self,
        session: Session,
        reward_name: Any,
        reward_description: Any,
        points_required: Any,
    ) -> Redeem:
        """Deduct the points and record the redemption in one transaction.

        The balance check is part of the deducting write, so two devices
        redeeming at once can never both spend the same points.
        """
        if not session.is_volunteer:
            raise AuthorizationError("Only volunteers can redeem rewards")
        if not isinstance(reward_name, str) or not reward_name.strip():
            raise ValidationError("Reward name is required")
        points = _parse_points(points_required)
        description = reward_description if isinstance(reward_description, str) else ""

        def _run() -> Redeem:
            with get_db() as conn:
                balance = users.apply_points_delta(session.user_id, -points, conn=conn)
                redeem = store.insert_redeem(conn, session.user_id, reward_name, description, points)
            logger.info(
                "Volunteer %s redeemed '%s' for %d points (balance now %d)",
                session.user_id, reward_name, points, balance,
            )
            return redeem

        return users.with_retry(_run)

    def get_redeem(self, session: Session, redeem_id: str) -> Redeem:
        redeem = store.get_redeem_by_id(redeem_id)
        if redeem is None:
            raise NotFoundError("Redeem not found", error="Redeem not found")
        if redeem.volunteer_id != session.user_id:
            raise AuthorizationError("You do not have permission to view this redeem")
        return redeem

    def list_my_redeems(self, session: Session) -> List[Redeem]:
        if not session.is_volunteer:
            raise AuthorizationError("Only volunteers have redeems")
        return store.list_by_volunteer(session.user_id)

    def update_redeem_status(self, redeem_id: str, new_status: Any) -> Redeem:
        """Back-office transition. Points only move back on rejection, and only when enabled."""
        try:
            target = RedeemStatus(new_status)
        except ValueError:
            allowed = ", ".join(s.value for s in RedeemStatus)
            raise ValidationError(f"Status must be one of: {allowed}", error="Invalid status")

        def _run() -> Redeem:
            with get_db() as conn:
                current = store.fetch(conn, redeem_id)
                if current is None:
                    raise NotFoundError("Redeem not found", error="Redeem not found")
                if target not in REDEEM_TRANSITIONS[current.status]:
                    raise InvalidTransitionError(
                        f"Cannot change redeem status from {current.status.value} to {target.value}"
                    )
                if not store.transition_status(conn, redeem_id, current.status, target):
                    raise InvalidTransitionError("Redeem status changed concurrently; reload and try again")
                if target == RedeemStatus.REJECTED and self.refund_on_rejection:
                    users.apply_points_delta(current.volunteer_id, current.points_required, conn=conn)
                    logger.info(
                        "Refunded %d points to %s for rejected redeem %s",
                        current.points_required, current.volunteer_id, redeem_id,
                    )
                updated = store.fetch(conn, redeem_id)
            logger.info("Redeem %s moved %s -> %s", redeem_id, current.status.value, target.value)
            return updated

        return users.with_retry(_run)
