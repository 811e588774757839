"""Redeem domain models."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RedeemStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


# Back-office fulfilment workflow
REDEEM_TRANSITIONS: Mapping[RedeemStatus, FrozenSet[RedeemStatus]] = {
    RedeemStatus.PENDING: frozenset({RedeemStatus.APPROVED, RedeemStatus.REJECTED, RedeemStatus.COMPLETED}),
    RedeemStatus.APPROVED: frozenset({RedeemStatus.COMPLETED, RedeemStatus.REJECTED}),
    RedeemStatus.REJECTED: frozenset(),
    RedeemStatus.COMPLETED: frozenset(),
}


class Redeem(BaseModel):
    """A reward redemption. Points were deducted when it was created."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    volunteer_id: str
    reward_name: str
    reward_description: str = ""
    points_required: int = Field(..., gt=0)
    status: RedeemStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Redeem":
        return cls.model_validate(dict(row))

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
