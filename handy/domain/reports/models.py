"""Report domain models and the report state machine."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ReportType(str, Enum):
    NORMAL = "normal"
    SOS = "sos"


class ReportStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReportPriority(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_BY_TYPE: Mapping[ReportType, ReportPriority] = {
    ReportType.SOS: ReportPriority.HIGH,
    ReportType.NORMAL: ReportPriority.MEDIUM,
}

# Points credited to the assigned volunteer when the reporter confirms completion
COMPLETION_REWARDS: Mapping[ReportType, int] = {
    ReportType.SOS: 500,
    ReportType.NORMAL: 200,
}

# Every edge of the state machine. Accept and complete have dedicated operations.
TRANSITIONS: Mapping[ReportStatus, FrozenSet[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({ReportStatus.IN_PROGRESS, ReportStatus.CANCELLED}),
    ReportStatus.IN_PROGRESS: frozenset({ReportStatus.COMPLETED, ReportStatus.CANCELLED}),
    ReportStatus.COMPLETED: frozenset(),
    ReportStatus.CANCELLED: frozenset(),
}

# Edges reachable through the generic status patch
PATCHABLE_TRANSITIONS: Mapping[ReportStatus, FrozenSet[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({ReportStatus.CANCELLED}),
    ReportStatus.IN_PROGRESS: frozenset({ReportStatus.CANCELLED}),
    ReportStatus.COMPLETED: frozenset(),
    ReportStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


class Report(BaseModel):
    """A help request. Unknown type/status/priority literals fail validation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    user_id: str
    type: ReportType
    details: str
    location: str = ""
    latitude: float
    longitude: float
    status: ReportStatus
    priority: ReportPriority
    assigned_volunteer_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "Report":
        return cls.model_validate(dict(row))

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_party(self, user_id: str) -> bool:
        return user_id == self.user_id or (
            self.assigned_volunteer_id is not None and user_id == self.assigned_volunteer_id
        )

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
