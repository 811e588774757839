"""Tests for domain models and state tables."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from handy.domain.redeem.models import REDEEM_TRANSITIONS, Redeem, RedeemStatus
from handy.domain.reports.models import (
    COMPLETION_REWARDS,
    PATCHABLE_TRANSITIONS,
    TERMINAL_STATUSES,
    TRANSITIONS,
    Report,
    ReportStatus,
    ReportType,
)
from handy.domain.user.models import Session, User, UserType

NOW = datetime(2024, 3, 10, 3, 0, tzinfo=timezone.utc).isoformat()


def report_row(**overrides):
    row = {
        "id": "r-1",
        "user_id": "reporter-1",
        "type": "sos",
        "details": "Help",
        "location": "",
        "latitude": 13.75,
        "longitude": 100.5,
        "status": "pending",
        "priority": "high",
        "assigned_volunteer_id": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


class TestReportModel:
    def test_from_row(self):
        report = Report.from_row(report_row())
        assert report.type == ReportType.SOS
        assert report.status == ReportStatus.PENDING
        assert not report.is_terminal

    @pytest.mark.parametrize("field,value", [
        ("status", "archived"),
        ("type", "urgent"),
        ("priority", "low"),
    ])
    def test_unknown_literals_are_rejected(self, field, value):
        with pytest.raises(PydanticValidationError):
            Report.from_row(report_row(**{field: value}))

    def test_public_shape(self):
        public = Report.from_row(report_row(assigned_volunteer_id="v-1")).to_public()
        assert public["assignedVolunteerId"] == "v-1"
        assert public["userId"] == "reporter-1"
        assert public["status"] == "pending"

    def test_parties(self):
        report = Report.from_row(report_row(assigned_volunteer_id="v-1"))
        assert report.is_party("reporter-1")
        assert report.is_party("v-1")
        assert not report.is_party("v-2")
        assert not Report.from_row(report_row()).is_party("v-1")


class TestStateTables:
    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {ReportStatus.COMPLETED, ReportStatus.CANCELLED}

    def test_patchable_edges_are_real_edges(self):
        for source, targets in PATCHABLE_TRANSITIONS.items():
            assert targets <= TRANSITIONS[source]
        assert all(ReportStatus.COMPLETED not in targets for targets in PATCHABLE_TRANSITIONS.values())

    def test_rewards(self):
        assert COMPLETION_REWARDS[ReportType.SOS] == 500
        assert COMPLETION_REWARDS[ReportType.NORMAL] == 200

    def test_redeem_terminal_states(self):
        assert REDEEM_TRANSITIONS[RedeemStatus.REJECTED] == frozenset()
        assert REDEEM_TRANSITIONS[RedeemStatus.COMPLETED] == frozenset()


class TestUserModels:
    def test_negative_points_rejected(self):
        with pytest.raises(PydanticValidationError):
            User(id="v", type="volunteer", points=-1, created_at=NOW, updated_at=NOW)

    def test_session_roles(self):
        session = Session(user_id="v", user_type=UserType.VOLUNTEER)
        assert session.is_volunteer and not session.is_disabled

    def test_redeem_points_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            Redeem(id="x", volunteer_id="v", reward_name="Tea", points_required=0,
                   status="pending", created_at=NOW, updated_at=NOW)
