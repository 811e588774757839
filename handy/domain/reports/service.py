"""Report lifecycle service.

Orchestrates the report store, the user ledger and the notifier:

    (create) -> pending -> in_progress -> completed
                   \\            \\
                    +-> cancelled <-+

Accepting a case is a single conditional write on ``status = 'pending'`` so at
most one volunteer is ever assigned. Completion is only reachable through
:meth:`ReportLifecycleService.complete_report`, which is also the only place
points are awarded for a report.
"""

import math
import sqlite3
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ...infrastructure.exceptions import (
    ApplicationError,
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ReportNotAvailableError,
    ValidationError,
)
from ...infrastructure.logging import get_logger
from ..notifications.notifier import Notifier
from ..user import service as users
from ..user.models import Session
from . import store
from .models import (
    COMPLETION_REWARDS,
    PATCHABLE_TRANSITIONS,
    Report,
    ReportStatus,
    ReportType,
)

logger = get_logger(__name__)

# Worker threads that deliver pushes after the transition has committed
NOTIFY_WORKERS = 4


@dataclass
class CompletionResult:
    report: Report
    points_awarded: int
    credited: bool


def parse_status(value: Any) -> ReportStatus:
    try:
        return ReportStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ReportStatus)
        raise ValidationError(f"Status must be one of: {allowed}", error="Invalid status")


def _parse_coordinate(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"Valid {name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Valid {name} is required")
    if not math.isfinite(number):
        raise ValidationError(f"Valid {name} is required")
    return number


class ReportLifecycleService:
    """The report state machine and its reward side effects."""

    def __init__(self, notifier: Notifier, executor: Optional[Executor] = None):
        self.notifier = notifier
        self._executor = executor or ThreadPoolExecutor(
            max_workers=NOTIFY_WORKERS, thread_name_prefix="handy-notify"
        )

    def _notify(self, description: str, send: Callable[..., Any], *args: Any) -> None:
        """Hand a notification to the background pool without waiting for it."""
        try:
            self._executor.submit(self._deliver, description, send, *args)
        except RuntimeError as exc:
            logger.warning("Notification '%s' not scheduled: %s", description, exc)

    @staticmethod
    def _deliver(description: str, send: Callable[..., Any], *args: Any) -> None:
        try:
            send(*args)
        except Exception as exc:
            logger.warning("Notification '%s' failed: %s", description, exc)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting notifications; with ``wait`` the queued ones are delivered first."""
        self._executor.shutdown(wait=wait)

    def _require(self, report_id: str) -> Report:
        report = store.get_report_by_id(report_id)
        if report is None:
            raise NotFoundError("Report not found", error="Report not found")
        return report

    def create_report(
        self,
        session: Session,
        report_type: Any,
        details: Any,
        location: Any,
        latitude: Any,
        longitude: Any,
    ) -> Report:
        if not session.is_disabled:
            raise AuthorizationError("Only disabled users can create reports")

        try:
            parsed_type = ReportType(report_type)
        except ValueError:
            raise ValidationError('Type must be "normal" or "sos"')
        if not isinstance(details, str) or not details.strip():
            raise ValidationError("Details are required")
        lat = _parse_coordinate("latitude", latitude)
        lng = _parse_coordinate("longitude", longitude)

        report = store.insert_report(
            session.user_id, parsed_type, details, location if isinstance(location, str) else "", lat, lng
        )
        logger.info("Report %s (%s) created by %s", report.id, parsed_type.value, session.user_id)

        self._notify("new report", self._notify_new_report, report)
        return report

    def _notify_new_report(self, report: Report) -> None:
        reporter = users.get_user_by_id(report.user_id)
        self.notifier.notify_volunteers_of_new_report(report, reporter)

    def accept_case(self, session: Session, report_id: str) -> Report:
        if not session.is_volunteer:
            raise AuthorizationError("Only volunteers can accept cases")

        report = store.claim_report(report_id, session.user_id)
        if report is None:
            current = self._require(report_id)
            logger.info(
                "Volunteer %s lost accept on report %s (status %s)",
                session.user_id, report_id, current.status.value,
            )
            raise ReportNotAvailableError(f"Report status is {current.status.value}")

        logger.info("Report %s accepted by volunteer %s", report_id, session.user_id)
        self._notify(
            "volunteer assigned",
            self.notifier.notify_user,
            report.user_id,
            "Handy: มีอาสาสมัครรับเคสของคุณแล้ว",
            "อาสาสมัครกำลังเดินทางไปให้ความช่วยเหลือ",
            {"reportId": report.id, "status": report.status.value, "volunteerId": session.user_id},
        )
        return report

    def complete_report(self, session: Session, report_id: str) -> CompletionResult:
        report = self._require(report_id)
        if report.user_id != session.user_id:
            raise AuthorizationError("Only the reporter can confirm completion")
        if report.status != ReportStatus.IN_PROGRESS:
            raise InvalidTransitionError(
                f"Report must be in_progress to complete (current status: {report.status.value})"
            )

        updated = store.transition_status(
            report_id, ReportStatus.IN_PROGRESS, ReportStatus.COMPLETED, reporter_id=session.user_id
        )
        if updated is None:
            current = self._require(report_id)
            raise InvalidTransitionError(
                f"Report must be in_progress to complete (current status: {current.status.value})"
            )
        logger.info("Report %s completed by reporter %s", report_id, session.user_id)

        points = COMPLETION_REWARDS[updated.type]
        volunteer_id = updated.assigned_volunteer_id
        credited = False
        try:
            users.apply_points_delta(volunteer_id, points)
            credited = True
            logger.info("Credited %d points to volunteer %s for report %s", points, volunteer_id, report_id)
        except (ApplicationError, sqlite3.Error) as exc:
            # The completion stands; the missing credit is reconciled by hand
            logger.error(
                "RECONCILE: report %s completed but crediting %d points to volunteer %s failed: %s",
                report_id, points, volunteer_id, exc,
            )

        if credited:
            self._notify(
                "report completed",
                self.notifier.notify_user,
                volunteer_id,
                "Handy: เคสเสร็จสิ้นแล้ว",
                f"ขอบคุณที่ช่วยเหลือ คุณได้รับ {points} แต้ม",
                {"reportId": updated.id, "status": updated.status.value, "points": points},
            )
        return CompletionResult(report=updated, points_awarded=points if credited else 0, credited=credited)

    def update_status(self, session: Session, report_id: str, new_status: Any) -> Report:
        """Generic status patch. Only cancellation is reachable here."""
        target = parse_status(new_status)
        if target == ReportStatus.COMPLETED:
            raise InvalidTransitionError(
                "Reports can only be completed by the reporter through the complete endpoint"
            )

        report = self._require(report_id)
        if not report.is_party(session.user_id):
            raise AuthorizationError("You do not have permission to update this report")
        if report.is_terminal:
            raise InvalidTransitionError(f"Report is already {report.status.value}")

        if target not in PATCHABLE_TRANSITIONS[report.status]:
            if report.status == ReportStatus.PENDING and target == ReportStatus.IN_PROGRESS:
                raise InvalidTransitionError("Use the accept endpoint to take a pending case")
            raise InvalidTransitionError(
                f"Cannot change report status from {report.status.value} to {target.value}"
            )

        updated = store.transition_status(report_id, report.status, target)
        if updated is None:
            current = self._require(report_id)
            raise InvalidTransitionError(
                f"Report status changed to {current.status.value}; reload and try again"
            )
        logger.info(
            "Report %s moved %s -> %s by %s", report_id, report.status.value, target.value, session.user_id
        )

        if target == ReportStatus.CANCELLED:
            other_party = updated.assigned_volunteer_id if session.user_id == updated.user_id else updated.user_id
            if other_party:
                self._notify(
                    "report cancelled",
                    self.notifier.notify_user,
                    other_party,
                    "Handy: เคสถูกยกเลิก",
                    "คำขอความช่วยเหลือนี้ถูกยกเลิกแล้ว",
                    {"reportId": updated.id, "status": updated.status.value},
                )
        return updated

    def list_available_cases(self, session: Session) -> List[Report]:
        if not session.is_volunteer:
            raise AuthorizationError("Only volunteers can browse available cases")
        return store.list_by_status(ReportStatus.PENDING)

    def list_mine(self, session: Session, status: Optional[Any] = None) -> List[Report]:
        """Reports a disabled user filed, or cases a volunteer was assigned."""
        parsed = parse_status(status) if status else None
        if session.is_disabled:
            return store.list_by_reporter(session.user_id, parsed)
        cases = store.list_by_volunteer(session.user_id)
        if parsed is not None:
            cases = [c for c in cases if c.status == parsed]
        return cases

    def get_report(self, session: Session, report_id: str) -> Dict[str, Any]:
        """Report detail; the assigned volunteer also gets the reporter's contact info."""
        report = self._require(report_id)
        open_case = report.status == ReportStatus.PENDING and session.is_volunteer
        if not report.is_party(session.user_id) and not open_case:
            raise AuthorizationError("You do not have permission to view this report")

        view = report.to_public()
        if report.assigned_volunteer_id == session.user_id:
            reporter = users.get_user_by_id(report.user_id)
            if reporter is not None:
                view["disabledUser"] = reporter.contact_info()
        return view
