"""Report lifecycle API routes."""

from fastapi import APIRouter, Depends, status
from typing import Dict, Any, Optional
from pydantic import BaseModel

from ..deps import get_report_service
from ..middleware.auth import get_current_session, require_disabled, require_volunteer
from ...domain.reports.service import ReportLifecycleService
from ...domain.user.models import Session

router = APIRouter(prefix="/api/reports", tags=["reports"])


class ReportCreate(BaseModel):
    """Model for report submission. Coordinates are checked by the service."""
    type: str
    details: str
    location: Optional[str] = ""
    latitude: Any
    longitude: Any


class StatusUpdate(BaseModel):
    """Model for a report status patch."""
    status: str


@router.post("", status_code=status.HTTP_201_CREATED)
def create_report(
    payload: ReportCreate,
    session: Session = Depends(require_disabled),
    service: ReportLifecycleService = Depends(get_report_service),
) -> Dict[str, Any]:
    report = service.create_report(
        session, payload.type, payload.details, payload.location, payload.latitude, payload.longitude
    )
    return {"message": "Report created successfully", "report": report.to_public()}


@router.get("/my-reports")
def my_reports(
    status: Optional[str] = None,
    session: Session = Depends(require_disabled),
    service: ReportLifecycleService = Depends(get_report_service),
) -> Dict[str, Any]:
    reports = service.list_mine(session, status)
    return {"reports": [r.to_public() for r in reports]}


@router.get("/available-cases")
def available_cases(
    session: Session = Depends(require_volunteer),
    service: ReportLifecycleService = Depends(get_report_service),
) -> Dict[str, Any]:
    cases = service.list_available_cases(session)
    return {"cases": [c.to_public() for c in cases]}


@router.get("/my-cases")
def my_cases(
    session: Session = Depends(require_volunteer),
    service: ReportLifecycleService = Depends(get_report_service),
) -> Dict[str, Any]:
    cases = service.list_mine(session)
    return {"cases": [c.to_public() for c in cases]}


@router.post("/{report_id}/accept")
def accept_case(
    report_id: str,
    session: Session = Depends(require_volunteer),
    service: ReportLifecycleService = Depends(get_report_service),
) -> Dict[str, Any]:
    report = service.accept_case(session, report_id)
    return {"message": "Case accepted successfully", "report": report.to_public()}


@router.patch("/{report_id}/status")
def update_status(
    report_id: str,
    payload: StatusUpdate,
    session: Session = Depends(get_current_session),
    service: ReportLifecycleService = Depends(get_report_service),
) -> Dict[str, Any]:
    report = service.update_status(session, report_id, payload.status)
    return {"message": "Report status updated successfully", "report": report.to_public()}


@router.post("/{report_id}/complete")
def complete_report(
    report_id: str,
    session: Session = Depends(require_disabled),
    service: ReportLifecycleService = Depends(get_report_service),
) -> Dict[str, Any]:
    """Reporter confirms the volunteer finished; awards the volunteer's points."""
    result = service.complete_report(session, report_id)
    return {
        "message": "Report completed successfully",
        "report": result.report.to_public(),
        "pointsAwarded": result.points_awarded,
    }


@router.get("/{report_id}")
def get_report(
    report_id: str,
    session: Session = Depends(get_current_session),
    service: ReportLifecycleService = Depends(get_report_service),
) -> Dict[str, Any]:
    return {"report": service.get_report(session, report_id)}
