"""Service accessors for route dependencies."""

from fastapi import Request

from ..domain.redeem.service import RedemptionService
from ..domain.reports.service import ReportLifecycleService


def get_report_service(request: Request) -> ReportLifecycleService:
    return request.app.state.report_service


def get_redemption_service(request: Request) -> RedemptionService:
    return request.app.state.redemption_service
