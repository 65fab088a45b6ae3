"""
CrimeWatch - Report Routes

- GET    /api/reports                - List visible reports
- POST   /api/reports                - Submit a report
- GET    /api/reports/{id}           - Get one report
- PATCH  /api/reports/{id}/status    - Change status (admin)
- DELETE /api/reports/{id}           - Delete (admin)
"""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlmodel import Session as DBSession

from crimewatch.auth.dependencies import RequestIdentity, require_permission
from crimewatch.auth.schemas import MessageResponse
from crimewatch.database import get_db
from crimewatch.gateway.rbac import Permission
from crimewatch.reports.models import ReportStatus
from crimewatch.reports.schemas import ReportCreate, ReportRead, ReportStatusUpdate
from crimewatch.reports.service import ReportService
from crimewatch.services.notifications import EmailNotifier, get_notifier


router = APIRouter(prefix="/reports", tags=["reports"])


def get_report_service(db: DBSession = Depends(get_db)) -> ReportService:
    return ReportService(db)


@router.get("", response_model=List[ReportRead], summary="List reports")
async def list_reports(
    status_filter: Optional[ReportStatus] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    identity: RequestIdentity = Depends(require_permission(Permission.READ_OWN_REPORTS)),
    reports: ReportService = Depends(get_report_service),
):
    """
    Admins see every report and may filter by status and category.
    Everyone else sees only their own reports.
    """
    return [
        ReportRead.model_validate(r)
        for r in reports.list_for(identity, status=status_filter, category=category)
    ]


@router.post(
    "",
    response_model=ReportRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a report",
)
async def create_report(
    body: ReportCreate,
    background_tasks: BackgroundTasks,
    identity: RequestIdentity = Depends(require_permission(Permission.CREATE_REPORT)),
    reports: ReportService = Depends(get_report_service),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """
    Create a report owned by the caller.

    The admin email is sent after the response; its outcome never
    affects this request.
    """
    report = ReportRead.model_validate(reports.create(body, identity))
    background_tasks.add_task(notifier.notify_report_created, report, identity.user.username)
    return report


@router.get("/{report_id}", response_model=ReportRead, summary="Get a report")
async def get_report(
    report_id: int,
    identity: RequestIdentity = Depends(require_permission(Permission.READ_OWN_REPORTS)),
    reports: ReportService = Depends(get_report_service),
):
    return ReportRead.model_validate(reports.get_for(report_id, identity))


@router.patch("/{report_id}/status", response_model=ReportRead, summary="Update report status")
async def update_report_status(
    report_id: int,
    body: ReportStatusUpdate,
    identity: RequestIdentity = Depends(require_permission(Permission.UPDATE_REPORT_STATUS)),
    reports: ReportService = Depends(get_report_service),
):
    return ReportRead.model_validate(reports.update_status(report_id, body.status))


@router.delete("/{report_id}", response_model=MessageResponse, summary="Delete a report")
async def delete_report(
    report_id: int,
    identity: RequestIdentity = Depends(require_permission(Permission.DELETE_REPORT)),
    reports: ReportService = Depends(get_report_service),
):
    reports.delete(report_id)
    return MessageResponse(message="Report deleted")
