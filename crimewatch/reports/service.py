"""
CrimeWatch - Report Service

Role-scoped report operations. Visibility rules:
- READ_ALL_REPORTS (admin): every report, optional status/category filter
- otherwise: only reports the caller authored
"""

from typing import List, Optional

from loguru import logger
from sqlmodel import Session as DBSession, select

from crimewatch.auth.dependencies import RequestIdentity
from crimewatch.errors import Forbidden, NotFound
from crimewatch.gateway.rbac import Permission
from crimewatch.reports.models import Report, ReportStatus
from crimewatch.reports.schemas import ReportCreate


class ReportService:

    def __init__(self, db: DBSession):
        self.db = db

    def create(self, data: ReportCreate, identity: RequestIdentity) -> Report:
        """Persist a report owned by the caller, status pending."""
        report = Report(
            title=data.title,
            description=data.description,
            category=data.category,
            location=data.location,
            status=ReportStatus.PENDING,
            reporter_id=identity.user.id,
        )
        self.db.add(report)
        self.db.commit()
        self.db.refresh(report)
        logger.info(f"Report #{report.id} created by user id={report.reporter_id}")
        return report

    def list_for(
        self,
        identity: RequestIdentity,
        status: Optional[ReportStatus] = None,
        category: Optional[str] = None,
    ) -> List[Report]:
        statement = select(Report)

        if identity.can(Permission.READ_ALL_REPORTS):
            if status is not None:
                statement = statement.where(Report.status == status)
            if category:
                statement = statement.where(Report.category == category)
        else:
            # Filters are an admin feature; reporters always get their own list
            statement = statement.where(Report.reporter_id == identity.user.id)

        statement = statement.order_by(Report.created_at.desc(), Report.id.desc())
        return list(self.db.exec(statement).all())

    def get(self, report_id: int) -> Report:
        report = self.db.get(Report, report_id)
        if report is None:
            raise NotFound("Report not found")
        return report

    def get_for(self, report_id: int, identity: RequestIdentity) -> Report:
        """
        Raises:
            NotFound: Unknown id
            Forbidden: Caller may not see this report
        """
        report = self.get(report_id)
        if not identity.can(Permission.READ_ALL_REPORTS) and report.reporter_id != identity.user.id:
            raise Forbidden("You can only view your own reports")
        return report

    def update_status(self, report_id: int, status: ReportStatus) -> Report:
        report = self.get(report_id)
        previous = report.status
        report.status = status
        self.db.add(report)
        self.db.commit()
        self.db.refresh(report)
        logger.info(f"Report #{report.id} status {previous.value} -> {status.value}")
        return report

    def delete(self, report_id: int) -> None:
        report = self.get(report_id)
        self.db.delete(report)
        self.db.commit()
        logger.info(f"Report #{report_id} deleted")
