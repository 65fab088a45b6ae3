"""
CrimeWatch - Report Request/Response Schemas
"""

from datetime import datetime

from pydantic import ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from crimewatch.auth.schemas import CamelModel
from crimewatch.reports.models import ReportStatus


class ReportCreate(CamelModel):
    """
    Request body for POST /api/reports.

    All four fields are required non-blank strings. Any reporterId or
    status sent by the client is ignored.
    """
    title: str
    description: str
    category: str
    location: str

    @field_validator("title", "description", "category", "location")
    @classmethod
    def not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Must not be empty")
        return v


class ReportStatusUpdate(CamelModel):
    """Request body for PATCH /api/reports/{id}/status."""
    status: ReportStatus


class ReportRead(CamelModel):
    id: int
    title: str
    description: str
    category: str
    location: str
    status: ReportStatus
    reporter_id: int
    created_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
