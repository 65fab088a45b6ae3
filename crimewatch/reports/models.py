"""
CrimeWatch - Report Model

An incident report submitted by a user and triaged by admins.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, String, Text, Enum as SQLEnum

from crimewatch.auth.models import utcnow


class ReportStatus(str, Enum):
    """
    Triage state. Any value may be set from any other by an admin;
    no state is terminal.
    """
    PENDING = "pending"
    REVIEWED = "reviewed"
    CLOSED = "closed"


class Report(SQLModel, table=True):
    """
    Attributes:
        reporter_id: Owning user; always the authenticated creator
        status: Starts as pending
    """
    __tablename__ = "reports"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(sa_column=Column(String(255), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    category: str = Field(sa_column=Column(String(100), index=True, nullable=False))
    location: str = Field(sa_column=Column(String(255), nullable=False))
    status: ReportStatus = Field(
        default=ReportStatus.PENDING,
        sa_column=Column(SQLEnum(ReportStatus), index=True, nullable=False, default=ReportStatus.PENDING),
    )
    reporter_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow),
    )
