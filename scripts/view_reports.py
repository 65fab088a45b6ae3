#!/usr/bin/env python3
"""
Utility script to view recent crime reports from the database.
Usage: python scripts/view_reports.py [limit] [--status pending|reviewed|closed]
"""

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich import print as rprint

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session, select

from crimewatch.config import settings
from crimewatch.database import get_engine, init_db
from crimewatch.errors import ConfigurationError
from crimewatch.auth.models import User
from crimewatch.reports.models import Report, ReportStatus

console = Console()

STATUS_STYLES = {
    ReportStatus.PENDING: "yellow",
    ReportStatus.REVIEWED: "cyan",
    ReportStatus.CLOSED: "green",
}


def view_reports(engine, limit: int = 20, status: ReportStatus = None) -> int:
    with Session(engine) as session:
        statement = select(Report, User).join(User, Report.reporter_id == User.id)
        if status is not None:
            statement = statement.where(Report.status == status)
        statement = statement.order_by(Report.created_at.desc(), Report.id.desc()).limit(limit)
        rows = session.exec(statement).all()

    if not rows:
        rprint("[yellow]No reports found.[/yellow]")
        return 0

    title = f"Crime Reports (Limit: {limit})"
    if status is not None:
        title += f" - {status.value}"
    table = Table(title=title)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Submitted", style="cyan", no_wrap=True)
    table.add_column("Category", style="magenta")
    table.add_column("Title", style="white")
    table.add_column("Location", style="white")
    table.add_column("Reporter", style="yellow")
    table.add_column("Status")

    for report, reporter in rows:
        submitted = report.created_at.strftime("%Y-%m-%d %H:%M:%S") if report.created_at else "N/A"
        title_text = report.title if len(report.title) <= 40 else report.title[:37] + "..."
        style = STATUS_STYLES.get(report.status, "white")
        table.add_row(
            str(report.id),
            submitted,
            report.category,
            title_text,
            report.location,
            reporter.username,
            f"[{style}]{report.status.value}[/{style}]",
        )

    console.print(table)
    rprint(f"\n[dim]Showing {len(rows)} report(s).[/dim]")
    return len(rows)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="View recent CrimeWatch reports")
    parser.add_argument("limit", nargs="?", type=int, default=20)
    parser.add_argument("--status", choices=[s.value for s in ReportStatus])
    args = parser.parse_args(argv)

    try:
        engine = get_engine(settings.DATABASE_URL)
    except ConfigurationError as e:
        rprint(f"[red]Error: {e}[/red]")
        return 1
    init_db(engine)
    try:
        view_reports(engine, args.limit, ReportStatus(args.status) if args.status else None)
    finally:
        engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
