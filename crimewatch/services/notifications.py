"""
Email notifications over SMTP.

Fire-and-forget: callers schedule these as background tasks after the
response is built. Every public method catches and logs its own failures;
nothing is raised to the caller and nothing is retried.

Disabled (log only) when SMTP credentials or the admin address are missing.
"""

import html
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from fastapi import Request
from loguru import logger

from crimewatch.config import Settings


class EmailNotifier:
    """SMTP notifier for admin alerts and password reset delivery."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        use_tls: bool = True,
        admin_email: str = "",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.admin_email = admin_email
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailNotifier":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            admin_email=settings.ADMIN_EMAIL,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.host and self.user and self.password)

    def send(self, to_email: str, subject: str, text_body: str, html_body: str) -> None:
        """Send one message. Raises on SMTP failure."""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.user
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            server.login(self.user, self.password)
            server.sendmail(self.user, [to_email], msg.as_string())

    def notify_report_created(self, report, reporter_name: Optional[str] = None) -> None:
        """Alert the admin mailbox about a new report."""
        if not self.enabled:
            logger.info("Email notifications disabled - no SMTP credentials configured")
            return
        if not self.admin_email:
            logger.warning("ADMIN_EMAIL not configured; admin notification not sent")
            return

        try:
            subject = f"Crime Report Alert - {report.category} at {report.location}"
            self.send(
                self.admin_email,
                subject,
                render_report_text(report, reporter_name),
                render_report_html(report, reporter_name),
            )
            logger.info(f"Admin notification sent for report #{report.id} to {self.admin_email}")
        except Exception as e:
            logger.error(f"Failed to send admin notification for report #{report.id}: {e!r}")

    def send_password_reset(self, to_email: str, username: str, token: str) -> None:
        """Deliver a reset token out of band."""
        if not self.enabled:
            logger.warning(f"Email disabled; password reset token for {username!r} not delivered")
            return

        try:
            text = (
                f"Hello {username},\n\n"
                f"Use this token to reset your CrimeWatch password:\n\n{token}\n\n"
                "If you did not request a reset, ignore this message."
            )
            body = (
                f"<p>Hello {html.escape(username)},</p>"
                f"<p>Use this token to reset your CrimeWatch password:</p>"
                f"<p><code>{html.escape(token)}</code></p>"
                "<p>If you did not request a reset, ignore this message.</p>"
            )
            self.send(to_email, "CrimeWatch password reset", text, body)
            logger.info(f"Password reset email sent for {username!r}")
        except Exception as e:
            logger.error(f"Failed to send password reset email for {username!r}: {e!r}")


def render_report_text(report, reporter_name: Optional[str] = None) -> str:
    lines = [
        "New Crime Report Submitted",
        "",
        f"Crime Type: {report.category}",
        f"Title: {report.title}",
        f"Location: {report.location}",
        f"Description: {report.description}",
        "",
        f"Reporter ID: {report.reporter_id}",
    ]
    if reporter_name:
        lines.append(f"Reporter Name: {reporter_name}")
    lines += [
        f"Report ID: {report.id}",
        f"Status: {report.status.value}",
        f"Submitted at: {report.created_at.isoformat() if report.created_at else 'N/A'}",
    ]
    return "\n".join(lines)


def render_report_html(report, reporter_name: Optional[str] = None) -> str:
    rows = [
        ("Crime Type", report.category),
        ("Title", report.title),
        ("Location", report.location),
        ("Description", report.description),
        ("Reporter ID", str(report.reporter_id)),
    ]
    if reporter_name:
        rows.append(("Reporter Name", reporter_name))
    rows += [
        ("Report ID", str(report.id)),
        ("Status", report.status.value),
        ("Submitted at", report.created_at.isoformat() if report.created_at else "N/A"),
    ]
    details = "".join(
        f"<p><strong>{label}:</strong> {html.escape(value)}</p>" for label, value in rows
    )
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px;">'
        "<h2>New Crime Report Submitted</h2>"
        f"{details}"
        '<p style="color: #666; font-size: 12px;">'
        "This is an automated notification from CrimeWatch.</p>"
        "</div>"
    )


def get_notifier(request: Request) -> EmailNotifier:
    return request.app.state.notifier
