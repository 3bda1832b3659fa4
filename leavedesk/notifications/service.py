"""Outcome notifications — approval / rejection emails over SMTP.

``EmailNotifier`` builds and sends the messages. ``dispatch_outcome_notification``
is what the router schedules as a background task after an approve or reject
has been written: it runs detached from the request and every failure ends in
a log line, never in the caller.
"""

from __future__ import annotations

import asyncio
import smtplib
import ssl
from datetime import date
from email.message import EmailMessage
from typing import Optional, Protocol

from leavedesk.common.constants import LeaveStatus
from leavedesk.common.log import RequestContext, get_logger
from leavedesk.config import Settings, settings
from leavedesk.leave.schemas import LeaveRequestOut


class Notifier(Protocol):
    async def notify_approved(self, leave: LeaveRequestOut) -> bool: ...

    async def notify_rejected(self, leave: LeaveRequestOut) -> bool: ...


def _format_date(d: date) -> str:
    return f"{d:%B} {d.day}, {d.year}"


def _details_block(leave: LeaveRequestOut) -> str:
    return (
        "Leave Details:\n"
        f"- Type: {leave.leave_type.value}\n"
        f"- Start Date: {_format_date(leave.start_date)}\n"
        f"- End Date: {_format_date(leave.end_date)}\n"
        f"- Days: {leave.days}\n"
        f"- Reason: {leave.reason}\n"
    )


def build_approval_body(leave: LeaveRequestOut) -> str:
    comment = ""
    if leave.manager_comment:
        comment = f"\nManager's Comment:\n{leave.manager_comment}\n"
    return (
        f"Hello {leave.employee_name},\n\n"
        "Your leave request has been approved.\n\n"
        f"{_details_block(leave)}"
        f"{comment}\n"
        "Thank you,\n"
        "Leave Management System\n"
    )


def build_rejection_body(leave: LeaveRequestOut) -> str:
    return (
        f"Hello {leave.employee_name},\n\n"
        "Your leave request has been rejected.\n\n"
        f"{_details_block(leave)}\n"
        "Manager's Comment:\n"
        f"{leave.manager_comment or ''}\n\n"
        "If you have any questions, please contact your manager.\n\n"
        "Thank you,\n"
        "Leave Management System\n"
    )


class EmailNotifier:
    """Sends outcome emails; a no-op when SMTP_HOST is not configured."""

    def __init__(self, config: Settings = settings) -> None:
        self.config = config
        self.log = get_logger(__name__, component="email")

    async def notify_approved(self, leave: LeaveRequestOut) -> bool:
        return await self._send(
            leave.employee_email, "Leave Request Approved", build_approval_body(leave),
        )

    async def notify_rejected(self, leave: LeaveRequestOut) -> bool:
        return await self._send(
            leave.employee_email, "Leave Request Rejected", build_rejection_body(leave),
        )

    def _build_message(self, to_email: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.config.SMTP_FROM
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    async def _send(self, to_email: str, subject: str, body: str) -> bool:
        if not self.config.smtp_configured:
            self.log.debug("email_skipped reason=smtp_not_configured to=%s subject=%s", to_email, subject)
            return True

        msg = self._build_message(to_email, subject, body)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as exc:
            self.log.error("email_failed to=%s subject=%s error=%s", to_email, subject, exc)
            return False

        self.log.info("email_sent to=%s subject=%s", to_email, subject)
        return True

    def _deliver(self, msg: EmailMessage) -> None:
        cfg = self.config
        context = ssl.create_default_context()

        # Port 465 uses implicit TLS; anything else upgrades with STARTTLS
        if cfg.SMTP_PORT == 465:
            with smtplib.SMTP_SSL(
                cfg.SMTP_HOST, cfg.SMTP_PORT, context=context, timeout=cfg.SMTP_TIMEOUT,
            ) as smtp:
                if cfg.SMTP_USER:
                    smtp.login(cfg.SMTP_USER, cfg.SMTP_PASSWORD)
                smtp.send_message(msg)
            return

        with smtplib.SMTP(cfg.SMTP_HOST, cfg.SMTP_PORT, timeout=cfg.SMTP_TIMEOUT) as smtp:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls(context=context)
                smtp.ehlo()
            if cfg.SMTP_USER:
                smtp.login(cfg.SMTP_USER, cfg.SMTP_PASSWORD)
            smtp.send_message(msg)


def get_notifier() -> Notifier:
    """FastAPI dependency; overridden in tests."""
    return EmailNotifier(settings)


async def dispatch_outcome_notification(
    notifier: Notifier,
    leave: LeaveRequestOut,
    ctx: Optional[RequestContext] = None,
) -> None:
    """Send the email matching ``leave.status``. Never raises."""
    log = get_logger(__name__, ctx)
    try:
        if leave.status == LeaveStatus.approved:
            sent = await notifier.notify_approved(leave)
        elif leave.status == LeaveStatus.rejected:
            sent = await notifier.notify_rejected(leave)
        else:
            log.warning(
                "notification_skipped reason=no_outcome leave_id=%s status=%s",
                leave.id, leave.status.value,
            )
            return
    except Exception:
        log.exception("notification_failed leave_id=%s status=%s", leave.id, leave.status.value)
        return

    if not sent:
        log.error("notification_failed leave_id=%s status=%s", leave.id, leave.status.value)
