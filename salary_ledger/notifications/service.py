"""
Email notifications for payment requests and completed payments.

Delivery runs on a small worker pool so callers never wait on SMTP; failures
are logged and never propagated.
"""
import logging
import smtplib
from concurrent.futures import Future, ThreadPoolExecutor
from email.message import EmailMessage
from typing import Optional

from salary_ledger.core.config import settings
from salary_ledger.core.exceptions import NotificationError
from salary_ledger.ledger.schemas import BalanceTotals, SettlementResult

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="notifications")


class EmailNotificationService:
    def __init__(self, config=None, executor: Optional[ThreadPoolExecutor] = None):
        self.config = config or settings
        self.executor = executor or _executor

    def notify_payment_request(self, totals: BalanceTotals, firstname: Optional[str] = None) -> Optional[Future]:
        html = f"""
            <h2>Salary Payment Request</h2>
            <p>Dear {firstname or 'User'},</p>
            <p>You have submitted a payment request with the following details:</p>
            <ul>
                <li>User ID: {totals.user_id}</li>
                <li>Unpaid Hours: {totals.unpaid_hours}</li>
                <li>Hourly Salary Rate: {totals.effective_rate}</li>
                <li>Unpaid Permanent Salaries: {totals.unpaid_permanent}</li>
                <li>Total salary: {totals.total_owed}</li>
            </ul>
            <p>Your salary request is being processed.</p>
            <br/>
            <small>This is an automated email. Please do not reply.</small>
        """
        return self.dispatch("Salary Payment Request Submitted", html)

    def notify_payment_done(self, result: SettlementResult, firstname: Optional[str] = None) -> Optional[Future]:
        html = f"""
            <h2>Salary Payment</h2>
            <p>Dear {firstname or 'User'},</p>
            <p>Your payment has been processed:</p>
            <ul>
                <li>Employee ID: {result.employee_id}</li>
                <li>Total Hours: {result.total_hours}</li>
                <li>Hourly Salary Rate: {result.hourly_salary}</li>
                <li>Permanent Salary: {result.permanent_salary}</li>
                <li>Total Salary: {result.total_salary}</li>
            </ul>
            <p>Your salary is being paid.</p>
            <br/>
            <small>This is an automated email. Please do not reply.</small>
        """
        return self.dispatch("Salary Payment Done", html)

    def dispatch(self, subject: str, html: str) -> Optional[Future]:
        """Queue an email and return immediately."""
        if not self.config.notifications_enabled:
            logger.info(f"Notifications disabled, skipping '{subject}'")
            return None

        future = self.executor.submit(self._send, subject, html)
        future.add_done_callback(self._log_outcome)
        return future

    def _send(self, subject: str, html: str) -> str:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.config.notification_sender
        message["To"] = self.config.notification_recipient
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=self.config.smtp_timeout) as smtp:
                if self.config.smtp_use_tls:
                    smtp.starttls()
                if self.config.smtp_username:
                    smtp.login(self.config.smtp_username, self.config.smtp_password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(subject, str(e)) from e

        return subject

    @staticmethod
    def _log_outcome(future: Future):
        error = future.exception()
        if error is None:
            logger.info(f"Notification sent: {future.result()}")
        else:
            logger.error(f"Notification failed: {error}")


notification_service = EmailNotificationService()
