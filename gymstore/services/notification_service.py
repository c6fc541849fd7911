from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from html import escape

from gymstore.core.config import Settings, settings
from gymstore.core.metrics import NOTIFICATION_FAILURES
from gymstore.db.models import Booking, Order
from gymstore.services.calendar_service import format_booking_day

logger = logging.getLogger(__name__)

EMAIL_NOT_CONFIGURED = "Email transport is not configured"


@dataclass(slots=True)
class NotificationResult:
    sent: bool
    error: str | None = None


class EmailSender:
    def __init__(self, config: Settings) -> None:
        self.config = config

    @property
    def from_address(self) -> str:
        return self.config.smtp_from_email or self.config.smtp_username

    def send(self, to: str, subject: str, html_body: str) -> NotificationResult:
        if not self.config.smtp_host or not self.from_address:
            return NotificationResult(sent=False, error=EMAIL_NOT_CONFIGURED)

        message = EmailMessage()
        message["From"] = self.from_address
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html_body, subtype="html")

        try:
            with smtplib.SMTP(
                self.config.smtp_host,
                self.config.smtp_port,
                timeout=self.config.smtp_timeout_seconds,
            ) as server:
                if self.config.smtp_use_tls:
                    server.starttls()
                if self.config.smtp_username and self.config.smtp_password:
                    server.login(self.config.smtp_username, self.config.smtp_password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            return NotificationResult(sent=False, error=str(exc))
        return NotificationResult(sent=True)


def get_email_sender() -> EmailSender:
    return EmailSender(settings)


def build_booking_cancellation_email(booking: Booking) -> tuple[str, str]:
    day = format_booking_day(booking.date)
    html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #dc3545;">Booking Cancellation Notice</h2>
  <p>Dear {escape(booking.name)},</p>
  <p>We regret to inform you that your booking for <strong>{escape(booking.facility)}</strong>
  at <strong>{escape(booking.gym)}</strong> on <strong>{day}</strong> ({escape(booking.time_slot)})
  has been cancelled.</p>
  <p>If you have any questions or would like to reschedule, please contact us at
  {escape(settings.support_phone)}.</p>
  <p>Best regards,<br>{escape(booking.gym)} Team</p>
</div>
"""
    return "Booking Cancellation Notice", html_body


def build_order_cancellation_email(order: Order, currency: str) -> tuple[str, str]:
    symbol = escape(currency.upper())
    rows = "".join(
        f"<li>{escape(str(item['name']))} ({escape(str(item['size']))}) x {item['quantity']}"
        f" - {symbol} {item['unit_price']}</li>"
        for item in order.items
    )
    html_body = f"""
<h2>Order Cancellation Confirmation</h2>
<p>Your order #{order.id} has been cancelled.</p>
<p><strong>Order Details:</strong></p>
<ul>{rows}</ul>
<p>Total Amount: {symbol} {order.amount}</p>
<p>If you want to know more, call us on {escape(settings.support_phone)}.</p>
<p>Thank you for shopping with us.</p>
"""
    return f"Order #{order.id} Cancellation Confirmation", html_body


def notify_booking_cancelled(sender: EmailSender, booking: Booking) -> NotificationResult:
    subject, html_body = build_booking_cancellation_email(booking)
    result = sender.send(booking.email, subject, html_body)
    if not result.sent:
        NOTIFICATION_FAILURES.labels(kind="booking_cancelled").inc()
        logger.warning(
            "booking_cancellation_email_failed booking_id=%s error=%s",
            booking.id,
            result.error,
        )
    return result


def notify_order_cancelled(sender: EmailSender, order: Order) -> NotificationResult:
    email = order.customer_email
    if not email:
        result = NotificationResult(sent=False, error="Order has no customer email")
    else:
        subject, html_body = build_order_cancellation_email(order, settings.currency)
        result = sender.send(email, subject, html_body)
    if not result.sent:
        NOTIFICATION_FAILURES.labels(kind="order_cancelled").inc()
        logger.warning(
            "order_cancellation_email_failed order_id=%s error=%s",
            order.id,
            result.error,
        )
    return result


def build_otp_email(code: str, ttl_minutes: int) -> tuple[str, str]:
    html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Email Verification</h2>
  <p>Your OTP for verification is: <strong>{escape(code)}</strong></p>
  <p>This OTP will expire in {ttl_minutes} minutes.</p>
  <p>If you did not request this code, you can ignore this email.</p>
</div>
"""
    return "Your OTP for Verification", html_body


def notify_otp_code(sender: EmailSender, email: str, code: str, ttl_minutes: int) -> NotificationResult:
    subject, html_body = build_otp_email(code, ttl_minutes)
    result = sender.send(email, subject, html_body)
    if not result.sent:
        NOTIFICATION_FAILURES.labels(kind="otp").inc()
        logger.warning("otp_email_failed error=%s", result.error)
    return result
