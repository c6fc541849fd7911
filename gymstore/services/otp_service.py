"""Emailed one-time codes gating customer registration and login.

A code is six digits, lives for ``OTP_TTL_MINUTES`` and is consumed by the
first successful check. Wrong guesses are counted; once ``OTP_MAX_ATTEMPTS``
is reached the code is discarded and a new one must be requested.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gymstore.core.config import settings
from gymstore.core.security import get_password_hash, verify_password
from gymstore.db.models.email_otp import EmailOtp
from gymstore.services.notification_service import EmailSender, notify_otp_code

logger = logging.getLogger(__name__)

OTP_INVALID_DETAIL = "Invalid or expired OTP"
OTP_REQUIRED_DETAIL = "OTP is required"
OTP_DELIVERY_FAILED_DETAIL = "Failed to send OTP"


def generate_otp_code() -> str:
    return str(secrets.randbelow(900000) + 100000)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def issue_otp(db: Session, email: str, sender: EmailSender) -> EmailOtp:
    email = email.lower()
    code = generate_otp_code()
    record = db.scalar(select(EmailOtp).where(EmailOtp.email == email))
    if record is None:
        record = EmailOtp(email=email)
        db.add(record)
    record.code_hash = get_password_hash(code)
    record.expires_at = datetime.now(UTC) + timedelta(minutes=settings.otp_ttl_minutes)
    record.attempts = 0
    db.commit()
    db.refresh(record)

    result = notify_otp_code(sender, email, code, settings.otp_ttl_minutes)
    if not result.sent:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=OTP_DELIVERY_FAILED_DETAIL)
    logger.info("otp_issued otp_id=%s", record.id)
    return record


def consume_otp(db: Session, email: str, code: str | None) -> None:
    """Check ``code`` against the outstanding OTP for ``email`` and spend it.

    Raises 401 when no code was given, none is outstanding, it expired, the
    attempt budget is used up or the code does not match.
    """
    if not code:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=OTP_REQUIRED_DETAIL)

    invalid_exc = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=OTP_INVALID_DETAIL)
    record = db.scalar(select(EmailOtp).where(EmailOtp.email == email.lower()))
    if record is None:
        raise invalid_exc

    expired = _as_utc(record.expires_at) <= datetime.now(UTC)
    if expired or record.attempts >= settings.otp_max_attempts:
        db.delete(record)
        db.commit()
        raise invalid_exc

    if not verify_password(code, record.code_hash):
        record.attempts += 1
        db.commit()
        logger.info("otp_rejected otp_id=%s attempts=%s", record.id, record.attempts)
        raise invalid_exc

    db.delete(record)
    db.commit()
