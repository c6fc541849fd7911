"""Calendar-day helpers for facility bookings.

A booking date is a calendar day, not an instant. Every value that reaches
the store or a query bound goes through :func:`normalize_booking_date`, which
maps it to midnight UTC of the day the caller wrote. An offset attached to a
datetime is dropped rather than applied, so ``2024-06-01T00:30+05:30`` and
``2024-06-01T23:00-07:00`` are both 1 June.
"""

from datetime import UTC, date, datetime, timedelta

INVALID_DATE_DETAIL = "Invalid date format"


def _parse(value: str) -> date:
    raw = value.strip()
    if not raw:
        raise ValueError(INVALID_DATE_DETAIL)
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        raise ValueError(INVALID_DATE_DETAIL) from None


def normalize_booking_date(value: str | date | datetime) -> datetime:
    if isinstance(value, datetime):
        day = value.date()
    elif isinstance(value, date):
        day = value
    elif isinstance(value, str):
        day = _parse(value)
    else:
        raise ValueError(INVALID_DATE_DETAIL)
    return datetime(day.year, day.month, day.day, tzinfo=UTC)


def booking_day_window(value: str | date | datetime) -> tuple[datetime, datetime]:
    start = normalize_booking_date(value)
    return start, start + timedelta(days=1)


def format_booking_day(value: datetime) -> str:
    return normalize_booking_date(value).strftime("%d %b %Y")
