from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from gymstore.services.calendar_service import booking_day_window, format_booking_day, normalize_booking_date

MIDNIGHT_JUNE_FIRST = datetime(2024, 6, 1, tzinfo=UTC)


@pytest.mark.parametrize(
    "value",
    [
        "2024-06-01",
        "2024-06-01T00:30:00+05:30",
        "2024-06-01T23:00:00-07:00",
        "2024-06-01T12:00:00Z",
        date(2024, 6, 1),
        datetime(2024, 6, 1, 23, 59, tzinfo=timezone(timedelta(hours=-10))),
    ],
)
def test_written_calendar_day_is_kept(value):
    assert normalize_booking_date(value) == MIDNIGHT_JUNE_FIRST


def test_normalization_is_idempotent():
    once = normalize_booking_date("2024-06-01T18:45:00+02:00")
    assert normalize_booking_date(once) == once
    assert normalize_booking_date(once.isoformat()) == once


@pytest.mark.parametrize("value", ["", "   ", "01/06/2024", "2024-13-01", 20240601])
def test_invalid_dates_raise(value):
    with pytest.raises(ValueError):
        normalize_booking_date(value)


def test_day_window_is_half_open_day():
    start, end = booking_day_window("2024-06-01T10:00:00")
    assert start == MIDNIGHT_JUNE_FIRST
    assert end - start == timedelta(days=1)


def test_format_booking_day():
    assert format_booking_day(datetime(2024, 6, 1)) == "01 Jun 2024"
