from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from gymstore.db.base import Base
from gymstore.db.models import Booking, BookingStatus
from gymstore.schemas.booking import BookingCreateRequest
from gymstore.services.booking_service import create_booking


@pytest.mark.concurrent
def test_parallel_requests_for_one_slot_confirm_exactly_one(tmp_path):
    db_file = tmp_path / "race.db"
    engine = create_engine(
        f"sqlite+pysqlite:///{db_file}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    def attempt(index: int) -> str:
        payload = BookingCreateRequest(
            gym="Race Gym",
            facility="Court 1",
            date="2026-11-02T06:00:00+05:30",
            time_slot="06:00-07:00",
            name=f"Racer {index}",
            email=f"racer{index}@example.com",
            phone="+919800000000",
        )
        session = SessionLocal()
        try:
            create_booking(db=session, payload=payload)
            return "created"
        except HTTPException as exc:
            if exc.status_code == 409:
                return "conflict"
            raise
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(attempt, range(8)))

    assert results.count("created") == 1
    assert results.count("conflict") == 7

    check = SessionLocal()
    confirmed = check.query(Booking).filter(Booking.status == BookingStatus.CONFIRMED.value).count()
    check.close()
    engine.dispose()

    assert confirmed == 1
