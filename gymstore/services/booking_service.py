import logging
from datetime import datetime
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymstore.core.metrics import BOOKING_CONFLICTS
from gymstore.db.models import Booking, BookingStatus, User, UserRole
from gymstore.schemas.booking import BookingCreateRequest, ConflictingBooking
from gymstore.services.calendar_service import booking_day_window, normalize_booking_date

logger = logging.getLogger(__name__)

SLOT_ALREADY_BOOKED_DETAIL = "This time slot is already booked"
BOOKING_NOT_FOUND_DETAIL = "Booking not found"
BOOKING_ALREADY_CANCELLED_DETAIL = "Booking is already cancelled"
BOOKING_OTHER_GYM_DETAIL = "Not authorized to cancel this booking"


def find_confirmed_booking(
    db: Session,
    gym: str,
    facility: str,
    day: datetime,
    time_slot: str,
) -> Booking | None:
    start, end = booking_day_window(day)
    return db.scalar(
        select(Booking).where(
            Booking.gym == gym,
            Booking.facility == facility,
            Booking.date >= start,
            Booking.date < end,
            Booking.time_slot == time_slot,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
    )


def _slot_conflict(existing: Booking) -> HTTPException:
    BOOKING_CONFLICTS.inc()
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "message": SLOT_ALREADY_BOOKED_DETAIL,
            "existing_booking": ConflictingBooking(
                id=existing.id,
                date=normalize_booking_date(existing.date),
                time_slot=existing.time_slot,
            ).model_dump(mode="json"),
        },
    )


def create_booking(db: Session, payload: BookingCreateRequest, user_id: int | None = None) -> Booking:
    day = normalize_booking_date(payload.date)
    existing = find_confirmed_booking(db, payload.gym, payload.facility, day, payload.time_slot)
    if existing:
        raise _slot_conflict(existing)

    booking = Booking(
        user_id=user_id,
        gym=payload.gym,
        facility=payload.facility,
        date=day,
        time_slot=payload.time_slot,
        name=payload.name,
        email=str(payload.email).lower(),
        phone=payload.phone,
        status=BookingStatus.CONFIRMED.value,
    )
    db.add(booking)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # a concurrent request confirmed the slot between the check and the insert
        existing = find_confirmed_booking(db, payload.gym, payload.facility, day, payload.time_slot)
        if existing:
            raise _slot_conflict(existing) from None
        logger.error(
            "booking_insert_rejected gym=%s facility=%s date=%s time_slot=%s",
            payload.gym,
            payload.facility,
            day.date().isoformat(),
            payload.time_slot,
        )
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SLOT_ALREADY_BOOKED_DETAIL) from None

    db.refresh(booking)
    logger.info(
        "booking_created booking_id=%s gym=%s facility=%s date=%s time_slot=%s",
        booking.id,
        booking.gym,
        booking.facility,
        day.date().isoformat(),
        booking.time_slot,
    )
    return booking


def cancel_booking(db: Session, booking_id: int, actor: User) -> Booking:
    booking = db.scalar(select(Booking).where(Booking.id == booking_id).with_for_update())
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=BOOKING_NOT_FOUND_DETAIL)

    if actor.role != UserRole.ADMIN.value and booking.gym != actor.gym:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=BOOKING_OTHER_GYM_DETAIL)

    if booking.status == BookingStatus.CANCELLED.value:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=BOOKING_ALREADY_CANCELLED_DETAIL)

    booking.cancel()
    db.commit()
    db.refresh(booking)
    logger.info("booking_cancelled booking_id=%s actor_id=%s", booking.id, actor.id)
    return booking


def list_bookings(db: Session, limit: int, offset: int, gym: str | None = None) -> list[Booking]:
    query = select(Booking)
    if gym is not None:
        query = query.where(Booking.gym == gym)
    query = query.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit).offset(offset)
    return list(db.scalars(query).all())


def list_user_bookings(db: Session, user: User, limit: int, offset: int) -> list[Booking]:
    query = (
        select(Booking)
        .where(or_(Booking.user_id == user.id, Booking.email == user.email))
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(db.scalars(query).all())


def list_branch_members(db: Session, gym: str) -> list[dict[str, Any]]:
    bookings = db.scalars(
        select(Booking).where(Booking.gym == gym).order_by(Booking.created_at, Booking.id)
    ).all()

    members: dict[str, dict[str, Any]] = {}
    for booking in bookings:
        member = members.get(booking.email)
        if member is None:
            members[booking.email] = {
                "name": booking.name,
                "email": booking.email,
                "phone": booking.phone,
                "first_booking": booking.created_at,
                "booking_count": 1,
            }
        else:
            member["booking_count"] += 1

    return sorted(members.values(), key=lambda member: member["first_booking"], reverse=True)


def get_booked_slots(db: Session, gym: str, day: datetime) -> dict[str, list[str]]:
    start, end = booking_day_window(day)
    bookings = db.scalars(
        select(Booking)
        .where(
            Booking.gym == gym,
            Booking.date >= start,
            Booking.date < end,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        .order_by(Booking.facility, Booking.time_slot)
    ).all()

    booked: dict[str, list[str]] = {}
    for booking in bookings:
        booked.setdefault(booking.facility, []).append(booking.time_slot)
    return booked
