from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from gymstore.api.deps import get_current_user, get_optional_user, require_roles
from gymstore.api.pagination import LimitParam, OffsetParam
from gymstore.db.models import User, UserRole
from gymstore.db.session import get_db
from gymstore.schemas.booking import (
    BookedSlotsResponse,
    BookingCancelResponse,
    BookingCreateRequest,
    BookingResponse,
    BranchMemberResponse,
)
from gymstore.services import booking_service
from gymstore.services.calendar_service import normalize_booking_date
from gymstore.services.notification_service import EmailSender, get_email_sender, notify_booking_cancelled

router = APIRouter(prefix="/bookings", tags=["bookings"])

BOOKING_CANCELLED_MESSAGE = "Booking cancelled"
NO_GYM_ASSIGNED_DETAIL = "No gym is assigned to this account"


def _branch_gym(user: User, gym: str | None) -> str:
    if user.role == UserRole.ADMIN.value:
        if not gym:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="gym query parameter is required")
        return gym
    if not user.gym:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NO_GYM_ASSIGNED_DETAIL)
    return user.gym


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreateRequest,
    current_user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = booking_service.create_booking(
        db=db,
        payload=payload,
        user_id=current_user.id if current_user else None,
    )
    return BookingResponse.model_validate(booking)


@router.get("/booked-slots", response_model=BookedSlotsResponse, status_code=status.HTTP_200_OK)
def get_booked_slots(
    gym: str = Query(min_length=1),
    date: str = Query(min_length=1),
    db: Session = Depends(get_db),
) -> BookedSlotsResponse:
    try:
        day = normalize_booking_date(date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from None
    return BookedSlotsResponse(gym=gym, date=day, booked_slots=booking_service.get_booked_slots(db, gym, day))


@router.get("", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_all_bookings(
    gym: str | None = Query(default=None),
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> list[BookingResponse]:
    bookings = booking_service.list_bookings(db, limit, offset, gym=gym)
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.get("/me", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_my_bookings(
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[BookingResponse]:
    bookings = booking_service.list_user_bookings(db, current_user, limit, offset)
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.get("/branch", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_branch_bookings(
    gym: str | None = Query(default=None),
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    current_user: User = Depends(require_roles(UserRole.BRANCH, UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> list[BookingResponse]:
    bookings = booking_service.list_bookings(db, limit, offset, gym=_branch_gym(current_user, gym))
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.get("/branch/members", response_model=list[BranchMemberResponse], status_code=status.HTTP_200_OK)
def list_branch_members(
    gym: str | None = Query(default=None),
    current_user: User = Depends(require_roles(UserRole.BRANCH, UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> list[BranchMemberResponse]:
    members = booking_service.list_branch_members(db, _branch_gym(current_user, gym))
    return [BranchMemberResponse(**member) for member in members]


@router.post("/{booking_id}/cancel", response_model=BookingCancelResponse, status_code=status.HTTP_200_OK)
def cancel_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_roles(UserRole.BRANCH, UserRole.ADMIN)),
    email_sender: EmailSender = Depends(get_email_sender),
    db: Session = Depends(get_db),
) -> BookingCancelResponse:
    booking = booking_service.cancel_booking(db=db, booking_id=booking_id, actor=current_user)
    background_tasks.add_task(notify_booking_cancelled, email_sender, booking)
    return BookingCancelResponse(
        booking=BookingResponse.model_validate(booking),
        message=BOOKING_CANCELLED_MESSAGE,
    )
