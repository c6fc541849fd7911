from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from gymstore.services.calendar_service import normalize_booking_date


class BookingCreateRequest(BaseModel):
    gym: str = Field(min_length=1, max_length=120)
    facility: str = Field(min_length=1, max_length=120)
    date: datetime
    time_slot: str = Field(min_length=1, max_length=40)
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    phone: str = Field(min_length=5, max_length=32)

    model_config = {"str_strip_whitespace": True}

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return normalize_booking_date(value)


class BookingResponse(BaseModel):
    id: int
    user_id: int | None
    gym: str
    facility: str
    date: datetime
    time_slot: str
    name: str
    email: str
    phone: str
    status: str
    created_at: datetime
    cancelled_at: datetime | None

    model_config = {"from_attributes": True}


class ConflictingBooking(BaseModel):
    id: int
    date: datetime
    time_slot: str


class BookingCancelResponse(BaseModel):
    booking: BookingResponse
    message: str


class BookedSlotsResponse(BaseModel):
    gym: str
    date: datetime
    booked_slots: dict[str, list[str]]


class BranchMemberResponse(BaseModel):
    name: str
    email: str
    phone: str
    first_booking: datetime
    booking_count: int
