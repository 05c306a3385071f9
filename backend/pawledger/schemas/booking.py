# backend/pawledger/schemas/booking.py
"""
Booking schemas.

A booking covers one day (``start_date == end_date``) or an inclusive span of
days. Dates travel as ``YYYY-MM-DD`` strings only.
"""

from datetime import date, datetime
import re
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, ValidationInfo, field_validator, model_validator

from ..core.enums import BookingStatus, ServiceName, SizeCategory
from ._strict_base import StrictModel, StrictRequestModel
from .common import UUIDStr

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def _ensure_date_only(value: object, field_name: str) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


class BookingCreate(StrictRequestModel):
    """Create a single-day or multi-day booking for the caller's dogs."""

    service_type_id: UUIDStr
    dog_ids: List[UUIDStr] = Field(..., min_length=1, description="Dogs to book")
    start_date: date = Field(..., description="First (or only) day of the booking")
    end_date: Optional[date] = Field(
        None, description="Last day of the booking; defaults to start_date"
    )
    notes: Optional[str] = Field(None, max_length=1000)
    start_time: Optional[str] = Field(
        None, pattern=TIME_OF_DAY_PATTERN, description="HH:MM grooming slot, single-day only"
    )

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _validate_dates(cls, value: object, info: ValidationInfo) -> object:
        return _ensure_date_only(value, info.field_name)

    @model_validator(mode="before")
    @classmethod
    def _default_end_date(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("end_date") is None and "start_date" in data:
            data = {**data, "end_date": data["start_date"]}
        return data

    @model_validator(mode="after")
    def _start_time_needs_single_day(self) -> "BookingCreate":
        if self.start_time is not None and self.is_multi_day:
            raise ValueError("start_time can only be set on a single-day booking")
        return self

    @property
    def is_multi_day(self) -> bool:
        return self.end_date is not None and self.end_date != self.start_date


class StaffBookingCreate(BookingCreate):
    """Staff-created booking on behalf of a customer."""

    customer_id: UUIDStr


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingCheckOut(StrictRequestModel):
    notes: Optional[str] = Field(None, max_length=1000)


class BookingDogResponse(StrictModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    id: str
    dog_id: str
    dog_name: str
    size_category: Optional[SizeCategory] = None
    condition_rating: Optional[int] = None
    quoted_price_cents: Optional[int] = None


class BookingResponse(StrictModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    id: str
    customer_id: str
    service_type_id: str
    service_name: ServiceName
    booking_date: date
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    status: BookingStatus
    total_cents: int
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    dogs: List[BookingDogResponse]
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_booking(cls, booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            customer_id=booking.customer_id,
            service_type_id=booking.service_type_id,
            service_name=booking.service_type.name,
            booking_date=booking.date,
            start_date=booking.start_date,
            end_date=booking.end_date,
            start_time=booking.start_time,
            status=booking.status,
            total_cents=booking.total_cents,
            notes=booking.notes,
            cancel_reason=booking.cancel_reason,
            dogs=[
                BookingDogResponse(
                    id=link.id,
                    dog_id=link.dog_id,
                    dog_name=link.dog.name,
                    size_category=link.dog.size_category,
                    condition_rating=link.condition_rating,
                    quoted_price_cents=link.quoted_price_cents,
                )
                for link in booking.dogs
            ],
            checked_in_at=booking.checked_in_at,
            checked_out_at=booking.checked_out_at,
            created_at=booking.created_at,
        )


class BookingListResponse(StrictModel):
    items: List[BookingResponse]
    total: int
    limit: int
    offset: int


class AvailabilityDayResponse(StrictModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    date: date
    available: bool
    spots_remaining: int
    total_capacity: int


class AvailabilityResponse(StrictModel):
    service_type_id: str
    availability: List[AvailabilityDayResponse]


class ServiceTypeResponse(StrictModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    id: str
    name: ServiceName
    display_name: str
    description: Optional[str] = None
    base_price_cents: int
    duration_minutes: Optional[int] = None


class GroomingSlotResponse(StrictModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    start_time: str
    end_time: str
    available: bool
    spots_remaining: int
    max_capacity: int


class GroomingSlotsResponse(StrictModel):
    date: date
    slots: List[GroomingSlotResponse]


class DayScheduleResponse(StrictModel):
    date: date
    bookings: List[BookingResponse]
    dogs_by_status: Dict[str, int]
    total_capacity: int
    spots_remaining: int
