"""Input models for the assistant tool interface."""

from datetime import date
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.enums import ServiceName
from ._strict_base import StrictRequestModel
from .common import UUIDStr


class ToolInput(StrictRequestModel):
    @field_validator("service_name", mode="before", check_fields=False)
    @classmethod
    def _normalize_service_name(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value


class CheckAvailabilityInput(ToolInput):
    service_name: ServiceName
    start_date: date
    end_date: date


class CreateBookingInput(ToolInput):
    service_name: ServiceName
    start_date: date
    end_date: date
    dog_names: List[str] = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=1000)


class GetMyBookingsInput(ToolInput):
    include_past: bool = False


class CancelBookingInput(ToolInput):
    booking_id: UUIDStr
    reason: Optional[str] = Field(None, max_length=500)


class EmptyInput(ToolInput):
    pass
