# backend/pawledger/services/availability_service.py
"""
Availability Calculator.

Capacity is a single facility-wide daily cap shared by every service type.
Results are advisory; booking creation re-checks under the per-date locks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from pawledger.core.config import settings
from pawledger.core.exceptions import InvalidServiceTypeException, ValidationException
from pawledger.repositories.factory import RepositoryFactory
from pawledger.services.base import BaseService

logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = 90


@dataclass(frozen=True)
class DayAvailability:
    date: date
    available: bool
    spots_remaining: int
    total_capacity: int


class AvailabilityService(BaseService):
    def __init__(self, db: Session, daily_capacity: Optional[int] = None):
        super().__init__(db)
        self.daily_capacity = settings.daily_capacity if daily_capacity is None else daily_capacity
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.service_type_repository = RepositoryFactory.create_service_type_repository(db)

    @BaseService.measure_operation("check_availability")
    def check_availability(
        self, service_type_id: str, start_date: date, end_date: date
    ) -> List[DayAvailability]:
        """
        Remaining capacity for each date in the inclusive range.

        Raises:
            InvalidServiceTypeException: unknown or inactive service type
            ValidationException: reversed or oversized range
        """
        if self.service_type_repository.get_active(service_type_id) is None:
            raise InvalidServiceTypeException(service_type_id)
        self._validate_range(start_date, end_date)
        return self.compute(start_date, end_date)

    def compute(self, start_date: date, end_date: date) -> List[DayAvailability]:
        """Capacity snapshot for the range without service-type validation."""
        counts = self.booking_repository.count_dogs_by_date(start_date, end_date)
        return [self._to_day(day, dogs) for day, dogs in sorted(counts.items())]

    def spots_remaining(self, dogs_booked: int) -> int:
        return max(0, self.daily_capacity - dogs_booked)

    def _to_day(self, day: date, dogs_booked: int) -> DayAvailability:
        remaining = self.spots_remaining(dogs_booked)
        return DayAvailability(
            date=day,
            available=remaining > 0,
            spots_remaining=remaining,
            total_capacity=self.daily_capacity,
        )

    @staticmethod
    def _validate_range(start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise ValidationException(
                "start_date must be on or before end_date",
                code="INVALID_DATE_RANGE",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        if (end_date - start_date).days + 1 > MAX_RANGE_DAYS:
            raise ValidationException(
                f"Date range cannot exceed {MAX_RANGE_DAYS} days",
                code="INVALID_DATE_RANGE",
                details={"max_days": MAX_RANGE_DAYS},
            )
