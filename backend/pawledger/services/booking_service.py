# backend/pawledger/services/booking_service.py
"""
Booking Allocator.

Creates single- and multi-day bookings, prices them and advances their
status. Capacity is checked twice: an advisory pass to fail fast, then an
authoritative recount inside the creation transaction after the per-date
capacity locks are held. A grooming booking that names a time slot has the
slot's room checked the same two ways.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from pawledger.core.actor import Actor
from pawledger.core.config import settings
from pawledger.core.enums import ActorKind, BookingStatus, ServiceName
from pawledger.core.exceptions import (
    CapacityExceededException,
    DuplicateBookingException,
    GroomingSlotFullException,
    InvalidBookingTransitionException,
    InvalidDogOwnershipException,
    InvalidServiceTypeException,
    NotFoundException,
    ValidationException,
)
from pawledger.models.booking import Booking
from pawledger.models.service_type import GroomingSlot, ServiceType
from pawledger.monitoring.prometheus_metrics import prometheus_metrics
from pawledger.repositories.factory import RepositoryFactory
from pawledger.services.availability_service import MAX_RANGE_DAYS, AvailabilityService
from pawledger.services.base import BaseService
from pawledger.services.pricing_service import PricingService

logger = logging.getLogger(__name__)

# status -> (allowed source statuses, action label)
_TRANSITIONS: Dict[BookingStatus, Tuple[Tuple[BookingStatus, ...], str]] = {
    BookingStatus.CONFIRMED: ((BookingStatus.PENDING,), "confirm"),
    BookingStatus.CANCELLED: ((BookingStatus.PENDING, BookingStatus.CONFIRMED), "cancel"),
    BookingStatus.NO_SHOW: ((BookingStatus.PENDING, BookingStatus.CONFIRMED), "mark as no-show"),
    BookingStatus.CHECKED_IN: ((BookingStatus.CONFIRMED,), "check in"),
    BookingStatus.CHECKED_OUT: ((BookingStatus.CHECKED_IN,), "check out"),
}


@dataclass
class CustomerBookingsPage:
    bookings: List[Booking]
    total: int
    limit: int
    offset: int


@dataclass
class DaySchedule:
    date: date
    bookings: List[Booking]
    dogs_by_status: Dict[str, int] = field(default_factory=dict)
    total_capacity: int = 0
    spots_remaining: int = 0


@dataclass
class GroomingSlotAvailability:
    start_time: str
    end_time: str
    max_capacity: int
    spots_remaining: int

    @property
    def available(self) -> bool:
        return self.spots_remaining > 0


class BookingService(BaseService):
    def __init__(self, db: Session, daily_capacity: Optional[int] = None):
        super().__init__(db)
        self.daily_capacity = settings.daily_capacity if daily_capacity is None else daily_capacity
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.customer_repository = RepositoryFactory.create_customer_repository(db)
        self.service_type_repository = RepositoryFactory.create_service_type_repository(db)
        self.audit_repository = RepositoryFactory.create_audit_log_repository(db)
        self.availability_service = AvailabilityService(db, daily_capacity=self.daily_capacity)
        self.pricing_service = PricingService(db)

    # Creation

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        actor: Actor,
        customer_id: str,
        service_type_id: str,
        dog_ids: Sequence[str],
        booking_date: date,
        notes: Optional[str] = None,
        start_time: Optional[str] = None,
    ) -> Booking:
        """
        Create a single-day booking.

        Grooming bookings may name a ``start_time`` (HH:MM) from the grooming
        slots; the slot must still have room that day.

        Raises:
            InvalidServiceTypeException: unknown or inactive service type
            InvalidDogOwnershipException: a dog does not belong to the customer
            CapacityExceededException: fewer spots left than dogs requested
            DuplicateBookingException: a dog is already booked for this service that day
            GroomingSlotFullException: the requested grooming slot is taken
        """
        return self._create(
            actor,
            customer_id,
            service_type_id,
            dog_ids,
            booking_date,
            booking_date,
            notes,
            start_time=start_time,
        )

    @BaseService.measure_operation("create_multi_day_booking")
    def create_multi_day_booking(
        self,
        actor: Actor,
        customer_id: str,
        service_type_id: str,
        dog_ids: Sequence[str],
        start_date: date,
        end_date: date,
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Create one booking spanning ``start_date``..``end_date`` inclusive.

        Every day of the span must have room for all dogs. A span of a single
        day produces a regular single-day booking.
        """
        if start_date > end_date:
            raise ValidationException(
                "start_date must be on or before end_date",
                code="INVALID_DATE_RANGE",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        if (end_date - start_date).days + 1 > MAX_RANGE_DAYS:
            raise ValidationException(
                f"A booking cannot span more than {MAX_RANGE_DAYS} days",
                code="INVALID_DATE_RANGE",
            )
        return self._create(actor, customer_id, service_type_id, dog_ids, start_date, end_date, notes)

    def _create(
        self,
        actor: Actor,
        customer_id: str,
        service_type_id: str,
        dog_ids: Sequence[str],
        start_date: date,
        end_date: date,
        notes: Optional[str],
        start_time: Optional[str] = None,
    ) -> Booking:
        actor.require_customer_access(customer_id)
        unique_dog_ids = list(dict.fromkeys(str(dog_id) for dog_id in dog_ids))
        if not unique_dog_ids:
            raise ValidationException("At least one dog is required", code="NO_DOGS")

        service_type = self._require_active_service(service_type_id)
        slot = self._resolve_grooming_slot(service_type, start_time, start_date, end_date)
        if self.customer_repository.get_by_id(customer_id) is None:
            raise NotFoundException("Customer not found", details={"customer_id": customer_id})

        owned = self.customer_repository.get_dogs(customer_id, unique_dog_ids)
        missing = set(unique_dog_ids) - {dog.id for dog in owned}
        if missing:
            raise InvalidDogOwnershipException(missing)

        dog_count = len(unique_dog_ids)
        # Advisory pass: fail fast without taking locks
        self._ensure_capacity(start_date, end_date, dog_count, stage="advisory")
        self._ensure_no_duplicates(unique_dog_ids, service_type, start_date, end_date)
        if slot is not None:
            self._ensure_slot_room(service_type, slot, start_date)

        multi_day = start_date != end_date
        day_count = (end_date - start_date).days + 1
        total_cents = self.pricing_service.calculate_price(
            service_type, dog_count=dog_count, day_count=day_count, first_day=start_date
        )
        status = (
            BookingStatus.PENDING if actor.kind == ActorKind.CUSTOMER else BookingStatus.CONFIRMED
        )

        with self.transaction():
            self.booking_repository.lock_capacity_dates(_date_span(start_date, end_date))
            self._ensure_capacity(start_date, end_date, dog_count, stage="locked")
            self._ensure_no_duplicates(unique_dog_ids, service_type, start_date, end_date)
            if slot is not None:
                self._ensure_slot_room(service_type, slot, start_date)

            booking = self.booking_repository.create_with_dogs(
                unique_dog_ids,
                customer_id=customer_id,
                service_type_id=service_type.id,
                date=start_date,
                start_date=start_date if multi_day else None,
                end_date=end_date if multi_day else None,
                start_time=start_time,
                status=status,
                total_cents=total_cents,
                notes=notes,
            )
            if actor.is_staff:
                self.audit_repository.record(
                    staff_id=actor.id,
                    action="create_booking",
                    entity_type="booking",
                    entity_id=booking.id,
                    details={"customer_id": customer_id, "dogs": dog_count},
                )

        self.log_operation(
            "create_booking",
            booking_id=booking.id,
            customer_id=customer_id,
            service=service_type.name.value,
            first_day=start_date.isoformat(),
            last_day=end_date.isoformat(),
            dogs=dog_count,
            total_cents=total_cents,
        )
        return booking

    def _require_active_service(self, service_type_id: str) -> ServiceType:
        service_type = self.service_type_repository.get_active(service_type_id)
        if service_type is None:
            raise InvalidServiceTypeException(service_type_id)
        return service_type

    def _ensure_capacity(self, start_date: date, end_date: date, dog_count: int, stage: str) -> None:
        for day in self.availability_service.compute(start_date, end_date):
            if day.spots_remaining < dog_count:
                prometheus_metrics.inc_capacity_rejection(stage)
                logger.warning(
                    "Capacity exceeded on %s: %s left, %s requested (%s check)",
                    day.date,
                    day.spots_remaining,
                    dog_count,
                    stage,
                )
                raise CapacityExceededException(
                    booking_date=day.date.isoformat(),
                    spots_remaining=day.spots_remaining,
                    requested=dog_count,
                )

    def _ensure_no_duplicates(
        self,
        dog_ids: Sequence[str],
        service_type: ServiceType,
        start_date: date,
        end_date: date,
    ) -> None:
        overlaps = self.booking_repository.find_active_overlaps(
            dog_ids, service_type.id, start_date, end_date
        )
        if overlaps:
            booking, dog = overlaps[0]
            clash = max(booking.first_day, start_date)
            raise DuplicateBookingException(
                dog_name=dog.name,
                booking_date=clash.isoformat(),
                service_name=service_type.display_name,
            )

    def _resolve_grooming_slot(
        self,
        service_type: ServiceType,
        start_time: Optional[str],
        start_date: date,
        end_date: date,
    ) -> Optional[GroomingSlot]:
        if start_time is None:
            return None
        if not service_type.is_grooming or start_date != end_date:
            raise ValidationException(
                "A start time can only be set on a single-day grooming booking",
                code="START_TIME_GROOMING_ONLY",
            )
        slot = self.service_type_repository.get_grooming_slot(start_time)
        if slot is None:
            raise ValidationException(
                "No grooming slot starts at that time",
                code="UNKNOWN_GROOMING_SLOT",
                details={"start_time": start_time},
            )
        return slot

    def _ensure_slot_room(self, service_type: ServiceType, slot: GroomingSlot, day: date) -> None:
        booked = self.booking_repository.count_bookings_by_start_time(service_type.id, day)
        if booked.get(slot.start_time, 0) >= slot.max_capacity:
            logger.warning("Grooming slot %s on %s is full", slot.start_time, day)
            raise GroomingSlotFullException(
                booking_date=day.isoformat(),
                start_time=slot.start_time,
                max_capacity=slot.max_capacity,
            )

    # Lifecycle

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(self, actor: Actor, booking_id: str) -> Booking:
        actor.require_staff()
        return self._transition(actor, booking_id, BookingStatus.CONFIRMED)

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, actor: Actor, booking_id: str, reason: Optional[str] = None) -> Booking:
        """Customers may cancel their own bookings; staff may cancel any."""
        return self._transition(actor, booking_id, BookingStatus.CANCELLED, cancel_reason=reason)

    @BaseService.measure_operation("check_in")
    def check_in(self, actor: Actor, booking_id: str) -> Booking:
        actor.require_staff()
        return self._transition(
            actor,
            booking_id,
            BookingStatus.CHECKED_IN,
            checked_in_at=datetime.now(timezone.utc),
            checked_in_by=actor.id,
        )

    @BaseService.measure_operation("check_out")
    def check_out(self, actor: Actor, booking_id: str, notes: Optional[str] = None) -> Booking:
        actor.require_staff()
        fields = {"checked_out_at": datetime.now(timezone.utc), "checked_out_by": actor.id}
        if notes is not None:
            fields["notes"] = notes
        return self._transition(actor, booking_id, BookingStatus.CHECKED_OUT, **fields)

    @BaseService.measure_operation("mark_no_show")
    def mark_no_show(self, actor: Actor, booking_id: str) -> Booking:
        actor.require_staff()
        return self._transition(actor, booking_id, BookingStatus.NO_SHOW)

    def _transition(self, actor: Actor, booking_id: str, to_status: BookingStatus, **fields) -> Booking:
        booking = self.get_booking(actor, booking_id)
        from_statuses, action = _TRANSITIONS[to_status]
        previous_status = booking.status
        if previous_status not in from_statuses:
            raise InvalidBookingTransitionException(booking.id, booking.status.value, action)

        with self.transaction():
            moved = self.booking_repository.transition(booking.id, from_statuses, to_status, **fields)
            if not moved:
                # Status changed underneath us; report against the fresh value
                self.db.refresh(booking)
                raise InvalidBookingTransitionException(booking.id, booking.status.value, action)
            if actor.is_staff:
                self.audit_repository.record(
                    staff_id=actor.id,
                    action=action.replace(" ", "_").replace("-", "_"),
                    entity_type="booking",
                    entity_id=booking.id,
                    details={"from": previous_status.value, "to": to_status.value},
                )

        self.db.refresh(booking)
        self.log_operation(
            "booking_transition", booking_id=booking.id, status=to_status.value, actor=actor.kind.value
        )
        return booking

    # Queries

    def get_booking(self, actor: Actor, booking_id: str) -> Booking:
        """Customers only see their own bookings; others look missing."""
        booking = self.booking_repository.get_with_dogs(booking_id)
        if booking is None or not actor.can_act_for(booking.customer_id):
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        return booking

    @BaseService.measure_operation("get_customer_bookings")
    def get_customer_bookings(
        self,
        actor: Actor,
        customer_id: str,
        status: Optional[BookingStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> CustomerBookingsPage:
        actor.require_customer_access(customer_id)
        limit = max(1, min(limit, 100))
        offset = max(0, offset)
        bookings, total = self.booking_repository.list_for_customer(
            customer_id, status=status, limit=limit, offset=offset
        )
        return CustomerBookingsPage(bookings=bookings, total=total, limit=limit, offset=offset)

    @BaseService.measure_operation("get_schedule")
    def get_schedule(
        self, actor: Actor, day: date, service_type_id: Optional[str] = None
    ) -> DaySchedule:
        """Staff view of every non-cancelled booking covering ``day``."""
        actor.require_staff()
        bookings = self.booking_repository.list_covering(day, service_type_id)
        dogs_by_status: Dict[str, int] = {}
        for booking in bookings:
            dogs_by_status[booking.status.value] = (
                dogs_by_status.get(booking.status.value, 0) + booking.dog_count
            )
        occupancy = self.availability_service.compute(day, day)[0]
        return DaySchedule(
            date=day,
            bookings=bookings,
            dogs_by_status=dogs_by_status,
            total_capacity=occupancy.total_capacity,
            spots_remaining=occupancy.spots_remaining,
        )

    def list_service_types(self) -> List[ServiceType]:
        return self.service_type_repository.list_active()

    @BaseService.measure_operation("get_grooming_slots")
    def get_grooming_slots(self, day: date) -> List[GroomingSlotAvailability]:
        """
        Room left in every grooming slot on ``day``.

        Counts bookings, not dogs: one appointment holds the slot however
        many dogs it brings. Advisory only.
        """
        grooming = self.service_type_repository.get_by_name(ServiceName.GROOMING)
        if grooming is None:
            raise NotFoundException("Grooming service type not found")
        booked = self.booking_repository.count_bookings_by_start_time(grooming.id, day)
        return [
            GroomingSlotAvailability(
                start_time=slot.start_time,
                end_time=slot.end_time,
                max_capacity=slot.max_capacity,
                spots_remaining=max(0, slot.max_capacity - booked.get(slot.start_time, 0)),
            )
            for slot in self.service_type_repository.list_grooming_slots()
        ]


def _date_span(start_date: date, end_date: date) -> List[date]:
    return [start_date + timedelta(days=offset) for offset in range((end_date - start_date).days + 1)]
