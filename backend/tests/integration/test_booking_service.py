"""
Booking allocator against a real database: capacity, duplicates,
ownership, pricing and the status lifecycle.
"""

from datetime import timedelta

import pytest

from pawledger.core.actor import Actor
from pawledger.core.enums import BookingStatus, SizeCategory
from pawledger.core.exceptions import (
    CapacityExceededException,
    DuplicateBookingException,
    ForbiddenException,
    GroomingSlotFullException,
    InvalidBookingTransitionException,
    InvalidDogOwnershipException,
    InvalidServiceTypeException,
    NotFoundException,
    ValidationException,
)
from pawledger.models.audit_log import AuditLog
from pawledger.services.availability_service import AvailabilityService
from pawledger.services.booking_service import BookingService

UNKNOWN_ID = "00000000-0000-4000-8000-000000000000"


@pytest.fixture
def booking_service(db):
    return BookingService(db, daily_capacity=40)


@pytest.fixture
def as_customer(customer):
    return Actor.customer(customer.id)


@pytest.fixture
def as_staff(staff):
    return Actor.staff(staff.id)


class TestCreateBooking:
    def test_customer_booking_starts_pending(self, booking_service, as_customer, customer, daycare, rex, booking_day):
        booking = booking_service.create_booking(
            as_customer, customer.id, daycare.id, [rex.id], booking_day
        )

        assert booking.status == BookingStatus.PENDING
        assert booking.total_cents == 4500
        assert booking.date == booking_day
        assert booking.start_date is None
        assert [link.dog_id for link in booking.dogs] == [rex.id]

    def test_staff_booking_is_confirmed_and_audited(
        self, db, booking_service, as_staff, customer, daycare, rex, booking_day
    ):
        booking = booking_service.create_booking(as_staff, customer.id, daycare.id, [rex.id], booking_day)

        assert booking.status == BookingStatus.CONFIRMED
        entry = db.query(AuditLog).filter_by(action="create_booking", entity_id=booking.id).one()
        assert entry.staff_id == as_staff.id

    def test_assistant_booking_is_confirmed(self, booking_service, customer, daycare, rex, booking_day):
        booking = booking_service.create_booking(
            Actor.assistant(customer.id), customer.id, daycare.id, [rex.id], booking_day
        )

        assert booking.status == BookingStatus.CONFIRMED

    def test_multi_dog_daycare_discount(self, booking_service, as_customer, customer, daycare, rex, bella, booking_day):
        booking = booking_service.create_booking(
            as_customer, customer.id, daycare.id, [rex.id, bella.id], booking_day
        )

        # 2 x $45 less 10%
        assert booking.total_cents == 8100
        assert booking.dog_count == 2

    def test_repeated_dog_ids_count_once(self, booking_service, as_customer, customer, daycare, rex, booking_day):
        booking = booking_service.create_booking(
            as_customer, customer.id, daycare.id, [rex.id, rex.id], booking_day
        )

        assert booking.dog_count == 1
        assert booking.total_cents == 4500

    def test_unknown_service_type(self, booking_service, as_customer, customer, rex, booking_day):
        with pytest.raises(InvalidServiceTypeException):
            booking_service.create_booking(as_customer, customer.id, UNKNOWN_ID, [rex.id], booking_day)

    def test_inactive_service_type(self, db, booking_service, as_customer, customer, grooming, rex, booking_day):
        grooming.is_active = False
        db.commit()

        with pytest.raises(InvalidServiceTypeException):
            booking_service.create_booking(as_customer, customer.id, grooming.id, [rex.id], booking_day)

    def test_dog_of_another_customer(
        self, booking_service, as_customer, customer, other_customer, daycare, rex, booking_day
    ):
        ziggy = other_customer.dogs[0]

        with pytest.raises(InvalidDogOwnershipException) as exc_info:
            booking_service.create_booking(
                as_customer, customer.id, daycare.id, [rex.id, ziggy.id], booking_day
            )

        assert exc_info.value.details["dog_ids"] == [ziggy.id]

    def test_customer_cannot_book_for_someone_else(
        self, booking_service, as_customer, other_customer, daycare, booking_day
    ):
        with pytest.raises(ForbiddenException):
            booking_service.create_booking(
                as_customer, other_customer.id, daycare.id, [other_customer.dogs[0].id], booking_day
            )


class TestCapacity:
    def test_rejects_when_remaining_spots_are_short(
        self, booking_service, as_staff, customer_factory, daycare, booking_day
    ):
        kennel = customer_factory(
            "kennel@example.com", dogs=[(f"Pup {i}", SizeCategory.SMALL) for i in range(38)]
        )
        booking_service.create_booking(
            as_staff, kennel.id, daycare.id, [dog.id for dog in kennel.dogs], booking_day
        )
        trio = customer_factory(
            "trio@example.com",
            dogs=[("Ace", SizeCategory.SMALL), ("Bo", SizeCategory.SMALL), ("Cy", SizeCategory.SMALL)],
        )

        with pytest.raises(CapacityExceededException) as exc_info:
            booking_service.create_booking(
                Actor.customer(trio.id), trio.id, daycare.id, [dog.id for dog in trio.dogs], booking_day
            )

        assert exc_info.value.code == "CAPACITY_EXCEEDED"
        assert exc_info.value.details["spots_remaining"] == 2
        assert exc_info.value.details["requested"] == 3

        # Two dogs still fit exactly
        booking = booking_service.create_booking(
            Actor.customer(trio.id), trio.id, daycare.id, [dog.id for dog in trio.dogs[:2]], booking_day
        )
        assert booking.dog_count == 2

    def test_capacity_is_shared_across_services(
        self, db, as_staff, customer, daycare, grooming, rex, bella, booking_day
    ):
        service = BookingService(db, daily_capacity=2)
        service.create_booking(as_staff, customer.id, daycare.id, [rex.id, bella.id], booking_day)

        with pytest.raises(CapacityExceededException):
            service.create_booking(as_staff, customer.id, grooming.id, [rex.id], booking_day)

    def test_cancelled_bookings_free_their_spots(
        self, db, as_staff, customer, daycare, rex, bella, booking_day
    ):
        service = BookingService(db, daily_capacity=2)
        booking = service.create_booking(as_staff, customer.id, daycare.id, [rex.id, bella.id], booking_day)
        service.cancel_booking(as_staff, booking.id, "Owner travelling")

        rebooked = service.create_booking(as_staff, customer.id, daycare.id, [rex.id, bella.id], booking_day)

        assert rebooked.status == BookingStatus.CONFIRMED

    def test_every_day_of_a_span_must_have_room(
        self, db, as_staff, customer, other_customer, boarding, daycare, rex, bella, booking_day
    ):
        service = BookingService(db, daily_capacity=2)
        busy_day = booking_day + timedelta(days=1)
        service.create_booking(as_staff, customer.id, daycare.id, [rex.id, bella.id], busy_day)

        with pytest.raises(CapacityExceededException) as exc_info:
            service.create_multi_day_booking(
                as_staff,
                other_customer.id,
                boarding.id,
                [other_customer.dogs[0].id],
                booking_day,
                booking_day + timedelta(days=2),
            )

        assert exc_info.value.details["date"] == busy_day.isoformat()


class TestDuplicates:
    def test_same_dog_same_service_same_day(self, booking_service, as_customer, customer, daycare, rex, booking_day):
        booking_service.create_booking(as_customer, customer.id, daycare.id, [rex.id], booking_day)

        with pytest.raises(DuplicateBookingException) as exc_info:
            booking_service.create_booking(as_customer, customer.id, daycare.id, [rex.id], booking_day)

        assert exc_info.value.code == "DUPLICATE_BOOKING"
        assert exc_info.value.details["dog"] == "Rex"

    def test_different_service_same_day_is_allowed(
        self, booking_service, as_customer, customer, daycare, grooming, rex, booking_day
    ):
        booking_service.create_booking(as_customer, customer.id, daycare.id, [rex.id], booking_day)

        booking = booking_service.create_booking(as_customer, customer.id, grooming.id, [rex.id], booking_day)

        assert booking.total_cents == 7500

    def test_overlapping_spans_are_duplicates(self, booking_service, as_customer, customer, boarding, rex, booking_day):
        booking_service.create_multi_day_booking(
            as_customer, customer.id, boarding.id, [rex.id], booking_day, booking_day + timedelta(days=3)
        )

        with pytest.raises(DuplicateBookingException) as exc_info:
            booking_service.create_booking(
                as_customer, customer.id, boarding.id, [rex.id], booking_day + timedelta(days=2)
            )

        assert exc_info.value.details["date"] == (booking_day + timedelta(days=2)).isoformat()

    def test_rebooking_after_cancel(self, booking_service, as_customer, customer, daycare, rex, booking_day):
        first = booking_service.create_booking(as_customer, customer.id, daycare.id, [rex.id], booking_day)
        booking_service.cancel_booking(as_customer, first.id)

        second = booking_service.create_booking(as_customer, customer.id, daycare.id, [rex.id], booking_day)

        assert second.id != first.id


class TestMultiDayBooking:
    def test_span_is_priced_per_day(self, db, booking_service, as_customer, customer, boarding, rex, booking_day):
        last_day = booking_day + timedelta(days=2)

        booking = booking_service.create_multi_day_booking(
            as_customer, customer.id, boarding.id, [rex.id], booking_day, last_day
        )

        assert booking.start_date == booking_day
        assert booking.end_date == last_day
        assert booking.date == booking_day
        assert booking.day_count == 3
        assert booking.total_cents == 3 * 6500

        days = AvailabilityService(db, daily_capacity=40).compute(booking_day, last_day + timedelta(days=1))
        assert [day.spots_remaining for day in days] == [39, 39, 39, 40]

    def test_single_day_span_is_a_regular_booking(
        self, booking_service, as_customer, customer, boarding, rex, booking_day
    ):
        booking = booking_service.create_multi_day_booking(
            as_customer, customer.id, boarding.id, [rex.id], booking_day, booking_day
        )

        assert booking.start_date is None
        assert booking.end_date is None
        assert not booking.is_multi_day

    def test_reversed_span(self, booking_service, as_customer, customer, boarding, rex, booking_day):
        with pytest.raises(ValidationException) as exc_info:
            booking_service.create_multi_day_booking(
                as_customer, customer.id, boarding.id, [rex.id], booking_day, booking_day - timedelta(days=1)
            )

        assert exc_info.value.code == "INVALID_DATE_RANGE"


class TestLifecycle:
    @pytest.fixture
    def pending(self, booking_service, as_customer, customer, daycare, rex, booking_day):
        return booking_service.create_booking(as_customer, customer.id, daycare.id, [rex.id], booking_day)

    def test_full_day_at_the_facility(self, db, booking_service, as_staff, pending):
        booking_service.confirm_booking(as_staff, pending.id)
        checked_in = booking_service.check_in(as_staff, pending.id)
        assert checked_in.status == BookingStatus.CHECKED_IN
        assert checked_in.checked_in_by == as_staff.id

        checked_out = booking_service.check_out(as_staff, pending.id, notes="Tired and happy")

        assert checked_out.status == BookingStatus.CHECKED_OUT
        assert checked_out.checked_out_at is not None
        assert checked_out.notes == "Tired and happy"
        actions = {entry.action for entry in db.query(AuditLog).filter_by(entity_id=pending.id)}
        assert {"confirm", "check_in", "check_out"} <= actions

    def test_check_in_requires_confirmation(self, booking_service, as_staff, pending):
        with pytest.raises(InvalidBookingTransitionException) as exc_info:
            booking_service.check_in(as_staff, pending.id)

        assert exc_info.value.details["status"] == "pending"

    def test_cannot_cancel_after_check_in(self, booking_service, as_staff, as_customer, pending):
        booking_service.confirm_booking(as_staff, pending.id)
        booking_service.check_in(as_staff, pending.id)

        with pytest.raises(InvalidBookingTransitionException):
            booking_service.cancel_booking(as_customer, pending.id)

    def test_cancel_records_reason(self, booking_service, as_customer, pending):
        cancelled = booking_service.cancel_booking(as_customer, pending.id, "Vet appointment")

        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.cancel_reason == "Vet appointment"

    def test_cancelled_is_terminal(self, booking_service, as_staff, pending):
        booking_service.cancel_booking(as_staff, pending.id)

        with pytest.raises(InvalidBookingTransitionException):
            booking_service.confirm_booking(as_staff, pending.id)

    def test_no_show(self, booking_service, as_staff, pending):
        booking = booking_service.mark_no_show(as_staff, pending.id)

        assert booking.status == BookingStatus.NO_SHOW

    def test_staff_only_transitions(self, booking_service, as_customer, pending):
        with pytest.raises(ForbiddenException):
            booking_service.confirm_booking(as_customer, pending.id)
        with pytest.raises(ForbiddenException):
            booking_service.check_in(as_customer, pending.id)

    def test_other_customers_booking_looks_missing(self, booking_service, other_customer, pending):
        with pytest.raises(NotFoundException):
            booking_service.get_booking(Actor.customer(other_customer.id), pending.id)
        with pytest.raises(NotFoundException):
            booking_service.cancel_booking(Actor.customer(other_customer.id), pending.id)


class TestQueries:
    def test_customer_listing_filters_and_pages(
        self, booking_service, as_customer, customer, daycare, rex, booking_day
    ):
        ids = [
            booking_service.create_booking(
                as_customer, customer.id, daycare.id, [rex.id], booking_day + timedelta(days=offset)
            ).id
            for offset in range(3)
        ]
        booking_service.cancel_booking(as_customer, ids[0])

        page = booking_service.get_customer_bookings(as_customer, customer.id, limit=2)
        assert page.total == 3
        assert len(page.bookings) == 2

        pending = booking_service.get_customer_bookings(as_customer, customer.id, status=BookingStatus.PENDING)
        assert {booking.id for booking in pending.bookings} == set(ids[1:])

    def test_day_schedule(
        self, booking_service, as_staff, as_customer, customer, other_customer, daycare, boarding, rex, bella, booking_day
    ):
        booking_service.create_booking(as_customer, customer.id, daycare.id, [rex.id, bella.id], booking_day)
        booking_service.create_multi_day_booking(
            as_staff,
            other_customer.id,
            boarding.id,
            [other_customer.dogs[0].id],
            booking_day - timedelta(days=1),
            booking_day + timedelta(days=1),
        )

        schedule = booking_service.get_schedule(as_staff, booking_day)

        assert len(schedule.bookings) == 2
        assert schedule.dogs_by_status == {"pending": 2, "confirmed": 1}
        assert schedule.total_capacity == 40
        assert schedule.spots_remaining == 37

    def test_schedule_is_staff_only(self, booking_service, as_customer, booking_day):
        with pytest.raises(ForbiddenException):
            booking_service.get_schedule(as_customer, booking_day)


class TestGroomingSlots:
    def test_slots_show_room_left(self, booking_service, as_customer, customer, grooming, rex, booking_day):
        booking = booking_service.create_booking(
            as_customer, customer.id, grooming.id, [rex.id], booking_day, start_time="09:00"
        )

        slots = booking_service.get_grooming_slots(booking_day)

        assert booking.start_time == "09:00"
        assert [slot.start_time for slot in slots] == ["09:00", "10:30", "13:00", "14:30"]
        assert slots[0].spots_remaining == 1
        assert slots[0].available is True
        assert [slot.spots_remaining for slot in slots[1:]] == [2, 2, 2]

    def test_full_slot_is_rejected(
        self, booking_service, as_customer, customer, other_customer, grooming, rex, bella, booking_day
    ):
        for dog in (rex, bella):
            booking_service.create_booking(
                as_customer, customer.id, grooming.id, [dog.id], booking_day, start_time="10:30"
            )

        with pytest.raises(GroomingSlotFullException) as exc_info:
            booking_service.create_booking(
                Actor.customer(other_customer.id),
                other_customer.id,
                grooming.id,
                [other_customer.dogs[0].id],
                booking_day,
                start_time="10:30",
            )

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {
            "date": booking_day.isoformat(),
            "start_time": "10:30",
            "max_capacity": 2,
        }
        slot = next(s for s in booking_service.get_grooming_slots(booking_day) if s.start_time == "10:30")
        assert slot.available is False

    def test_one_appointment_holds_one_place_whatever_the_dog_count(
        self, booking_service, as_customer, customer, grooming, rex, bella, booking_day
    ):
        booking_service.create_booking(
            as_customer, customer.id, grooming.id, [rex.id, bella.id], booking_day, start_time="13:00"
        )

        slot = next(s for s in booking_service.get_grooming_slots(booking_day) if s.start_time == "13:00")

        assert slot.spots_remaining == 1

    def test_cancelled_booking_frees_its_slot(self, booking_service, as_customer, customer, grooming, rex, booking_day):
        booking = booking_service.create_booking(
            as_customer, customer.id, grooming.id, [rex.id], booking_day, start_time="14:30"
        )
        booking_service.cancel_booking(as_customer, booking.id)

        slot = next(s for s in booking_service.get_grooming_slots(booking_day) if s.start_time == "14:30")

        assert slot.spots_remaining == 2

    def test_start_time_is_for_grooming_only(self, booking_service, as_customer, customer, daycare, rex, booking_day):
        with pytest.raises(ValidationException) as exc_info:
            booking_service.create_booking(
                as_customer, customer.id, daycare.id, [rex.id], booking_day, start_time="09:00"
            )

        assert exc_info.value.code == "START_TIME_GROOMING_ONLY"

    def test_unknown_slot(self, booking_service, as_customer, customer, grooming, rex, booking_day):
        with pytest.raises(ValidationException) as exc_info:
            booking_service.create_booking(
                as_customer, customer.id, grooming.id, [rex.id], booking_day, start_time="08:15"
            )

        assert exc_info.value.code == "UNKNOWN_GROOMING_SLOT"
        assert booking_service.get_grooming_slots(booking_day)[0].spots_remaining == 2
