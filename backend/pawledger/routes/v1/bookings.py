# backend/pawledger/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Customer endpoints:
    GET /availability - Remaining capacity per day for a date range
    GET /service-types - Active service offerings
    GET /grooming-slots - Room left in each grooming slot on a day
    POST / - Create a single- or multi-day booking
    GET / - List my bookings with filters and pagination
    GET /{booking_id} - Booking details
    POST /{booking_id}/cancel - Cancel a booking

Staff endpoints (mounted under /api/v1/admin/bookings):
    GET /schedule - Bookings covering a day
    POST / - Create a booking on behalf of a customer
    POST /{booking_id}/confirm - Confirm a pending booking
    POST /{booking_id}/check-in - Check dogs in
    POST /{booking_id}/check-out - Check dogs out
    POST /{booking_id}/no-show - Mark as no-show
    POST /{booking_id}/cancel - Cancel any booking
"""

from datetime import date
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ...api.dependencies import (
    get_availability_service,
    get_booking_service,
    get_current_customer,
    get_current_staff,
)
from ...core.actor import Actor
from ...core.enums import BookingStatus
from ...core.exceptions import DomainException
from ...schemas.booking import (
    AvailabilityDayResponse,
    AvailabilityResponse,
    BookingCancel,
    BookingCheckOut,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    DayScheduleResponse,
    GroomingSlotResponse,
    GroomingSlotsResponse,
    ServiceTypeResponse,
    StaffBookingCreate,
)
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

# Admin router - separate for staff endpoints
admin_router = APIRouter(tags=["admin", "bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _create(
    booking_service: BookingService, actor: Actor, customer_id: str, payload: BookingCreate
) -> BookingResponse:
    if payload.is_multi_day:
        booking = booking_service.create_multi_day_booking(
            actor,
            customer_id,
            payload.service_type_id,
            payload.dog_ids,
            payload.start_date,
            payload.end_date,
            notes=payload.notes,
        )
    else:
        booking = booking_service.create_booking(
            actor,
            customer_id,
            payload.service_type_id,
            payload.dog_ids,
            payload.start_date,
            notes=payload.notes,
            start_time=payload.start_time,
        )
    return BookingResponse.from_booking(booking)


# ============================================================================
# Customer routes
# ============================================================================


@router.get("/availability", response_model=AvailabilityResponse)
def check_availability(
    service_type_id: str = Query(..., description="Service type to check"),
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None, description="Defaults to start_date"),
    current_customer: Actor = Depends(get_current_customer),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Remaining spots for each day in the range."""
    try:
        days = availability_service.check_availability(
            service_type_id, start_date, end_date or start_date
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AvailabilityResponse(
        service_type_id=service_type_id,
        availability=[
            AvailabilityDayResponse(
                date=day.date,
                available=day.available,
                spots_remaining=day.spots_remaining,
                total_capacity=day.total_capacity,
            )
            for day in days
        ],
    )


@router.get("/service-types", response_model=List[ServiceTypeResponse])
def list_service_types(
    current_customer: Actor = Depends(get_current_customer),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[ServiceTypeResponse]:
    return [
        ServiceTypeResponse.model_validate(service_type)
        for service_type in booking_service.list_service_types()
    ]


@router.get("/grooming-slots", response_model=GroomingSlotsResponse)
def get_grooming_slots(
    day: date = Query(..., alias="date", description="Day to check"),
    current_customer: Actor = Depends(get_current_customer),
    booking_service: BookingService = Depends(get_booking_service),
) -> GroomingSlotsResponse:
    """Remaining appointments in each grooming slot."""
    try:
        slots = booking_service.get_grooming_slots(day)
    except DomainException as e:
        handle_domain_exception(e)
    return GroomingSlotsResponse(
        date=day,
        slots=[GroomingSlotResponse.model_validate(slot) for slot in slots],
    )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    current_customer: Actor = Depends(get_current_customer),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Create a booking for the caller's own dogs. Starts as pending until paid."""
    try:
        return _create(booking_service, current_customer, current_customer.id, payload)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=BookingListResponse)
def list_my_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_customer: Actor = Depends(get_current_customer),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    try:
        page = booking_service.get_customer_bookings(
            current_customer, current_customer.id, status=status_filter, limit=limit, offset=offset
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingListResponse(
        items=[BookingResponse.from_booking(booking) for booking in page.bookings],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    current_customer: Actor = Depends(get_current_customer),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return BookingResponse.from_booking(booking_service.get_booking(current_customer, booking_id))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    payload: Optional[BookingCancel] = Body(None),
    current_customer: Actor = Depends(get_current_customer),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        reason = payload.reason if payload else None
        booking = booking_service.cancel_booking(current_customer, booking_id, reason)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# Staff routes
# ============================================================================


@admin_router.get("/schedule", response_model=DayScheduleResponse)
def get_schedule(
    day: date = Query(..., alias="date"),
    service_type_id: Optional[str] = Query(None),
    current_staff: Actor = Depends(get_current_staff),
    booking_service: BookingService = Depends(get_booking_service),
) -> DayScheduleResponse:
    try:
        schedule = booking_service.get_schedule(current_staff, day, service_type_id)
    except DomainException as e:
        handle_domain_exception(e)
    return DayScheduleResponse(
        date=schedule.date,
        bookings=[BookingResponse.from_booking(booking) for booking in schedule.bookings],
        dogs_by_status=schedule.dogs_by_status,
        total_capacity=schedule.total_capacity,
        spots_remaining=schedule.spots_remaining,
    )


@admin_router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking_for_customer(
    payload: StaffBookingCreate,
    current_staff: Actor = Depends(get_current_staff),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Staff-created bookings are confirmed immediately."""
    try:
        return _create(booking_service, current_staff, payload.customer_id, payload)
    except DomainException as e:
        handle_domain_exception(e)


@admin_router.post("/{booking_id}/confirm", response_model=BookingResponse)
def confirm_booking(
    booking_id: str,
    current_staff: Actor = Depends(get_current_staff),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return BookingResponse.from_booking(booking_service.confirm_booking(current_staff, booking_id))
    except DomainException as e:
        handle_domain_exception(e)


@admin_router.post("/{booking_id}/check-in", response_model=BookingResponse)
def check_in(
    booking_id: str,
    current_staff: Actor = Depends(get_current_staff),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return BookingResponse.from_booking(booking_service.check_in(current_staff, booking_id))
    except DomainException as e:
        handle_domain_exception(e)


@admin_router.post("/{booking_id}/check-out", response_model=BookingResponse)
def check_out(
    booking_id: str,
    payload: Optional[BookingCheckOut] = Body(None),
    current_staff: Actor = Depends(get_current_staff),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        notes = payload.notes if payload else None
        booking = booking_service.check_out(current_staff, booking_id, notes=notes)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@admin_router.post("/{booking_id}/no-show", response_model=BookingResponse)
def mark_no_show(
    booking_id: str,
    current_staff: Actor = Depends(get_current_staff),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return BookingResponse.from_booking(booking_service.mark_no_show(current_staff, booking_id))
    except DomainException as e:
        handle_domain_exception(e)


@admin_router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking_as_staff(
    booking_id: str,
    payload: Optional[BookingCancel] = Body(None),
    current_staff: Actor = Depends(get_current_staff),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        reason = payload.reason if payload else None
        booking = booking_service.cancel_booking(current_staff, booking_id, reason)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)
