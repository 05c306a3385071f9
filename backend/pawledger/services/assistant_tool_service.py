# backend/pawledger/services/assistant_tool_service.py
"""
Tool-calling interface used by the customer-facing assistant.

Tools act on behalf of one customer and wrap the same services as the HTTP
API. Failures come back as ``{"error": message}`` so the assistant can relay
them to the customer instead of aborting the conversation.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import ValidationError
from sqlalchemy.orm import Session

from pawledger.core.actor import Actor
from pawledger.core.config import settings
from pawledger.core.enums import BookingStatus, ServiceName
from pawledger.core.exceptions import DomainException
from pawledger.models.booking import Booking
from pawledger.models.customer import Dog
from pawledger.models.service_type import ServiceType
from pawledger.repositories.factory import RepositoryFactory
from pawledger.schemas.assistant import (
    CancelBookingInput,
    CheckAvailabilityInput,
    CreateBookingInput,
    EmptyInput,
    GetMyBookingsInput,
    ToolInput,
)
from pawledger.services.availability_service import AvailabilityService
from pawledger.services.base import BaseService
from pawledger.services.booking_service import BookingService
from pawledger.services.wallet_service import WalletService

logger = logging.getLogger(__name__)

ToolResult = Dict[str, Any]

NO_ACCOUNT_MESSAGE = "No account found for this phone number."
MY_BOOKINGS_LIMIT = 10


class ToolError(Exception):
    """A tool failure whose message is safe to show to the customer."""


def _dollars(amount_cents: int) -> str:
    return f"${amount_cents / 100:.2f}"


def _describe_dates(booking: Booking) -> str:
    if booking.is_multi_day:
        return f"{booking.first_day.isoformat()} to {booking.last_day.isoformat()}"
    return booking.date.isoformat()


class AssistantToolService(BaseService):
    """Dispatches assistant tool calls to the booking and wallet services."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.booking_service = BookingService(db)
        self.availability_service = AvailabilityService(db)
        self.wallet_service = WalletService(db)
        self.service_type_repository = RepositoryFactory.create_service_type_repository(db)
        self.customer_repository = RepositoryFactory.create_customer_repository(db)
        self._tools: Dict[str, Tuple[Type[ToolInput], Callable[..., ToolResult], bool]] = {
            "check_availability": (CheckAvailabilityInput, self._check_availability, False),
            "create_booking": (CreateBookingInput, self._create_booking, True),
            "get_my_bookings": (GetMyBookingsInput, self._get_my_bookings, True),
            "cancel_booking": (CancelBookingInput, self._cancel_booking, True),
            "get_wallet_balance": (EmptyInput, self._get_wallet_balance, True),
            "get_services_and_pricing": (EmptyInput, self._get_services_and_pricing, False),
        }

    @property
    def tool_names(self) -> List[str]:
        return list(self._tools)

    @BaseService.measure_operation("execute_tool")
    def execute_tool(
        self, tool_name: str, tool_input: Dict[str, Any], customer_id: Optional[str]
    ) -> ToolResult:
        """
        Run one tool call.

        Args:
            tool_name: Name of the tool the assistant invoked
            tool_input: Raw JSON arguments from the assistant
            customer_id: Customer resolved from the conversation, if any

        Returns:
            JSON-serializable result, or ``{"error": message}``
        """
        self.logger.info(
            f"Executing tool: {tool_name}", extra={"tool": tool_name, "customer_id": customer_id}
        )
        entry = self._tools.get(tool_name)
        if entry is None:
            return {"error": f"Unknown tool: {tool_name}"}
        input_model, handler, needs_customer = entry

        if needs_customer and not customer_id:
            if tool_name == "create_booking":
                return {
                    "error": "You need an account to make bookings. Please visit us or "
                    "call to set up your account first."
                }
            return {"error": NO_ACCOUNT_MESSAGE}

        try:
            params = input_model.model_validate(tool_input or {})
        except ValidationError as exc:
            fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
            return {"error": f"Invalid input for {tool_name}: {fields}"}

        try:
            if needs_customer:
                return handler(params, Actor.assistant(str(customer_id)))
            return handler(params)
        except (DomainException, ToolError) as exc:
            message = exc.message if isinstance(exc, DomainException) else str(exc)
            self.logger.warning(
                f"Tool {tool_name} failed: {message}",
                extra={"tool": tool_name, "customer_id": customer_id},
            )
            return {"error": message}

    # Helpers

    def _resolve_service(self, name: ServiceName) -> ServiceType:
        for service_type in self.service_type_repository.list_active():
            if service_type.name == name:
                return service_type
        raise ToolError(f"Unknown service: {name.value}")

    def _resolve_dogs(self, customer_id: str, dog_names: List[str]) -> List[Dog]:
        by_name = {dog.name.lower(): dog for dog in self.customer_repository.get_dogs(customer_id)}
        resolved = []
        for name in dog_names:
            dog = by_name.get(name.strip().lower())
            if dog is None:
                raise ToolError(f'Dog "{name}" not found on your account')
            resolved.append(dog)
        return resolved

    # Tools

    def _check_availability(self, params: CheckAvailabilityInput) -> ToolResult:
        service_type = self._resolve_service(params.service_name)
        days = self.availability_service.check_availability(
            service_type.id, params.start_date, params.end_date
        )
        return {
            "service": service_type.name.value,
            "base_price": _dollars(service_type.base_price_cents),
            "dates": [
                {
                    "date": day.date.isoformat(),
                    "available": day.available,
                    "spots_left": day.spots_remaining,
                }
                for day in days
            ],
        }

    def _create_booking(self, params: CreateBookingInput, actor: Actor) -> ToolResult:
        service_type = self._resolve_service(params.service_name)
        dogs = self._resolve_dogs(actor.id, params.dog_names)
        dog_ids = [dog.id for dog in dogs]

        if params.start_date != params.end_date:
            booking = self.booking_service.create_multi_day_booking(
                actor,
                actor.id,
                service_type.id,
                dog_ids,
                params.start_date,
                params.end_date,
                notes=params.notes,
            )
        else:
            booking = self.booking_service.create_booking(
                actor, actor.id, service_type.id, dog_ids, params.start_date, notes=params.notes
            )

        return {
            "success": True,
            "booking_id": booking.id,
            "service": service_type.name.value,
            "date": _describe_dates(booking),
            "dogs": [dog.name for dog in dogs],
            "total_price": _dollars(booking.total_cents),
            "status": booking.status.value,
        }

    def _get_my_bookings(self, params: GetMyBookingsInput, actor: Actor) -> ToolResult:
        page = self.booking_service.get_customer_bookings(actor, actor.id, limit=100)
        today = datetime.now(timezone.utc).date()
        bookings = page.bookings
        if not params.include_past:
            bookings = [
                booking
                for booking in bookings
                if booking.status in BookingStatus.occupying() and booking.last_day >= today
            ]
        bookings = sorted(bookings, key=lambda b: b.first_day)[:MY_BOOKINGS_LIMIT]
        return {
            "total": len(bookings),
            "bookings": [
                {
                    "id": booking.id,
                    "service": booking.service_type.name.value,
                    "date": _describe_dates(booking),
                    "dogs": [link.dog.name for link in booking.dogs],
                    "status": booking.status.value,
                    "price": _dollars(booking.total_cents),
                }
                for booking in bookings
            ],
        }

    def _cancel_booking(self, params: CancelBookingInput, actor: Actor) -> ToolResult:
        booking = self.booking_service.cancel_booking(actor, params.booking_id, params.reason)
        return {
            "success": True,
            "booking_id": booking.id,
            "status": booking.status.value,
            "message": "Booking has been cancelled.",
        }

    def _get_wallet_balance(self, params: EmptyInput, actor: Actor) -> ToolResult:
        balance = self.wallet_service.get_balance(actor, actor.id)
        return {
            "wallet_balance": _dollars(balance.balance_cents),
            "tier": balance.tier.value,
            "loyalty_points": balance.points_balance,
            "max_points": settings.points_cap,
        }

    def _get_services_and_pricing(self, params: EmptyInput) -> ToolResult:
        return {
            "services": [
                {
                    "name": service_type.name.value,
                    "base_price": _dollars(service_type.base_price_cents),
                    "duration": (
                        f"{service_type.duration_minutes} min"
                        if service_type.duration_minutes
                        else "Full day"
                    ),
                }
                for service_type in self.service_type_repository.list_active()
            ],
            "notes": "Grooming price varies by dog size and coat condition. "
            "Multi-dog discount: 10% off daycare for 2+ dogs.",
        }
