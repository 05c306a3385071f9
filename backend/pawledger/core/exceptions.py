# backend/pawledger/core/exceptions.py
"""
Domain-specific exceptions for the PawLedger engine.

Each exception carries a stable code and a details payload so the API layer
can translate it into an HTTP response without inspecting messages.
"""

from typing import Any, Dict, Iterable, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when the caller identity is missing."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when the actor lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Booking allocation


class CapacityExceededException(ConflictException):
    """Raised when a date has fewer free spots than the dogs requested."""

    def __init__(self, booking_date: str, spots_remaining: int, requested: int):
        super().__init__(
            message=(
                f"Not enough capacity on {booking_date}: "
                f"{spots_remaining} spot(s) left, {requested} requested"
            ),
            code="CAPACITY_EXCEEDED",
            details={
                "date": booking_date,
                "spots_remaining": spots_remaining,
                "requested": requested,
            },
        )


class GroomingSlotFullException(ConflictException):
    """Raised when a grooming appointment window has no room left."""

    def __init__(self, booking_date: str, start_time: str, max_capacity: int):
        super().__init__(
            message=f"The {start_time} grooming slot on {booking_date} is full",
            code="GROOMING_SLOT_FULL",
            details={"date": booking_date, "start_time": start_time, "max_capacity": max_capacity},
        )


class InvalidServiceTypeException(ValidationException):
    """Raised when the service type is unknown or inactive."""

    def __init__(self, service_type_id: str):
        super().__init__(
            message="Service type not found or inactive",
            code="INVALID_SERVICE_TYPE",
            details={"service_type_id": service_type_id},
        )


class InvalidDogOwnershipException(ValidationException):
    """Raised when a dog does not belong to the booking customer."""

    def __init__(self, dog_ids: Iterable[str]):
        ids = sorted(dog_ids)
        super().__init__(
            message="One or more dogs do not belong to this customer",
            code="INVALID_DOG_OWNERSHIP",
            details={"dog_ids": ids},
        )


class DuplicateBookingException(ConflictException):
    """Raised when a dog already holds an active booking for the same service and day."""

    def __init__(self, dog_name: str, booking_date: str, service_name: str):
        super().__init__(
            message=f"{dog_name} already has a {service_name} booking on {booking_date}",
            code="DUPLICATE_BOOKING",
            details={"dog": dog_name, "date": booking_date, "service": service_name},
        )


class InvalidBookingTransitionException(BusinessRuleException):
    """Raised when a booking status change is not allowed from its current status."""

    def __init__(self, booking_id: str, current_status: str, action: str):
        super().__init__(
            message=f"Cannot {action} a booking with status '{current_status}'",
            code="INVALID_BOOKING_TRANSITION",
            details={"booking_id": booking_id, "status": current_status, "action": action},
        )


# Checkout and ledger


class BookingsNotEligibleException(ValidationException):
    """Raised when checkout bookings are missing, foreign or not payable."""

    def __init__(self, booking_ids: Iterable[str]):
        ids = sorted(booking_ids)
        super().__init__(
            message="Some bookings are not eligible for checkout",
            code="BOOKINGS_NOT_ELIGIBLE",
            details={"booking_ids": ids},
        )
        self.booking_ids = ids


class BookingPriceChangedException(ConflictException):
    """A booking's total changed after checkout priced it. Retry to pay the new total."""

    def __init__(self, booking_ids: Iterable[str]):
        ids = sorted(booking_ids)
        super().__init__(
            message="Booking price changed during checkout",
            code="BOOKING_PRICE_CHANGED",
            details={"booking_ids": ids, "retryable": True},
        )


class SplitAmountInvalidException(ValidationException):
    """Raised when the requested payment split is malformed."""

    def __init__(self, message: str):
        super().__init__(message=message, code="SPLIT_AMOUNT_INVALID")


class InsufficientWalletBalanceException(BusinessRuleException):
    """Raised when the wallet cannot cover the requested debit."""

    def __init__(self, balance_cents: int, required_cents: int):
        super().__init__(
            message="Insufficient wallet balance",
            code="INSUFFICIENT_WALLET_BALANCE",
            details={"balance_cents": balance_cents, "required_cents": required_cents},
        )


class InsufficientPointsException(BusinessRuleException):
    """Raised when the points balance cannot cover the requested redemption."""

    def __init__(self, balance: int, required: int):
        super().__init__(
            message="Insufficient points balance",
            code="INSUFFICIENT_POINTS",
            details={"balance": balance, "required": required},
        )


class WalletBalanceConflictException(InsufficientWalletBalanceException):
    """The balance changed between the advisory read and the conditional debit.

    Clients may retry the checkout with the same idempotency key.
    """

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, required_cents: int):
        super().__init__(balance_cents=-1, required_cents=required_cents)
        self.details = {"required_cents": required_cents, "retryable": True}


class PointsBalanceConflictException(InsufficientPointsException):
    """Points counterpart of WalletBalanceConflictException."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, required: int):
        super().__init__(balance=-1, required=required)
        self.details = {"required": required, "retryable": True}


class WalletLoadLimitException(BusinessRuleException):
    """Raised when a wallet load breaks the per-transaction or daily limits."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="WALLET_LOAD_LIMIT", details=details)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access operations fail, such as connection issues,
    query failures, or constraint violations.
    """


class DuplicateIdempotencyKeyError(RepositoryException):
    """A payment with the same idempotency key was committed concurrently."""

    def __init__(self, idempotency_key: str):
        super().__init__(f"Idempotency key already used: {idempotency_key}")
        self.idempotency_key = idempotency_key
