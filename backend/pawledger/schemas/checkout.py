# backend/pawledger/schemas/checkout.py
"""
Checkout schemas.

``CheckoutRequest`` is the single normalized input of the checkout engine;
``CheckoutResult`` is both the API response and the snapshot stored on the
payment so an idempotent replay returns exactly the same body.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.enums import BookingStatus, PaymentMethod, PaymentStatus
from ._strict_base import StrictModel, StrictRequestModel
from .common import UUIDStr


class CheckoutRequest(StrictRequestModel):
    """Pay for one or more bookings of the same customer."""

    booking_ids: List[UUIDStr] = Field(..., min_length=1, description="Bookings to pay for")
    payment_method: PaymentMethod
    wallet_amount_cents: int = Field(
        default=0, ge=0, description="Wallet contribution for split payments"
    )
    points_to_redeem: int = Field(default=0, ge=0, description="Loyalty points to redeem")
    tip_cents: int = Field(default=0, ge=0)
    idempotency_key: Optional[UUIDStr] = Field(
        default=None, description="Client token making retries safe"
    )

    @field_validator("booking_ids")
    @classmethod
    def _dedupe_booking_ids(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))


class CheckoutBookingStatus(StrictModel):
    id: str
    status: BookingStatus


class CheckoutResult(StrictModel):
    payment_id: str
    transaction_id: str
    total_cents: int
    wallet_amount_cents: int
    card_amount_cents: int
    points_redeemed: int
    points_amount_cents: int
    tip_cents: int
    points_awarded: int
    points_capped: int
    payment_method: PaymentMethod
    status: PaymentStatus
    bookings: List[CheckoutBookingStatus]
    created_at: datetime


class ReceiptCustomer(StrictModel):
    id: str
    first_name: str
    last_name: str
    email: str


class ReceiptBooking(StrictModel):
    id: str
    service_type: str
    booking_date: date
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    dogs: List[str]
    total_cents: int


class ReceiptResponse(StrictModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    payment_id: str
    transaction_id: str
    customer: ReceiptCustomer
    bookings: List[ReceiptBooking]
    total_cents: int
    wallet_amount_cents: int
    card_amount_cents: int
    points_redeemed: int
    points_amount_cents: int
    tip_cents: int
    points_awarded: int
    payment_method: PaymentMethod
    status: PaymentStatus
    processed_by: Optional[str] = None
    created_at: datetime


class StaffCheckoutRequest(CheckoutRequest):
    """Staff-processed checkout on behalf of a customer."""

    customer_id: UUIDStr
