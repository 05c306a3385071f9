# backend/pawledger/routes/v1/checkout.py
"""
Checkout routes - API v1

Customer endpoints (/api/v1/checkout):
    POST / - Pay for one or more bookings
    GET /{payment_id}/receipt - Receipt for one of my payments

Staff endpoints (/api/v1/admin/checkout):
    POST /process - Process a checkout on behalf of a customer
    GET /receipt/{payment_id} - Receipt for any payment
"""

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status

from ...api.dependencies import get_checkout_service, get_current_customer, get_current_staff
from ...core.actor import Actor
from ...core.exceptions import DomainException
from ...schemas.checkout import (
    CheckoutRequest,
    CheckoutResult,
    ReceiptResponse,
    StaffCheckoutRequest,
)
from ...services.checkout_service import CheckoutService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["checkout-v1"])
admin_router = APIRouter(tags=["admin", "checkout-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("", response_model=CheckoutResult)
def process_checkout(
    payload: CheckoutRequest,
    current_customer: Actor = Depends(get_current_customer),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResult:
    """
    Pay for bookings with wallet, card, cash, points or a split.

    Resubmitting with the same idempotency_key returns the original result.
    """
    try:
        return checkout_service.process_checkout(current_customer, current_customer.id, payload)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{payment_id}/receipt", response_model=ReceiptResponse)
def get_receipt(
    payment_id: str,
    current_customer: Actor = Depends(get_current_customer),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> ReceiptResponse:
    try:
        return checkout_service.get_receipt(current_customer, payment_id)
    except DomainException as e:
        handle_domain_exception(e)


@admin_router.post("/process", response_model=CheckoutResult)
def process_checkout_for_customer(
    payload: StaffCheckoutRequest,
    current_staff: Actor = Depends(get_current_staff),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResult:
    """Staff-initiated checkout; recorded in the audit log."""
    try:
        return checkout_service.process_checkout(current_staff, payload.customer_id, payload)
    except DomainException as e:
        handle_domain_exception(e)


@admin_router.get("/receipt/{payment_id}", response_model=ReceiptResponse)
def get_receipt_as_staff(
    payment_id: str,
    current_staff: Actor = Depends(get_current_staff),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> ReceiptResponse:
    try:
        return checkout_service.get_receipt(current_staff, payment_id)
    except DomainException as e:
        handle_domain_exception(e)
