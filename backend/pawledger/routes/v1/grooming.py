# backend/pawledger/routes/v1/grooming.py
"""
Grooming routes - API v1

Customer endpoints (/api/v1/grooming):
    GET /pricing/{size_category} - Price range for a dog size

Staff endpoints (/api/v1/admin/grooming):
    POST /rate/{booking_dog_id} - Record a coat condition rating
    GET /matrix - Full size x condition price matrix
    PUT /matrix/{tier_id} - Update a tier's price or duration
"""

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status

from ...api.dependencies import get_current_customer, get_current_staff, get_grooming_service
from ...core.actor import Actor
from ...core.enums import SizeCategory
from ...core.exceptions import DomainException
from ...schemas.grooming import (
    PriceMatrixResponse,
    PriceRangeResponse,
    PriceTierResponse,
    RateConditionRequest,
    RateConditionResponse,
    UpdatePriceTierRequest,
)
from ...services.grooming_service import GroomingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["grooming-v1"])
admin_router = APIRouter(tags=["admin", "grooming-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/pricing/{size_category}", response_model=PriceRangeResponse)
def get_price_range(
    size_category: SizeCategory,
    current_customer: Actor = Depends(get_current_customer),
    grooming_service: GroomingService = Depends(get_grooming_service),
) -> PriceRangeResponse:
    try:
        return PriceRangeResponse.model_validate(grooming_service.get_price_range(size_category))
    except DomainException as e:
        handle_domain_exception(e)


@admin_router.post("/rate/{booking_dog_id}", response_model=RateConditionResponse)
def rate_condition(
    booking_dog_id: str,
    payload: RateConditionRequest,
    current_staff: Actor = Depends(get_current_staff),
    grooming_service: GroomingService = Depends(get_grooming_service),
) -> RateConditionResponse:
    """Quote a dog's groom. Once every dog is rated the booking total is recomputed."""
    try:
        result = grooming_service.rate_condition(current_staff, booking_dog_id, payload.rating)
    except DomainException as e:
        handle_domain_exception(e)
    return RateConditionResponse(
        booking_id=result.booking_dog.booking_id,
        booking_dog_id=result.booking_dog.id,
        condition_rating=result.tier.condition_rating,
        quoted_price_cents=result.tier.price_cents,
        tier_label=result.tier.label,
        estimated_minutes=result.tier.estimated_minutes,
        all_rated=result.all_rated,
        booking_total_cents=result.booking_total_cents,
    )


@admin_router.get("/matrix", response_model=PriceMatrixResponse)
def get_price_matrix(
    current_staff: Actor = Depends(get_current_staff),
    grooming_service: GroomingService = Depends(get_grooming_service),
) -> PriceMatrixResponse:
    return PriceMatrixResponse(
        tiers=[PriceTierResponse.model_validate(tier) for tier in grooming_service.get_price_matrix()]
    )


@admin_router.put("/matrix/{tier_id}", response_model=PriceTierResponse)
def update_price_tier(
    tier_id: str,
    payload: UpdatePriceTierRequest,
    current_staff: Actor = Depends(get_current_staff),
    grooming_service: GroomingService = Depends(get_grooming_service),
) -> PriceTierResponse:
    try:
        tier = grooming_service.update_price_tier(
            current_staff,
            tier_id,
            price_cents=payload.price_cents,
            estimated_minutes=payload.estimated_minutes,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return PriceTierResponse.model_validate(tier)
