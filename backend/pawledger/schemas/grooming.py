# backend/pawledger/schemas/grooming.py
"""Grooming price matrix and condition rating schemas."""

from typing import List, Optional

from pydantic import ConfigDict, Field

from ..core.enums import SizeCategory
from ._strict_base import StrictModel, StrictRequestModel


class PriceTierResponse(StrictModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    id: str
    size_category: SizeCategory
    condition_rating: int
    label: str
    price_cents: int
    estimated_minutes: int


class PriceMatrixResponse(StrictModel):
    tiers: List[PriceTierResponse]


class PriceRangeResponse(StrictModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    size_category: SizeCategory
    min_price_cents: int
    max_price_cents: int


class RateConditionRequest(StrictRequestModel):
    rating: int = Field(..., description="Coat condition, 1 (excellent) to 5 (severely matted)")


class RateConditionResponse(StrictModel):
    booking_id: str
    booking_dog_id: str
    condition_rating: int
    quoted_price_cents: int
    tier_label: str
    estimated_minutes: int
    all_rated: bool
    booking_total_cents: int


class UpdatePriceTierRequest(StrictRequestModel):
    price_cents: Optional[int] = Field(None, ge=0)
    estimated_minutes: Optional[int] = Field(None, gt=0)
