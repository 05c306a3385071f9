# backend/pawledger/services/grooming_service.py
"""
Grooming price matrix and the groomer's condition-rating flow.

A grooming booking is created at an estimate (base price per dog). Once a
groomer has rated every dog, the booking total becomes the sum of the
quoted tier prices.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from pawledger.core.actor import Actor
from pawledger.core.enums import BookingStatus, SizeCategory
from pawledger.core.exceptions import (
    BusinessRuleException,
    NotFoundException,
    ValidationException,
)
from pawledger.models.booking import BookingDog
from pawledger.models.service_type import GroomingPriceTier
from pawledger.repositories.factory import RepositoryFactory
from pawledger.services.base import BaseService

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


@dataclass(frozen=True)
class PriceRange:
    size_category: SizeCategory
    min_price_cents: int
    max_price_cents: int


@dataclass(frozen=True)
class RatingResult:
    booking_dog: BookingDog
    tier: GroomingPriceTier
    all_rated: bool
    booking_total_cents: int


class GroomingService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.tier_repository = RepositoryFactory.create_grooming_price_tier_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.audit_repository = RepositoryFactory.create_audit_log_repository(db)

    def get_price(self, size: SizeCategory, rating: int) -> GroomingPriceTier:
        _validate_rating(rating)
        tier = self.tier_repository.get_tier(size, rating)
        if tier is None:
            raise NotFoundException(
                "Price tier not found", details={"size_category": size.value, "rating": rating}
            )
        return tier

    def get_price_range(self, size: SizeCategory) -> PriceRange:
        tiers = self.tier_repository.list_for_size(size)
        if not tiers:
            raise NotFoundException(
                "No pricing found for this size", details={"size_category": size.value}
            )
        prices = [tier.price_cents for tier in tiers]
        return PriceRange(size_category=size, min_price_cents=min(prices), max_price_cents=max(prices))

    def get_price_matrix(self) -> List[GroomingPriceTier]:
        return self.tier_repository.list_active()

    @BaseService.measure_operation("update_price_tier")
    def update_price_tier(
        self,
        actor: Actor,
        tier_id: str,
        price_cents: Optional[int] = None,
        estimated_minutes: Optional[int] = None,
    ) -> GroomingPriceTier:
        actor.require_staff()
        if price_cents is not None and price_cents < 0:
            raise ValidationException("price_cents cannot be negative")
        if estimated_minutes is not None and estimated_minutes <= 0:
            raise ValidationException("estimated_minutes must be positive")

        tier = self.tier_repository.get_by_id(tier_id)
        if tier is None:
            raise NotFoundException("Price tier not found", details={"tier_id": tier_id})

        changes = {}
        if price_cents is not None:
            changes["price_cents"] = price_cents
        if estimated_minutes is not None:
            changes["estimated_minutes"] = estimated_minutes

        with self.transaction():
            self.tier_repository.update(tier.id, **changes)
            self.audit_repository.record(
                staff_id=actor.id,
                action="update_price_tier",
                entity_type="grooming_price_tier",
                entity_id=tier.id,
                details=changes,
            )
        return tier

    @BaseService.measure_operation("rate_condition")
    def rate_condition(self, actor: Actor, booking_dog_id: str, rating: int) -> RatingResult:
        """
        Record a groomer's condition rating and quote for one dog.

        Raises:
            ValidationException: rating out of range, not a grooming booking, size unset
            NotFoundException: unknown booking dog or missing price tier
            BusinessRuleException: booking already paid or closed
        """
        actor.require_staff()
        _validate_rating(rating)

        booking_dog = self.booking_repository.get_booking_dog(booking_dog_id)
        if booking_dog is None:
            raise NotFoundException("Booking dog not found", details={"booking_dog_id": booking_dog_id})
        booking = booking_dog.booking
        if not booking.service_type.is_grooming:
            raise ValidationException("Can only rate grooming bookings", code="NOT_GROOMING")
        if booking.status not in BookingStatus.occupying():
            raise BusinessRuleException(
                f"Cannot rate a booking with status '{booking.status.value}'",
                code="BOOKING_CLOSED",
            )
        if self.payment_repository.is_booking_paid(booking.id):
            raise _already_paid()
        size = booking_dog.dog.size_category
        if size is None:
            raise ValidationException(
                "Dog size category must be set before rating", code="DOG_SIZE_MISSING"
            )

        tier = self.tier_repository.get_tier(size, rating)
        if tier is None:
            raise NotFoundException(
                "Price tier not found for this size/condition combo",
                details={"size_category": size.value, "rating": rating},
            )

        with self.transaction():
            # Guarded write first: a checkout that committed since the checks above wins
            if not self.booking_repository.update_unpaid_total(booking.id):
                raise _already_paid()
            booking_dog.condition_rating = rating
            booking_dog.quoted_price_cents = tier.price_cents
            self.booking_repository.flush()

            dogs = booking.dogs
            all_rated = all(dog.quoted_price_cents is not None for dog in dogs)
            if all_rated:
                total = sum(dog.quoted_price_cents or 0 for dog in dogs)
                if not self.booking_repository.update_unpaid_total(booking.id, total):
                    raise _already_paid()

            self.audit_repository.record(
                staff_id=actor.id,
                action="rate_condition",
                entity_type="booking_dog",
                entity_id=booking_dog.id,
                details={"rating": rating, "quoted_price_cents": tier.price_cents},
            )

        self.log_operation(
            "rate_condition",
            booking_id=booking.id,
            booking_dog_id=booking_dog.id,
            rating=rating,
            all_rated=all_rated,
        )
        return RatingResult(
            booking_dog=booking_dog,
            tier=tier,
            all_rated=all_rated,
            booking_total_cents=booking.total_cents,
        )


def _already_paid() -> BusinessRuleException:
    return BusinessRuleException(
        "Booking has already been paid; its price can no longer change",
        code="BOOKING_ALREADY_PAID",
    )


def _validate_rating(rating: int) -> None:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationException(
            f"Condition rating must be between {MIN_RATING} and {MAX_RATING}",
            code="INVALID_RATING",
            details={"rating": rating},
        )
