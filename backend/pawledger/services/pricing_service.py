# backend/pawledger/services/pricing_service.py
"""Booking price calculation from base prices and pricing rules."""

from __future__ import annotations

from datetime import date
import logging
from typing import Iterable

from sqlalchemy.orm import Session

from pawledger.core.enums import PricingRuleType
from pawledger.models.service_type import PricingRule, ServiceType
from pawledger.repositories.factory import RepositoryFactory
from pawledger.services.base import BaseService

logger = logging.getLogger(__name__)


def apply_pricing_rules(
    subtotal_cents: int,
    rules: Iterable[PricingRule],
    *,
    dog_count: int,
    first_day: date,
) -> int:
    """
    Apply active rules in the given order and floor the result at zero.

    Percentage discounts round half up to the cent. Rules restricted to a
    weekday or a minimum number of dogs are skipped when they do not match.
    """
    total = subtotal_cents
    for rule in rules:
        if rule.day_of_week is not None and rule.day_of_week != first_day.weekday():
            continue
        if rule.min_dogs is not None and dog_count < rule.min_dogs:
            continue

        if rule.rule_type == PricingRuleType.PERCENTAGE_DISCOUNT:
            total -= (total * rule.value + 50) // 100
        elif rule.rule_type == PricingRuleType.FIXED_DISCOUNT:
            total -= rule.value
        elif rule.rule_type == PricingRuleType.SURCHARGE:
            total += rule.value
    return max(0, total)


class PricingService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.service_type_repository = RepositoryFactory.create_service_type_repository(db)

    def calculate_price(
        self,
        service_type: ServiceType,
        *,
        dog_count: int,
        day_count: int,
        first_day: date,
    ) -> int:
        """Base price per dog per day, adjusted by the service's active rules."""
        subtotal = service_type.base_price_cents * dog_count * day_count
        rules = self.service_type_repository.get_active_pricing_rules(service_type.id)
        total = apply_pricing_rules(subtotal, rules, dog_count=dog_count, first_day=first_day)
        logger.debug(
            "Priced %s booking: %s dog(s) x %s day(s) = %s -> %s",
            service_type.name.value,
            dog_count,
            day_count,
            subtotal,
            total,
        )
        return total
