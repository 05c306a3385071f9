# backend/pawledger/repositories/service_type_repository.py
"""Reference data access: service types, pricing rules, grooming tiers and slots."""

import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pawledger.core.enums import ServiceName, SizeCategory
from pawledger.core.exceptions import RepositoryException
from pawledger.models.service_type import GroomingPriceTier, GroomingSlot, PricingRule, ServiceType
from pawledger.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ServiceTypeRepository(BaseRepository[ServiceType]):
    def __init__(self, db: Session):
        super().__init__(db, ServiceType)

    def get_active(self, service_type_id: str) -> Optional[ServiceType]:
        service_type = self.get_by_id(service_type_id)
        if service_type is None or not service_type.is_active:
            return None
        return service_type

    def get_by_name(self, name: ServiceName) -> Optional[ServiceType]:
        return self.find_one_by(name=name)

    def list_active(self) -> List[ServiceType]:
        query = (
            self._build_query()
            .filter(ServiceType.is_active.is_(True))
            .order_by(ServiceType.sort_order, ServiceType.display_name)
        )
        return cast(List[ServiceType], self._execute_query(query))

    def get_active_pricing_rules(self, service_type_id: str) -> List[PricingRule]:
        try:
            return cast(
                List[PricingRule],
                self.db.query(PricingRule)
                .filter(
                    PricingRule.service_type_id == service_type_id,
                    PricingRule.is_active.is_(True),
                )
                .order_by(PricingRule.priority.desc(), PricingRule.name)
                .all(),
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to load pricing rules for %s: %s", service_type_id, exc)
            raise RepositoryException(f"Failed to load pricing rules: {exc}") from exc

    def list_grooming_slots(self) -> List[GroomingSlot]:
        try:
            return cast(
                List[GroomingSlot],
                self.db.query(GroomingSlot)
                .filter(GroomingSlot.is_active.is_(True))
                .order_by(GroomingSlot.start_time)
                .all(),
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to load grooming slots: %s", exc)
            raise RepositoryException(f"Failed to load grooming slots: {exc}") from exc

    def get_grooming_slot(self, start_time: str) -> Optional[GroomingSlot]:
        try:
            return (
                self.db.query(GroomingSlot)
                .filter(GroomingSlot.start_time == start_time, GroomingSlot.is_active.is_(True))
                .first()
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to load grooming slot %s: %s", start_time, exc)
            raise RepositoryException(f"Failed to load grooming slot: {exc}") from exc


class GroomingPriceTierRepository(BaseRepository[GroomingPriceTier]):
    def __init__(self, db: Session):
        super().__init__(db, GroomingPriceTier)

    def get_tier(self, size: SizeCategory, rating: int) -> Optional[GroomingPriceTier]:
        try:
            return (
                self._build_query()
                .filter(
                    GroomingPriceTier.size_category == size,
                    GroomingPriceTier.condition_rating == rating,
                    GroomingPriceTier.is_active.is_(True),
                )
                .first()
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to load grooming tier %s/%s: %s", size, rating, exc)
            raise RepositoryException(f"Failed to load grooming tier: {exc}") from exc

    def list_for_size(self, size: SizeCategory) -> List[GroomingPriceTier]:
        query = (
            self._build_query()
            .filter(
                GroomingPriceTier.size_category == size,
                GroomingPriceTier.is_active.is_(True),
            )
            .order_by(GroomingPriceTier.condition_rating)
        )
        return cast(List[GroomingPriceTier], self._execute_query(query))

    def list_active(self) -> List[GroomingPriceTier]:
        query = (
            self._build_query()
            .filter(GroomingPriceTier.is_active.is_(True))
            .order_by(GroomingPriceTier.size_category, GroomingPriceTier.condition_rating)
        )
        return cast(List[GroomingPriceTier], self._execute_query(query))
