# backend/pawledger/models/service_type.py
"""Reference data: service offerings, pricing rules and the grooming price matrix."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pawledger.core.enums import PricingRuleType, ServiceName, SizeCategory
from pawledger.database import Base
from pawledger.models._columns import enum_column_type, new_id


class ServiceType(Base):
    """A bookable service. Base price is per dog per day."""

    __tablename__ = "service_types"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[ServiceName] = mapped_column(
        enum_column_type(ServiceName, "service_name"), nullable=False, unique=True
    )
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    base_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    pricing_rules: Mapped[List["PricingRule"]] = relationship(
        "PricingRule",
        back_populates="service_type",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("base_price_cents >= 0", name="ck_service_types_price_non_negative"),
    )

    @property
    def is_grooming(self) -> bool:
        return self.name == ServiceName.GROOMING

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<ServiceType {self.name} base={self.base_price_cents}>"


class PricingRule(Base):
    """Adjustment applied on top of the base price of a service.

    ``value`` is a whole percentage for percentage discounts and cents otherwise.
    ``day_of_week`` follows ``date.weekday()`` (Monday is 0).
    """

    __tablename__ = "pricing_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    service_type_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("service_types.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    rule_type: Mapped[PricingRuleType] = mapped_column(
        enum_column_type(PricingRuleType, "pricing_rule_type"), nullable=False
    )
    value: Mapped[int] = mapped_column(Integer, nullable=False)
    min_dogs: Mapped[Optional[int]] = mapped_column(SmallInteger)
    day_of_week: Mapped[Optional[int]] = mapped_column(SmallInteger)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    service_type: Mapped[ServiceType] = relationship("ServiceType", back_populates="pricing_rules")

    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_pricing_rules_value_non_negative"),
        CheckConstraint(
            "day_of_week IS NULL OR (day_of_week >= 0 AND day_of_week <= 6)",
            name="ck_pricing_rules_day_of_week",
        ),
    )


class GroomingPriceTier(Base):
    """Price for grooming one dog of a size category in a given condition."""

    __tablename__ = "grooming_price_tiers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    size_category: Mapped[SizeCategory] = mapped_column(
        enum_column_type(SizeCategory, "grooming_size_category"), nullable=False
    )
    condition_rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    estimated_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("size_category", "condition_rating", name="uq_grooming_tier_size_rating"),
        CheckConstraint(
            "condition_rating >= 1 AND condition_rating <= 5",
            name="ck_grooming_tier_rating_range",
        ),
        CheckConstraint("price_cents >= 0", name="ck_grooming_tier_price_non_negative"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<GroomingPriceTier {self.size_category}/{self.condition_rating} "
            f"price={self.price_cents}>"
        )


class GroomingSlot(Base):
    """A daily grooming appointment window; ``max_capacity`` bookings may share it."""

    __tablename__ = "grooming_slots"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("start_time", name="uq_grooming_slots_start_time"),
        CheckConstraint("start_time < end_time", name="ck_grooming_slots_window"),
        CheckConstraint("max_capacity >= 1", name="ck_grooming_slots_capacity_positive"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<GroomingSlot {self.start_time}-{self.end_time} cap={self.max_capacity}>"
