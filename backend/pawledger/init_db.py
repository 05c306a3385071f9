# backend/pawledger/init_db.py
"""
Schema creation and reference-data seeding.

Run directly to prepare the configured database:

    python -m pawledger.init_db
"""

import logging
from typing import Dict, Optional, Tuple

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from pawledger import models  # noqa: F401  registers every table on Base.metadata
from pawledger.core.enums import PricingRuleType, ServiceName, SizeCategory
from pawledger.database import Base, SessionLocal, engine as default_engine
from pawledger.models.service_type import GroomingPriceTier, GroomingSlot, PricingRule, ServiceType

logger = logging.getLogger(__name__)

# name -> (display_name, description, base_price_cents, duration_minutes, sort_order)
SERVICE_TYPES: Dict[ServiceName, Tuple[str, str, int, Optional[int], int]] = {
    ServiceName.DAYCARE: ("Daycare", "Full day of supervised play", 4500, None, 1),
    ServiceName.BOARDING: ("Boarding", "Overnight stay, priced per night", 6500, None, 2),
    ServiceName.GROOMING: ("Grooming", "Bath, brush and trim", 7500, 90, 3),
}

# size -> (price for an excellent coat, minutes for an excellent coat)
GROOMING_BASE: Dict[SizeCategory, Tuple[int, int]] = {
    SizeCategory.SMALL: (4500, 60),
    SizeCategory.MEDIUM: (6000, 75),
    SizeCategory.LARGE: (7500, 90),
    SizeCategory.XL: (9000, 105),
}
GROOMING_RATING_STEP_CENTS = 1000
GROOMING_RATING_STEP_MINUTES = 15

CONDITION_LABELS = {
    1: "Excellent",
    2: "Good",
    3: "Fair",
    4: "Matted",
    5: "Severely matted",
}

# (start_time, end_time, max_capacity)
GROOMING_SLOTS: Tuple[Tuple[str, str, int], ...] = (
    ("09:00", "10:30", 2),
    ("10:30", "12:00", 2),
    ("13:00", "14:30", 2),
    ("14:30", "16:00", 2),
)


def init_db(engine: Optional[Engine] = None) -> None:
    """Create every table that does not exist yet."""
    bind = engine or default_engine
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables created")


def seed_reference_data(db: Session) -> Dict[str, int]:
    """
    Insert service types, the grooming price matrix, the grooming slots and the
    multi-dog daycare discount. Existing rows are left untouched, so this is safe to rerun.

    Returns:
        Count of rows created per kind
    """
    stats = {"service_types": 0, "grooming_tiers": 0, "grooming_slots": 0, "pricing_rules": 0}

    existing_services = {service.name: service for service in db.query(ServiceType).all()}
    for name, (display_name, description, price, minutes, sort_order) in SERVICE_TYPES.items():
        if name in existing_services:
            continue
        service = ServiceType(
            name=name,
            display_name=display_name,
            description=description,
            base_price_cents=price,
            duration_minutes=minutes,
            sort_order=sort_order,
        )
        db.add(service)
        existing_services[name] = service
        stats["service_types"] += 1
    db.flush()

    existing_tiers = {
        (tier.size_category, tier.condition_rating) for tier in db.query(GroomingPriceTier).all()
    }
    for size, (base_price, base_minutes) in GROOMING_BASE.items():
        for rating, label in CONDITION_LABELS.items():
            if (size, rating) in existing_tiers:
                continue
            db.add(
                GroomingPriceTier(
                    size_category=size,
                    condition_rating=rating,
                    label=label,
                    price_cents=base_price + (rating - 1) * GROOMING_RATING_STEP_CENTS,
                    estimated_minutes=base_minutes + (rating - 1) * GROOMING_RATING_STEP_MINUTES,
                )
            )
            stats["grooming_tiers"] += 1

    existing_slots = {slot.start_time for slot in db.query(GroomingSlot).all()}
    for start_time, end_time, max_capacity in GROOMING_SLOTS:
        if start_time in existing_slots:
            continue
        db.add(GroomingSlot(start_time=start_time, end_time=end_time, max_capacity=max_capacity))
        stats["grooming_slots"] += 1

    daycare = existing_services[ServiceName.DAYCARE]
    has_multi_dog_rule = (
        db.query(PricingRule)
        .filter(PricingRule.service_type_id == daycare.id, PricingRule.min_dogs.isnot(None))
        .first()
        is not None
    )
    if not has_multi_dog_rule:
        db.add(
            PricingRule(
                service_type_id=daycare.id,
                name="Multi-dog discount",
                rule_type=PricingRuleType.PERCENTAGE_DISCOUNT,
                value=10,
                min_dogs=2,
                priority=10,
            )
        )
        stats["pricing_rules"] += 1

    db.commit()
    logger.info("Reference data seeded", extra=stats)
    return stats


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    session = SessionLocal()
    try:
        seed_reference_data(session)
    finally:
        session.close()
