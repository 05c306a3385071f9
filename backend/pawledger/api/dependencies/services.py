# backend/pawledger/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each factory builds a request-scoped service bound to the request's
database session.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.assistant_tool_service import AssistantToolService
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.checkout_service import CheckoutService
from ...services.grooming_service import GroomingService
from ...services.wallet_service import WalletService
from .database import get_db

logger = logging.getLogger(__name__)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Get BookingService instance."""
    return BookingService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_checkout_service(db: Session = Depends(get_db)) -> CheckoutService:
    """
    Get checkout service instance.

    Args:
        db: Database session

    Returns:
        CheckoutService instance
    """
    return CheckoutService(db)


def get_wallet_service(db: Session = Depends(get_db)) -> WalletService:
    return WalletService(db)


def get_grooming_service(db: Session = Depends(get_db)) -> GroomingService:
    return GroomingService(db)


def get_assistant_tool_service(db: Session = Depends(get_db)) -> AssistantToolService:
    return AssistantToolService(db)
