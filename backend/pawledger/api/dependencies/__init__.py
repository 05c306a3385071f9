# backend/pawledger/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .actor import get_current_customer, get_current_staff
from .database import get_db
from .services import (
    get_assistant_tool_service,
    get_availability_service,
    get_booking_service,
    get_checkout_service,
    get_grooming_service,
    get_wallet_service,
)

__all__ = [
    # Identity
    "get_current_customer",
    "get_current_staff",
    # Database
    "get_db",
    # Services
    "get_assistant_tool_service",
    "get_availability_service",
    "get_booking_service",
    "get_checkout_service",
    "get_grooming_service",
    "get_wallet_service",
]
