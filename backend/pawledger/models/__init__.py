# backend/pawledger/models/__init__.py
"""
SQLAlchemy models for PawLedger.

Importing this package registers every table on ``Base.metadata``.
"""

from .audit_log import AuditLog
from .booking import Booking, BookingDog, CapacityLock
from .customer import Customer, Dog, StaffUser
from .payment import Payment, PaymentBooking
from .service_type import GroomingPriceTier, GroomingSlot, PricingRule, ServiceType
from .wallet import PointsTransaction, Wallet, WalletTransaction

__all__ = [
    "AuditLog",
    "Booking",
    "BookingDog",
    "CapacityLock",
    "Customer",
    "Dog",
    "GroomingPriceTier",
    "GroomingSlot",
    "Payment",
    "PaymentBooking",
    "PointsTransaction",
    "PricingRule",
    "ServiceType",
    "StaffUser",
    "Wallet",
    "WalletTransaction",
]
