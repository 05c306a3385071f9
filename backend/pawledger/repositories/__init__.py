# backend/pawledger/repositories/__init__.py
"""
Repository layer for PawLedger.

Repositories encapsulate data access. They flush but never commit; the
service layer owns transaction boundaries.
"""

from .audit_repository import AuditLogRepository
from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .customer_repository import CustomerRepository, StaffRepository
from .factory import RepositoryFactory
from .payment_repository import PaymentRepository
from .points_repository import PointsRepository
from .service_type_repository import GroomingPriceTierRepository, ServiceTypeRepository
from .wallet_repository import WalletRepository, WalletTransactionRepository

__all__ = [
    "AuditLogRepository",
    "BaseRepository",
    "BookingRepository",
    "CustomerRepository",
    "GroomingPriceTierRepository",
    "PaymentRepository",
    "PointsRepository",
    "RepositoryFactory",
    "ServiceTypeRepository",
    "StaffRepository",
    "WalletRepository",
    "WalletTransactionRepository",
]
