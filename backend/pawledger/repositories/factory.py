# backend/pawledger/repositories/factory.py
"""
Repository Factory for PawLedger

Provides centralized creation of repository instances so services share one
session per unit of work.
"""

from sqlalchemy.orm import Session

from .audit_repository import AuditLogRepository
from .booking_repository import BookingRepository
from .customer_repository import CustomerRepository, StaffRepository
from .payment_repository import PaymentRepository
from .points_repository import PointsRepository
from .service_type_repository import GroomingPriceTierRepository, ServiceTypeRepository
from .wallet_repository import WalletRepository, WalletTransactionRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_customer_repository(db: Session) -> CustomerRepository:
        return CustomerRepository(db)

    @staticmethod
    def create_staff_repository(db: Session) -> StaffRepository:
        return StaffRepository(db)

    @staticmethod
    def create_service_type_repository(db: Session) -> ServiceTypeRepository:
        return ServiceTypeRepository(db)

    @staticmethod
    def create_grooming_price_tier_repository(db: Session) -> GroomingPriceTierRepository:
        return GroomingPriceTierRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> BookingRepository:
        return BookingRepository(db)

    @staticmethod
    def create_wallet_repository(db: Session) -> WalletRepository:
        return WalletRepository(db)

    @staticmethod
    def create_wallet_transaction_repository(db: Session) -> WalletTransactionRepository:
        return WalletTransactionRepository(db)

    @staticmethod
    def create_points_repository(db: Session) -> PointsRepository:
        return PointsRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> PaymentRepository:
        return PaymentRepository(db)

    @staticmethod
    def create_audit_log_repository(db: Session) -> AuditLogRepository:
        return AuditLogRepository(db)
