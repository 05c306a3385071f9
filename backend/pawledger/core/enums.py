# backend/pawledger/core/enums.py
"""
Core enums for the PawLedger engine.

Values are persisted as lowercase strings, so members must never be renamed
without a data migration.
"""

from enum import Enum


class ServiceName(str, Enum):
    """Reference service offerings."""

    DAYCARE = "daycare"
    BOARDING = "boarding"
    GROOMING = "grooming"


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @classmethod
    def occupying(cls) -> tuple["BookingStatus", ...]:
        """Statuses that consume facility capacity."""
        return (cls.PENDING, cls.CONFIRMED, cls.CHECKED_IN)

    @classmethod
    def payable(cls) -> tuple["BookingStatus", ...]:
        """Statuses eligible for checkout."""
        return (cls.PENDING, cls.CONFIRMED)

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED, BookingStatus.NO_SHOW)


class SizeCategory(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    XL = "xl"


class PaymentMethod(str, Enum):
    """How a checkout is settled."""

    WALLET = "wallet"
    CARD = "card"
    SPLIT = "split"
    CASH = "cash"
    POINTS = "points"


class PaymentStatus(str, Enum):
    COMPLETED = "completed"
    REFUNDED = "refunded"


class WalletTier(str, Enum):
    BASIC = "basic"
    GOLD = "gold"
    VIP = "vip"


class WalletTransactionType(str, Enum):
    """Types of wallet ledger entries."""

    LOAD = "load"
    PAYMENT = "payment"
    REFUND = "refund"
    ADJUSTMENT = "adjustment"


class PointsTransactionType(str, Enum):
    """Types of points ledger entries."""

    PURCHASE = "purchase"
    REDEMPTION = "redemption"


class PricingRuleType(str, Enum):
    PERCENTAGE_DISCOUNT = "percentage_discount"
    FIXED_DISCOUNT = "fixed_discount"
    SURCHARGE = "surcharge"


class ActorKind(str, Enum):
    """Who is invoking an engine operation."""

    CUSTOMER = "customer"
    STAFF = "staff"
    ASSISTANT = "assistant"
