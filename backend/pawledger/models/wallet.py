# backend/pawledger/models/wallet.py
"""
Wallet and loyalty ledgers.

Transaction rows are append-only. For every wallet the signed sum of its
transactions equals ``balance_cents``; for every customer the signed sum of
points transactions equals ``Customer.points_balance``.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pawledger.core.enums import PointsTransactionType, WalletTier, WalletTransactionType
from pawledger.database import Base
from pawledger.models._columns import enum_column_type, new_id, now_utc

if TYPE_CHECKING:
    from pawledger.models.customer import Customer


class Wallet(Base):
    """Stored-value balance for one customer."""

    __tablename__ = "wallets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    balance_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tier: Mapped[WalletTier] = mapped_column(
        enum_column_type(WalletTier, "wallet_tier"), nullable=False, default=WalletTier.BASIC
    )
    auto_reload_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    auto_reload_threshold_cents: Mapped[Optional[int]] = mapped_column(Integer)
    auto_reload_amount_cents: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc
    )

    customer: Mapped["Customer"] = relationship("Customer", back_populates="wallet")
    transactions: Mapped[List["WalletTransaction"]] = relationship(
        "WalletTransaction", back_populates="wallet", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("balance_cents >= 0", name="ck_wallets_balance_non_negative"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Wallet customer={self.customer_id} balance={self.balance_cents}>"


class WalletTransaction(Base):
    """Immutable wallet ledger entry. ``amount_cents`` is signed."""

    __tablename__ = "wallet_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    wallet_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[WalletTransactionType] = mapped_column(
        enum_column_type(WalletTransactionType, "wallet_transaction_type"), nullable=False
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255))
    booking_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("bookings.id", ondelete="SET NULL")
    )
    payment_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("payments.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )

    wallet: Mapped[Wallet] = relationship("Wallet", back_populates="transactions")

    __table_args__ = (
        CheckConstraint("amount_cents <> 0", name="ck_wallet_transactions_amount_non_zero"),
        CheckConstraint(
            "balance_after_cents >= 0", name="ck_wallet_transactions_balance_after_non_negative"
        ),
        Index("idx_wallet_transactions_wallet_created", "wallet_id", "created_at"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<WalletTransaction {self.type} {self.amount_cents} wallet={self.wallet_id}>"


class PointsTransaction(Base):
    """Immutable loyalty points ledger entry. ``amount`` is signed."""

    __tablename__ = "points_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[PointsTransactionType] = mapped_column(
        enum_column_type(PointsTransactionType, "points_transaction_type"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255))
    payment_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("payments.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )

    __table_args__ = (
        CheckConstraint("amount <> 0", name="ck_points_transactions_amount_non_zero"),
        Index("idx_points_transactions_customer_created", "customer_id", "created_at"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<PointsTransaction {self.type} {self.amount} customer={self.customer_id}>"
