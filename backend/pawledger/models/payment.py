# backend/pawledger/models/payment.py
"""Checkout payments and their booking links."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pawledger.core.enums import PaymentMethod, PaymentStatus
from pawledger.database import Base
from pawledger.models._columns import JSON_TYPE, enum_column_type, new_id, now_utc

if TYPE_CHECKING:
    from pawledger.models.booking import Booking
    from pawledger.models.customer import Customer


class Payment(Base):
    """One committed checkout.

    ``total_cents == wallet_amount_cents + card_amount_cents + points_amount_cents``.
    ``result_snapshot`` holds the exact result returned to the caller so a
    replay with the same idempotency key can return it verbatim.
    """

    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        enum_column_type(PaymentMethod, "payment_method"), nullable=False
    )
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    wallet_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    card_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_redeemed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tip_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[PaymentStatus] = mapped_column(
        enum_column_type(PaymentStatus, "payment_status"),
        nullable=False,
        default=PaymentStatus.COMPLETED,
    )
    idempotency_key: Mapped[Optional[str]] = mapped_column(String(255), unique=True)
    # Simulated gateway reference: sim_<uuid>
    transaction_id: Mapped[str] = mapped_column(String(64), nullable=False)
    processed_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("staff_users.id", ondelete="SET NULL")
    )
    result_snapshot: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON_TYPE)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )

    customer: Mapped["Customer"] = relationship("Customer")
    booking_links: Mapped[List["PaymentBooking"]] = relationship(
        "PaymentBooking", back_populates="payment", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "total_cents = wallet_amount_cents + card_amount_cents + points_amount_cents",
            name="ck_payments_split_sums_to_total",
        ),
        CheckConstraint(
            "wallet_amount_cents >= 0 AND card_amount_cents >= 0 "
            "AND points_amount_cents >= 0 AND tip_cents >= 0 AND points_redeemed >= 0",
            name="ck_payments_amounts_non_negative",
        ),
        Index("idx_payments_customer_id", "customer_id"),
    )

    @property
    def bookings(self) -> List["Booking"]:
        return [link.booking for link in self.booking_links]

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Payment {self.id} {self.payment_method} total={self.total_cents}>"


class PaymentBooking(Base):
    """Association between a payment and each booking it settled."""

    __tablename__ = "payment_bookings"

    payment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("payments.id", ondelete="CASCADE"), primary_key=True
    )
    booking_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("bookings.id", ondelete="CASCADE"), primary_key=True
    )

    payment: Mapped[Payment] = relationship("Payment", back_populates="booking_links")
    booking: Mapped["Booking"] = relationship("Booking")
