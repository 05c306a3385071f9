# backend/pawledger/models/customer.py
"""
Customer, dog and staff models.

``Customer.points_balance`` is a ledger projection: it is only ever changed by
the points ledger primitives, alongside an immutable PointsTransaction row.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pawledger.core.enums import SizeCategory
from pawledger.database import Base
from pawledger.models._columns import enum_column_type, new_id, now_utc

if TYPE_CHECKING:
    from pawledger.models.wallet import Wallet


class Customer(Base):
    """Pet owner who books services and holds the wallet and points balances."""

    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32))
    points_balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )

    dogs: Mapped[List["Dog"]] = relationship(
        "Dog", back_populates="owner", cascade="all, delete-orphan", order_by="Dog.name"
    )
    wallet: Mapped[Optional["Wallet"]] = relationship(
        "Wallet", back_populates="customer", uselist=False
    )

    __table_args__ = (
        CheckConstraint("points_balance >= 0", name="ck_customers_points_non_negative"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Customer {self.id} {self.email} points={self.points_balance}>"


class Dog(Base):
    """A customer's dog. Size drives grooming prices."""

    __tablename__ = "dogs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    breed: Mapped[Optional[str]] = mapped_column(String(100))
    size_category: Mapped[Optional[SizeCategory]] = mapped_column(
        enum_column_type(SizeCategory, "dog_size_category"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )

    owner: Mapped[Customer] = relationship("Customer", back_populates="dogs")

    __table_args__ = (Index("idx_dogs_customer_id", "customer_id"),)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Dog {self.name} owner={self.customer_id} size={self.size_category}>"


class StaffUser(Base):
    """Facility staff member. Referenced by audit entries and check-in/out stamps."""

    __tablename__ = "staff_users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="staff")

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<StaffUser {self.email} role={self.role}>"
