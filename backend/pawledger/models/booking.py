# backend/pawledger/models/booking.py
"""
Booking models.

A booking covers either one ``date`` or an inclusive ``start_date``..``end_date``
span. For multi-day bookings ``date`` mirrors ``start_date`` so single-date
listings keep working.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Iterator, List, Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pawledger.core.enums import BookingStatus
from pawledger.database import Base
from pawledger.models._columns import enum_column_type, new_id, now_utc

if TYPE_CHECKING:
    from pawledger.models.customer import Customer, Dog
    from pawledger.models.service_type import ServiceType


class Booking(Base):
    """Reservation of facility capacity for one or more dogs."""

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    service_type_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("service_types.id"), nullable=False
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)
    start_date: Mapped[Optional[date]] = mapped_column(Date)
    end_date: Mapped[Optional[date]] = mapped_column(Date)
    # HH:MM grooming appointment, one of the configured grooming slots
    start_time: Mapped[Optional[str]] = mapped_column(String(5))
    status: Mapped[BookingStatus] = mapped_column(
        enum_column_type(BookingStatus, "booking_status"),
        nullable=False,
        default=BookingStatus.PENDING,
    )
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    cancel_reason: Mapped[Optional[str]] = mapped_column(Text)

    # Staff operations
    checked_in_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    checked_in_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("staff_users.id", ondelete="SET NULL")
    )
    checked_out_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    checked_out_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("staff_users.id", ondelete="SET NULL")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc
    )

    customer: Mapped["Customer"] = relationship("Customer")
    service_type: Mapped["ServiceType"] = relationship("ServiceType", lazy="joined")
    dogs: Mapped[List["BookingDog"]] = relationship(
        "BookingDog", back_populates="booking", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("total_cents >= 0", name="ck_bookings_total_non_negative"),
        CheckConstraint(
            "(start_date IS NULL AND end_date IS NULL) OR "
            "(start_date IS NOT NULL AND end_date IS NOT NULL AND start_date <= end_date)",
            name="ck_bookings_date_span",
        ),
        Index("idx_bookings_date_start_time", "date", "start_time"),
        Index("idx_bookings_customer_id", "customer_id"),
        Index("idx_bookings_date_status", "date", "status"),
        Index("idx_bookings_span_status", "start_date", "end_date", "status"),
    )

    @property
    def is_multi_day(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @property
    def first_day(self) -> date:
        return self.start_date if self.start_date is not None else self.date

    @property
    def last_day(self) -> date:
        return self.end_date if self.end_date is not None else self.date

    @property
    def day_count(self) -> int:
        return (self.last_day - self.first_day).days + 1

    def iter_days(self) -> Iterator[date]:
        current = self.first_day
        while current <= self.last_day:
            yield current
            current += timedelta(days=1)

    def covers(self, day: date) -> bool:
        return self.first_day <= day <= self.last_day

    @property
    def dog_count(self) -> int:
        return len(self.dogs)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<Booking {self.id} {self.first_day}..{self.last_day} "
            f"status={self.status} total={self.total_cents}>"
        )


class BookingDog(Base):
    """A dog attached to a booking. Grooming ratings and quotes live here."""

    __tablename__ = "booking_dogs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    booking_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
    )
    dog_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("dogs.id", ondelete="CASCADE"), nullable=False
    )
    condition_rating: Mapped[Optional[int]] = mapped_column(SmallInteger)
    quoted_price_cents: Mapped[Optional[int]] = mapped_column(Integer)

    booking: Mapped[Booking] = relationship("Booking", back_populates="dogs")
    dog: Mapped["Dog"] = relationship("Dog", lazy="joined")

    __table_args__ = (
        UniqueConstraint("booking_id", "dog_id", name="uq_booking_dogs_booking_dog"),
        CheckConstraint(
            "condition_rating IS NULL OR (condition_rating >= 1 AND condition_rating <= 5)",
            name="ck_booking_dogs_rating_range",
        ),
        Index("idx_booking_dogs_dog_id", "dog_id"),
    )


class CapacityLock(Base):
    """Per-date serialization point for capacity checks at booking creation."""

    __tablename__ = "capacity_locks"

    lock_date: Mapped[date] = mapped_column(Date, primary_key=True)
    lock_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc
    )
