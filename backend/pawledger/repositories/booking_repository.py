# backend/pawledger/repositories/booking_repository.py
"""
Booking data access, including the capacity occupancy queries and the
per-date capacity locks used while creating bookings.
"""

from datetime import date, timedelta
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, cast

from sqlalchemy import and_, exists, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.sql.elements import ColumnElement

from pawledger.core.enums import BookingStatus
from pawledger.core.exceptions import RepositoryException
from pawledger.models._columns import now_utc
from pawledger.models.booking import Booking, BookingDog, CapacityLock
from pawledger.models.customer import Dog
from pawledger.models.payment import PaymentBooking
from pawledger.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


def _covers_range(start: date, end: date) -> ColumnElement[bool]:
    """Bookings whose day span intersects ``start``..``end`` (inclusive)."""
    return or_(
        and_(Booking.start_date.is_(None), Booking.date >= start, Booking.date <= end),
        and_(
            Booking.start_date.is_not(None),
            Booking.start_date <= end,
            Booking.end_date >= start,
        ),
    )


def _iter_dates(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def get_with_dogs(self, booking_id: str) -> Optional[Booking]:
        try:
            return (
                self._build_query()
                .options(selectinload(Booking.dogs))
                .filter(Booking.id == booking_id)
                .first()
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to load booking %s: %s", booking_id, exc)
            raise RepositoryException(f"Failed to load booking: {exc}") from exc

    def get_many_with_dogs(self, booking_ids: Sequence[str]) -> List[Booking]:
        if not booking_ids:
            return []
        query = (
            self._build_query()
            .options(selectinload(Booking.dogs))
            .filter(Booking.id.in_(list(booking_ids)))
        )
        return cast(List[Booking], self._execute_query(query))

    def create_with_dogs(self, dog_ids: Sequence[str], **booking_fields) -> Booking:
        """Insert a booking and its dog links. Does not commit."""
        booking = self.create(**booking_fields)
        try:
            for dog_id in dog_ids:
                self.db.add(BookingDog(booking_id=booking.id, dog_id=dog_id))
            self.db.flush()
        except SQLAlchemyError as exc:
            logger.error("Failed to attach dogs to booking %s: %s", booking.id, exc)
            raise RepositoryException(f"Failed to attach dogs: {exc}") from exc
        self.db.refresh(booking)
        return booking

    def get_booking_dog(self, booking_dog_id: str) -> Optional[BookingDog]:
        return self.db.get(BookingDog, booking_dog_id)

    # Capacity

    def count_dogs_by_date(self, start: date, end: date) -> Dict[date, int]:
        """
        Number of dogs on capacity-consuming bookings for every date in the range.

        Single-day bookings count on their ``date``; multi-day bookings count on
        every day of their span. Dates with no bookings map to 0.
        """
        counts: Dict[date, int] = {day: 0 for day in _iter_dates(start, end)}
        dog_count = func.count(BookingDog.id).label("dog_count")
        stmt = (
            select(Booking.date, Booking.start_date, Booking.end_date, dog_count)
            .outerjoin(BookingDog, BookingDog.booking_id == Booking.id)
            .where(Booking.status.in_(BookingStatus.occupying()), _covers_range(start, end))
            .group_by(Booking.id, Booking.date, Booking.start_date, Booking.end_date)
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.error("Failed to count occupancy %s..%s: %s", start, end, exc)
            raise RepositoryException(f"Failed to count occupancy: {exc}") from exc

        for single_date, span_start, span_end, dogs in rows:
            if not dogs:
                continue
            first = span_start or single_date
            last = span_end or single_date
            for day in _iter_dates(max(first, start), min(last, end)):
                counts[day] += int(dogs)
        return counts

    def count_bookings_by_start_time(self, service_type_id: str, day: date) -> Dict[str, int]:
        """Capacity-consuming bookings per appointment time for one service on ``day``."""
        stmt = (
            select(Booking.start_time, func.count(Booking.id))
            .where(
                Booking.service_type_id == service_type_id,
                Booking.date == day,
                Booking.start_time.is_not(None),
                Booking.status.in_(BookingStatus.occupying()),
            )
            .group_by(Booking.start_time)
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.error("Failed to count slot bookings on %s: %s", day, exc)
            raise RepositoryException(f"Failed to count slot bookings: {exc}") from exc
        return {start_time: int(count) for start_time, count in rows}

    def lock_capacity_dates(self, dates: Sequence[date]) -> None:
        """
        Serialize capacity checks for ``dates`` within the current transaction.

        Ensures a lock row exists per date, then takes row locks in date order
        (PostgreSQL) and bumps their version, which also acquires the database
        write lock on SQLite. Held until the surrounding transaction ends.
        """
        ordered = sorted(set(dates))
        if not ordered:
            return
        rows = [{"lock_date": day, "lock_version": 0, "updated_at": now_utc()} for day in ordered]
        try:
            if self.dialect_name == "postgresql":
                self.db.execute(pg_insert(CapacityLock).values(rows).on_conflict_do_nothing())
                self.db.execute(
                    select(CapacityLock.lock_date)
                    .where(CapacityLock.lock_date.in_(ordered))
                    .order_by(CapacityLock.lock_date)
                    .with_for_update()
                )
            else:
                self.db.execute(sqlite_insert(CapacityLock).values(rows).on_conflict_do_nothing())
            self.db.execute(
                update(CapacityLock)
                .where(CapacityLock.lock_date.in_(ordered))
                .values(lock_version=CapacityLock.lock_version + 1)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to lock capacity dates %s: %s", ordered, exc)
            raise RepositoryException(f"Failed to lock capacity dates: {exc}") from exc

    def find_active_overlaps(
        self,
        dog_ids: Sequence[str],
        service_type_id: str,
        start: date,
        end: date,
    ) -> List[Tuple[Booking, Dog]]:
        """Active bookings of the same service already holding any of ``dog_ids`` in the range."""
        if not dog_ids:
            return []
        stmt = (
            select(Booking, Dog)
            .join(BookingDog, BookingDog.booking_id == Booking.id)
            .join(Dog, Dog.id == BookingDog.dog_id)
            .where(
                BookingDog.dog_id.in_(list(dog_ids)),
                Booking.service_type_id == service_type_id,
                Booking.status.in_(BookingStatus.occupying()),
                _covers_range(start, end),
            )
        )
        try:
            return [(row[0], row[1]) for row in self.db.execute(stmt).all()]
        except SQLAlchemyError as exc:
            logger.error("Failed to check duplicate bookings: %s", exc)
            raise RepositoryException(f"Failed to check duplicate bookings: {exc}") from exc

    # Status changes

    def confirm_payable(self, booking_ids: Sequence[str], customer_id: str) -> int:
        """
        Move the customer's pending/confirmed bookings to confirmed.

        Returns the number of rows matched. A count lower than ``len(booking_ids)``
        means another request changed one of them since it was read.
        """
        try:
            result = self.db.execute(
                update(Booking)
                .where(
                    Booking.id.in_(list(booking_ids)),
                    Booking.customer_id == customer_id,
                    Booking.status.in_(BookingStatus.payable()),
                )
                .values(status=BookingStatus.CONFIRMED)
                .execution_options(synchronize_session="fetch")
            )
            return int(result.rowcount or 0)
        except SQLAlchemyError as exc:
            logger.error("Failed to confirm bookings %s: %s", booking_ids, exc)
            raise RepositoryException(f"Failed to confirm bookings: {exc}") from exc

    def update_unpaid_total(self, booking_id: str, total_cents: Optional[int] = None) -> bool:
        """
        Rewrite an open, unpaid booking's total; ``None`` keeps the current total.

        The row is written even when the total is unchanged. False when the
        booking is closed or already settled by a payment.
        """
        new_total = Booking.total_cents if total_cents is None else total_cents
        try:
            result = self.db.execute(
                update(Booking)
                .where(
                    Booking.id == booking_id,
                    Booking.status.in_(BookingStatus.occupying()),
                    ~exists().where(PaymentBooking.booking_id == booking_id),
                )
                .values(total_cents=new_total)
                .execution_options(synchronize_session="fetch")
            )
            return bool(result.rowcount)
        except SQLAlchemyError as exc:
            logger.error("Failed to update total of booking %s: %s", booking_id, exc)
            raise RepositoryException(f"Failed to update booking total: {exc}") from exc

    def current_totals(self, booking_ids: Sequence[str]) -> Dict[str, int]:
        """Totals as stored right now, bypassing the session's loaded objects."""
        try:
            rows = self.db.execute(
                select(Booking.id, Booking.total_cents).where(Booking.id.in_(list(booking_ids)))
            ).all()
        except SQLAlchemyError as exc:
            logger.error("Failed to read totals for bookings %s: %s", booking_ids, exc)
            raise RepositoryException(f"Failed to read booking totals: {exc}") from exc
        return {booking_id: total for booking_id, total in rows}

    def transition(
        self,
        booking_id: str,
        from_statuses: Sequence[BookingStatus],
        to_status: BookingStatus,
        **fields,
    ) -> bool:
        """Conditional status update. False when the booking left ``from_statuses``."""
        try:
            result = self.db.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.status.in_(list(from_statuses)))
                .values(status=to_status, **fields)
                .execution_options(synchronize_session="fetch")
            )
            return bool(result.rowcount)
        except SQLAlchemyError as exc:
            logger.error("Failed to move booking %s to %s: %s", booking_id, to_status, exc)
            raise RepositoryException(f"Failed to update booking status: {exc}") from exc

    # Listings

    def list_for_customer(
        self,
        customer_id: str,
        status: Optional[BookingStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Booking], int]:
        query = self._build_query().filter(Booking.customer_id == customer_id)
        if status is not None:
            query = query.filter(Booking.status == status)
        try:
            total = query.count()
            items = (
                query.options(selectinload(Booking.dogs))
                .order_by(Booking.date.desc(), Booking.created_at.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to list bookings for %s: %s", customer_id, exc)
            raise RepositoryException(f"Failed to list bookings: {exc}") from exc
        return cast(List[Booking], items), total

    def list_covering(self, day: date, service_type_id: Optional[str] = None) -> List[Booking]:
        query = (
            self._build_query()
            .options(selectinload(Booking.dogs))
            .filter(_covers_range(day, day))
            .filter(Booking.status.notin_([BookingStatus.CANCELLED]))
        )
        if service_type_id:
            query = query.filter(Booking.service_type_id == service_type_id)
        return cast(
            List[Booking],
            self._execute_query(query.order_by(Booking.created_at)),
        )

