# backend/pawledger/repositories/payment_repository.py
"""Payment persistence and idempotency-key lookups."""

import logging
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from pawledger.core.exceptions import DuplicateIdempotencyKeyError, RepositoryException
from pawledger.models.booking import Booking
from pawledger.models.payment import Payment, PaymentBooking
from pawledger.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PaymentRepository(BaseRepository[Payment]):
    def __init__(self, db: Session):
        super().__init__(db, Payment)

    def get_by_idempotency_key(self, idempotency_key: str) -> Optional[Payment]:
        return self.find_one_by(idempotency_key=idempotency_key)

    def get_with_bookings(self, payment_id: str) -> Optional[Payment]:
        try:
            return (
                self._build_query()
                .options(
                    selectinload(Payment.booking_links)
                    .selectinload(PaymentBooking.booking)
                    .selectinload(Booking.dogs)
                )
                .filter(Payment.id == payment_id)
                .first()
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to load payment %s: %s", payment_id, exc)
            raise RepositoryException(f"Failed to load payment: {exc}") from exc

    def create_with_bookings(self, booking_ids: Sequence[str], **payment_fields) -> Payment:
        """
        Insert the payment row and its booking links. Does not commit.

        Raises:
            DuplicateIdempotencyKeyError: another payment already owns the key
        """
        payment = Payment(**payment_fields)
        payment.booking_links = [PaymentBooking(booking_id=booking_id) for booking_id in booking_ids]
        self.db.add(payment)
        try:
            self.db.flush()
        except IntegrityError as exc:
            key = payment_fields.get("idempotency_key")
            if key and "idempotency_key" in str(exc.orig).lower():
                raise DuplicateIdempotencyKeyError(key) from exc
            logger.error("Integrity error creating payment: %s", exc)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        return payment

    def is_booking_paid(self, booking_id: str) -> bool:
        try:
            return (
                self.db.query(PaymentBooking.payment_id)
                .filter(PaymentBooking.booking_id == booking_id)
                .first()
                is not None
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to check payment for booking %s: %s", booking_id, exc)
            raise RepositoryException(f"Failed to check booking payment: {exc}") from exc
