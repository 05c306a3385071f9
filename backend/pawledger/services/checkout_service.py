# backend/pawledger/services/checkout_service.py
"""
Checkout / split-payment engine.

A checkout settles one or more bookings of one customer in a single unit of
work: payment row, wallet and points debits, loyalty accrual and booking
confirmation either all commit or all roll back.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from sqlalchemy.orm import Session

from pawledger.core.actor import Actor
from pawledger.core.config import settings
from pawledger.core.enums import BookingStatus, PaymentMethod, PaymentStatus
from pawledger.core.exceptions import (
    BookingPriceChangedException,
    BookingsNotEligibleException,
    ConflictException,
    DuplicateIdempotencyKeyError,
    InsufficientPointsException,
    InsufficientWalletBalanceException,
    NotFoundException,
    SplitAmountInvalidException,
)
from pawledger.models.booking import Booking
from pawledger.models.payment import Payment
from pawledger.models.wallet import Wallet
from pawledger.monitoring.prometheus_metrics import prometheus_metrics
from pawledger.repositories.factory import RepositoryFactory
from pawledger.schemas.checkout import (
    CheckoutBookingStatus,
    CheckoutRequest,
    CheckoutResult,
    ReceiptBooking,
    ReceiptCustomer,
    ReceiptResponse,
)
from pawledger.services.base import BaseService
from pawledger.services.ledger_service import LedgerService, PointsAward

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentSplit:
    """How a checkout total is funded. The three sources always sum to the total."""

    total_cents: int
    wallet_cents: int
    card_cents: int
    points_redeemed: int
    points_cents: int


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def compute_split(
    subtotal_cents: int,
    payment_method: PaymentMethod,
    *,
    wallet_amount_cents: int = 0,
    points_to_redeem: int = 0,
    tip_cents: int = 0,
    cents_per_point: Optional[int] = None,
) -> PaymentSplit:
    """
    Split a checkout total across wallet, points and card.

    Wallet is applied first, then points, and the card absorbs the remainder.
    Points are consumed rounded up, so redeemed points never cover less than
    the cents they are credited for.

    Raises:
        SplitAmountInvalidException: split without a wallet amount, or points
            payment without points
        InsufficientPointsException: points payment that does not cover the total
    """
    cpp = settings.cents_per_point if cents_per_point is None else cents_per_point
    total = subtotal_cents + tip_cents

    if payment_method == PaymentMethod.WALLET:
        return PaymentSplit(total, wallet_cents=total, card_cents=0, points_redeemed=0, points_cents=0)

    if payment_method in (PaymentMethod.CARD, PaymentMethod.CASH):
        return PaymentSplit(total, wallet_cents=0, card_cents=total, points_redeemed=0, points_cents=0)

    if payment_method == PaymentMethod.SPLIT:
        if wallet_amount_cents <= 0:
            raise SplitAmountInvalidException("Split payment requires wallet_amount_cents > 0")
        wallet = min(wallet_amount_cents, total)
        points_cents = 0
        points_redeemed = 0
        if points_to_redeem > 0:
            points_cents = min(points_to_redeem * cpp, total - wallet)
            points_redeemed = _ceil_div(points_cents, cpp)
        card = max(0, total - wallet - points_cents)
        return PaymentSplit(total, wallet, card, points_redeemed, points_cents)

    if payment_method == PaymentMethod.POINTS:
        if points_to_redeem <= 0:
            raise SplitAmountInvalidException("Points payment requires points_to_redeem > 0")
        required = _ceil_div(total, cpp)
        if points_to_redeem * cpp < total:
            raise InsufficientPointsException(balance=points_to_redeem, required=required)
        return PaymentSplit(total, wallet_cents=0, card_cents=0, points_redeemed=required, points_cents=total)

    raise SplitAmountInvalidException(f"Unsupported payment method: {payment_method}")


class CheckoutService(BaseService):
    """Processes checkouts and assembles receipts."""

    def __init__(self, db: Session, ledger: Optional[LedgerService] = None):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.wallet_repository = RepositoryFactory.create_wallet_repository(db)
        self.points_repository = RepositoryFactory.create_points_repository(db)
        self.customer_repository = RepositoryFactory.create_customer_repository(db)
        self.audit_repository = RepositoryFactory.create_audit_log_repository(db)
        self.ledger = ledger or LedgerService(db)

    @BaseService.measure_operation("process_checkout")
    def process_checkout(
        self, actor: Actor, customer_id: str, request: CheckoutRequest
    ) -> CheckoutResult:
        """
        Settle bookings for a customer.

        A request whose idempotency key already has a committed payment gets
        that payment's stored result back without any validation or mutation.

        Raises:
            BookingsNotEligibleException: a booking is missing, foreign or not payable
            SplitAmountInvalidException: malformed split
            InsufficientWalletBalanceException: wallet cannot cover its share
                (409 conflict variant when the balance moved during the commit)
            InsufficientPointsException: points cannot cover their share
                (409 conflict variant when the balance moved during the commit)
            BookingPriceChangedException: a booking was re-quoted while pricing
        """
        actor.require_customer_access(customer_id)

        if request.idempotency_key:
            replay = self._replay(request.idempotency_key, customer_id)
            if replay is not None:
                return replay

        bookings = self._load_eligible_bookings(customer_id, request.booking_ids)
        priced_totals = {booking.id: booking.total_cents for booking in bookings}
        subtotal = sum(priced_totals.values())
        split = compute_split(
            subtotal,
            request.payment_method,
            wallet_amount_cents=request.wallet_amount_cents,
            points_to_redeem=request.points_to_redeem,
            tip_cents=request.tip_cents,
        )
        is_grooming = any(booking.service_type.is_grooming for booking in bookings)

        # Advisory balance checks; the conditional debits below are authoritative
        wallet = self.wallet_repository.get_by_customer(customer_id)
        if split.wallet_cents > 0:
            balance = self.wallet_repository.get_balance(wallet.id) if wallet else 0
            if wallet is None or balance < split.wallet_cents:
                raise InsufficientWalletBalanceException(balance, split.wallet_cents)
        if split.points_redeemed > 0:
            points_balance = self.points_repository.get_balance(customer_id)
            if points_balance < split.points_redeemed:
                raise InsufficientPointsException(points_balance, split.points_redeemed)

        try:
            with self.transaction():
                result = self._commit(
                    actor, customer_id, request, bookings, priced_totals, split, wallet, is_grooming
                )
        except DuplicateIdempotencyKeyError:
            # A concurrent submission with the same key committed first
            replay = self._replay(request.idempotency_key or "", customer_id)
            if replay is None:
                raise
            return replay

        prometheus_metrics.inc_checkout(request.payment_method.value)
        self.log_operation(
            "process_checkout",
            payment_id=result.payment_id,
            customer_id=customer_id,
            payment_method=request.payment_method.value,
            total_cents=result.total_cents,
            staff_id=actor.staff_id,
        )
        return result

    def _replay(self, idempotency_key: str, customer_id: str) -> Optional[CheckoutResult]:
        existing = self.payment_repository.get_by_idempotency_key(idempotency_key)
        if existing is None or existing.result_snapshot is None:
            return None
        if existing.customer_id != customer_id:
            raise ConflictException(
                "Idempotency key already used for another customer",
                code="IDEMPOTENCY_KEY_REUSED",
            )
        prometheus_metrics.inc_checkout_replay()
        logger.info(
            "Replaying committed checkout",
            extra={"payment_id": existing.id, "idempotency_key": idempotency_key},
        )
        return CheckoutResult.model_validate(existing.result_snapshot)

    def _load_eligible_bookings(self, customer_id: str, booking_ids: Sequence[str]) -> List[Booking]:
        found = {
            booking.id: booking
            for booking in self.booking_repository.get_many_with_dogs(booking_ids)
            if booking.customer_id == customer_id and booking.status in BookingStatus.payable()
        }
        offending = [booking_id for booking_id in booking_ids if booking_id not in found]
        if offending:
            raise BookingsNotEligibleException(offending)
        return [found[booking_id] for booking_id in booking_ids]

    def _commit(
        self,
        actor: Actor,
        customer_id: str,
        request: CheckoutRequest,
        bookings: List[Booking],
        priced_totals: Dict[str, int],
        split: PaymentSplit,
        wallet: Optional[Wallet],
        is_grooming: bool,
    ) -> CheckoutResult:
        booking_ids = [booking.id for booking in bookings]
        single_booking_id = booking_ids[0] if len(booking_ids) == 1 else None

        # Inserting the payment first makes a duplicate key fail before any ledger write
        payment = self.payment_repository.create_with_bookings(
            booking_ids,
            customer_id=customer_id,
            payment_method=request.payment_method,
            total_cents=split.total_cents,
            wallet_amount_cents=split.wallet_cents,
            card_amount_cents=split.card_cents,
            points_redeemed=split.points_redeemed,
            points_amount_cents=split.points_cents,
            tip_cents=request.tip_cents,
            status=PaymentStatus.COMPLETED,
            idempotency_key=request.idempotency_key,
            transaction_id=f"sim_{uuid4()}",
            processed_by=actor.staff_id,
        )

        if split.wallet_cents > 0 and wallet is not None:
            self.ledger.debit_wallet(
                wallet.id,
                split.wallet_cents,
                description=f"Checkout payment for {len(booking_ids)} booking(s)",
                booking_id=single_booking_id,
                payment_id=payment.id,
            )
        if split.points_redeemed > 0:
            self.ledger.debit_points(
                customer_id,
                split.points_redeemed,
                description=f"Redeemed for ${split.points_cents / 100:.2f} at checkout",
                payment_id=payment.id,
            )

        # Wallet-funded checkouts accrue on the wallet path only
        if split.wallet_cents > 0:
            award = self.ledger.award_wallet_spend(
                customer_id, split.wallet_cents, is_grooming, payment_id=payment.id
            )
        elif split.card_cents > 0:
            award = self.ledger.award_card_spend(
                customer_id, split.card_cents, is_grooming, payment_id=payment.id
            )
        else:
            award = PointsAward(0, 0, 0)

        confirmed = self.booking_repository.confirm_payable(booking_ids, customer_id)
        if confirmed != len(booking_ids):
            stale = [b.id for b in bookings if b.status != BookingStatus.CONFIRMED]
            raise BookingsNotEligibleException(stale or booking_ids)
        current_totals = self.booking_repository.current_totals(booking_ids)
        repriced = [
            booking_id
            for booking_id in booking_ids
            if current_totals.get(booking_id) != priced_totals[booking_id]
        ]
        if repriced:
            raise BookingPriceChangedException(repriced)

        if actor.is_staff:
            self.audit_repository.record(
                staff_id=actor.id,
                action="checkout",
                entity_type="payment",
                entity_id=payment.id,
                details={
                    "booking_ids": booking_ids,
                    "payment_method": request.payment_method.value,
                    "total_cents": split.total_cents,
                    "wallet_amount_cents": split.wallet_cents,
                    "card_amount_cents": split.card_cents,
                    "points_redeemed": split.points_redeemed,
                },
            )

        result = CheckoutResult(
            payment_id=payment.id,
            transaction_id=payment.transaction_id,
            total_cents=split.total_cents,
            wallet_amount_cents=split.wallet_cents,
            card_amount_cents=split.card_cents,
            points_redeemed=split.points_redeemed,
            points_amount_cents=split.points_cents,
            tip_cents=request.tip_cents,
            points_awarded=award.points_awarded,
            points_capped=award.points_capped,
            payment_method=request.payment_method,
            status=payment.status,
            bookings=[
                CheckoutBookingStatus(id=booking_id, status=BookingStatus.CONFIRMED)
                for booking_id in booking_ids
            ],
            created_at=payment.created_at,
        )
        snapshot = result.model_dump(mode="json")
        payment.points_awarded = award.points_awarded
        payment.result_snapshot = snapshot
        self.payment_repository.flush()
        # Fresh and replayed responses are both built from the stored snapshot
        return CheckoutResult.model_validate(snapshot)

    def get_receipt(self, actor: Actor, payment_id: str) -> ReceiptResponse:
        """Customers see only their own payments; anything else is not found."""
        payment = self.payment_repository.get_with_bookings(payment_id)
        if payment is None or not actor.can_act_for(payment.customer_id):
            raise NotFoundException("Payment not found", details={"payment_id": payment_id})
        return _build_receipt(payment)


def _build_receipt(payment: Payment) -> ReceiptResponse:
    customer = payment.customer
    return ReceiptResponse(
        payment_id=payment.id,
        transaction_id=payment.transaction_id,
        customer=ReceiptCustomer(
            id=customer.id,
            first_name=customer.first_name,
            last_name=customer.last_name,
            email=customer.email,
        ),
        bookings=[
            ReceiptBooking(
                id=booking.id,
                service_type=booking.service_type.display_name,
                booking_date=booking.date,
                start_date=booking.start_date,
                end_date=booking.end_date,
                dogs=[link.dog.name for link in booking.dogs],
                total_cents=booking.total_cents,
            )
            for booking in payment.bookings
        ],
        total_cents=payment.total_cents,
        wallet_amount_cents=payment.wallet_amount_cents,
        card_amount_cents=payment.card_amount_cents,
        points_redeemed=payment.points_redeemed,
        points_amount_cents=payment.points_amount_cents,
        tip_cents=payment.tip_cents,
        points_awarded=payment.points_awarded,
        payment_method=payment.payment_method,
        status=payment.status,
        processed_by=payment.processed_by,
        created_at=payment.created_at,
    )
