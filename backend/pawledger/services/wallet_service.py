# backend/pawledger/services/wallet_service.py
"""
Wallet Ledger operations: loads, wallet-funded payments, refunds,
staff adjustments and auto-reload configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timezone
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from pawledger.core.actor import Actor
from pawledger.core.config import settings
from pawledger.core.enums import BookingStatus, WalletTier, WalletTransactionType
from pawledger.core.exceptions import (
    BookingsNotEligibleException,
    InsufficientWalletBalanceException,
    NotFoundException,
    ValidationException,
    WalletLoadLimitException,
)
from pawledger.models.wallet import Wallet, WalletTransaction
from pawledger.repositories.factory import RepositoryFactory
from pawledger.services.base import BaseService
from pawledger.services.ledger_service import LedgerService, PointsAward

logger = logging.getLogger(__name__)


def _dollars(amount_cents: int) -> str:
    return f"${amount_cents / 100:.2f}"


def _start_of_day_utc(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return datetime.combine(now.date(), time.min, tzinfo=timezone.utc)


@dataclass(frozen=True)
class WalletBalance:
    balance_cents: int
    tier: WalletTier
    points_balance: int
    auto_reload_enabled: bool
    auto_reload_threshold_cents: Optional[int]
    auto_reload_amount_cents: Optional[int]


@dataclass(frozen=True)
class DeductResult:
    transaction: WalletTransaction
    balance_cents: int
    points: PointsAward


@dataclass(frozen=True)
class AutoReloadDecision:
    should_reload: bool
    amount_cents: int


class WalletService(BaseService):
    """Stored-value wallet operations. Each public method is one unit of work."""

    def __init__(self, db: Session, ledger: Optional[LedgerService] = None):
        super().__init__(db)
        self.wallet_repository = RepositoryFactory.create_wallet_repository(db)
        self.wallet_transaction_repository = (
            RepositoryFactory.create_wallet_transaction_repository(db)
        )
        self.customer_repository = RepositoryFactory.create_customer_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.audit_repository = RepositoryFactory.create_audit_log_repository(db)
        self.ledger = ledger or LedgerService(db)

    def _require_customer(self, customer_id: str) -> None:
        if self.customer_repository.get_by_id(customer_id) is None:
            raise NotFoundException("Customer not found", details={"customer_id": customer_id})

    @BaseService.measure_operation("get_or_create_wallet")
    def get_or_create_wallet(self, actor: Actor, customer_id: str) -> Wallet:
        actor.require_customer_access(customer_id)
        self._require_customer(customer_id)
        existing = self.wallet_repository.get_by_customer(customer_id)
        if existing is not None:
            return existing
        with self.transaction():
            wallet = self.wallet_repository.get_or_create(customer_id)
        return wallet

    def get_balance(self, actor: Actor, customer_id: str) -> WalletBalance:
        wallet = self.get_or_create_wallet(actor, customer_id)
        customer = self.customer_repository.get_by_id(customer_id)
        return WalletBalance(
            balance_cents=self.wallet_repository.get_balance(wallet.id),
            tier=wallet.tier,
            points_balance=customer.points_balance if customer else 0,
            auto_reload_enabled=wallet.auto_reload_enabled,
            auto_reload_threshold_cents=wallet.auto_reload_threshold_cents,
            auto_reload_amount_cents=wallet.auto_reload_amount_cents,
        )

    def get_transaction_history(
        self, actor: Actor, customer_id: str, limit: int = 20, offset: int = 0
    ) -> List[WalletTransaction]:
        """Newest first."""
        wallet = self.get_or_create_wallet(actor, customer_id)
        limit = max(1, min(limit, 100))
        return self.wallet_transaction_repository.list_for_wallet(
            wallet.id, limit=limit, offset=max(0, offset)
        )

    @BaseService.measure_operation("load_funds")
    def load_funds(self, actor: Actor, customer_id: str, amount_cents: int) -> WalletTransaction:
        """
        Add funds from the customer's card.

        Raises:
            WalletLoadLimitException: amount outside the per-load range, or the
                day's loads would exceed the daily limit
        """
        if not settings.wallet_min_load_cents <= amount_cents <= settings.wallet_max_load_cents:
            raise WalletLoadLimitException(
                f"Load amount must be between {_dollars(settings.wallet_min_load_cents)} "
                f"and {_dollars(settings.wallet_max_load_cents)}",
                details={"amount_cents": amount_cents},
            )

        wallet = self.get_or_create_wallet(actor, customer_id)
        since = _start_of_day_utc()
        loaded_today = self.wallet_repository.sum_loads_since(wallet.id, since)
        self._ensure_daily_limit(loaded_today + amount_cents, loaded_today)

        with self.transaction():
            txn = self.ledger.credit_wallet(
                wallet.id,
                amount_cents,
                txn_type=WalletTransactionType.LOAD,
                description=f"Loaded {_dollars(amount_cents)}",
            )
            # The credit holds the wallet row, so this sum sees every committed load
            total_today = self.wallet_repository.sum_loads_since(wallet.id, since)
            self._ensure_daily_limit(total_today, total_today - amount_cents)

        self.log_operation(
            "load_funds",
            customer_id=customer_id,
            amount_cents=amount_cents,
            balance_after_cents=txn.balance_after_cents,
        )
        return txn

    @staticmethod
    def _ensure_daily_limit(total_with_load: int, loaded_before: int) -> None:
        limit = settings.wallet_daily_load_limit_cents
        if total_with_load > limit:
            remaining = max(0, limit - loaded_before)
            raise WalletLoadLimitException(
                f"Daily load limit of {_dollars(limit)} exceeded. "
                f"You can load up to {_dollars(remaining)} more today.",
                details={"daily_limit_cents": limit, "remaining_cents": remaining},
            )

    @BaseService.measure_operation("deduct_funds")
    def deduct_funds(
        self,
        actor: Actor,
        customer_id: str,
        amount_cents: int,
        description: str,
        booking_id: Optional[str] = None,
    ) -> DeductResult:
        """
        Pay from the wallet and accrue wallet-spend points (capped).

        The grooming bonus applies only when ``booking_id`` names one of the
        customer's grooming bookings.

        Raises:
            NotFoundException: booking_id is unknown or belongs to another customer
            BookingsNotEligibleException: the booking was cancelled or missed
            InsufficientWalletBalanceException: balance does not cover the amount
        """
        if amount_cents <= 0:
            raise ValidationException("Amount must be positive", details={"amount_cents": amount_cents})
        wallet = self.get_or_create_wallet(actor, customer_id)
        is_grooming = False
        if booking_id is not None:
            booking = self.booking_repository.get_by_id(booking_id)
            if booking is None or booking.customer_id != customer_id:
                raise NotFoundException("Booking not found", details={"booking_id": booking_id})
            if booking.status in (BookingStatus.CANCELLED, BookingStatus.NO_SHOW):
                raise BookingsNotEligibleException([booking_id])
            is_grooming = booking.service_type.is_grooming
        balance = self.wallet_repository.get_balance(wallet.id)
        if balance < amount_cents:
            raise InsufficientWalletBalanceException(balance, amount_cents)

        with self.transaction():
            txn = self.ledger.debit_wallet(
                wallet.id,
                amount_cents,
                txn_type=WalletTransactionType.PAYMENT,
                description=description,
                booking_id=booking_id,
            )
            award = self.ledger.award_wallet_spend(customer_id, amount_cents, is_grooming)

        return DeductResult(transaction=txn, balance_cents=txn.balance_after_cents, points=award)

    @BaseService.measure_operation("refund")
    def refund(
        self,
        actor: Actor,
        customer_id: str,
        amount_cents: int,
        reason: str,
        booking_id: Optional[str] = None,
    ) -> WalletTransaction:
        """Credit a refund to the wallet. Always succeeds for a positive amount."""
        actor.require_staff()
        if amount_cents <= 0:
            raise ValidationException("Refund amount must be positive")
        wallet = self.get_or_create_wallet(actor, customer_id)

        with self.transaction():
            txn = self.ledger.credit_wallet(
                wallet.id,
                amount_cents,
                txn_type=WalletTransactionType.REFUND,
                description=f"Refund: {reason}",
                booking_id=booking_id,
            )
            self.audit_repository.record(
                staff_id=actor.id,
                action="wallet_refund",
                entity_type="wallet",
                entity_id=wallet.id,
                details={"amount_cents": amount_cents, "reason": reason, "booking_id": booking_id},
            )
        return txn

    @BaseService.measure_operation("adjust_balance")
    def adjust_balance(
        self, actor: Actor, customer_id: str, amount_cents: int, reason: str
    ) -> WalletTransaction:
        """
        Staff correction. Negative adjustments cannot take the balance below zero.

        Raises:
            InsufficientWalletBalanceException: negative adjustment larger than the balance
        """
        actor.require_staff()
        if amount_cents == 0:
            raise ValidationException("Adjustment cannot be zero")
        wallet = self.get_or_create_wallet(actor, customer_id)
        description = f"Adjustment: {reason}"

        if amount_cents < 0:
            balance = self.wallet_repository.get_balance(wallet.id)
            if balance < -amount_cents:
                raise InsufficientWalletBalanceException(balance, -amount_cents)

        with self.transaction():
            if amount_cents > 0:
                txn = self.ledger.credit_wallet(
                    wallet.id,
                    amount_cents,
                    txn_type=WalletTransactionType.ADJUSTMENT,
                    description=description,
                )
            else:
                txn = self.ledger.debit_wallet(
                    wallet.id,
                    -amount_cents,
                    txn_type=WalletTransactionType.ADJUSTMENT,
                    description=description,
                )
            self.audit_repository.record(
                staff_id=actor.id,
                action="wallet_adjustment",
                entity_type="wallet",
                entity_id=wallet.id,
                details={"amount_cents": amount_cents, "reason": reason},
            )
        return txn

    @BaseService.measure_operation("set_auto_reload")
    def set_auto_reload(
        self,
        actor: Actor,
        customer_id: str,
        enabled: bool,
        threshold_cents: Optional[int] = None,
        amount_cents: Optional[int] = None,
    ) -> Wallet:
        if enabled:
            if threshold_cents is None or amount_cents is None:
                raise ValidationException(
                    "Threshold and amount are required when enabling auto-reload"
                )
            if amount_cents > settings.auto_reload_max_amount_cents:
                raise ValidationException(
                    f"Max auto-reload amount is {_dollars(settings.auto_reload_max_amount_cents)}"
                )
            if amount_cents < settings.wallet_min_load_cents:
                raise ValidationException(
                    f"Min auto-reload amount is {_dollars(settings.wallet_min_load_cents)}"
                )
            if threshold_cents < settings.auto_reload_min_threshold_cents:
                raise ValidationException(
                    f"Min auto-reload threshold is {_dollars(settings.auto_reload_min_threshold_cents)}"
                )

        wallet = self.get_or_create_wallet(actor, customer_id)
        with self.transaction():
            wallet.auto_reload_enabled = enabled
            wallet.auto_reload_threshold_cents = threshold_cents if enabled else None
            wallet.auto_reload_amount_cents = amount_cents if enabled else None
            self.wallet_repository.flush()
        return wallet

    def check_auto_reload_trigger(self, actor: Actor, customer_id: str) -> AutoReloadDecision:
        wallet = self.get_or_create_wallet(actor, customer_id)
        balance = self.wallet_repository.get_balance(wallet.id)
        if (
            wallet.auto_reload_enabled
            and wallet.auto_reload_threshold_cents is not None
            and wallet.auto_reload_amount_cents is not None
            and balance < wallet.auto_reload_threshold_cents
        ):
            return AutoReloadDecision(should_reload=True, amount_cents=wallet.auto_reload_amount_cents)
        return AutoReloadDecision(should_reload=False, amount_cents=0)
