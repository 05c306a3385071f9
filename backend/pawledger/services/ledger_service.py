# backend/pawledger/services/ledger_service.py
"""
Ledger primitives for the wallet and loyalty points balances.

Every method here runs inside the caller's unit of work and never commits.
Each mutation is a conditional UPDATE plus exactly one immutable transaction
row, so the signed sum of a ledger always equals the projected balance.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

from sqlalchemy.orm import Session

from pawledger.core.config import settings
from pawledger.core.enums import PointsTransactionType, WalletTransactionType
from pawledger.core.exceptions import (
    PointsBalanceConflictException,
    ServiceException,
    WalletBalanceConflictException,
)
from pawledger.models.wallet import PointsTransaction, WalletTransaction
from pawledger.monitoring.prometheus_metrics import prometheus_metrics
from pawledger.repositories.factory import RepositoryFactory
from pawledger.services.base import BaseService

logger = logging.getLogger(__name__)

# Attempts at a capped points credit before giving up on a contended balance
_AWARD_ATTEMPTS = 3


@dataclass(frozen=True)
class PointsAward:
    """Outcome of a capped points accrual."""

    points_awarded: int
    points_capped: int
    new_balance: int


def cap_points(current_balance: int, points_to_add: int, cap: int) -> PointsAward:
    """
    Clamp an accrual so the balance never exceeds ``cap``.

    Excess points are dropped and reported in ``points_capped``. A balance
    already above the cap is left untouched.
    """
    if points_to_add <= 0:
        return PointsAward(0, 0, current_balance)
    headroom = max(0, cap - current_balance)
    awarded = min(points_to_add, headroom)
    return PointsAward(
        points_awarded=awarded,
        points_capped=points_to_add - awarded,
        new_balance=current_balance + awarded,
    )


def wallet_spend_points(amount_cents: int, is_grooming: bool) -> int:
    """Points earned on wallet spend: a multiple per whole dollar, with a grooming bonus."""
    points = (amount_cents // 100) * settings.wallet_points_multiplier
    if is_grooming:
        points = int(points * settings.grooming_points_multiplier)
    return points


def card_spend_points(amount_cents: int, is_grooming: bool) -> int:
    """Points earned on card or cash spend: one per whole dollar, with a grooming bonus."""
    points = amount_cents // 100
    if is_grooming:
        points = int(points * settings.grooming_points_multiplier)
    return points


class LedgerService(BaseService):
    """Atomic increments and decrements over wallet and points balances."""

    def __init__(self, db: Session, points_cap: Optional[int] = None):
        super().__init__(db)
        self.points_cap = settings.points_cap if points_cap is None else points_cap
        self.wallet_repository = RepositoryFactory.create_wallet_repository(db)
        self.wallet_transaction_repository = (
            RepositoryFactory.create_wallet_transaction_repository(db)
        )
        self.points_repository = RepositoryFactory.create_points_repository(db)

    # Wallet

    def debit_wallet(
        self,
        wallet_id: str,
        amount_cents: int,
        *,
        txn_type: WalletTransactionType = WalletTransactionType.PAYMENT,
        description: Optional[str] = None,
        booking_id: Optional[str] = None,
        payment_id: Optional[str] = None,
    ) -> WalletTransaction:
        """
        Decrement the wallet when the balance still covers ``amount_cents``.

        Raises:
            WalletBalanceConflictException: the balance no longer covers the debit
        """
        if amount_cents <= 0:
            raise ServiceException("Wallet debit must be positive")

        new_balance = self.wallet_repository.debit_if_sufficient(wallet_id, amount_cents)
        if new_balance is None:
            prometheus_metrics.inc_ledger_conflict("wallet")
            logger.warning(
                "Conditional wallet debit lost a race",
                extra={"wallet_id": wallet_id, "amount_cents": amount_cents},
            )
            raise WalletBalanceConflictException(required_cents=amount_cents)

        return self.wallet_transaction_repository.record(
            wallet_id=wallet_id,
            txn_type=txn_type,
            amount_cents=-amount_cents,
            balance_after_cents=new_balance,
            description=description,
            booking_id=booking_id,
            payment_id=payment_id,
        )

    def credit_wallet(
        self,
        wallet_id: str,
        amount_cents: int,
        *,
        txn_type: WalletTransactionType,
        description: Optional[str] = None,
        booking_id: Optional[str] = None,
        payment_id: Optional[str] = None,
    ) -> WalletTransaction:
        """Increment the wallet. Always succeeds for a positive amount."""
        if amount_cents <= 0:
            raise ServiceException("Wallet credit must be positive")

        new_balance = self.wallet_repository.credit(wallet_id, amount_cents)
        return self.wallet_transaction_repository.record(
            wallet_id=wallet_id,
            txn_type=txn_type,
            amount_cents=amount_cents,
            balance_after_cents=new_balance,
            description=description,
            booking_id=booking_id,
            payment_id=payment_id,
        )

    # Points

    def debit_points(
        self,
        customer_id: str,
        points: int,
        *,
        description: Optional[str] = None,
        payment_id: Optional[str] = None,
    ) -> PointsTransaction:
        """
        Redeem ``points`` when the balance still covers them.

        Raises:
            PointsBalanceConflictException: the balance no longer covers the redemption
        """
        if points <= 0:
            raise ServiceException("Points redemption must be positive")

        new_balance = self.points_repository.debit_if_sufficient(customer_id, points)
        if new_balance is None:
            prometheus_metrics.inc_ledger_conflict("points")
            logger.warning(
                "Conditional points debit lost a race",
                extra={"customer_id": customer_id, "points": points},
            )
            raise PointsBalanceConflictException(required=points)

        return self.points_repository.record(
            customer_id=customer_id,
            txn_type=PointsTransactionType.REDEMPTION,
            amount=-points,
            balance_after=new_balance,
            description=description,
            payment_id=payment_id,
        )

    def award_points(
        self,
        customer_id: str,
        points: int,
        *,
        description: Optional[str] = None,
        payment_id: Optional[str] = None,
    ) -> PointsAward:
        """
        Accrue up to ``points``, clamped by the global points cap.

        The clamp is computed from a fresh balance read and applied with a
        conditional UPDATE; if the balance moves in between, recompute.
        """
        if points <= 0:
            return PointsAward(0, 0, self.points_repository.get_balance(customer_id))

        for _ in range(_AWARD_ATTEMPTS):
            current = self.points_repository.get_balance(customer_id)
            award = cap_points(current, points, self.points_cap)
            if award.points_awarded == 0:
                return award

            new_balance = self.points_repository.credit_up_to(
                customer_id, award.points_awarded, self.points_cap
            )
            if new_balance is None:
                continue

            self.points_repository.record(
                customer_id=customer_id,
                txn_type=PointsTransactionType.PURCHASE,
                amount=award.points_awarded,
                balance_after=new_balance,
                description=description,
                payment_id=payment_id,
            )
            if award.points_capped:
                logger.info(
                    "Points accrual capped",
                    extra={
                        "customer_id": customer_id,
                        "points_awarded": award.points_awarded,
                        "points_capped": award.points_capped,
                    },
                )
            return PointsAward(award.points_awarded, award.points_capped, new_balance)

        prometheus_metrics.inc_ledger_conflict("points")
        raise ServiceException("Points balance changed repeatedly while accruing; retry")

    def award_wallet_spend(
        self,
        customer_id: str,
        amount_cents: int,
        is_grooming: bool,
        *,
        payment_id: Optional[str] = None,
    ) -> PointsAward:
        points = wallet_spend_points(amount_cents, is_grooming)
        return self.award_points(
            customer_id,
            points,
            description=f"Earned on ${amount_cents / 100:.2f} wallet payment",
            payment_id=payment_id,
        )

    def award_card_spend(
        self,
        customer_id: str,
        amount_cents: int,
        is_grooming: bool,
        *,
        payment_id: Optional[str] = None,
    ) -> PointsAward:
        points = card_spend_points(amount_cents, is_grooming)
        return self.award_points(
            customer_id,
            points,
            description=f"Earned on ${amount_cents / 100:.2f} payment",
            payment_id=payment_id,
        )


__all__ = [
    "LedgerService",
    "PointsAward",
    "cap_points",
    "card_spend_points",
    "wallet_spend_points",
]
