# backend/pawledger/repositories/points_repository.py
"""Loyalty points ledger data access."""

import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pawledger.core.enums import PointsTransactionType
from pawledger.core.exceptions import RepositoryException
from pawledger.models.customer import Customer
from pawledger.models.wallet import PointsTransaction
from pawledger.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PointsRepository(BaseRepository[PointsTransaction]):
    """Points transactions plus the conditional updates on ``customers.points_balance``."""

    def __init__(self, db: Session):
        super().__init__(db, PointsTransaction)

    def get_balance(self, customer_id: str) -> int:
        stmt = select(Customer.points_balance).where(Customer.id == customer_id)
        try:
            balance = self.db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.error("Failed to read points balance for %s: %s", customer_id, exc)
            raise RepositoryException(f"Failed to read points balance: {exc}") from exc
        if balance is None:
            raise RepositoryException(f"Customer {customer_id} not found")
        return int(balance)

    def debit_if_sufficient(self, customer_id: str, points: int) -> Optional[int]:
        """Subtract ``points`` when the balance covers it; None otherwise."""
        stmt = (
            update(Customer)
            .where(Customer.id == customer_id, Customer.points_balance >= points)
            .values(points_balance=Customer.points_balance - points)
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Points debit failed for %s: %s", customer_id, exc)
            raise RepositoryException(f"Points debit failed: {exc}") from exc
        if not result.rowcount:
            return None
        return self.get_balance(customer_id)

    def credit_up_to(self, customer_id: str, points: int, cap: int) -> Optional[int]:
        """
        Add ``points`` only while the resulting balance stays within ``cap``.

        The caller computes ``points`` from a balance it has read; None means the
        balance moved in between and the caller should recompute.
        """
        stmt = (
            update(Customer)
            .where(Customer.id == customer_id, Customer.points_balance + points <= cap)
            .values(points_balance=Customer.points_balance + points)
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Points credit failed for %s: %s", customer_id, exc)
            raise RepositoryException(f"Points credit failed: {exc}") from exc
        if not result.rowcount:
            return None
        return self.get_balance(customer_id)

    def record(
        self,
        *,
        customer_id: str,
        txn_type: PointsTransactionType,
        amount: int,
        balance_after: int,
        description: Optional[str] = None,
        payment_id: Optional[str] = None,
    ) -> PointsTransaction:
        return self.create(
            customer_id=customer_id,
            type=txn_type,
            amount=amount,
            balance_after=balance_after,
            description=description,
            payment_id=payment_id,
        )

    def sum_for_customer(self, customer_id: str) -> int:
        stmt = select(func.coalesce(func.sum(PointsTransaction.amount), 0)).where(
            PointsTransaction.customer_id == customer_id
        )
        return int(self.db.execute(stmt).scalar_one())
