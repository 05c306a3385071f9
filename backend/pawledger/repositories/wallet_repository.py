# backend/pawledger/repositories/wallet_repository.py
"""
Wallet ledger data access.

Balance mutations are conditional UPDATEs evaluated by the database, so two
concurrent debits can never both succeed against the same cents.
"""

from datetime import datetime
import logging
from typing import List, Optional, cast

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pawledger.core.enums import WalletTier, WalletTransactionType
from pawledger.core.exceptions import RepositoryException
from pawledger.models._columns import new_id, now_utc
from pawledger.models.wallet import Wallet, WalletTransaction
from pawledger.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class WalletRepository(BaseRepository[Wallet]):
    def __init__(self, db: Session):
        super().__init__(db, Wallet)

    def get_by_customer(self, customer_id: str) -> Optional[Wallet]:
        return self.find_one_by(customer_id=customer_id)

    def get_or_create(self, customer_id: str) -> Wallet:
        """Return the customer's wallet, creating an empty one if missing."""
        wallet = self.get_by_customer(customer_id)
        if wallet is not None:
            return wallet

        values = {
            "id": new_id(),
            "customer_id": customer_id,
            "balance_cents": 0,
            "tier": WalletTier.BASIC,
            "auto_reload_enabled": False,
            "created_at": now_utc(),
            "updated_at": now_utc(),
        }
        insert_fn = pg_insert if self.dialect_name == "postgresql" else sqlite_insert
        try:
            # A concurrent request may create the same wallet; keep whichever landed first
            self.db.execute(
                insert_fn(Wallet).values(**values).on_conflict_do_nothing(
                    index_elements=["customer_id"]
                )
            )
        except SQLAlchemyError as exc:
            logger.error("Failed to create wallet for %s: %s", customer_id, exc)
            raise RepositoryException(f"Failed to create wallet: {exc}") from exc

        wallet = self.get_by_customer(customer_id)
        if wallet is None:
            raise RepositoryException(f"Failed to load wallet for {customer_id} after insert")
        return wallet

    def get_balance(self, wallet_id: str) -> int:
        stmt = select(Wallet.balance_cents).where(Wallet.id == wallet_id)
        try:
            return int(self.db.execute(stmt).scalar_one())
        except SQLAlchemyError as exc:
            logger.error("Failed to read wallet balance %s: %s", wallet_id, exc)
            raise RepositoryException(f"Failed to read wallet balance: {exc}") from exc

    def debit_if_sufficient(self, wallet_id: str, amount_cents: int) -> Optional[int]:
        """
        Atomically subtract ``amount_cents`` when the balance covers it.

        Returns the new balance, or None when the balance was insufficient at
        the moment the UPDATE executed.
        """
        stmt = (
            update(Wallet)
            .where(Wallet.id == wallet_id, Wallet.balance_cents >= amount_cents)
            .values(balance_cents=Wallet.balance_cents - amount_cents)
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Wallet debit failed for %s: %s", wallet_id, exc)
            raise RepositoryException(f"Wallet debit failed: {exc}") from exc
        if not result.rowcount:
            return None
        return self.get_balance(wallet_id)

    def credit(self, wallet_id: str, amount_cents: int) -> int:
        """Atomically add ``amount_cents`` and return the new balance."""
        stmt = (
            update(Wallet)
            .where(Wallet.id == wallet_id)
            .values(balance_cents=Wallet.balance_cents + amount_cents)
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("Wallet credit failed for %s: %s", wallet_id, exc)
            raise RepositoryException(f"Wallet credit failed: {exc}") from exc
        if not result.rowcount:
            raise RepositoryException(f"Wallet {wallet_id} not found")
        return self.get_balance(wallet_id)

    def sum_loads_since(self, wallet_id: str, since: datetime) -> int:
        stmt = select(func.coalesce(func.sum(WalletTransaction.amount_cents), 0)).where(
            WalletTransaction.wallet_id == wallet_id,
            WalletTransaction.type == WalletTransactionType.LOAD,
            WalletTransaction.created_at >= since,
        )
        try:
            return int(self.db.execute(stmt).scalar_one())
        except SQLAlchemyError as exc:
            logger.error("Failed to sum wallet loads for %s: %s", wallet_id, exc)
            raise RepositoryException(f"Failed to sum wallet loads: {exc}") from exc


class WalletTransactionRepository(BaseRepository[WalletTransaction]):
    def __init__(self, db: Session):
        super().__init__(db, WalletTransaction)

    def record(
        self,
        *,
        wallet_id: str,
        txn_type: WalletTransactionType,
        amount_cents: int,
        balance_after_cents: int,
        description: Optional[str] = None,
        booking_id: Optional[str] = None,
        payment_id: Optional[str] = None,
    ) -> WalletTransaction:
        return self.create(
            wallet_id=wallet_id,
            type=txn_type,
            amount_cents=amount_cents,
            balance_after_cents=balance_after_cents,
            description=description,
            booking_id=booking_id,
            payment_id=payment_id,
        )

    def list_for_wallet(self, wallet_id: str, limit: int = 20, offset: int = 0) -> List[WalletTransaction]:
        query = (
            self._build_query()
            .filter(WalletTransaction.wallet_id == wallet_id)
            .order_by(WalletTransaction.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return cast(List[WalletTransaction], self._execute_query(query))

    def sum_for_wallet(self, wallet_id: str) -> int:
        stmt = select(func.coalesce(func.sum(WalletTransaction.amount_cents), 0)).where(
            WalletTransaction.wallet_id == wallet_id
        )
        return int(self.db.execute(stmt).scalar_one())
