# backend/pawledger/schemas/wallet.py
"""Wallet ledger schemas. All amounts are integer cents."""

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from ..core.enums import WalletTier, WalletTransactionType
from ._strict_base import StrictModel, StrictRequestModel
from .common import UUIDStr


class LoadFundsRequest(StrictRequestModel):
    amount_cents: int = Field(..., gt=0, description="Amount to load in cents")


class DeductFundsRequest(StrictRequestModel):
    amount_cents: int = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=255)
    booking_id: Optional[UUIDStr] = None


class AutoReloadRequest(StrictRequestModel):
    enabled: bool
    threshold_cents: Optional[int] = Field(None, ge=0)
    amount_cents: Optional[int] = Field(None, gt=0)


class RefundRequest(StrictRequestModel):
    amount_cents: int = Field(..., gt=0)
    reason: str = Field(..., min_length=1, max_length=255)
    booking_id: Optional[UUIDStr] = None


class AdjustBalanceRequest(StrictRequestModel):
    amount_cents: int = Field(..., description="Signed adjustment in cents")
    reason: str = Field(..., min_length=1, max_length=255)


class WalletBalanceResponse(StrictModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    balance_cents: int
    tier: WalletTier
    points_balance: int
    auto_reload_enabled: bool
    auto_reload_threshold_cents: Optional[int] = None
    auto_reload_amount_cents: Optional[int] = None


class WalletTransactionResponse(StrictModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    id: str
    type: WalletTransactionType
    amount_cents: int
    balance_after_cents: int
    description: Optional[str] = None
    booking_id: Optional[str] = None
    payment_id: Optional[str] = None
    created_at: datetime


class WalletHistoryResponse(StrictModel):
    transactions: List[WalletTransactionResponse]
    limit: int
    offset: int


class DeductFundsResponse(StrictModel):
    transaction: WalletTransactionResponse
    balance_cents: int
    points_awarded: int
    points_capped: int


class AutoReloadTriggerResponse(StrictModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid")

    should_reload: bool
    amount_cents: int
