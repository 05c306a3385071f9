# backend/pawledger/routes/v1/wallet.py
"""
Wallet routes - API v1

Customer endpoints (/api/v1/wallet):
    GET /balance - Wallet balance, tier and points
    POST /load - Load funds from a card
    POST /pay - Pay from the wallet
    GET /transactions - Ledger history, newest first
    PUT /auto-reload - Configure auto-reload
    GET /auto-reload/check - Whether an auto-reload is due

Staff endpoints (/api/v1/admin/wallet):
    GET /{customer_id} - A customer's balance
    GET /{customer_id}/transactions - A customer's ledger history
    POST /{customer_id}/refund - Refund into the wallet
    POST /{customer_id}/adjust - Signed balance correction
"""

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_current_customer, get_current_staff, get_wallet_service
from ...core.actor import Actor
from ...core.exceptions import DomainException
from ...schemas.wallet import (
    AdjustBalanceRequest,
    AutoReloadRequest,
    AutoReloadTriggerResponse,
    DeductFundsRequest,
    DeductFundsResponse,
    LoadFundsRequest,
    RefundRequest,
    WalletBalanceResponse,
    WalletHistoryResponse,
    WalletTransactionResponse,
)
from ...services.wallet_service import WalletService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["wallet-v1"])
admin_router = APIRouter(tags=["admin", "wallet-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _balance(wallet_service: WalletService, actor: Actor, customer_id: str) -> WalletBalanceResponse:
    try:
        return WalletBalanceResponse.model_validate(wallet_service.get_balance(actor, customer_id))
    except DomainException as e:
        handle_domain_exception(e)


def _history(
    wallet_service: WalletService, actor: Actor, customer_id: str, limit: int, offset: int
) -> WalletHistoryResponse:
    try:
        transactions = wallet_service.get_transaction_history(
            actor, customer_id, limit=limit, offset=offset
        )
    except DomainException as e:
        handle_domain_exception(e)
    return WalletHistoryResponse(
        transactions=[WalletTransactionResponse.model_validate(txn) for txn in transactions],
        limit=limit,
        offset=offset,
    )


# ============================================================================
# Customer routes
# ============================================================================


@router.get("/balance", response_model=WalletBalanceResponse)
def get_balance(
    current_customer: Actor = Depends(get_current_customer),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletBalanceResponse:
    """Creates the wallet on first access."""
    return _balance(wallet_service, current_customer, current_customer.id)


@router.post("/load", response_model=WalletTransactionResponse)
def load_funds(
    payload: LoadFundsRequest,
    current_customer: Actor = Depends(get_current_customer),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletTransactionResponse:
    try:
        txn = wallet_service.load_funds(current_customer, current_customer.id, payload.amount_cents)
    except DomainException as e:
        handle_domain_exception(e)
    return WalletTransactionResponse.model_validate(txn)


@router.post("/pay", response_model=DeductFundsResponse)
def pay_from_wallet(
    payload: DeductFundsRequest,
    current_customer: Actor = Depends(get_current_customer),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> DeductFundsResponse:
    try:
        result = wallet_service.deduct_funds(
            current_customer,
            current_customer.id,
            payload.amount_cents,
            payload.description,
            booking_id=payload.booking_id,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return DeductFundsResponse(
        transaction=WalletTransactionResponse.model_validate(result.transaction),
        balance_cents=result.balance_cents,
        points_awarded=result.points.points_awarded,
        points_capped=result.points.points_capped,
    )


@router.get("/transactions", response_model=WalletHistoryResponse)
def get_transactions(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_customer: Actor = Depends(get_current_customer),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletHistoryResponse:
    return _history(wallet_service, current_customer, current_customer.id, limit, offset)


@router.put("/auto-reload", response_model=WalletBalanceResponse)
def set_auto_reload(
    payload: AutoReloadRequest,
    current_customer: Actor = Depends(get_current_customer),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletBalanceResponse:
    try:
        wallet_service.set_auto_reload(
            current_customer,
            current_customer.id,
            payload.enabled,
            threshold_cents=payload.threshold_cents,
            amount_cents=payload.amount_cents,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return _balance(wallet_service, current_customer, current_customer.id)


@router.get("/auto-reload/check", response_model=AutoReloadTriggerResponse)
def check_auto_reload(
    current_customer: Actor = Depends(get_current_customer),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> AutoReloadTriggerResponse:
    try:
        decision = wallet_service.check_auto_reload_trigger(current_customer, current_customer.id)
    except DomainException as e:
        handle_domain_exception(e)
    return AutoReloadTriggerResponse.model_validate(decision)


# ============================================================================
# Staff routes
# ============================================================================


@admin_router.get("/{customer_id}", response_model=WalletBalanceResponse)
def get_customer_balance(
    customer_id: str,
    current_staff: Actor = Depends(get_current_staff),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletBalanceResponse:
    return _balance(wallet_service, current_staff, customer_id)


@admin_router.get("/{customer_id}/transactions", response_model=WalletHistoryResponse)
def get_customer_transactions(
    customer_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_staff: Actor = Depends(get_current_staff),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletHistoryResponse:
    return _history(wallet_service, current_staff, customer_id, limit, offset)


@admin_router.post("/{customer_id}/refund", response_model=WalletTransactionResponse)
def refund(
    customer_id: str,
    payload: RefundRequest,
    current_staff: Actor = Depends(get_current_staff),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletTransactionResponse:
    try:
        txn = wallet_service.refund(
            current_staff,
            customer_id,
            payload.amount_cents,
            payload.reason,
            booking_id=payload.booking_id,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return WalletTransactionResponse.model_validate(txn)


@admin_router.post("/{customer_id}/adjust", response_model=WalletTransactionResponse)
def adjust_balance(
    customer_id: str,
    payload: AdjustBalanceRequest,
    current_staff: Actor = Depends(get_current_staff),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletTransactionResponse:
    try:
        txn = wallet_service.adjust_balance(
            current_staff, customer_id, payload.amount_cents, payload.reason
        )
    except DomainException as e:
        handle_domain_exception(e)
    return WalletTransactionResponse.model_validate(txn)
