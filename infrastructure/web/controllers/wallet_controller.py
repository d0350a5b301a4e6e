from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from config.settings import settings
from core.entities.transaction import Transaction
from core.entities.user import User
from core.errors import DomainError
from core.use_cases.wallet_use_cases import WalletLedger
from infrastructure.web.dependencies import get_current_user, get_ledger, http_error

router = APIRouter(prefix="/wallet", tags=["wallet"])


class WalletResponse(BaseModel):
    id: int
    balance: int
    total_credited: int
    total_spent: int
    subscription_tier: str
    tier_name: str
    monthly_allowance: int
    balance_percentage: float
    low_balance: bool
    last_allowance_at: Optional[str] = None


# DTO для транзакций
class TransactionItem(BaseModel):
    id: int
    direction: str
    kind: str
    amount: int
    signed_amount: int
    description: str
    service_tag: Optional[str] = None
    balance_after: int
    created_at: str


class AllowanceResponse(BaseModel):
    granted: bool
    wallet: WalletResponse
    transaction: Optional[TransactionItem] = None


class ReconcileResponse(BaseModel):
    wallet_id: int
    entries: int
    consistent: bool
    stored_balance: int
    ledger_balance: int
    stored_credited: int
    ledger_credited: int
    stored_spent: int
    ledger_spent: int


def wallet_response(ledger: WalletLedger, user_id: int) -> WalletResponse:
    summary = ledger.summary(user_id)
    wallet = summary["wallet"]
    return WalletResponse(
        id=wallet.id,
        balance=wallet.balance,
        total_credited=wallet.total_credited,
        total_spent=wallet.total_spent,
        subscription_tier=wallet.subscription_tier,
        tier_name=summary["tier_name"],
        monthly_allowance=wallet.monthly_allowance,
        balance_percentage=summary["balance_percentage"],
        low_balance=summary["low_balance"],
        last_allowance_at=wallet.last_allowance_at,
    )


def transaction_item(tx: Transaction) -> TransactionItem:
    return TransactionItem(
        id=tx.id,
        direction=tx.direction,
        kind=tx.kind,
        amount=tx.amount,
        signed_amount=tx.signed_amount,
        description=tx.description,
        service_tag=tx.service_tag,
        balance_after=tx.balance_after,
        created_at=tx.created_at,
    )


@router.get("", response_model=WalletResponse)
def get_wallet(current_user: User = Depends(get_current_user), ledger: WalletLedger = Depends(get_ledger)):
    try:
        ledger.get_or_create_wallet(current_user.id)
        return wallet_response(ledger, current_user.id)
    except DomainError as e:
        raise http_error(e)


@router.get("/transactions", response_model=List[TransactionItem])
def get_transactions(
    limit: int = 20,
    offset: int = 0,
    current_user: User = Depends(get_current_user),
    ledger: WalletLedger = Depends(get_ledger),
):
    limit = max(1, min(settings.TRANSACTIONS_PAGE_MAX, int(limit)))  # пагинация, не хотим возвращать много
    offset = max(0, int(offset))
    txs = ledger.list_transactions(current_user.id, limit=limit, offset=offset)
    return [transaction_item(tx) for tx in txs]


@router.post("/allowance", response_model=AllowanceResponse)
def claim_allowance(current_user: User = Depends(get_current_user), ledger: WalletLedger = Depends(get_ledger)):
    try:
        ledger.get_or_create_wallet(current_user.id)
        _, tx = ledger.grant_monthly_allowance(current_user.id)
        return AllowanceResponse(
            granted=tx is not None,
            wallet=wallet_response(ledger, current_user.id),
            transaction=transaction_item(tx) if tx else None,
        )
    except DomainError as e:
        raise http_error(e)


@router.get("/reconcile", response_model=ReconcileResponse)
def reconcile(current_user: User = Depends(get_current_user), ledger: WalletLedger = Depends(get_ledger)):
    try:
        report = ledger.reconcile(current_user.id)
    except DomainError as e:
        raise http_error(e)
    return ReconcileResponse(
        wallet_id=report.wallet_id,
        entries=report.entries,
        consistent=report.consistent,
        stored_balance=report.stored_balance,
        ledger_balance=report.ledger_balance,
        stored_credited=report.stored_credited,
        ledger_credited=report.ledger_credited,
        stored_spent=report.stored_spent,
        ledger_spent=report.ledger_spent,
    )
