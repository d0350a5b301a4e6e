from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.entities.payment import CREDIT_PACKAGES, PaymentRecord
from core.entities.user import User
from core.entities.wallet import TIERS
from core.errors import DomainError
from core.services.payment_provider import PaymentProvider
from core.use_cases.payment_use_cases import PurchaseResult, payment_history, purchase_credits, subscribe
from core.use_cases.wallet_use_cases import WalletLedger
from infrastructure.db.repositories import StorePaymentRepository
from infrastructure.web.dependencies import (
    get_current_user, get_ledger, get_payment_provider, get_payment_repo, http_error,
)

router = APIRouter(prefix="", tags=["payments"])


class PlanItem(BaseModel):
    tier: str
    name: str
    monthly_allowance: int
    price_usd: int


class PackageItem(BaseModel):
    ixp: int
    bonus: int
    total_ixp: int
    price_usd: int


class PlansResponse(BaseModel):
    plans: List[PlanItem]
    credit_packages: List[PackageItem]


class SubscribeRequest(BaseModel):
    tier: str  # founder | growth | scale


class PurchaseRequest(BaseModel):
    package_ixp: int


class PaymentItem(BaseModel):
    id: int
    amount_usd: int
    currency: str
    payment_method: str
    payment_status: str
    description: str
    transaction_ref: str
    subscription_tier: Optional[str] = None
    ixp_credits_purchased: Optional[int] = None
    created_at: str


class PurchaseResponse(BaseModel):
    credited: int
    balance: int
    subscription_tier: str
    payment: PaymentItem


def payment_item(record: PaymentRecord) -> PaymentItem:
    return PaymentItem(
        id=record.id,
        amount_usd=record.amount_usd,
        currency=record.currency,
        payment_method=record.payment_method,
        payment_status=record.payment_status,
        description=record.description,
        transaction_ref=record.transaction_ref,
        subscription_tier=record.subscription_tier,
        ixp_credits_purchased=record.ixp_credits_purchased,
        created_at=record.created_at,
    )


def purchase_response(result: PurchaseResult) -> PurchaseResponse:
    return PurchaseResponse(
        credited=result.credited,
        balance=result.wallet.balance,
        subscription_tier=result.wallet.subscription_tier,
        payment=payment_item(result.payment),
    )


@router.get("/plans", response_model=PlansResponse)
def list_plans():
    return PlansResponse(
        plans=[
            PlanItem(tier=info.tier.value, name=info.name, monthly_allowance=info.monthly_allowance,
                     price_usd=info.price_usd)
            for info in TIERS.values()
        ],
        credit_packages=[
            PackageItem(ixp=p.ixp, bonus=p.bonus, total_ixp=p.total_ixp, price_usd=p.price_usd)
            for p in CREDIT_PACKAGES.values()
        ],
    )


@router.post("/subscribe", response_model=PurchaseResponse)
def subscribe_plan(
    payload: SubscribeRequest,
    current_user: User = Depends(get_current_user),
    ledger: WalletLedger = Depends(get_ledger),
    payments: StorePaymentRepository = Depends(get_payment_repo),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    try:
        result = subscribe(ledger, payments, provider, current_user, payload.tier.lower().strip())
    except DomainError as e:
        raise http_error(e)
    return purchase_response(result)


@router.post("/credits/purchase", response_model=PurchaseResponse)
def buy_credits(
    payload: PurchaseRequest,
    current_user: User = Depends(get_current_user),
    ledger: WalletLedger = Depends(get_ledger),
    payments: StorePaymentRepository = Depends(get_payment_repo),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    try:
        result = purchase_credits(ledger, payments, provider, current_user, payload.package_ixp)
    except DomainError as e:
        raise http_error(e)
    return purchase_response(result)


@router.get("/payments", response_model=List[PaymentItem])
def list_payments(
    current_user: User = Depends(get_current_user),
    payments: StorePaymentRepository = Depends(get_payment_repo),
):
    return [payment_item(p) for p in payment_history(payments, current_user.id)]
