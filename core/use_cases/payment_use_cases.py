import logging
from dataclasses import dataclass
from typing import List

from core.entities.payment import CREDIT_PACKAGES, PaymentRecord
from core.entities.transaction import Direction, TransactionKind
from core.entities.user import User
from core.entities.wallet import Tier, Wallet, tier_info
from core.errors import RemoteFailureError, ValidationFailureError
from core.repositories.payment_repository import PaymentRepository
from core.services.payment_provider import PaymentProvider
from core.use_cases.wallet_use_cases import WalletLedger

logger = logging.getLogger(__name__)


@dataclass
class PurchaseResult:
    wallet: Wallet
    payment: PaymentRecord
    credited: int


def _charge(provider: PaymentProvider, user: User, amount_usd: int, description: str):
    receipt = provider.charge(user, amount_usd, description)
    if not receipt.success:
        logger.warning("payment declined user=%s amount=%s: %s", user.id, amount_usd, receipt.message)
        raise RemoteFailureError(receipt.message or "Payment failed")
    logger.info("charged user=%s amount=%s via %s ref=%s", user.id, amount_usd, provider.name, receipt.transaction_id)
    return receipt


def subscribe(ledger: WalletLedger, payments: PaymentRepository, provider: PaymentProvider,
              user: User, tier) -> PurchaseResult:
    try:
        info = tier_info(Tier(tier))
    except ValueError:
        raise ValidationFailureError("Invalid plan", field="tier")

    receipt = _charge(provider, user, info.price_usd, f"{info.name} subscription")

    existed = ledger.wallets.get_by_user(user.id) is not None
    wallet = ledger.change_tier(user.id, info.tier)
    if existed:
        # норма за подписку засчитывается как месячная
        wallet, _ = ledger.grant_allowance(user.id, f"Monthly allowance - {info.name}", service_tag="subscription")
    # новый кошелёк уже получил норму при создании
    credited = info.monthly_allowance

    payment = payments.add_payment(
        user_id=user.id,
        amount_usd=receipt.amount_usd,
        description=f"{info.name} subscription",
        transaction_ref=receipt.transaction_id,
        subscription_tier=info.tier.value,
    )
    logger.info("subscription user=%s tier=%s", user.id, info.tier.value)
    return PurchaseResult(wallet=wallet, payment=payment, credited=credited)


def purchase_credits(ledger: WalletLedger, payments: PaymentRepository, provider: PaymentProvider,
                     user: User, package_ixp: int) -> PurchaseResult:
    package = CREDIT_PACKAGES.get(package_ixp)
    if package is None:
        raise ValidationFailureError("Invalid credit package", field="package_ixp")

    receipt = _charge(provider, user, package.price_usd, f"IXP Credits Purchase - {package.total_ixp} IXP")

    bonus = f" + {package.bonus} bonus" if package.bonus > 0 else ""
    ledger.get_or_create_wallet(user.id)
    wallet, _ = ledger.adjust_balance(
        user.id, package.total_ixp, Direction.CREDIT,
        f"IXP Credit Purchase - {package.ixp} IXP{bonus}", service_tag="purchase", kind=TransactionKind.PURCHASE,
    )
    payment = payments.add_payment(
        user_id=user.id,
        amount_usd=receipt.amount_usd,
        description=f"IXP Credits Purchase - {package.total_ixp} IXP",
        transaction_ref=receipt.transaction_id,
        ixp_credits_purchased=package.total_ixp,
    )
    return PurchaseResult(wallet=wallet, payment=payment, credited=package.total_ixp)


def payment_history(payments: PaymentRepository, user_id: int, limit: int = 50) -> List[PaymentRecord]:
    return payments.list_payments(user_id, limit=limit)
