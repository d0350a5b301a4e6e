"""IXP кошелёк: баланс, счётчики и журнал транзакций"""
import logging
import weakref
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock, RLock
from typing import List, Optional, Tuple

from core.entities.transaction import Direction, KIND_DIRECTIONS, Transaction, TransactionKind
from core.entities.wallet import Tier, Wallet, tier_info
from core.errors import ConflictError, InsufficientBalanceError, NotFoundError, ValidationFailureError
from core.repositories.user_repository import UserRepository
from core.repositories.wallet_repository import WalletRepository

logger = logging.getLogger(__name__)


class WalletLocks:
    """Реестр блокировок по user_id. Блокировка живёт, пока её кто-то держит"""
    def __init__(self):
        self._locks = weakref.WeakValueDictionary()
        self._guard = Lock()

    def __len__(self) -> int:
        return len(self._locks)

    def for_user(self, user_id: int) -> RLock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = RLock()
                self._locks[user_id] = lock
            return lock


# общий для всех запросов процесса
wallet_locks = WalletLocks()


@dataclass
class ReconciliationReport:
    wallet_id: int
    entries: int
    stored_balance: int
    ledger_balance: int
    stored_credited: int
    ledger_credited: int
    stored_spent: int
    ledger_spent: int

    @property
    def consistent(self) -> bool:
        return (
            self.stored_balance == self.ledger_balance
            and self.stored_credited == self.ledger_credited
            and self.stored_spent == self.ledger_spent
        )


def _parse_tier(tier) -> Tier:
    try:
        return Tier(tier)
    except ValueError:
        raise ValidationFailureError(f"Unknown subscription tier: {tier}", field="tier")


def _same_month(a: datetime, b: datetime) -> bool:
    return (a.year, a.month) == (b.year, b.month)


class WalletLedger:
    def __init__(self, users: UserRepository, wallets: WalletRepository,
                 locks: Optional[WalletLocks] = None, low_balance_threshold: int = 10):
        self.users = users
        self.wallets = wallets
        self.locks = locks or wallet_locks
        self.low_balance_threshold = low_balance_threshold

    def get_wallet(self, user_id: int) -> Wallet:
        wallet = self.wallets.get_by_user(user_id)
        if wallet is None:
            raise NotFoundError("Wallet not found")
        return wallet

    def get_or_create_wallet(self, user_id: int, tier=Tier.FOUNDER) -> Wallet:
        wallet = self.wallets.get_by_user(user_id)
        if wallet is not None:
            return wallet
        info = tier_info(_parse_tier(tier))
        if self.users.get_by_id(user_id) is None:
            raise NotFoundError("User not found")

        with self.locks.for_user(user_id):
            wallet = self.wallets.get_by_user(user_id)
            if wallet is not None:
                return wallet
            try:
                wallet = self.wallets.create_wallet(
                    user_id=user_id,
                    tier=info.tier.value,
                    monthly_allowance=info.monthly_allowance,
                    description=f"Initial allowance - {info.name}",
                )
            except ConflictError:
                # кошелёк создал другой процесс
                wallet = self.get_wallet(user_id)
                return wallet
        logger.info("wallet created user=%s tier=%s balance=%s", user_id, wallet.subscription_tier, wallet.balance)
        return wallet

    def adjust_balance(self, user_id: int, amount: int, direction, description: str,
                       service_tag: Optional[str] = None, kind=None) -> Tuple[Wallet, Transaction]:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationFailureError("Amount must be a positive integer", field="amount")
        try:
            direction = Direction(direction)
        except ValueError:
            raise ValidationFailureError(f"Unknown direction: {direction}", field="direction")
        if kind is None:
            kind = TransactionKind.ALLOWANCE if direction is Direction.CREDIT else TransactionKind.SERVICE_DEBIT
        try:
            kind = TransactionKind(kind)
        except ValueError:
            raise ValidationFailureError(f"Unknown transaction kind: {kind}", field="kind")
        if KIND_DIRECTIONS[kind] is not direction:
            raise ValidationFailureError(f"{kind.value} cannot be a {direction.value}", field="kind")
        if not (description or "").strip():
            raise ValidationFailureError("Description is required", field="description")

        with self.locks.for_user(user_id):
            return self._apply(user_id, amount, direction, kind, description.strip(), service_tag)

    def _apply(self, user_id: int, amount: int, direction: Direction, kind: TransactionKind, description: str,
               service_tag: Optional[str], allowance_at: Optional[str] = None) -> Tuple[Wallet, Transaction]:
        wallet = self.get_wallet(user_id)
        try:
            wallet, tx = self.wallets.apply_adjustment(
                wallet_id=wallet.id,
                direction=direction.value,
                kind=kind.value,
                amount=amount,
                description=description,
                service_tag=service_tag,
                allowance_at=allowance_at,
            )
        except InsufficientBalanceError as e:
            logger.warning("debit refused user=%s required=%s available=%s", user_id, e.required, e.available)
            raise
        logger.info(
            "wallet %s user=%s amount=%s kind=%s balance=%s",
            direction.value, user_id, amount, kind.value, wallet.balance,
        )
        return wallet, tx

    def list_transactions(self, user_id: int, limit: int = 20, offset: int = 0) -> List[Transaction]:
        if limit < 1:
            raise ValidationFailureError("limit must be positive", field="limit")
        return self.wallets.list_transactions(user_id, limit=limit, offset=max(0, offset))

    def grant_monthly_allowance(self, user_id: int,
                                now: Optional[datetime] = None) -> Tuple[Wallet, Optional[Transaction]]:
        """Начисляет месячную норму тарифа не чаще раза в календарный месяц"""
        now = now or datetime.now(timezone.utc)
        with self.locks.for_user(user_id):
            wallet = self.get_wallet(user_id)
            if wallet.last_allowance_at and _same_month(datetime.fromisoformat(wallet.last_allowance_at), now):
                return wallet, None
            info = tier_info(wallet.subscription_tier)
            return self._apply(
                user_id, wallet.monthly_allowance, Direction.CREDIT, TransactionKind.ALLOWANCE,
                f"Monthly allowance - {info.name}", None, allowance_at=now.isoformat(),
            )

    def grant_allowance(self, user_id: int, description: str, service_tag: Optional[str] = None,
                        now: Optional[datetime] = None) -> Tuple[Wallet, Transaction]:
        """Начисляет норму тарифа сейчас и засчитывает её за текущий месяц"""
        now = now or datetime.now(timezone.utc)
        with self.locks.for_user(user_id):
            wallet = self.get_wallet(user_id)
            return self._apply(
                user_id, wallet.monthly_allowance, Direction.CREDIT, TransactionKind.ALLOWANCE,
                description, service_tag, allowance_at=now.isoformat(),
            )

    def change_tier(self, user_id: int, tier) -> Wallet:
        info = tier_info(_parse_tier(tier))
        with self.locks.for_user(user_id):
            wallet = self.wallets.get_by_user(user_id)
            if wallet is None:
                return self.get_or_create_wallet(user_id, info.tier)
            wallet = self.wallets.update_tier(wallet.id, info.tier.value, info.monthly_allowance)
        logger.info("wallet tier changed user=%s tier=%s", user_id, info.tier.value)
        return wallet

    def reconcile(self, user_id: int) -> ReconciliationReport:
        wallet = self.get_wallet(user_id)
        entries = self.wallets.ledger(wallet.id)
        credited = sum(t.amount for t in entries if t.direction == Direction.CREDIT.value)
        spent = sum(t.amount for t in entries if t.direction == Direction.DEBIT.value)
        report = ReconciliationReport(
            wallet_id=wallet.id,
            entries=len(entries),
            stored_balance=wallet.balance,
            ledger_balance=credited - spent,
            stored_credited=wallet.total_credited,
            ledger_credited=credited,
            stored_spent=wallet.total_spent,
            ledger_spent=spent,
        )
        if not report.consistent:
            logger.warning("wallet %s does not match its ledger: %s", wallet.id, report)
        return report

    def summary(self, user_id: int) -> dict:
        wallet = self.get_wallet(user_id)
        info = tier_info(wallet.subscription_tier)
        allowance = wallet.monthly_allowance or 1
        return {
            "wallet": wallet,
            "tier_name": info.name,
            "balance_percentage": min(round(wallet.balance / allowance * 100, 1), 100.0),
            "low_balance": wallet.balance < self.low_balance_threshold,
        }
