from abc import ABC, abstractmethod
from typing import Optional, List, Tuple
from core.entities.wallet import Wallet
from core.entities.transaction import Transaction


class WalletRepository(ABC):
    @abstractmethod
    def get_by_user(self, user_id: int) -> Optional[Wallet]:...

    @abstractmethod
    def create_wallet(self, user_id: int, tier: str, monthly_allowance: int, description: str) -> Wallet:
        """Создаёт кошелёк с начальным начислением и записью allowance в журнале (атомарно).
        Если кошелёк уже есть, бросает ConflictError."""

    @abstractmethod
    def apply_adjustment(self, wallet_id: int, direction: str, kind: str, amount: int, description: str,
                         service_tag: Optional[str] = None,
                         allowance_at: Optional[str] = None) -> Tuple[Wallet, Transaction]:
        """Изменение баланса и запись в журнал в одной транзакции.
        Списание условное (balance >= amount), иначе InsufficientBalanceError."""

    @abstractmethod
    def update_tier(self, wallet_id: int, tier: str, monthly_allowance: int) -> Wallet:...

    @abstractmethod
    def list_transactions(self, user_id: int, limit: int = 100, offset: int = 0) -> List[Transaction]:...

    @abstractmethod
    def ledger(self, wallet_id: int) -> List[Transaction]:...

    @abstractmethod
    def total_balance(self) -> int:...
