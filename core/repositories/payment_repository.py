from abc import ABC, abstractmethod
from typing import Optional, List
from core.entities.payment import PaymentRecord


class PaymentRepository(ABC):
    @abstractmethod
    def add_payment(self, user_id: int, amount_usd: int, description: str, transaction_ref: str,
                    subscription_tier: Optional[str] = None,
                    ixp_credits_purchased: Optional[int] = None) -> PaymentRecord:...

    @abstractmethod
    def list_payments(self, user_id: int, limit: int = 50) -> List[PaymentRecord]:...

    @abstractmethod
    def total_revenue(self) -> int:...
