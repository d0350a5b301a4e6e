from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from core.entities.user import User


@dataclass
class PaymentReceipt:
    success: bool
    amount_usd: int
    transaction_id: str
    message: Optional[str] = None

class PaymentProvider(ABC):
    name: str = "unknown"

    @abstractmethod
    def charge(self, user: User, amount_usd: int, description: str) -> PaymentReceipt:...
