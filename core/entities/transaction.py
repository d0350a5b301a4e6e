from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Direction(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class TransactionKind(str, Enum):
    ALLOWANCE = "allowance"
    PURCHASE = "purchase"
    REFUND = "refund"
    SERVICE_DEBIT = "service-debit"


# допустимые подтипы для каждого направления
KIND_DIRECTIONS = {
    TransactionKind.ALLOWANCE: Direction.CREDIT,
    TransactionKind.PURCHASE: Direction.CREDIT,
    TransactionKind.REFUND: Direction.CREDIT,
    TransactionKind.SERVICE_DEBIT: Direction.DEBIT,
}


@dataclass
class Transaction:
    id: Optional[int]
    wallet_id: int
    user_id: int
    direction: str          # "credit" | "debit"
    kind: str               # allowance | purchase | refund | service-debit
    amount: int             # всегда > 0, знак задаёт direction
    description: str
    balance_after: int
    created_at: str
    service_tag: Optional[str] = None

    @property
    def signed_amount(self) -> int:
        return self.amount if self.direction == Direction.CREDIT.value else -self.amount
