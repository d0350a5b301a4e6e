from dataclasses import dataclass
from typing import Optional


@dataclass
class PaymentRecord:
    id: Optional[int]
    user_id: int
    amount_usd: int
    currency: str
    payment_method: str
    payment_status: str
    description: str
    transaction_ref: str
    created_at: str
    subscription_tier: Optional[str] = None
    ixp_credits_purchased: Optional[int] = None


@dataclass(frozen=True)
class CreditPackage:
    ixp: int
    price_usd: int
    bonus: int = 0

    @property
    def total_ixp(self) -> int:
        return self.ixp + self.bonus


CREDIT_PACKAGES = {
    50: CreditPackage(50, 49, 0),
    100: CreditPackage(100, 89, 10),
    250: CreditPackage(250, 199, 50),
    500: CreditPackage(500, 349, 150),
}
