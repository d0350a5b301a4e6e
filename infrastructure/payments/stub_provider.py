from uuid import uuid4
from core.entities.user import User
from core.services.payment_provider import PaymentProvider, PaymentReceipt


class StubPaymentProvider(PaymentProvider):
    """Заглушка платёжного шлюза - любое списание с карты успешно"""
    name = "stub"

    def charge(self, user: User, amount_usd: int, description: str) -> PaymentReceipt:
        return PaymentReceipt(
            success=True,
            amount_usd=int(amount_usd),
            transaction_id=f"stub-{uuid4()}",
            message=f"Stub payment approved: {description}",
        )
