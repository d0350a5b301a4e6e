import os
from dataclasses import dataclass, field
from typing import Dict, List


def _csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


# slug-и вебхуков по умолчанию, как в n8n
WEBHOOK_SLUGS: Dict[str, str] = {
    "expenseTracking": "expense-tracking",
    "bookkeeping": "bookkeeping",
    "payroll": "payroll",
    "taxPrep": "tax",
    "marketing": "marketing",
    "socialMedia": "social-media",
    "emailCampaign": "email-campaign",
    "seo": "seo",
    "requestComposer": "request-composer",
}


@dataclass
class Settings:
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    DB_PATH: str = os.getenv("DB_PATH", "./app.db")

    # первый администратор; без пароля не создаётся
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@r1ai.com")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: List[str] = field(
        default_factory=lambda: _csv(os.getenv("CORS_ORIGINS", "http://localhost:3000"))
    )

    WEBHOOK_BASE_URL: str = os.getenv("WEBHOOK_BASE_URL", "http://localhost:5678/webhook")
    WEBHOOK_TIMEOUT_SECONDS: float = float(os.getenv("WEBHOOK_TIMEOUT_SECONDS", "10"))

    LOW_BALANCE_THRESHOLD: int = int(os.getenv("LOW_BALANCE_THRESHOLD", "10"))
    TRANSACTIONS_PAGE_MAX: int = int(os.getenv("TRANSACTIONS_PAGE_MAX", "100"))

    def webhook_url(self, service: str) -> str:
        override = os.getenv(f"WEBHOOK_URL_{service.upper()}")
        if override:
            return override
        slug = WEBHOOK_SLUGS.get(service, service)
        return f"{self.WEBHOOK_BASE_URL.rstrip('/')}/{slug}"


settings = Settings()
