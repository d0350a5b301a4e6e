import itertools
import json

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config.settings import settings
from core.use_cases.user_use_cases import register_user
from core.use_cases.wallet_use_cases import WalletLedger, WalletLocks
from infrastructure.automation.webhook_client import WebhookAutomationDispatcher
from infrastructure.db.repositories import (
    StoreActivityRepository, StoreAdminLogRepository, StoreOnboardingRepository, StorePaymentRepository,
    StoreUserRepository, StoreWalletRepository,
)
from infrastructure.db.sqlite import SQLiteTableStore, connect, init_db
from infrastructure.web.dependencies import get_dispatcher
from main import app

PASSWORD = "secret123"


class FakeWebhook:
    """Запоминает вызовы и отвечает заданным статусом"""
    def __init__(self):
        self.calls = []
        self.status_code = 200
        self.body = {"ok": True, "workflow": "started"}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((str(request.url), json.loads(request.content)))
        return httpx.Response(self.status_code, json=self.body)


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = str(tmp_path / "test.db")
    init_db(path)
    monkeypatch.setattr(settings, "DB_PATH", path)
    return path


@pytest.fixture
def store(db_path):
    conn = connect(db_path)
    yield SQLiteTableStore(conn)
    conn.close()


@pytest.fixture
def users(store):
    return StoreUserRepository(store)


@pytest.fixture
def wallets(store):
    return StoreWalletRepository(store)


@pytest.fixture
def onboarding(store):
    return StoreOnboardingRepository(store)


@pytest.fixture
def activity(store):
    return StoreActivityRepository(store)


@pytest.fixture
def payments(store):
    return StorePaymentRepository(store)


@pytest.fixture
def admin_log(store):
    return StoreAdminLogRepository(store)


@pytest.fixture
def ledger(users, wallets):
    return WalletLedger(users, wallets, locks=WalletLocks())


@pytest.fixture
def make_user(users):
    counter = itertools.count(1)

    def _make(role="user", email=None):
        n = next(counter)
        return register_user(
            users,
            email=email or f"user{n}@example.com",
            password=PASSWORD,
            full_name=f"User {n}",
            business_name=f"Business {n}",
            role=role,
        )

    return _make


@pytest.fixture
def webhook():
    return FakeWebhook()


@pytest.fixture
def dispatcher(webhook):
    return WebhookAutomationDispatcher(timeout=5, transport=httpx.MockTransport(webhook.handler))


@pytest_asyncio.fixture
async def client(db_path, dispatcher):
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.pop(get_dispatcher, None)
