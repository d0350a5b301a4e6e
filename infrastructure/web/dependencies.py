import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, status
from jose import JWTError, jwt

from config.settings import settings
from core.entities.session import Session
from core.entities.user import User
from core.errors import (
    AuthenticationError, ConflictError, DomainError, InsufficientBalanceError, NotFoundError,
    PermissionDeniedError, RemoteFailureError, ValidationFailureError,
)
from core.services.automation_dispatcher import AutomationDispatcher
from core.services.payment_provider import PaymentProvider
from core.use_cases.chat_use_cases import ChatBot
from core.use_cases.user_use_cases import resolve_session
from core.use_cases.wallet_use_cases import WalletLedger
from infrastructure.automation.webhook_client import WebhookAutomationDispatcher
from infrastructure.db.repositories import (
    StoreActivityRepository, StoreAdminLogRepository, StoreOnboardingRepository, StorePaymentRepository,
    StoreUserRepository, StoreWalletRepository,
)
from infrastructure.db.sqlite import SQLiteTableStore, connect
from infrastructure.payments.stub_provider import StubPaymentProvider

# доменная ошибка -> HTTP статус
ERROR_STATUS = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InsufficientBalanceError, status.HTTP_402_PAYMENT_REQUIRED),
    (RemoteFailureError, status.HTTP_502_BAD_GATEWAY),
    (ValidationFailureError, 422),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
)


def http_error(error: DomainError) -> HTTPException:
    for cls, code in ERROR_STATUS:
        if isinstance(error, cls):
            headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
            return HTTPException(status_code=code, detail=str(error), headers=headers)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def get_db():
    conn = connect(settings.DB_PATH)
    try:
        yield conn
    finally:
        conn.close()


def get_store(conn: sqlite3.Connection = Depends(get_db)) -> SQLiteTableStore:
    return SQLiteTableStore(conn)


def get_user_repo(store: SQLiteTableStore = Depends(get_store)) -> StoreUserRepository:
    return StoreUserRepository(store)


def get_wallet_repo(store: SQLiteTableStore = Depends(get_store)) -> StoreWalletRepository:
    return StoreWalletRepository(store)


def get_onboarding_repo(store: SQLiteTableStore = Depends(get_store)) -> StoreOnboardingRepository:
    return StoreOnboardingRepository(store)


def get_activity_repo(store: SQLiteTableStore = Depends(get_store)) -> StoreActivityRepository:
    return StoreActivityRepository(store)


def get_payment_repo(store: SQLiteTableStore = Depends(get_store)) -> StorePaymentRepository:
    return StorePaymentRepository(store)


def get_admin_log_repo(store: SQLiteTableStore = Depends(get_store)) -> StoreAdminLogRepository:
    return StoreAdminLogRepository(store)


def get_ledger(
    users: StoreUserRepository = Depends(get_user_repo),
    wallets: StoreWalletRepository = Depends(get_wallet_repo),
) -> WalletLedger:
    return WalletLedger(users, wallets, low_balance_threshold=settings.LOW_BALANCE_THRESHOLD)


# используем любой PaymentProvider, пока что - заглушка
def get_payment_provider() -> PaymentProvider:
    return StubPaymentProvider()


def get_dispatcher() -> AutomationDispatcher:
    return WebhookAutomationDispatcher()


_chatbot = ChatBot()


def get_chatbot() -> ChatBot:
    return _chatbot


# jwt авторизация; sid связывает токен с серверной сессией
def create_access_token(session: Session) -> str:
    to_encode = {
        "sub": str(session.user_id),
        "sid": session.id,
        "exp": datetime.fromisoformat(session.expires_at),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return authorization.split(" ", 1)[1]


def get_token_claims(token: str = Depends(get_bearer_token)) -> Dict[str, Any]:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        sub = payload.get("sub")
        sid = payload.get("sid")
        if sub is None or sid is None:
            raise credentials_exception
        return {"user_id": int(sub), "session_id": str(sid)}
    except (JWTError, ValueError):
        raise credentials_exception


def get_current_user(
    claims: Dict[str, Any] = Depends(get_token_claims),
    repo: StoreUserRepository = Depends(get_user_repo),
) -> User:
    try:
        return resolve_session(repo, repo, claims["session_id"], claims["user_id"], now=datetime.now(timezone.utc))
    except AuthenticationError as e:
        raise http_error(e)
