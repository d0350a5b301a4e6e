import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from passlib.context import CryptContext

from core.entities.session import Session
from core.entities.user import User
from core.errors import AuthenticationError, ConflictError, ValidationFailureError
from core.repositories.user_repository import SessionRepository, UserRepository

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _required(value: Optional[str], field: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationFailureError(f"Please input your {label}!", field=field)
    return value


def register_user(repo: UserRepository, email: str, password: str, full_name: str, business_name: str,
                  website: Optional[str] = None, phone: Optional[str] = None, role: str = "user") -> User:
    email = _required(email, "email", "email").lower()
    full_name = _required(full_name, "full_name", "full name")
    business_name = _required(business_name, "business_name", "business name")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationFailureError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters!", field="password"
        )

    existing = repo.get_by_email(email)
    if existing is not None:
        raise ConflictError("An account with this email already exists")
    password_hash = get_password_hash(password)
    user = repo.create_user(
        email=email,
        password_hash=password_hash,
        full_name=full_name,
        business_name=business_name,
        website=(website or "").strip() or None,
        phone=(phone or "").strip() or None,
        role=role,
    )
    logger.info("user registered id=%s", user.id)
    return user


def authenticate_user(repo: UserRepository, email: str, password: str) -> Optional[User]:
    email = email.strip().lower()
    user = repo.get_by_email(email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    if not user.is_active:
        raise AuthenticationError(f"Account is {user.status}")
    return user


def start_session(repo: SessionRepository, user: User, ttl_minutes: int,
                  now: Optional[datetime] = None) -> Session:
    issued = now or datetime.now(timezone.utc)
    session = Session(
        id=uuid4().hex,
        user_id=user.id,
        issued_at=issued.isoformat(),
        expires_at=(issued + timedelta(minutes=ttl_minutes)).isoformat(),
    )
    repo.create_session(session)
    logger.info("session started user=%s sid=%s", user.id, session.id)
    return session


def end_session(repo: SessionRepository, session_id: str) -> None:
    repo.revoke_session(session_id, datetime.now(timezone.utc).isoformat())
    logger.info("session revoked sid=%s", session_id)


def resolve_session(users: UserRepository, sessions: SessionRepository, session_id: str, user_id: int,
                    now: Optional[datetime] = None) -> User:
    session = sessions.get_session(session_id)
    if session is None or session.user_id != user_id:
        raise AuthenticationError("Unknown session")
    if not session.is_valid(now or datetime.now(timezone.utc)):
        raise AuthenticationError("Session expired or signed out")
    user = users.get_by_id(user_id)
    if user is None:
        raise AuthenticationError("Unknown session")
    if not user.is_active:
        raise AuthenticationError(f"Account is {user.status}")
    return user


def ensure_admin(repo: UserRepository, email: str, password: str, full_name: str = "Administrator",
                 business_name: str = "R1 AI") -> User:
    """Создаёт администратора или повышает существующий аккаунт. Повторный вызов ничего не меняет"""
    email = _required(email, "email", "email").lower()
    user = repo.get_by_email(email)
    if user is None:
        user = register_user(repo, email, password, full_name, business_name, role="admin")
        logger.info("admin account created id=%s", user.id)
        return user
    if user.role != "admin" or not user.is_active:
        user = repo.update_user(user.id, {"role": "admin", "status": "active"})
        logger.info("account promoted to admin id=%s", user.id)
    return user
