import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from core.entities.activity import Interaction, Submission
from core.entities.onboarding import OnboardingAnswers, OnboardingRecord
from core.entities.payment import PaymentRecord
from core.entities.session import Session
from core.entities.transaction import Direction, Transaction
from core.entities.user import User
from core.entities.wallet import Wallet
from core.errors import ConflictError, InsufficientBalanceError, NotFoundError
from core.repositories.activity_repository import ActivityRepository, DraftRepository
from core.repositories.admin_log_repository import AdminLogRepository
from core.repositories.onboarding_repository import OnboardingRepository
from core.repositories.payment_repository import PaymentRepository
from core.repositories.table_store import Row, TableStore
from core.repositories.user_repository import SessionRepository, UserRepository
from core.repositories.wallet_repository import WalletRepository


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StoreUserRepository(UserRepository, SessionRepository):
    def __init__(self, store: TableStore):
        self.store = store

    def _row_to_user(self, row: Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            full_name=row["full_name"],
            business_name=row["business_name"],
            website=row["website"],
            phone=row["phone"],
            role=row["role"],
            status=row["status"],
            created_at=row["created_at"],
        )

    def create_user(self, email: str, password_hash: str, full_name: str, business_name: str,
                    website: Optional[str] = None, phone: Optional[str] = None, role: str = "user") -> User:
        try:
            row = self.store.insert("users", {
                "email": email,
                "password_hash": password_hash,
                "full_name": full_name,
                "business_name": business_name,
                "website": website,
                "phone": phone,
                "role": role,
                "status": "active",
                "created_at": utc_now(),
            })
        except sqlite3.IntegrityError as e:
            raise ConflictError("User with this email already exists") from e
        return self._row_to_user(row)

    def get_by_email(self, email: str) -> Optional[User]:
        row = self.store.select_one("users", {"email": email})
        return self._row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        row = self.store.select_one("users", {"id": int(user_id)})
        return self._row_to_user(row) if row else None

    def list_users(self, limit: int = 100, offset: int = 0) -> List[User]:
        rows = self.store.select("users", order_by="id", descending=True, limit=limit, offset=offset)
        return [self._row_to_user(r) for r in rows]

    def update_user(self, user_id: int, fields: Dict[str, Any]) -> User:
        if self.store.update("users", fields, {"id": int(user_id)}) == 0:
            raise NotFoundError("User not found")
        user = self.get_by_id(user_id)
        assert user is not None
        return user

    def delete_user(self, user_id: int) -> None:
        if self.store.delete("users", {"id": int(user_id)}) == 0:
            raise NotFoundError("User not found")

    def count_users(self, status: Optional[str] = None) -> int:
        return self.store.count("users", {"status": status} if status else None)

    # сессии
    def create_session(self, session: Session) -> Session:
        self.store.insert("sessions", {
            "id": session.id,
            "user_id": session.user_id,
            "issued_at": session.issued_at,
            "expires_at": session.expires_at,
            "revoked_at": session.revoked_at,
        })
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        row = self.store.select_one("sessions", {"id": session_id})
        if row is None:
            return None
        return Session(
            id=row["id"],
            user_id=row["user_id"],
            issued_at=row["issued_at"],
            expires_at=row["expires_at"],
            revoked_at=row["revoked_at"],
        )

    def revoke_session(self, session_id: str, revoked_at: str) -> None:
        self.store.update("sessions", {"revoked_at": revoked_at}, {"id": session_id})


class StoreWalletRepository(WalletRepository):
    def __init__(self, store: TableStore):
        self.store = store

    def _row_to_wallet(self, row: Row) -> Wallet:
        return Wallet(
            id=row["id"],
            user_id=row["user_id"],
            balance=int(row["balance"]),
            total_credited=int(row["total_credited"]),
            total_spent=int(row["total_spent"]),
            subscription_tier=row["subscription_tier"],
            monthly_allowance=int(row["monthly_allowance"]),
            last_allowance_at=row["last_allowance_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _row_to_tx(self, row: Row) -> Transaction:
        return Transaction(
            id=row["id"],
            wallet_id=row["wallet_id"],
            user_id=row["user_id"],
            direction=row["direction"],
            kind=row["kind"],
            amount=int(row["amount"]),
            description=row["description"],
            service_tag=row["service_tag"],
            balance_after=int(row["balance_after"]),
            created_at=row["created_at"],
        )

    def _get(self, wallet_id: int) -> Wallet:
        row = self.store.select_one("wallets", {"id": int(wallet_id)})
        if row is None:
            raise NotFoundError("Wallet not found")
        return self._row_to_wallet(row)

    def get_by_user(self, user_id: int) -> Optional[Wallet]:
        row = self.store.select_one("wallets", {"user_id": int(user_id)})
        return self._row_to_wallet(row) if row else None

    def create_wallet(self, user_id: int, tier: str, monthly_allowance: int, description: str) -> Wallet:
        now = utc_now()
        with self.store.transaction():
            try:
                row = self.store.insert("wallets", {
                    "user_id": int(user_id),
                    "balance": monthly_allowance,
                    "total_credited": monthly_allowance,
                    "total_spent": 0,
                    "subscription_tier": tier,
                    "monthly_allowance": monthly_allowance,
                    "last_allowance_at": now,
                    "created_at": now,
                    "updated_at": now,
                })
            except sqlite3.IntegrityError as e:
                raise ConflictError("Wallet already exists") from e
            if monthly_allowance > 0:
                self.store.insert("wallet_transactions", {
                    "wallet_id": row["id"],
                    "user_id": int(user_id),
                    "direction": Direction.CREDIT.value,
                    "kind": "allowance",
                    "amount": monthly_allowance,
                    "description": description,
                    "service_tag": None,
                    "balance_after": monthly_allowance,
                    "created_at": now,
                })
        return self._row_to_wallet(row)

    def apply_adjustment(self, wallet_id: int, direction: str, kind: str, amount: int, description: str,
                         service_tag: Optional[str] = None,
                         allowance_at: Optional[str] = None) -> Tuple[Wallet, Transaction]:
        now = utc_now()
        values: Dict[str, Any] = {"updated_at": now}
        if allowance_at:
            values["last_allowance_at"] = allowance_at

        if direction == Direction.CREDIT.value:
            increments = {"balance": amount, "total_credited": amount}
            guards = None
        else:
            # условное списание: UPDATE ... WHERE balance >= amount
            increments = {"balance": -amount, "total_spent": amount}
            guards = {"balance": amount}

        with self.store.transaction():
            if self.store.update("wallets", values, {"id": int(wallet_id)}, increments, guards) == 0:
                current = self._get(wallet_id)
                raise InsufficientBalanceError(required=amount, available=current.balance)
            wallet = self._get(wallet_id)
            tx_row = self.store.insert("wallet_transactions", {
                "wallet_id": wallet.id,
                "user_id": wallet.user_id,
                "direction": direction,
                "kind": kind,
                "amount": amount,
                "description": description,
                "service_tag": service_tag,
                "balance_after": wallet.balance,
                "created_at": now,
            })
        return wallet, self._row_to_tx(tx_row)

    def update_tier(self, wallet_id: int, tier: str, monthly_allowance: int) -> Wallet:
        self.store.update(
            "wallets",
            {"subscription_tier": tier, "monthly_allowance": monthly_allowance, "updated_at": utc_now()},
            {"id": int(wallet_id)},
        )
        return self._get(wallet_id)

    def list_transactions(self, user_id: int, limit: int = 100, offset: int = 0) -> List[Transaction]:
        rows = self.store.select("wallet_transactions", {"user_id": int(user_id)},
                                 order_by="id", descending=True, limit=limit, offset=offset)
        return [self._row_to_tx(r) for r in rows]

    def ledger(self, wallet_id: int) -> List[Transaction]:
        rows = self.store.select("wallet_transactions", {"wallet_id": int(wallet_id)}, order_by="id")
        return [self._row_to_tx(r) for r in rows]

    def total_balance(self) -> int:
        return self.store.total("wallets", "balance")


class StoreOnboardingRepository(OnboardingRepository):
    def __init__(self, store: TableStore):
        self.store = store

    def _row_to_record(self, row: Row) -> OnboardingRecord:
        answers = OnboardingAnswers(
            business_type=row["business_type"],
            industry=row["industry"],
            company_size=row["company_size"],
            timeline=row["timeline"],
            annual_revenue=row["annual_revenue"],
            budget_range=row["budget_range"],
            additional_info=row["additional_info"],
            business_goals=list(row["business_goals"] or []),
            pain_points=list(row["pain_points"] or []),
            current_tools=list(row["current_tools"] or []),
        )
        return OnboardingRecord(
            id=row["id"],
            user_id=row["user_id"],
            answers=answers,
            onboarding_completed=bool(row["onboarding_completed"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def get_by_user(self, user_id: int) -> Optional[OnboardingRecord]:
        row = self.store.select_one("business_onboarding", {"user_id": int(user_id)})
        return self._row_to_record(row) if row else None

    def upsert(self, user_id: int, answers: OnboardingAnswers, completed: bool = True) -> OnboardingRecord:
        now = utc_now()
        values = {
            "business_type": answers.business_type,
            "industry": answers.industry,
            "company_size": answers.company_size,
            "annual_revenue": answers.annual_revenue,
            "business_goals": answers.business_goals,
            "pain_points": answers.pain_points,
            "current_tools": answers.current_tools,
            "budget_range": answers.budget_range,
            "timeline": answers.timeline,
            "additional_info": answers.additional_info,
            "onboarding_completed": completed,
            "updated_at": now,
        }
        with self.store.transaction():
            if self.store.update("business_onboarding", values, {"user_id": int(user_id)}) == 0:
                self.store.insert("business_onboarding", {"user_id": int(user_id), "created_at": now, **values})
        record = self.get_by_user(user_id)
        assert record is not None
        return record

    def count_completed(self) -> int:
        return self.store.count("business_onboarding", {"onboarding_completed": True})


class StoreActivityRepository(ActivityRepository, DraftRepository):
    def __init__(self, store: TableStore):
        self.store = store

    def add_submission(self, user_id: int, request_type: str, request_details: str, service: str,
                       response_data: Optional[Dict[str, Any]], status: str) -> Submission:
        row = self.store.insert("submissions", {
            "user_id": int(user_id),
            "request_type": request_type,
            "request_details": request_details,
            "service": service,
            "response_data": response_data,
            "status": status,
            "created_at": utc_now(),
        })
        return Submission(**row)

    def add_interaction(self, user_id: int, action: str, service: str, request_data: Optional[Dict[str, Any]],
                        response_data: Optional[Dict[str, Any]], status: str) -> Interaction:
        row = self.store.insert("interactions", {
            "user_id": int(user_id),
            "action": action,
            "service": service,
            "request_data": request_data,
            "response_data": response_data,
            "status": status,
            "created_at": utc_now(),
        })
        return Interaction(**row)

    def list_submissions(self, user_id: int, limit: int = 100) -> List[Submission]:
        rows = self.store.select("submissions", {"user_id": int(user_id)}, order_by="id", descending=True, limit=limit)
        return [Submission(**r) for r in rows]

    def list_interactions(self, user_id: int, limit: int = 100) -> List[Interaction]:
        rows = self.store.select("interactions", {"user_id": int(user_id)}, order_by="id", descending=True, limit=limit)
        return [Interaction(**r) for r in rows]

    def count_interactions(self, status: Optional[str] = None) -> int:
        return self.store.count("interactions", {"status": status} if status else None)

    # черновики
    def save_draft(self, user_id: int, name: str, data: Dict[str, Any]) -> Dict[str, Any]:
        now = utc_now()
        payload = {**data, "lastUpdated": now}
        with self.store.transaction():
            updated = self.store.update("drafts", {"data": payload, "updated_at": now},
                                        {"user_id": int(user_id), "name": name})
            if updated == 0:
                self.store.insert("drafts", {"user_id": int(user_id), "name": name, "data": payload, "updated_at": now})
        return payload

    def load_draft(self, user_id: int, name: str) -> Optional[Dict[str, Any]]:
        row = self.store.select_one("drafts", {"user_id": int(user_id), "name": name})
        return row["data"] if row else None

    def clear_draft(self, user_id: int, name: str) -> None:
        self.store.delete("drafts", {"user_id": int(user_id), "name": name})


class StorePaymentRepository(PaymentRepository):
    def __init__(self, store: TableStore):
        self.store = store

    def add_payment(self, user_id: int, amount_usd: int, description: str, transaction_ref: str,
                    subscription_tier: Optional[str] = None,
                    ixp_credits_purchased: Optional[int] = None) -> PaymentRecord:
        row = self.store.insert("payment_history", {
            "user_id": int(user_id),
            "amount_usd": int(amount_usd),
            "currency": "USD",
            "payment_method": "credit_card",
            "payment_status": "completed",
            "description": description,
            "transaction_ref": transaction_ref,
            "subscription_tier": subscription_tier,
            "ixp_credits_purchased": ixp_credits_purchased,
            "created_at": utc_now(),
        })
        return PaymentRecord(**row)

    def list_payments(self, user_id: int, limit: int = 50) -> List[PaymentRecord]:
        rows = self.store.select("payment_history", {"user_id": int(user_id)},
                                 order_by="id", descending=True, limit=limit)
        return [PaymentRecord(**r) for r in rows]

    def total_revenue(self) -> int:
        return self.store.total("payment_history", "amount_usd", {"payment_status": "completed"})


class StoreAdminLogRepository(AdminLogRepository):
    def __init__(self, store: TableStore):
        self.store = store

    def log_action(self, admin_id: int, action: str, target_user_id: Optional[int],
                   details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.store.insert("admin_actions", {
            "admin_id": int(admin_id),
            "action": action,
            "target_user_id": target_user_id,
            "details": details,
            "created_at": utc_now(),
        })

    def list_actions(self, limit: int = 100) -> List[Dict[str, Any]]:
        return self.store.select("admin_actions", order_by="id", descending=True, limit=limit)
