import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from core.entities.user import ROLES, STATUSES, User
from core.errors import NotFoundError, PermissionDeniedError, ValidationFailureError
from core.repositories.activity_repository import ActivityRepository
from core.repositories.admin_log_repository import AdminLogRepository
from core.repositories.onboarding_repository import OnboardingRepository
from core.repositories.payment_repository import PaymentRepository
from core.repositories.user_repository import UserRepository
from core.repositories.wallet_repository import WalletRepository

logger = logging.getLogger(__name__)


@dataclass
class AdminStats:
    total_users: int
    active_users: int
    total_revenue: int
    total_ixp_credits: int
    completed_onboardings: int
    active_automations: int


def require_admin(user: User) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Admin access required")
    return user


def list_users(users: UserRepository, admin: User, limit: int = 100, offset: int = 0) -> List[User]:
    require_admin(admin)
    return users.list_users(limit=limit, offset=offset)


def get_user(users: UserRepository, admin: User, user_id: int) -> User:
    require_admin(admin)
    user = users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def update_user(users: UserRepository, log: AdminLogRepository, admin: User, user_id: int,
                role: Optional[str] = None, status: Optional[str] = None) -> User:
    target = get_user(users, admin, user_id)
    changes: Dict[str, Any] = {}
    if role is not None and role != target.role:
        if role not in ROLES:
            raise ValidationFailureError(f"Invalid role: {role}", field="role")
        changes["role"] = role
    if status is not None and status != target.status:
        if status not in STATUSES:
            raise ValidationFailureError(f"Invalid status: {status}", field="status")
        changes["status"] = status
    if not changes:
        return target
    if target.id == admin.id:
        raise PermissionDeniedError("Admins cannot change their own role or status")

    updated = users.update_user(target.id, changes)
    log.log_action(admin.id, "update_user", target.id, changes)
    logger.info("admin=%s updated user=%s %s", admin.id, target.id, changes)
    return updated


def delete_user(users: UserRepository, log: AdminLogRepository, admin: User, user_id: int) -> None:
    target = get_user(users, admin, user_id)
    if target.id == admin.id:
        raise PermissionDeniedError("Admins cannot delete themselves")
    users.delete_user(target.id)
    log.log_action(admin.id, "delete_user", target.id, {"email": target.email})
    logger.info("admin=%s deleted user=%s", admin.id, target.id)


def admin_stats(admin: User, users: UserRepository, wallets: WalletRepository, onboarding: OnboardingRepository,
                payments: PaymentRepository, activity: ActivityRepository) -> AdminStats:
    require_admin(admin)
    return AdminStats(
        total_users=users.count_users(),
        active_users=users.count_users(status="active"),
        total_revenue=payments.total_revenue(),
        total_ixp_credits=wallets.total_balance(),
        completed_onboardings=onboarding.count_completed(),
        active_automations=activity.count_interactions(status="success"),
    )


def list_actions(log: AdminLogRepository, admin: User, limit: int = 100) -> List[Dict[str, Any]]:
    require_admin(admin)
    return log.list_actions(limit=limit)
