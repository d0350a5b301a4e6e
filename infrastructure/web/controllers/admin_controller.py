from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.entities.user import User
from core.errors import DomainError
from core.use_cases import admin_use_cases as admin
from infrastructure.db.repositories import (
    StoreActivityRepository, StoreAdminLogRepository, StoreOnboardingRepository, StorePaymentRepository,
    StoreUserRepository, StoreWalletRepository,
)
from infrastructure.web.controllers.auth_controller import UserResponse, to_user_response
from infrastructure.web.dependencies import (
    get_activity_repo, get_admin_log_repo, get_current_user, get_onboarding_repo, get_payment_repo,
    get_user_repo, get_wallet_repo, http_error,
)

router = APIRouter(prefix="/admin", tags=["admin"])


class AdminUserUpdate(BaseModel):
    role: Optional[str] = None    # user | admin
    status: Optional[str] = None  # active | inactive | suspended


class AdminStatsResponse(BaseModel):
    total_users: int
    active_users: int
    total_revenue: int
    total_ixp_credits: int
    completed_onboardings: int
    active_automations: int


class AdminActionItem(BaseModel):
    id: int
    admin_id: int
    action: str
    target_user_id: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    created_at: str


@router.get("/users", response_model=List[UserResponse])
def list_users(
    limit: int = 100,
    offset: int = 0,
    current_user: User = Depends(get_current_user),
    users: StoreUserRepository = Depends(get_user_repo),
):
    try:
        found = admin.list_users(users, current_user, limit=max(1, min(500, int(limit))), offset=max(0, int(offset)))
    except DomainError as e:
        raise http_error(e)
    return [to_user_response(u) for u in found]


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    users: StoreUserRepository = Depends(get_user_repo),
):
    try:
        return to_user_response(admin.get_user(users, current_user, user_id))
    except DomainError as e:
        raise http_error(e)


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    current_user: User = Depends(get_current_user),
    users: StoreUserRepository = Depends(get_user_repo),
    log: StoreAdminLogRepository = Depends(get_admin_log_repo),
):
    try:
        updated = admin.update_user(users, log, current_user, user_id, role=payload.role, status=payload.status)
    except DomainError as e:
        raise http_error(e)
    return to_user_response(updated)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    users: StoreUserRepository = Depends(get_user_repo),
    log: StoreAdminLogRepository = Depends(get_admin_log_repo),
):
    try:
        admin.delete_user(users, log, current_user, user_id)
    except DomainError as e:
        raise http_error(e)


@router.get("/stats", response_model=AdminStatsResponse)
def stats(
    current_user: User = Depends(get_current_user),
    users: StoreUserRepository = Depends(get_user_repo),
    wallets: StoreWalletRepository = Depends(get_wallet_repo),
    onboarding: StoreOnboardingRepository = Depends(get_onboarding_repo),
    payments: StorePaymentRepository = Depends(get_payment_repo),
    activity: StoreActivityRepository = Depends(get_activity_repo),
):
    try:
        result = admin.admin_stats(current_user, users, wallets, onboarding, payments, activity)
    except DomainError as e:
        raise http_error(e)
    return AdminStatsResponse(**asdict(result))


@router.get("/actions", response_model=List[AdminActionItem])
def actions(
    limit: int = 100,
    current_user: User = Depends(get_current_user),
    log: StoreAdminLogRepository = Depends(get_admin_log_repo),
):
    try:
        rows = admin.list_actions(log, current_user, limit=max(1, min(500, int(limit))))
    except DomainError as e:
        raise http_error(e)
    return [AdminActionItem(**row) for row in rows]
