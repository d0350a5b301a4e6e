from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from pydantic import BaseModel, EmailStr

from config.settings import settings
from core.entities.user import User
from core.errors import DomainError
from core.use_cases.onboarding_use_cases import has_completed_onboarding
from core.use_cases.user_use_cases import authenticate_user, end_session, register_user, start_session
from infrastructure.db.repositories import StoreOnboardingRepository, StoreUserRepository
from infrastructure.web.dependencies import (
    create_access_token, get_current_user, get_onboarding_repo, get_token_claims, get_user_repo, http_error,
)

router = APIRouter(prefix="", tags=["auth"])

basic_security = HTTPBasic()


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: str
    business_name: str
    website: Optional[str] = None
    phone: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    full_name: str
    business_name: str
    website: Optional[str] = None
    phone: Optional[str] = None
    role: str
    status: str
    is_admin: bool
    created_at: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: str
    onboarding_completed: bool
    next: str  # dashboard | onboarding


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        business_name=user.business_name,
        website=user.website,
        phone=user.phone,
        role=user.role,
        status=user.status,
        is_admin=user.is_admin,
        created_at=user.created_at,
    )


@router.post("/register", response_model=UserResponse, status_code=201)
def register(payload: RegisterRequest, repo: StoreUserRepository = Depends(get_user_repo)):
    try:
        user = register_user(
            repo,
            email=payload.email,
            password=payload.password,
            full_name=payload.full_name,
            business_name=payload.business_name,
            website=payload.website,
            phone=payload.phone,
        )
    except DomainError as e:
        raise http_error(e)
    return to_user_response(user)


@router.post("/login", response_model=TokenResponse)
def login(
    credentials: HTTPBasicCredentials = Depends(basic_security),
    repo: StoreUserRepository = Depends(get_user_repo),
    onboarding: StoreOnboardingRepository = Depends(get_onboarding_repo),
):
    try:
        user = authenticate_user(repo, email=credentials.username, password=credentials.password)
    except DomainError as e:
        raise http_error(e)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Basic"},
        )
    session = start_session(repo, user, settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    completed = has_completed_onboarding(onboarding, user.id)
    return TokenResponse(
        access_token=create_access_token(session),
        expires_at=session.expires_at,
        onboarding_completed=completed,
        next="dashboard" if completed else "onboarding",
    )


@router.post("/logout", status_code=204)
def logout(
    claims: Dict[str, Any] = Depends(get_token_claims),
    current_user: User = Depends(get_current_user),
    repo: StoreUserRepository = Depends(get_user_repo),
):
    end_session(repo, claims["session_id"])


@router.get("/me", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return to_user_response(current_user)
