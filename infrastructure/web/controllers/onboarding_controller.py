from dataclasses import asdict
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.entities.onboarding import OnboardingAnswers, OnboardingRecord
from core.entities.user import User
from core.errors import DomainError
from core.use_cases.onboarding_use_cases import OPTIONS, get_insights, get_onboarding, submit_onboarding
from infrastructure.db.repositories import StoreOnboardingRepository
from infrastructure.web.dependencies import get_current_user, get_onboarding_repo, http_error

router = APIRouter(prefix="", tags=["onboarding"])


class OnboardingRequest(BaseModel):
    business_type: str
    industry: str
    company_size: str
    timeline: str
    annual_revenue: Optional[str] = None
    budget_range: Optional[str] = None
    additional_info: Optional[str] = None
    business_goals: List[str] = Field(default_factory=list)
    pain_points: List[str] = Field(default_factory=list)
    current_tools: List[str] = Field(default_factory=list)


class OnboardingResponse(OnboardingRequest):
    id: int
    onboarding_completed: bool
    created_at: str
    updated_at: str


class LaggingAreaItem(BaseModel):
    area: str
    severity: str
    description: str


class RecommendationItem(BaseModel):
    title: str
    priority: str
    action: str


class PriorityActionItem(BaseModel):
    action: str
    timeframe: str
    impact: str


class OpportunityItem(BaseModel):
    service: str
    savings: str
    roi: str


class InsightsResponse(BaseModel):
    overall_score: int
    strengths: List[str]
    lagging_areas: List[LaggingAreaItem]
    recommendations: List[RecommendationItem]
    priority_actions: List[PriorityActionItem]
    automation_opportunities: List[OpportunityItem]


def onboarding_response(record: OnboardingRecord) -> OnboardingResponse:
    return OnboardingResponse(
        id=record.id,
        onboarding_completed=record.onboarding_completed,
        created_at=record.created_at,
        updated_at=record.updated_at,
        **asdict(record.answers),
    )


@router.get("/onboarding/options", response_model=Dict[str, List[str]])
def onboarding_options():
    return OPTIONS


@router.post("/onboarding", response_model=OnboardingResponse)
def save_onboarding(
    payload: OnboardingRequest,
    current_user: User = Depends(get_current_user),
    repo: StoreOnboardingRepository = Depends(get_onboarding_repo),
):
    try:
        record = submit_onboarding(repo, current_user.id, OnboardingAnswers(**payload.model_dump()))
    except DomainError as e:
        raise http_error(e)
    return onboarding_response(record)


@router.get("/onboarding", response_model=OnboardingResponse)
def read_onboarding(
    current_user: User = Depends(get_current_user),
    repo: StoreOnboardingRepository = Depends(get_onboarding_repo),
):
    try:
        return onboarding_response(get_onboarding(repo, current_user.id))
    except DomainError as e:
        raise http_error(e)


# 404 - клиент отправляет пользователя на анкету
@router.get("/insights", response_model=InsightsResponse)
def read_insights(
    current_user: User = Depends(get_current_user),
    repo: StoreOnboardingRepository = Depends(get_onboarding_repo),
):
    try:
        insights = get_insights(repo, current_user.id)
    except DomainError as e:
        raise http_error(e)
    return InsightsResponse(**asdict(insights))
