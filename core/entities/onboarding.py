from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class OnboardingAnswers:
    business_type: str = ""
    industry: str = ""
    company_size: str = ""
    timeline: str = ""
    annual_revenue: Optional[str] = None
    budget_range: Optional[str] = None
    additional_info: Optional[str] = None
    business_goals: List[str] = field(default_factory=list)
    pain_points: List[str] = field(default_factory=list)
    current_tools: List[str] = field(default_factory=list)


@dataclass
class OnboardingRecord:
    id: Optional[int]
    user_id: int
    answers: OnboardingAnswers
    onboarding_completed: bool
    created_at: str
    updated_at: str
