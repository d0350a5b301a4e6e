import logging
from typing import Dict, List

from core.entities.onboarding import OnboardingAnswers, OnboardingRecord
from core.errors import NotFoundError, ValidationFailureError
from core.repositories.onboarding_repository import OnboardingRepository
from core.use_cases.insight_use_cases import BusinessInsights, generate_insights

logger = logging.getLogger(__name__)

# варианты ответов анкеты
OPTIONS: Dict[str, List[str]] = {
    "business_type": [
        "Sole Proprietorship", "Partnership", "LLC", "Corporation", "Non-profit", "Startup", "Other",
    ],
    "industry": [
        "Technology", "Healthcare", "Finance", "Retail", "Manufacturing", "Education",
        "Real Estate", "Consulting", "Marketing", "Food & Beverage", "Other",
    ],
    "company_size": ["1-5", "6-10", "11-50", "51+"],
    "annual_revenue": ["Under $25K", "$25K-$50K", "$50K-$100K", "$100K+"],
    "budget_range": ["Under $500", "$500-$1000", "$1000+"],
    "business_goals": [
        "Increase Revenue", "Improve Marketing", "Scale Operations", "Reduce Costs",
        "Automate repetitive tasks", "Improve financial management", "Better customer service",
        "Streamline workflows", "Data analysis & reporting", "Team productivity",
    ],
    "pain_points": [
        "Manual bookkeeping", "Tax compliance", "Time management", "Process inefficiencies",
        "Payroll management", "Manual data entry", "Poor communication", "Data silos", "Limited reporting",
    ],
    "current_tools": [
        "Excel/Google Sheets", "QuickBooks", "CRM", "Salesforce", "HubSpot", "Slack",
        "Trello/Asana", "Zapier", "Custom software", "Other",
    ],
    "timeline": [
        "Immediate (within 1 month)", "Short-term (1-3 months)",
        "Medium-term (3-6 months)", "Long-term (6+ months)",
    ],
}

REQUIRED_TEXT = {
    "business_type": "Please select your business type!",
    "industry": "Please select your industry!",
    "company_size": "Please select your company size!",
    "timeline": "Please select your timeline!",
}
REQUIRED_LISTS = {
    "business_goals": "Please select at least one business goal!",
    "pain_points": "Please select at least one pain point!",
}


def validate_answers(answers: OnboardingAnswers) -> OnboardingAnswers:
    for name, message in REQUIRED_TEXT.items():
        value = (getattr(answers, name) or "").strip()
        if not value:
            raise ValidationFailureError(message, field=name)
        setattr(answers, name, value)
    for name, message in REQUIRED_LISTS.items():
        if not [item for item in getattr(answers, name) if item and item.strip()]:
            raise ValidationFailureError(message, field=name)
    for name in ("business_goals", "pain_points", "current_tools"):
        setattr(answers, name, [item.strip() for item in getattr(answers, name) if item and item.strip()])
    return answers


def submit_onboarding(repo: OnboardingRepository, user_id: int, answers: OnboardingAnswers) -> OnboardingRecord:
    answers = validate_answers(answers)
    record = repo.upsert(user_id, answers, completed=True)
    logger.info("onboarding saved user=%s", user_id)
    return record


def get_onboarding(repo: OnboardingRepository, user_id: int) -> OnboardingRecord:
    record = repo.get_by_user(user_id)
    if record is None:
        raise NotFoundError("Business onboarding not found")
    return record


def has_completed_onboarding(repo: OnboardingRepository, user_id: int) -> bool:
    record = repo.get_by_user(user_id)
    return bool(record and record.onboarding_completed)


def get_insights(repo: OnboardingRepository, user_id: int) -> BusinessInsights:
    record = get_onboarding(repo, user_id)
    return generate_insights(record.answers)
