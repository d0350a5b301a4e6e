import pytest

from core.entities.onboarding import OnboardingAnswers
from core.errors import NotFoundError, ValidationFailureError
from core.use_cases.insight_use_cases import DEFAULT_STRENGTH, calculate_score, generate_insights
from core.use_cases.onboarding_use_cases import (
    get_insights, get_onboarding, has_completed_onboarding, submit_onboarding,
)


def make_answers(**overrides) -> OnboardingAnswers:
    values = dict(
        business_type="LLC",
        industry="Technology",
        company_size="1-5",
        timeline="Short-term (1-3 months)",
        business_goals=["Reduce Costs"],
        pain_points=["Data silos"],
    )
    values.update(overrides)
    return OnboardingAnswers(**values)


def test_minimal_answers_score_base():
    assert calculate_score(make_answers(business_goals=[])) == 50


def test_score_adds_brackets():
    answers = make_answers(
        annual_revenue="$50K-$100K",
        company_size="6-10",
        business_goals=["Increase Revenue", "Reduce Costs"],
        current_tools=["QuickBooks"],
        budget_range="$500-$1000",
    )
    assert calculate_score(answers) == 50 + 10 + 5 + 6 + 2 + 5


def test_score_is_clamped_to_100():
    answers = make_answers(
        annual_revenue="$100K+",
        company_size="51+",
        business_goals=["a", "b", "c", "d", "e"],
        current_tools=["a", "b", "c", "d", "e"],
        budget_range="$1000+",
    )
    assert calculate_score(answers) == 100
    assert generate_insights(answers).overall_score == 100


def test_list_contributions_are_capped():
    answers = make_answers(business_goals=["g"] * 9, current_tools=["t"] * 9)
    assert calculate_score(answers) == 50 + 15 + 10


def test_default_strength_when_nothing_matches():
    insights = generate_insights(make_answers())
    assert insights.strengths == [DEFAULT_STRENGTH]


def test_strengths():
    insights = generate_insights(make_answers(
        annual_revenue="$100K+",
        business_goals=["Increase Revenue"],
        current_tools=["CRM", "Slack", "Zapier", "HubSpot"],
    ))
    assert insights.strengths == [
        "Strong revenue foundation",
        "Growth-focused mindset",
        "Technology adoption readiness",
    ]


def test_financial_pain_points():
    insights = generate_insights(make_answers(pain_points=["Manual bookkeeping", "Payroll management"]))

    areas = {a.area: a.severity for a in insights.lagging_areas}
    assert areas["Financial Management"] == "high"
    assert areas["Technology Integration"] == "medium"
    assert [r.title for r in insights.recommendations] == ["Automate Financial Processes"]
    assert [o.service for o in insights.automation_opportunities] == [
        "Automated Bookkeeping", "Payroll Automation",
    ]


def test_crm_recommendation_depends_on_current_tools():
    without_crm = generate_insights(make_answers(business_goals=["Increase Revenue"], current_tools=["Slack"]))
    with_crm = generate_insights(make_answers(business_goals=["Increase Revenue"], current_tools=["CRM"]))

    assert "Customer Relationship Management" in [r.title for r in without_crm.recommendations]
    assert "Customer Relationship Management" not in [r.title for r in with_crm.recommendations]


def test_marketing_and_scaling_signals():
    insights = generate_insights(make_answers(
        company_size="1-5",
        business_goals=["Improve Marketing", "Scale Operations"],
        current_tools=["Slack"],
    ))
    areas = [a.area for a in insights.lagging_areas]
    assert "Marketing Automation" in areas
    assert "Scalability Preparation" in areas
    assert "Marketing Automation" in [r.title for r in insights.recommendations]
    assert [o.service for o in insights.automation_opportunities] == ["Marketing Automation"]


def test_priority_actions_are_always_present():
    insights = generate_insights(make_answers())
    assert len(insights.priority_actions) == 4
    assert insights.priority_actions[0].timeframe == "This week"


def test_insights_are_deterministic():
    answers = make_answers(pain_points=["Time management"], annual_revenue="$25K-$50K")
    assert generate_insights(answers) == generate_insights(answers)


# анкета

def test_submit_and_read_onboarding(onboarding, make_user):
    user = make_user()
    assert not has_completed_onboarding(onboarding, user.id)

    record = submit_onboarding(onboarding, user.id, make_answers(current_tools=[" Slack ", ""]))
    assert record.onboarding_completed
    assert record.answers.current_tools == ["Slack"]
    assert has_completed_onboarding(onboarding, user.id)
    assert get_onboarding(onboarding, user.id).answers.industry == "Technology"


def test_resubmission_updates_existing_record(onboarding, make_user):
    user = make_user()
    first = submit_onboarding(onboarding, user.id, make_answers())
    second = submit_onboarding(onboarding, user.id, make_answers(industry="Retail"))

    assert second.id == first.id
    assert second.answers.industry == "Retail"
    assert onboarding.count_completed() == 1


@pytest.mark.parametrize("overrides, field", [
    ({"business_type": ""}, "business_type"),
    ({"timeline": "  "}, "timeline"),
    ({"business_goals": []}, "business_goals"),
    ({"pain_points": [""]}, "pain_points"),
])
def test_required_answers(onboarding, make_user, overrides, field):
    user = make_user()
    with pytest.raises(ValidationFailureError) as exc:
        submit_onboarding(onboarding, user.id, make_answers(**overrides))
    assert exc.value.field == field
    assert onboarding.get_by_user(user.id) is None


def test_insights_require_onboarding(onboarding, make_user):
    user = make_user()
    with pytest.raises(NotFoundError):
        get_insights(onboarding, user.id)

    submit_onboarding(onboarding, user.id, make_answers(annual_revenue="$100K+"))
    assert get_insights(onboarding, user.id).overall_score == 50 + 15 + 3
