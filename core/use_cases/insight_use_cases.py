"""Оценка бизнеса и рекомендации по ответам онбординга, на таблицах правил"""
from dataclasses import dataclass, field
from typing import Callable, List, Tuple

from core.entities.onboarding import OnboardingAnswers

Condition = Callable[[OnboardingAnswers], bool]


def _value(answers: OnboardingAnswers, name: str):
    value = getattr(answers, name)
    return value if value is not None else ""


def contains(name: str, text: str) -> Condition:
    return lambda a: text in _value(a, name)


def lacks(name: str, text: str) -> Condition:
    return lambda a: text not in _value(a, name)


def fewer_than(name: str, n: int) -> Condition:
    return lambda a: len(_value(a, name)) < n


def more_than(name: str, n: int) -> Condition:
    return lambda a: len(_value(a, name)) > n


def any_of(*conditions: Condition) -> Condition:
    return lambda a: any(c(a) for c in conditions)


def all_of(*conditions: Condition) -> Condition:
    return lambda a: all(c(a) for c in conditions)


# --- score ---

SCORE_BASE = 50
SCORE_MIN, SCORE_MAX = 0, 100


@dataclass(frozen=True)
class BracketRule:
    """Первое совпавшее подстрокой значение даёт прибавку"""
    field: str
    brackets: Tuple[Tuple[str, int], ...]

    def points(self, answers: OnboardingAnswers) -> int:
        text = _value(answers, self.field)
        for needle, delta in self.brackets:
            if needle in text:
                return delta
        return 0


@dataclass(frozen=True)
class CountRule:
    field: str
    per_item: int
    cap: int

    def points(self, answers: OnboardingAnswers) -> int:
        return min(len(_value(answers, self.field)) * self.per_item, self.cap)


SCORE_RULES = (
    BracketRule("annual_revenue", (("$100K+", 15), ("$50K-$100K", 10), ("$25K-$50K", 5))),
    BracketRule("company_size", (("11-50", 10), ("51+", 15), ("6-10", 5))),
    CountRule("business_goals", per_item=3, cap=15),
    CountRule("current_tools", per_item=2, cap=10),
    BracketRule("budget_range", (("$1000+", 10), ("$500-$1000", 5))),
)


def calculate_score(answers: OnboardingAnswers) -> int:
    score = SCORE_BASE + sum(rule.points(answers) for rule in SCORE_RULES)
    return max(SCORE_MIN, min(score, SCORE_MAX))


# --- guidance ---

@dataclass(frozen=True)
class LaggingArea:
    area: str
    severity: str  # high | medium | low
    description: str


@dataclass(frozen=True)
class Recommendation:
    title: str
    priority: str  # high | medium | low
    action: str


@dataclass(frozen=True)
class PriorityAction:
    action: str
    timeframe: str
    impact: str


@dataclass(frozen=True)
class AutomationOpportunity:
    service: str
    savings: str
    roi: str


@dataclass
class BusinessInsights:
    overall_score: int
    strengths: List[str] = field(default_factory=list)
    lagging_areas: List[LaggingArea] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    priority_actions: List[PriorityAction] = field(default_factory=list)
    automation_opportunities: List[AutomationOpportunity] = field(default_factory=list)


DEFAULT_STRENGTH = "Business foundation established"

STRENGTH_RULES: Tuple[Tuple[Condition, str], ...] = (
    (contains("annual_revenue", "$100K+"), "Strong revenue foundation"),
    (contains("company_size", "11+"), "Established team size"),
    (contains("business_goals", "Increase Revenue"), "Growth-focused mindset"),
    (more_than("current_tools", 3), "Technology adoption readiness"),
    (contains("budget_range", "$500+"), "Investment capacity for automation"),
)

LAGGING_RULES: Tuple[Tuple[Condition, LaggingArea], ...] = (
    (
        any_of(contains("pain_points", "Manual bookkeeping"), contains("pain_points", "Tax compliance")),
        LaggingArea("Financial Management", "high",
                    "Manual financial processes are slowing down your business growth and increasing error risk."),
    ),
    (
        any_of(contains("pain_points", "Time management"), contains("pain_points", "Process inefficiencies")),
        LaggingArea("Operational Efficiency", "high",
                    "Inefficient processes are consuming valuable time that could be spent on strategic activities."),
    ),
    (
        all_of(contains("business_goals", "Improve Marketing"), fewer_than("current_tools", 2)),
        LaggingArea("Marketing Automation", "medium",
                    "Limited marketing tools may be restricting your customer acquisition potential."),
    ),
    (
        fewer_than("current_tools", 3),
        LaggingArea("Technology Integration", "medium",
                    "Low technology adoption may be limiting your competitive advantage."),
    ),
    (
        all_of(contains("company_size", "1-5"), contains("business_goals", "Scale Operations")),
        LaggingArea("Scalability Preparation", "low",
                    "Current size may require process optimization before scaling effectively."),
    ),
)

RECOMMENDATION_RULES: Tuple[Tuple[Condition, Recommendation], ...] = (
    (
        contains("pain_points", "Manual bookkeeping"),
        Recommendation("Automate Financial Processes", "high",
                       "Implement automated bookkeeping and expense tracking to save 10+ hours weekly"),
    ),
    (
        all_of(contains("business_goals", "Increase Revenue"), lacks("current_tools", "CRM")),
        Recommendation("Customer Relationship Management", "high",
                       "Set up automated CRM workflows to improve customer retention by 25%"),
    ),
    (
        contains("pain_points", "Time management"),
        Recommendation("Process Automation", "medium",
                       "Automate repetitive tasks to free up 15+ hours per week for strategic work"),
    ),
    (
        contains("business_goals", "Improve Marketing"),
        Recommendation("Marketing Automation", "medium",
                       "Implement email campaigns and social media automation for consistent brand presence"),
    ),
)

PRIORITY_ACTIONS = (
    PriorityAction("Set up automated expense tracking", "This week", "Save 5+ hours weekly on bookkeeping"),
    PriorityAction("Implement payroll automation", "Next 2 weeks", "Eliminate payroll errors and save 3+ hours monthly"),
    PriorityAction("Launch email marketing automation", "Next month", "Increase customer engagement by 40%"),
    PriorityAction("Set up comprehensive reporting dashboard", "Next 6 weeks",
                   "Real-time business insights for better decisions"),
)

OPPORTUNITY_RULES: Tuple[Tuple[Condition, AutomationOpportunity], ...] = (
    (
        contains("pain_points", "Manual bookkeeping"),
        AutomationOpportunity("Automated Bookkeeping", "$2,400/year in accounting costs", "300% ROI in first year"),
    ),
    (
        contains("pain_points", "Payroll management"),
        AutomationOpportunity("Payroll Automation", "$1,800/year in processing time", "250% ROI in first year"),
    ),
    (
        contains("business_goals", "Improve Marketing"),
        AutomationOpportunity("Marketing Automation", "$3,600/year in marketing efficiency", "400% ROI in first year"),
    ),
)


def _matching(rules, answers: OnboardingAnswers) -> list:
    return [item for condition, item in rules if condition(answers)]


def generate_insights(answers: OnboardingAnswers) -> BusinessInsights:
    strengths = _matching(STRENGTH_RULES, answers)
    return BusinessInsights(
        overall_score=calculate_score(answers),
        strengths=strengths or [DEFAULT_STRENGTH],
        lagging_areas=_matching(LAGGING_RULES, answers),
        recommendations=_matching(RECOMMENDATION_RULES, answers),
        priority_actions=list(PRIORITY_ACTIONS),
        automation_opportunities=_matching(OPPORTUNITY_RULES, answers),
    )
