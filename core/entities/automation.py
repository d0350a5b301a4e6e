from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AutomationService:
    key: str
    title: str
    category: str   # foundation | a_la_carte | composer
    cost: int       # IXP за активацию


SERVICES = {
    s.key: s
    for s in (
        AutomationService("expenseTracking", "Expense Tracking", "foundation", 15),
        AutomationService("bookkeeping", "Bookkeeping", "foundation", 20),
        AutomationService("payroll", "Payroll Processing", "foundation", 25),
        AutomationService("taxPrep", "Tax Return Prep", "foundation", 30),
        AutomationService("marketing", "Marketing Campaigns", "a_la_carte", 10),
        AutomationService("socialMedia", "Social Media Management", "a_la_carte", 8),
        AutomationService("emailCampaign", "Email Campaigns", "a_la_carte", 12),
        AutomationService("seo", "SEO Optimization", "a_la_carte", 15),
    )
}

REQUEST_COMPOSER = "requestComposer"


def get_service(key: str) -> Optional[AutomationService]:
    return SERVICES.get(key)
