from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Tier(str, Enum):
    """Тарифы подписки: base / mid / top"""
    FOUNDER = "founder"
    GROWTH = "growth"
    SCALE = "scale"


@dataclass(frozen=True)
class TierInfo:
    tier: Tier
    name: str
    monthly_allowance: int
    price_usd: int


TIERS = {
    Tier.FOUNDER: TierInfo(Tier.FOUNDER, "Founder's Suite", 75, 297),
    Tier.GROWTH: TierInfo(Tier.GROWTH, "Growth Partner", 150, 597),
    Tier.SCALE: TierInfo(Tier.SCALE, "Scale OS", 350, 1197),
}


def tier_info(tier) -> TierInfo:
    return TIERS[Tier(tier)]


@dataclass
class Wallet:
    id: Optional[int]
    user_id: int
    balance: int
    total_credited: int
    total_spent: int
    subscription_tier: str
    monthly_allowance: int
    last_allowance_at: Optional[str]
    created_at: str
    updated_at: str
