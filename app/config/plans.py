"""
Subscription Plan Catalog
Pricing and duration for each agent subscription plan
"""

import enum
from decimal import Decimal
from typing import Dict, Any

from app.config.settings import CURRENCY


class SubscriptionPlan(str, enum.Enum):
    FREE_TRIAL = "free_trial"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


FREE_TRIAL_DAYS = 30

# Length of a derived billing window, in days, used to count elapsed months
BILLING_WINDOW_DAYS = 30

PLAN_CATALOG: Dict[str, Dict[str, Any]] = {
    SubscriptionPlan.FREE_TRIAL: {
        "name": "Free Trial",
        "price": Decimal("0"),
        "months": 1,
        "savings": None,
    },
    SubscriptionPlan.MONTHLY: {
        "name": "Monthly",
        "price": Decimal("15000"),
        "months": 1,
        "savings": None,
    },
    SubscriptionPlan.QUARTERLY: {
        "name": "Quarterly",
        "price": Decimal("40000"),
        "months": 3,
        "savings": Decimal("5000"),
    },
    SubscriptionPlan.YEARLY: {
        "name": "Yearly",
        "price": Decimal("150000"),
        "months": 12,
        "savings": Decimal("30000"),
    },
}

# Plans an agent can pay for (the trial is granted, never bought)
PAID_PLANS = (SubscriptionPlan.MONTHLY, SubscriptionPlan.QUARTERLY, SubscriptionPlan.YEARLY)


def get_plan(plan: str) -> Dict[str, Any]:
    """Get catalog entry for a plan, raising KeyError for unknown plans"""
    return PLAN_CATALOG[SubscriptionPlan(plan)]


def get_plan_months(plan: str) -> int:
    """Number of calendar months a paid plan covers"""
    return get_plan(plan)["months"]


def list_paid_plans() -> list:
    """Public view of the purchasable plans"""
    return [
        {
            "plan": plan.value,
            "name": PLAN_CATALOG[plan]["name"],
            "price": float(PLAN_CATALOG[plan]["price"]),
            "currency": CURRENCY,
            "months": PLAN_CATALOG[plan]["months"],
            "savings": float(PLAN_CATALOG[plan]["savings"]) if PLAN_CATALOG[plan]["savings"] else None,
        }
        for plan in PAID_PLANS
    ]
