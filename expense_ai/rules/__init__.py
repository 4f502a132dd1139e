"""Deterministic fallbacks used when no AI provider answers."""

from expense_ai.rules.category_rules import CATEGORY_KEYWORDS, classify_category
from expense_ai.rules.insight_rules import (
    BUDGET_INSIGHT_ID,
    WELCOME_INSIGHTS,
    build_budget_insight,
    days_tracked,
    generate_rule_based_insights,
    welcome_insights,
)

__all__ = [
    "BUDGET_INSIGHT_ID",
    "CATEGORY_KEYWORDS",
    "WELCOME_INSIGHTS",
    "build_budget_insight",
    "classify_category",
    "days_tracked",
    "generate_rule_based_insights",
    "welcome_insights",
]
