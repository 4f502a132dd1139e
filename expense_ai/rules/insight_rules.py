"""
Rule-Based Insight Generator

The floor under the AI path: deterministic insights computed from the
expense records alone, with no network dependency.

DESIGN DECISION: Each rule is evaluated independently and appends zero
or one insight. Rule order only fixes presentation order. The
average-spending rule always fires, so non-empty input always yields at
least one insight. This module cannot fail on valid records.

Thresholds (INR):
- total > 10,000          -> high spending warning
- total < 1,000           -> low spending success
- top category > 40%      -> concentration info
- >= 4 categories         -> diversity success
- span >= 7 days          -> 30-day projection tip
- > 3 transactions / day  -> frequency warning
"""

import calendar
import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from expense_ai.models.expense import BudgetContext, BudgetStatus, ExpenseRecord
from expense_ai.models.insight import Insight, InsightType
from expense_ai.prompts.builder import format_inr, summarize_expenses


HIGH_SPENDING_THRESHOLD = Decimal("10000")
LOW_SPENDING_THRESHOLD = Decimal("1000")
CONCENTRATION_SHARE_PCT = 40.0
DIVERSITY_MIN_CATEGORIES = 4
PROJECTION_MIN_DAYS = 7
PROJECTION_CONFIDENT_DAYS = 14
FREQUENT_TRANSACTIONS_PER_DAY = 3.0
PROJECTION_DAYS = 30

BUDGET_INSIGHT_ID = "budget-analysis"


# Shared by the caller's empty-list short-circuit and by this generator
WELCOME_INSIGHTS: tuple[Insight, ...] = (
    Insight(
        id="welcome-1",
        type=InsightType.INFO,
        title="Welcome to ExpenseTracker AI!",
        message=(
            "Start adding your expenses to get personalized AI insights "
            "about your spending patterns."
        ),
        action="Add your first expense",
        confidence=1.0,
    ),
    Insight(
        id="welcome-2",
        type=InsightType.TIP,
        title="Track Regularly",
        message=(
            "For best results, try to log expenses daily. This helps our AI "
            "provide more accurate insights."
        ),
        action="Set daily reminders",
        confidence=1.0,
    ),
)


def welcome_insights() -> list[Insight]:
    """Fresh copies of the welcome set (callers may mutate their list)."""
    return [insight.model_copy() for insight in WELCOME_INSIGHTS]


def _money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def days_tracked(expenses: Sequence[ExpenseRecord]) -> int:
    """Whole days from the oldest to the newest record, minimum 1."""
    dates = sorted(e.date for e in expenses)
    span_seconds = (dates[-1] - dates[0]).total_seconds()
    return max(1, math.ceil(span_seconds / 86400))


def generate_rule_based_insights(expenses: Sequence[ExpenseRecord]) -> list[Insight]:
    """
    Deterministic insights from expense statistics.

    Empty input returns the welcome set.
    """
    if not expenses:
        return welcome_insights()

    summary = summarize_expenses(expenses)
    total = summary.total
    days = days_tracked(expenses)
    daily_average = total / days
    monthly_estimate = daily_average * PROJECTION_DAYS
    categories = list(summary.category_totals)

    insights: list[Insight] = []

    # Spending level
    if total > HIGH_SPENDING_THRESHOLD:
        insights.append(Insight(
            id="high-spending",
            type=InsightType.WARNING,
            title="High Total Spending Detected",
            message=(
                f"Your total expenses over the last {days} days are {format_inr(total)}. "
                f"This averages to {format_inr(daily_average)} per day. Consider reviewing "
                "your spending patterns to identify areas for cost reduction."
            ),
            action="Get spending reduction tips",
            confidence=0.9,
            amount=_money(total),
        ))
    elif total < LOW_SPENDING_THRESHOLD:
        insights.append(Insight(
            id="low-spending",
            type=InsightType.SUCCESS,
            title="Great Spending Control",
            message=(
                f"Your total expenses are {format_inr(total)} over {days} days. "
                "You're maintaining good control over your spending! Keep tracking "
                "to maintain this discipline."
            ),
            action="Set savings goals",
            confidence=0.85,
        ))

    # Category concentration
    share = summary.top_category_share
    if share > CONCENTRATION_SHARE_PCT:
        top = summary.top_category
        insights.append(Insight(
            id="category-concentration",
            type=InsightType.INFO,
            title=f"{top} Dominates Your Spending",
            message=(
                f"{top} accounts for {format_inr(summary.top_category_amount)} "
                f"({share:.1f}%) of your total expenses. Consider diversifying your "
                "spending or finding ways to optimize costs in this category."
            ),
            action=f"Get {top} optimization tips",
            confidence=0.95,
            category=top,
            amount=_money(summary.top_category_amount),
        ))

    # Category diversity
    if len(categories) >= DIVERSITY_MIN_CATEGORIES:
        insights.append(Insight(
            id="category-diversity",
            type=InsightType.SUCCESS,
            title="Well-Diversified Spending",
            message=(
                f"You're tracking expenses across {len(categories)} different categories: "
                f"{', '.join(categories)}. This diversity helps in better financial "
                "planning and budget allocation."
            ),
            action="View category breakdown",
            confidence=0.8,
        ))

    # Average spending (always)
    insights.append(Insight(
        id="average-spending",
        type=InsightType.INFO,
        title="Spending Pattern Analysis",
        message=(
            f"Your average expense per transaction is {format_inr(summary.average)}. "
            f"You've recorded {summary.count} transactions over {days} days, "
            f"averaging {format_inr(daily_average)} per day."
        ),
        action="Analyze spending trends",
        confidence=0.9,
        amount=_money(summary.average),
    ))

    # Monthly projection
    if days >= PROJECTION_MIN_DAYS:
        insights.append(Insight(
            id="monthly-projection",
            type=InsightType.TIP,
            title="Monthly Spending Projection",
            message=(
                f"Based on your current spending rate of {format_inr(daily_average)} per day, "
                f"you're projected to spend approximately {format_inr(monthly_estimate)} "
                "this month. Set a monthly budget to ensure you stay within your "
                "financial goals."
            ),
            action="Create monthly budget plan",
            confidence=0.9 if days >= PROJECTION_CONFIDENT_DAYS else 0.7,
            amount=_money(monthly_estimate),
        ))

    # Transaction frequency
    per_day = summary.count / days
    if per_day > FREQUENT_TRANSACTIONS_PER_DAY:
        insights.append(Insight(
            id="frequent-spending",
            type=InsightType.WARNING,
            title="Frequent Small Transactions",
            message=(
                f"You're making an average of {per_day:.1f} transactions per day. "
                "Consider consolidating smaller purchases or reviewing if all expenses "
                "are necessary to better manage your cash flow."
            ),
            action="Review transaction frequency",
            confidence=0.8,
        ))

    return insights


def build_budget_insight(budget: BudgetContext, as_of: date) -> Insight:
    """
    Monthly budget status insight.

    Projection assumes the month continues at the pace of the days
    already passed (as_of.day).
    """
    monthly = budget.monthly_budget
    current = budget.current_spending
    percentage = budget.percentage_used
    remaining = budget.remaining
    days_in_month = calendar.monthrange(as_of.year, as_of.month)[1]
    projected = current / as_of.day * days_in_month

    status = budget.status
    if status is BudgetStatus.OVER_BUDGET:
        insight_type = InsightType.WARNING
        message = (
            f"You've exceeded your monthly budget of {format_inr(monthly)}. "
            f"Current spending: {format_inr(current)} ({percentage:.1f}% of budget). "
            f"You've overspent by {format_inr(abs(remaining))}."
        )
        action = "Get budget recovery plan"
    elif status is BudgetStatus.NEARING_LIMIT:
        insight_type = InsightType.WARNING
        message = (
            f"You're approaching your monthly budget limit. Budget: {format_inr(monthly)}, "
            f"Current: {format_inr(current)} ({percentage:.1f}%). "
            f"Remaining: {format_inr(remaining)}."
        )
        action = "Get spending reduction tips"
    else:
        insight_type = InsightType.SUCCESS
        message = (
            f"You're within budget! Monthly budget: {format_inr(monthly)}, "
            f"Current spending: {format_inr(current)} ({percentage:.1f}%). "
            f"Remaining: {format_inr(remaining)}. "
            f"Projected monthly spending: {format_inr(projected)}."
        )
        action = "View budget details"

    return Insight(
        id=BUDGET_INSIGHT_ID,
        type=insight_type,
        title="Monthly Budget Status",
        message=message,
        action=action,
        confidence=0.95,
        amount=_money(current),
    )
