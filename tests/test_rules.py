"""Tests for the rule-based fallbacks."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_expense
from expense_ai.models import BudgetContext, ExpenseCategory, InsightType
from expense_ai.rules import (
    WELCOME_INSIGHTS,
    build_budget_insight,
    classify_category,
    days_tracked,
    generate_rule_based_insights,
    welcome_insights,
)


class TestRuleBasedInsights:
    """Tests for deterministic insight rules."""

    def test_ten_day_scenario(self, ten_day_expenses):
        """Test Rs 12,500 over 10 days with Food at 45%."""
        insights = generate_rule_based_insights(ten_day_expenses)
        by_id = {i.id: i for i in insights}

        assert [i.id for i in insights] == [
            "high-spending",
            "category-concentration",
            "category-diversity",
            "average-spending",
            "monthly-projection",
        ]

        high = by_id["high-spending"]
        assert high.type == InsightType.WARNING
        assert "₹12,500.00" in high.message
        assert "10 days" in high.message
        assert "₹1,250.00 per day" in high.message

        concentration = by_id["category-concentration"]
        assert concentration.type == InsightType.INFO
        assert concentration.category == "Food"
        assert concentration.amount == Decimal("5625.00")
        assert "45.0%" in concentration.message
        assert concentration.confidence == 0.95

        projection = by_id["monthly-projection"]
        assert projection.amount == Decimal("37500.00")
        assert projection.confidence == 0.7

    def test_low_spending(self, small_expenses):
        """Test the success insight for small totals."""
        insights = generate_rule_based_insights(small_expenses)
        ids = [i.id for i in insights]
        assert ids[0] == "low-spending"
        assert "high-spending" not in ids
        assert "monthly-projection" not in ids

    def test_frequent_transactions(self):
        """Test the frequency warning for many same-day expenses."""
        expenses = [make_expense(200, "Food", 0, expense_id=f"e{i}") for i in range(4)]
        ids = [i.id for i in generate_rule_based_insights(expenses)]
        assert "frequent-spending" in ids

    def test_projection_confidence_after_two_weeks(self):
        """Test higher projection confidence for longer spans."""
        expenses = [make_expense(500, "Food", 0), make_expense(500, "Bills", 14)]
        projection = next(
            i for i in generate_rule_based_insights(expenses) if i.id == "monthly-projection"
        )
        assert projection.confidence == 0.9

    def test_always_at_least_one_insight(self):
        """Test that a single mid-range expense still yields an insight."""
        insights = generate_rule_based_insights([make_expense(5000, "Shopping", 0)])
        assert [i.id for i in insights] == ["category-concentration", "average-spending"]

    def test_days_tracked_minimum_one(self):
        """Test that same-day expenses count as one day."""
        assert days_tracked([make_expense(1, "Food", 0), make_expense(2, "Food", 0)]) == 1

    def test_days_tracked_ignores_order(self, ten_day_expenses):
        """Test that span is computed regardless of input order."""
        assert days_tracked(list(reversed(ten_day_expenses))) == 10


class TestWelcomeInsights:
    """Tests for the empty-input welcome set."""

    def test_empty_input_returns_welcome(self):
        """Test the welcome set for no expenses."""
        insights = generate_rule_based_insights([])
        assert [i.id for i in insights] == ["welcome-1", "welcome-2"]
        assert insights[0].title == "Welcome to ExpenseTracker AI!"
        assert insights[1].type == InsightType.TIP
        assert all(i.confidence == 1.0 for i in insights)

    def test_welcome_returns_copies(self):
        """Test that callers cannot mutate the shared set."""
        insights = welcome_insights()
        insights[0].title = "Changed"
        insights.clear()
        assert WELCOME_INSIGHTS[0].title == "Welcome to ExpenseTracker AI!"
        assert len(welcome_insights()) == 2


class TestBudgetInsight:
    """Tests for the monthly budget status insight."""

    def test_within_budget(self):
        """Test success type with a projection."""
        budget = BudgetContext(monthly_budget=Decimal("10000"), current_spending=Decimal("5000"))
        insight = build_budget_insight(budget, date(2024, 6, 15))
        assert insight.id == "budget-analysis"
        assert insight.type == InsightType.SUCCESS
        assert "Projected monthly spending: ₹10,000.00" in insight.message

    def test_nearing_limit(self):
        """Test warning when 80% or more is used."""
        budget = BudgetContext(monthly_budget=Decimal("10000"), current_spending=Decimal("8500"))
        insight = build_budget_insight(budget, date(2024, 6, 20))
        assert insight.type == InsightType.WARNING
        assert "Remaining: ₹1,500.00" in insight.message

    def test_over_budget(self):
        """Test warning with the overspent amount."""
        budget = BudgetContext(monthly_budget=Decimal("10000"), current_spending=Decimal("12000"))
        insight = build_budget_insight(budget, date(2024, 6, 25))
        assert insight.type == InsightType.WARNING
        assert "overspent by ₹2,000.00" in insight.message
        assert insight.amount == Decimal("12000.00")


class TestCategoryRules:
    """Tests for the keyword category classifier."""

    @pytest.mark.parametrize(
        "description,expected",
        [
            ("uber ride to airport", ExpenseCategory.TRANSPORTATION),
            ("Coffee at Starbucks", ExpenseCategory.FOOD),
            ("netflix premium", ExpenseCategory.ENTERTAINMENT),
            ("electricity bill payment", ExpenseCategory.BILLS),
            ("medicine from pharmacy", ExpenseCategory.HEALTHCARE),
            ("gift for a friend", ExpenseCategory.OTHER),
        ],
    )
    def test_classify_category(self, description, expected):
        """Test keyword matching and the Other fallback."""
        assert classify_category(description) == expected

    def test_first_matching_category_wins(self):
        """Test that Food is checked before Transportation."""
        assert classify_category("lunch on the train") == ExpenseCategory.FOOD
