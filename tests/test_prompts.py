"""Tests for prompt building."""

import json
from decimal import Decimal

import pytest

from conftest import make_expense
from expense_ai.models import BudgetContext
from expense_ai.prompts import (
    build_answer_prompt,
    build_category_prompt,
    build_insight_prompt,
    budget_status,
    format_inr,
    render_budget_context,
    summarize_expenses,
)


class TestSummary:
    """Tests for the statistics embedded in prompts."""

    def test_summarize_expenses(self, ten_day_expenses):
        """Test totals, average and top category."""
        summary = summarize_expenses(ten_day_expenses)
        assert summary.total == Decimal("12500")
        assert summary.count == 12
        assert summary.average == Decimal("12500") / 12
        assert summary.top_category == "Food"
        assert summary.top_category_share == pytest.approx(45.0)

    def test_summarize_rejects_empty(self):
        """Test that an empty list cannot be summarized."""
        with pytest.raises(ValueError):
            summarize_expenses([])

    def test_format_inr(self):
        """Test rupee formatting with grouping."""
        assert format_inr(Decimal("12500")) == "₹12,500.00"


class TestInsightPrompt:
    """Tests for the insight prompt."""

    def test_contains_statistics_and_contract(self, ten_day_expenses):
        """Test that computed figures and the JSON contract are present."""
        prompt = build_insight_prompt(ten_day_expenses)
        assert "Total Expenses: ₹12,500.00" in prompt
        assert "Top Category: Food (₹5,625.00)" in prompt
        assert "Return ONLY a valid JSON array" in prompt
        assert "Budget Information" not in prompt

    def test_only_ten_most_recent_expenses(self):
        """Test that at most 10 recent expenses are embedded, newest first."""
        expenses = [make_expense(100 + i, "Food", i, expense_id=f"e{i}") for i in range(15)]
        prompt = build_insight_prompt(expenses)
        line = next(l for l in prompt.splitlines() if l.startswith("- Recent Expenses:"))
        recent = json.loads(line.split(":", 1)[1])
        assert len(recent) == 10
        assert recent[0]["amount"] == 114.0
        assert recent[-1]["amount"] == 105.0

    def test_budget_block(self, ten_day_expenses):
        """Test that a budget adds its status and budget-specific focus."""
        budget = BudgetContext(monthly_budget=Decimal("10000"), current_spending=Decimal("12500"))
        prompt = build_insight_prompt(ten_day_expenses, budget)
        assert "Monthly Budget: ₹10,000.00" in prompt
        assert "Status: OVER BUDGET" in prompt
        assert "(compare with budget)" in prompt

    @pytest.mark.parametrize(
        "spending,usage,status",
        [
            ("5000", "50.0%", "WITHIN BUDGET"),
            ("8500", "85.0%", "NEARING LIMIT"),
            ("10500", "105.0%", "OVER BUDGET"),
        ],
    )
    def test_budget_status_line(self, ten_day_expenses, spending, usage, status):
        """Test the usage and status lines at 50%, 85% and 105% of budget."""
        budget = BudgetContext(monthly_budget=Decimal("10000"), current_spending=Decimal(spending))
        prompt = build_insight_prompt(ten_day_expenses, budget)
        lines = prompt.splitlines()
        assert f"- Budget Usage: {usage}" in lines
        assert f"- Status: {status}" in lines
        assert budget_status(budget).value == status


class TestOtherPrompts:
    """Tests for answer and category prompts."""

    def test_answer_prompt(self):
        """Test that the answer prompt asks for plain text."""
        prompt = build_answer_prompt("  How can I save on food?  ")
        assert "Question: How can I save on food?" in prompt
        assert "NO JSON, NO code blocks" in prompt
        assert "Budget Context" not in prompt

    def test_answer_prompt_with_budget(self):
        """Test the budget context heading in answers."""
        budget = BudgetContext(monthly_budget=Decimal("10000"), current_spending=Decimal("2000"))
        prompt = build_answer_prompt("Am I on track?", budget)
        assert "Budget Context:" in prompt
        assert "Status: WITHIN BUDGET" in prompt

    def test_category_prompt_lists_labels(self):
        """Test that every label is offered."""
        prompt = build_category_prompt("uber ride to airport")
        for label in ("Food", "Transportation", "Shopping", "Entertainment", "Bills", "Healthcare", "Other"):
            assert f"- {label}" in prompt
        assert prompt.rstrip().endswith("Category:")

    def test_render_budget_context_none(self):
        """Test that no budget renders nothing."""
        assert render_budget_context(None) == ""
