"""
Prompt Builder

Pure functions that render expense statistics and the user's ask into
provider-agnostic prompts.

DESIGN DECISION: Statistics are computed HERE, deterministically, and
embedded in the prompt. The LLM interprets numbers; it is never asked
to add them up.

Each prompt ends with an explicit output contract:
- insights: a JSON array with an exact structure
- answers: plain text, NO JSON, NO code blocks
- categories: a single label from a closed set
"""

import json
from decimal import Decimal
from typing import Optional, Sequence

from pydantic import BaseModel

from expense_ai.models.expense import (
    BudgetContext,
    BudgetStatus,
    ExpenseCategory,
    ExpenseRecord,
)


RECENT_EXPENSES_IN_PROMPT = 10

INSIGHT_SYSTEM_PROMPT = (
    "You are a financial advisor AI. Always respond with valid JSON only. "
    "Use Indian Rupees (₹) for currency."
)
ANSWER_SYSTEM_PROMPT = (
    "You are a helpful financial advisor. Be concise, practical, and use "
    "Indian Rupees (₹) for currency."
)
CATEGORY_SYSTEM_PROMPT = (
    "You are a category classifier. Return only the category name from the "
    "given options. Be precise and concise."
)


def format_inr(amount: Decimal | float) -> str:
    """Render an amount as rupees, e.g. ₹12,500.00."""
    return f"₹{amount:,.2f}"


class ExpenseSummary(BaseModel):
    """Aggregates embedded in the insight prompt."""

    total: Decimal
    count: int
    average: Decimal
    category_totals: dict[str, Decimal]
    top_category: str
    top_category_amount: Decimal

    @property
    def top_category_share(self) -> float:
        """Top category as a percentage of the total (0 when total is 0)."""
        if not self.total:
            return 0.0
        return float(self.top_category_amount / self.total * 100)


def summarize_expenses(expenses: Sequence[ExpenseRecord]) -> ExpenseSummary:
    """
    Compute totals over a NON-EMPTY expense list.

    Category totals keep first-seen order; ties for the top category go
    to the category seen first.
    """
    if not expenses:
        raise ValueError("Cannot summarize an empty expense list")

    category_totals: dict[str, Decimal] = {}
    for expense in expenses:
        category_totals[expense.category] = (
            category_totals.get(expense.category, Decimal("0")) + expense.amount
        )

    total = sum((e.amount for e in expenses), Decimal("0"))
    top_category = max(category_totals, key=lambda name: category_totals[name])

    return ExpenseSummary(
        total=total,
        count=len(expenses),
        average=total / len(expenses),
        category_totals=category_totals,
        top_category=top_category,
        top_category_amount=category_totals[top_category],
    )


def budget_status(budget: BudgetContext) -> BudgetStatus:
    """Status label for a budget (see classify_budget_status for thresholds)."""
    return budget.status


def render_budget_context(
    budget: Optional[BudgetContext],
    heading: str = "Budget Information",
) -> str:
    """Budget block appended to prompts; empty when there is no budget."""
    if budget is None:
        return ""
    return (
        f"\n\n{heading}:\n"
        f"- Monthly Budget: {format_inr(budget.monthly_budget)}\n"
        f"- Current Month Spending: {format_inr(budget.current_spending)}\n"
        f"- Budget Usage: {budget.percentage_used:.1f}%\n"
        f"- Remaining Budget: {format_inr(budget.remaining)}\n"
        f"- Status: {budget_status(budget).value}"
    )


def _recent_expenses_json(expenses: Sequence[ExpenseRecord]) -> str:
    recent = sorted(expenses, key=lambda e: e.date, reverse=True)[:RECENT_EXPENSES_IN_PROMPT]
    return json.dumps(
        [
            {
                "amount": float(e.amount),
                "category": e.category,
                "description": e.description or "N/A",
                "date": e.date.isoformat(),
            }
            for e in recent
        ],
        ensure_ascii=False,
    )


def build_insight_prompt(
    expenses: Sequence[ExpenseRecord],
    budget: Optional[BudgetContext] = None,
) -> str:
    """Prompt asking for 3-5 insights as a strict JSON array."""
    summary = summarize_expenses(expenses)
    has_budget = budget is not None

    focus = [
        f"1. Spending patterns and trends{' (compare with budget)' if has_budget else ''}",
        "2. Category-wise analysis and optimization",
        f"3. Budget recommendations and adjustments{' (based on current budget)' if has_budget else ''}",
        "4. Cost-saving opportunities",
        f"5. Actionable financial advice{' (considering budget status)' if has_budget else ''}",
    ]

    budget_note = ""
    if has_budget:
        budget_note = (
            f"\n\nIMPORTANT: Consider the monthly budget ({format_inr(budget.monthly_budget)}) "
            f"and current spending ({format_inr(budget.current_spending)}) in your analysis. "
            "Provide budget-specific recommendations."
        )

    return f"""Analyze these expense records and provide 3-5 financial insights in JSON format.

Expense Data:
- Total Expenses: {format_inr(summary.total)}
- Number of Expenses: {summary.count}
- Average Expense: {format_inr(summary.average)}
- Top Category: {summary.top_category} ({format_inr(summary.top_category_amount)})
- Categories: {', '.join(summary.category_totals)}
- Recent Expenses: {_recent_expenses_json(expenses)}{render_budget_context(budget)}

Return ONLY a valid JSON array with this exact structure:
[
  {{
    "id": "unique-id",
    "type": "success" | "warning" | "info" | "tip",
    "title": "Short title",
    "message": "Detailed explanation",
    "action": "Optional actionable advice",
    "confidence": 0.0-1.0,
    "category": "Optional category name",
    "amount": Optional amount
  }}
]

Focus on:
{chr(10).join(focus)}{budget_note}

Use Indian Rupees (₹) for all amounts. Be practical and specific."""


def build_answer_prompt(
    question: str,
    budget: Optional[BudgetContext] = None,
) -> str:
    """Prompt asking for a plain-text answer to a financial question."""
    return f"""You are a financial advisor for Indian users. Answer this question with practical, actionable advice in plain text format (NO JSON, NO code blocks, just natural text).

Question: {question.strip()}{render_budget_context(budget, heading="Budget Context")}

Requirements:
- Use Indian Rupees (₹) for currency
- Provide 3-5 specific, actionable steps
- Keep response between 100-200 words
- Use bullet points or numbered list for clarity
- Focus on practical implementation
- Be encouraging but realistic
- Use simple, clear language
- Format with line breaks for readability
- DO NOT use JSON format
- DO NOT use code blocks
- Write in natural, conversational tone

Provide your answer as plain text with clear sections:"""


def build_category_prompt(description: str) -> str:
    """Prompt asking for exactly one label from the closed category set."""
    options = "\n".join(f"- {category.value}" for category in ExpenseCategory)
    return f"""Based on this expense description: "{description}"

Suggest the most appropriate category from these options:
{options}

Return ONLY the category name, nothing else. Choose the single best match.

Examples:
- "coffee at starbucks" → Food
- "uber ride to work" → Transportation
- "netflix subscription" → Entertainment
- "medicine from pharmacy" → Healthcare
- "electricity bill payment" → Bills
- "bought new shoes" → Shopping

Description: {description}
Category:"""
