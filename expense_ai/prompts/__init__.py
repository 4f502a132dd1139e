"""Prompt building package."""

from expense_ai.prompts.builder import (
    ANSWER_SYSTEM_PROMPT,
    CATEGORY_SYSTEM_PROMPT,
    INSIGHT_SYSTEM_PROMPT,
    ExpenseSummary,
    budget_status,
    build_answer_prompt,
    build_category_prompt,
    build_insight_prompt,
    format_inr,
    render_budget_context,
    summarize_expenses,
)

__all__ = [
    "ANSWER_SYSTEM_PROMPT",
    "CATEGORY_SYSTEM_PROMPT",
    "INSIGHT_SYSTEM_PROMPT",
    "ExpenseSummary",
    "budget_status",
    "build_answer_prompt",
    "build_category_prompt",
    "build_insight_prompt",
    "format_inr",
    "render_budget_context",
    "summarize_expenses",
]
