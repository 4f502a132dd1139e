"""
Insight Output Models

These are the ONLY shapes the orchestrator hands back to callers.
Whatever a provider returns is normalized into these before any other
logic touches it.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_ai.models.expense import ExpenseCategory


class InsightType(str, Enum):
    """How an insight should be presented."""
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"
    TIP = "tip"


class Insight(BaseModel):
    """
    One user-facing observation about spending behaviour.

    INVARIANT: title and message are never empty.
    The id is unique within one batch and means nothing across requests.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Unique within one response batch"
    )
    type: InsightType = Field(
        default=InsightType.INFO,
        description="Presentation type"
    )
    title: str = Field(
        ...,
        min_length=1,
        description="Concise insight title"
    )
    message: str = Field(
        ...,
        min_length=1,
        description="Detailed explanation"
    )
    action: Optional[str] = Field(
        default=None,
        description="Suggested follow-up prompt text"
    )
    confidence: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="How much the source trusts this insight"
    )
    category: Optional[str] = Field(
        default=None,
        description="Expense category the insight is about"
    )
    amount: Optional[Decimal] = Field(
        default=None,
        description="Amount the insight is about, in INR"
    )


class CategorySuggestion(BaseModel):
    """Suggested category for an expense description."""

    category: ExpenseCategory
    source: str = Field(
        description="Provider that answered, or 'rules' for the keyword classifier"
    )
    confidence: float = Field(ge=0.0, le=1.0)

    @property
    def from_rules(self) -> bool:
        return self.source == "rules"
