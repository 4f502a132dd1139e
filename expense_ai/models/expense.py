"""
Expense Input Models

These models describe what the orchestrator CONSUMES from the record
store: expense records and an optional budget. They are owned by the
persistence layer and are never modified here.

DESIGN DECISION: Money is Decimal end to end. Floats appear only for
ratios (percentages, shares) where rounding error is irrelevant.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    The closed set of expense categories a suggestion may return.

    Records themselves may carry any category string; this set only
    bounds what the classifier is allowed to answer.
    """
    FOOD = "Food"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    BILLS = "Bills"
    HEALTHCARE = "Healthcare"
    OTHER = "Other"


class BudgetStatus(str, Enum):
    """Budget usage label embedded in prompts and budget insights."""
    OVER_BUDGET = "OVER BUDGET"
    NEARING_LIMIT = "NEARING LIMIT"
    WITHIN_BUDGET = "WITHIN BUDGET"


# Usage thresholds in percent of the monthly budget
NEARING_LIMIT_THRESHOLD = 80.0
OVER_BUDGET_THRESHOLD = 100.0


def classify_budget_status(percentage_used: float) -> BudgetStatus:
    """
    Map a usage percentage to its status label.

    Exactly 80% is already NEARING LIMIT; exactly 100% is not yet
    OVER BUDGET (over means strictly above).
    """
    if percentage_used > OVER_BUDGET_THRESHOLD:
        return BudgetStatus.OVER_BUDGET
    if percentage_used >= NEARING_LIMIT_THRESHOLD:
        return BudgetStatus.NEARING_LIMIT
    return BudgetStatus.WITHIN_BUDGET


# =============================================================================
# INPUT MODELS
# =============================================================================

class ExpenseRecord(BaseModel):
    """
    One expense as stored by the record store.

    Immutable from the orchestrator's perspective.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Record identifier (owned by the store)"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount in INR"
    )
    category: str = Field(
        default=ExpenseCategory.OTHER.value,
        max_length=100,
        description="Category label as entered by the user"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free-text note"
    )
    date: datetime = Field(
        ...,
        description="When the expense happened"
    )

    @field_validator("category", mode="before")
    @classmethod
    def default_blank_category(cls, v: Any) -> Any:
        """Records without a category are treated as Other."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return ExpenseCategory.OTHER.value
        return v

    @field_validator("date", mode="before")
    @classmethod
    def promote_plain_date(cls, v: Any) -> Any:
        """Accept a bare date as midnight of that day."""
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime(v.year, v.month, v.day)
        return v

    @field_validator("date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are UTC so spans can always be computed."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class BudgetContext(BaseModel):
    """
    Budget figures derived by the caller for the current month.

    Only read to annotate prompts and build the budget insight.
    """
    model_config = ConfigDict(frozen=True)

    monthly_budget: Decimal = Field(
        ...,
        gt=0,
        description="Monthly budget in INR"
    )
    current_spending: Decimal = Field(
        ...,
        ge=0,
        description="Spending so far this month in INR"
    )

    @property
    def percentage_used(self) -> float:
        return float(self.current_spending / self.monthly_budget * 100)

    @property
    def remaining(self) -> Decimal:
        """Negative when over budget."""
        return self.monthly_budget - self.current_spending

    @property
    def status(self) -> BudgetStatus:
        return classify_budget_status(self.percentage_used)
