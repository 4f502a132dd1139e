"""
Data Models Package

This package contains all Pydantic models used by the insight orchestrator.
All data flowing in from the record store and out to callers conforms to
these schemas.
"""

from expense_ai.models.expense import (
    BudgetContext,
    BudgetStatus,
    ExpenseCategory,
    ExpenseRecord,
    classify_budget_status,
)
from expense_ai.models.insight import (
    CategorySuggestion,
    Insight,
    InsightType,
)
from expense_ai.models.provider import (
    HealthStatus,
    OperationKind,
    ProviderAttemptResult,
    ProviderErrorKind,
    ProviderHealth,
    ProviderInfo,
)
from expense_ai.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Input models
    "BudgetContext",
    "BudgetStatus",
    "ExpenseCategory",
    "ExpenseRecord",
    "classify_budget_status",
    # Output models
    "CategorySuggestion",
    "Insight",
    "InsightType",
    # Provider models
    "HealthStatus",
    "OperationKind",
    "ProviderAttemptResult",
    "ProviderErrorKind",
    "ProviderHealth",
    "ProviderInfo",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
