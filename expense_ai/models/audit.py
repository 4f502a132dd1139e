"""
Audit Models for ExpenseTracker AI

Every provider attempt and every fallback decision is logged.
This provides:
1. Traceability of which provider produced what a user saw
2. Debugging information when providers misbehave
3. Visibility into how often users receive degraded results

DESIGN DECISION: Audit events are log records only. Nothing here is
persisted - AI responses and their metadata live for one request.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from expense_ai.models.provider import ProviderAttemptResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every decision point in the fallback sequence has its own type.
    """
    # Requests
    INSIGHTS_REQUESTED = "insights_requested"
    ANSWER_REQUESTED = "answer_requested"
    CATEGORY_REQUESTED = "category_requested"
    WELCOME_INSIGHTS_RETURNED = "welcome_insights_returned"

    # Provider attempts
    PROVIDER_ATTEMPT_SUCCEEDED = "provider_attempt_succeeded"
    PROVIDER_ATTEMPT_FAILED = "provider_attempt_failed"
    ALL_PROVIDERS_FAILED = "all_providers_failed"

    # Degradation
    DEGRADED_TO_RULES = "degraded_to_rules"
    CATEGORY_RULES_FALLBACK = "category_rules_fallback"

    # Health
    HEALTH_CHECKED = "health_checked"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant decision creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which operation and provider is this about?
    operation: Optional[str] = Field(
        default=None,
        description="Operation (insights, answer, category, health)"
    )
    provider: Optional[str] = Field(
        default=None,
        description="Provider the event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by all events of one request"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "operation": self.operation,
            "provider": self.provider,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.request_received("insights", 12, correlation_id)
        event = AuditEventBuilder.provider_attempt("answer", attempt, correlation_id)
    """

    _REQUEST_TYPES = {
        "insights": AuditEventType.INSIGHTS_REQUESTED,
        "answer": AuditEventType.ANSWER_REQUESTED,
        "category": AuditEventType.CATEGORY_REQUESTED,
    }

    @staticmethod
    def request_received(
        operation: str,
        input_size: int,
        correlation_id: UUID,
        has_budget: bool = False,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventBuilder._REQUEST_TYPES[operation],
            operation=operation,
            correlation_id=correlation_id,
            description=f"{operation.capitalize()} requested",
            details={
                "input_size": input_size,
                "has_budget": has_budget,
            },
        )

    @staticmethod
    def welcome_returned(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WELCOME_INSIGHTS_RETURNED,
            operation="insights",
            correlation_id=correlation_id,
            description="No expenses recorded - returned welcome insights",
        )

    @staticmethod
    def provider_attempt(
        operation: str,
        attempt: ProviderAttemptResult,
        correlation_id: UUID,
    ) -> AuditEvent:
        if attempt.succeeded:
            return AuditEvent(
                event_type=AuditEventType.PROVIDER_ATTEMPT_SUCCEEDED,
                operation=operation,
                provider=attempt.provider,
                correlation_id=correlation_id,
                description=f"{attempt.provider} answered in {attempt.elapsed_ms}ms",
                details={"elapsed_ms": attempt.elapsed_ms},
            )
        kind = attempt.error_kind.value if attempt.error_kind else None
        return AuditEvent(
            event_type=AuditEventType.PROVIDER_ATTEMPT_FAILED,
            severity=AuditSeverity.WARNING,
            operation=operation,
            provider=attempt.provider,
            correlation_id=correlation_id,
            description=f"{attempt.provider} failed: {kind}",
            details={"elapsed_ms": attempt.elapsed_ms},
            error_code=kind,
            error_message=(attempt.message or "")[:1000],
        )

    @staticmethod
    def all_providers_failed(
        operation: str,
        attempts: list[ProviderAttemptResult],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALL_PROVIDERS_FAILED,
            severity=AuditSeverity.ERROR,
            operation=operation,
            correlation_id=correlation_id,
            description=f"All {len(attempts)} providers failed for {operation}",
            details={
                "errors": {
                    a.provider: a.error_kind.value if a.error_kind else None
                    for a in attempts
                },
            },
        )

    @staticmethod
    def degraded_to_rules(
        insight_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEGRADED_TO_RULES,
            severity=AuditSeverity.WARNING,
            operation="insights",
            correlation_id=correlation_id,
            description=f"Returned {insight_count} rule-based insights",
            details={"insight_count": insight_count},
        )

    @staticmethod
    def category_rules_fallback(
        category: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_RULES_FALLBACK,
            severity=AuditSeverity.WARNING,
            operation="category",
            correlation_id=correlation_id,
            description=f"Keyword classifier chose {category}",
            details={"category": category},
        )

    @staticmethod
    def health_checked(
        provider: str,
        status: str,
        error: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HEALTH_CHECKED,
            severity=AuditSeverity.INFO if status == "healthy" else AuditSeverity.WARNING,
            operation="health",
            provider=provider,
            description=f"{provider} health: {status}",
            error_message=error,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
