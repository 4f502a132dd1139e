"""
Provider Attempt Models

The closed error taxonomy and the per-attempt record used by the
fallback orchestrator. Presentation code switches on these enums;
nothing downstream inspects error message text.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class OperationKind(str, Enum):
    """Operations the orchestrator runs against providers."""
    INSIGHTS = "insights"
    ANSWER = "answer"
    CATEGORY = "category"
    HEALTH = "health"


class ProviderErrorKind(str, Enum):
    """
    Why one provider attempt failed.

    NORMALIZATION_FAILURE means the call itself succeeded but nothing
    usable could be extracted - it is treated exactly like a failed call.
    """
    UNCONFIGURED = "unconfigured"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    SERVICE_UNAVAILABLE = "service_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
    TIMEOUT = "timeout"
    NORMALIZATION_FAILURE = "normalization_failure"


class ProviderAttemptResult(BaseModel):
    """
    Outcome of one provider attempt within one fallback sequence.

    Ephemeral - exists only to drive the next-provider decision and
    to build the aggregate error. Never persisted.
    """

    provider: str
    succeeded: bool
    error_kind: Optional[ProviderErrorKind] = None
    message: Optional[str] = None
    elapsed_ms: int = Field(default=0, ge=0)

    @property
    def label(self) -> str:
        """Provider-labelled failure text, e.g. 'Groq: rate limited'."""
        return f"{self.provider.capitalize()}: {self.message or self.error_kind}"


class HealthStatus(str, Enum):
    """Result of a provider health probe."""
    HEALTHY = "healthy"
    RATE_LIMITED = "rate_limited"
    UNCONFIGURED = "unconfigured"
    ERROR = "error"


class ProviderHealth(BaseModel):
    """Health probe result for one provider."""

    provider: str
    status: HealthStatus
    error: Optional[str] = None


class ProviderInfo(BaseModel):
    """Static description of a configured provider, for debugging UIs."""

    name: str
    models: list[str]
    configured: bool
    default_confidence: float
