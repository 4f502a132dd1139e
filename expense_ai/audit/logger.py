"""
Audit Logger

DESIGN DECISION: Every provider attempt and every fallback decision is
logged. This provides:
1. Traceability of which provider produced what the user saw
2. Debugging capability when a provider misbehaves
3. A record of how often users fall back to rule-based results

The audit logger:
- Is async so it sits naturally inside the orchestrator's coroutines
- Never raises into the caller (a logging failure must not fail a request)
- Supports correlation IDs to trace the events of one request
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_ai.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from expense_ai.models.provider import ProviderAttemptResult


_SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure stdlib logging and structlog.

    json_logs=False swaps the JSON renderer for the console renderer,
    which is easier to read during local development.
    """
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger().setLevel(level.upper())

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog for local logging
configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured log only. Nothing is persisted.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or structlog.get_logger("expense_ai.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        try:
            log_dict = event.to_log_dict()
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            logging.getLogger(__name__).warning("audit log write failed: %s", e)
            return False
        return True

    async def log_request(
        self,
        operation: str,
        input_size: int,
        correlation_id: UUID,
        has_budget: bool = False,
    ) -> None:
        """Log an incoming insights/answer/category request."""
        await self.log(AuditEventBuilder.request_received(
            operation=operation,
            input_size=input_size,
            correlation_id=correlation_id,
            has_budget=has_budget,
        ))

    async def log_welcome_returned(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.welcome_returned(correlation_id))

    async def log_provider_attempt(
        self,
        operation: str,
        attempt: ProviderAttemptResult,
        correlation_id: UUID,
    ) -> None:
        """Log one provider attempt, successful or not."""
        await self.log(AuditEventBuilder.provider_attempt(
            operation=operation,
            attempt=attempt,
            correlation_id=correlation_id,
        ))

    async def log_all_providers_failed(
        self,
        operation: str,
        attempts: list[ProviderAttemptResult],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.all_providers_failed(
            operation=operation,
            attempts=attempts,
            correlation_id=correlation_id,
        ))

    async def log_degraded_to_rules(self, insight_count: int, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.degraded_to_rules(insight_count, correlation_id))

    async def log_category_rules_fallback(self, category: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.category_rules_fallback(category, correlation_id))

    async def log_health_checked(
        self,
        provider: str,
        status: str,
        error: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.health_checked(provider, status, error))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an unexpected error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of each public operation and pass it through
    every provider attempt.
    """
    return uuid4()
