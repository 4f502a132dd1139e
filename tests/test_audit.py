"""Tests for the audit logger."""

import asyncio

from expense_ai.audit import AuditLogger, create_correlation_id
from expense_ai.models import AuditEvent, AuditEventType, AuditSeverity


class BrokenLogger:
    """Stands in for a logger whose sink fails."""

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise OSError("disk full")
        return fail


class CapturingLogger:
    def __init__(self):
        self.calls = []

    def __getattr__(self, level):
        def capture(event, **kwargs):
            self.calls.append((level, event, kwargs))
        return capture


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_logs_at_event_severity(self):
        """Test that severity selects the log level."""
        capturing = CapturingLogger()
        audit = AuditLogger(logger=capturing)
        event = AuditEvent(
            event_type=AuditEventType.ALL_PROVIDERS_FAILED,
            severity=AuditSeverity.ERROR,
            description="All 2 providers failed for answer",
        )

        assert asyncio.run(audit.log(event)) is True

        level, name, fields = capturing.calls[0]
        assert level == "error"
        assert name == "audit_event"
        assert fields["event_type"] == "all_providers_failed"

    def test_logging_failure_does_not_raise(self):
        """Test that a failing sink never reaches the caller."""
        audit = AuditLogger(logger=BrokenLogger())
        event = AuditEvent(
            event_type=AuditEventType.INSIGHTS_REQUESTED,
            description="Insights requested",
        )

        assert asyncio.run(audit.log(event)) is False

    def test_helper_methods_share_correlation_id(self):
        """Test that helpers pass the correlation id through."""
        capturing = CapturingLogger()
        audit = AuditLogger(logger=capturing)
        correlation_id = create_correlation_id()

        asyncio.run(audit.log_request("category", 20, correlation_id))
        asyncio.run(audit.log_category_rules_fallback("Food", correlation_id))

        ids = {fields["correlation_id"] for _, _, fields in capturing.calls}
        assert ids == {str(correlation_id)}
