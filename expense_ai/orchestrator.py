"""
Main Orchestrator for ExpenseTracker AI

This module ties together all the components and defines the
end-to-end flows for:
1. Insights (expenses -> prompt -> providers in order -> normalize -> insights)
2. Answers (question -> prompt -> providers in order -> cleaned prose)
3. Category suggestion (description -> providers in order -> label)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Providers are tried sequentially, each at most once per request
- Exactly one provider's result is returned (results are never merged)
- Insights are never empty: total provider failure degrades to rules
- Every attempt is audited under the request's correlation id

This is the "glue" that ensures callers get a usable result even when
every external provider misbehaves.
"""

import asyncio
import time
from datetime import date
from enum import Enum
from typing import Any, Callable, Optional, Sequence
from uuid import UUID

import httpx
from pydantic import BaseModel, ConfigDict

from expense_ai.audit import AuditLogger, configure_logging, create_correlation_id
from expense_ai.config.settings import OrchestratorConfig, get_settings
from expense_ai.models.expense import BudgetContext, ExpenseRecord
from expense_ai.models.insight import CategorySuggestion, Insight
from expense_ai.models.provider import (
    HealthStatus,
    OperationKind,
    ProviderAttemptResult,
    ProviderErrorKind,
    ProviderHealth,
    ProviderInfo,
)
from expense_ai.normalization import clean_answer, normalize_category, require_insights
from expense_ai.prompts import (
    ANSWER_SYSTEM_PROMPT,
    CATEGORY_SYSTEM_PROMPT,
    INSIGHT_SYSTEM_PROMPT,
    build_answer_prompt,
    build_category_prompt,
    build_insight_prompt,
)
from expense_ai.providers import (
    ExpenseAIError,
    GenerationRequest,
    NormalizationError,
    ProviderClient,
    ProviderError,
    build_provider,
)
from expense_ai.rules import (
    BUDGET_INSIGHT_ID,
    build_budget_insight,
    classify_category,
    generate_rule_based_insights,
    welcome_insights,
)


MAX_CATEGORY_DESCRIPTION_LENGTH = 200
RULES_SOURCE = "rules"
RULES_CATEGORY_CONFIDENCE = 0.6
HEALTH_PROMPT = "Hello"

# parse(text, provider) -> value; raises NormalizationError when unusable
ParseFn = Callable[[str, ProviderClient], Any]


# =============================================================================
# FAILURE AGGREGATION
# =============================================================================

class FailureKind(str, Enum):
    """What an aggregate failure means to the user."""
    UNCONFIGURED = "unconfigured"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"


_USER_MESSAGES = {
    FailureKind.UNCONFIGURED: (
        "AI service is not configured. Please set GROQ_API_KEY or GEMINI_API_KEY."
    ),
    FailureKind.RATE_LIMITED: (
        "AI services are busy right now (rate limit reached). Please try again in a few minutes."
    ),
    FailureKind.UNAVAILABLE: (
        "AI services are temporarily unavailable. Please try again later."
    ),
}


class AllProvidersFailedError(ExpenseAIError):
    """
    Every provider in the fallback order failed for one request.

    Carries the full attempt list. Callers switch on failure_kind
    rather than inspecting the message.
    """

    def __init__(self, operation: OperationKind, attempts: list[ProviderAttemptResult]):
        self.operation = operation
        self.attempts = list(attempts)
        detail = "; ".join(a.label for a in self.attempts) or "no providers configured"
        super().__init__(f"All AI services failed: {detail}")

    @property
    def failure_kind(self) -> FailureKind:
        kinds = [a.error_kind for a in self.attempts]
        if all(kind == ProviderErrorKind.UNCONFIGURED for kind in kinds):
            return FailureKind.UNCONFIGURED
        if ProviderErrorKind.RATE_LIMITED in kinds:
            return FailureKind.RATE_LIMITED
        return FailureKind.UNAVAILABLE

    @property
    def user_message(self) -> str:
        return _USER_MESSAGES[self.failure_kind]


class FallbackOutcome(BaseModel):
    """The one successful result of a fallback sequence."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    value: Any
    provider: str
    attempts: list[ProviderAttemptResult]


# =============================================================================
# FALLBACK ORCHESTRATOR
# =============================================================================

class FallbackOrchestrator:
    """
    Runs one operation against providers in order until one succeeds.

    A provider attempt fails on a ProviderError, on the per-attempt
    timeout, or when parse() raises NormalizationError. Any failure
    moves on to the next provider; a provider is never retried.
    """

    def __init__(
        self,
        providers: Sequence[ProviderClient],
        config: OrchestratorConfig,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._providers = list(providers)
        self._config = config
        self._audit_logger = audit_logger

    @property
    def providers(self) -> list[ProviderClient]:
        """Providers in attempt order, preferred provider first."""
        preferred = self._config.preferred_provider
        if not preferred:
            return list(self._providers)
        return sorted(self._providers, key=lambda p: p.name != preferred)

    async def _attempt(
        self,
        provider: ProviderClient,
        request: GenerationRequest,
        parse: ParseFn,
        timeout_s: float,
        operation: OperationKind,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ProviderAttemptResult, Any]:
        started = time.monotonic()
        # unexpected errors before a reply arrives count as malformed replies
        unexpected_kind = ProviderErrorKind.MALFORMED_RESPONSE

        def elapsed() -> int:
            return int((time.monotonic() - started) * 1000)

        try:
            text = await asyncio.wait_for(provider.generate(request), timeout=timeout_s)
            unexpected_kind = ProviderErrorKind.NORMALIZATION_FAILURE
            value = parse(text, provider)
        except asyncio.TimeoutError:
            kind = ProviderErrorKind.TIMEOUT
            message = f"Request timed out after {timeout_s:g}s"
        except ProviderError as e:
            kind = e.kind
            message = str(e)
        except NormalizationError as e:
            kind = ProviderErrorKind.NORMALIZATION_FAILURE
            message = str(e)
        except Exception as e:
            kind = unexpected_kind
            message = f"Unexpected {type(e).__name__} while handling the reply: {str(e)[:200]}"
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=message,
                    details={
                        "provider": provider.name,
                        "operation": operation.value,
                        "error_kind": kind.value,
                    },
                    correlation_id=correlation_id,
                )
        else:
            return ProviderAttemptResult(
                provider=provider.name,
                succeeded=True,
                elapsed_ms=elapsed(),
            ), value

        return ProviderAttemptResult(
            provider=provider.name,
            succeeded=False,
            error_kind=kind,
            message=message,
            elapsed_ms=elapsed(),
        ), None

    async def run(
        self,
        operation: OperationKind,
        request: GenerationRequest,
        parse: ParseFn,
        correlation_id: Optional[UUID] = None,
    ) -> FallbackOutcome:
        """
        Try each provider once, in order.

        Returns:
            FallbackOutcome from the first provider whose reply parses

        Raises:
            AllProvidersFailedError: with every attempt, in order
        """
        correlation_id = correlation_id or create_correlation_id()
        timeout_s = self._config.budget_for(operation).timeout_s
        attempts: list[ProviderAttemptResult] = []

        for provider in self.providers:
            attempt, value = await self._attempt(
                provider, request, parse, timeout_s, operation, correlation_id
            )
            attempts.append(attempt)

            if self._audit_logger:
                await self._audit_logger.log_provider_attempt(
                    operation=operation.value,
                    attempt=attempt,
                    correlation_id=correlation_id,
                )

            if attempt.succeeded:
                return FallbackOutcome(value=value, provider=provider.name, attempts=attempts)

        if self._audit_logger:
            await self._audit_logger.log_all_providers_failed(
                operation=operation.value,
                attempts=attempts,
                correlation_id=correlation_id,
            )
        raise AllProvidersFailedError(operation, attempts)


# =============================================================================
# SERVICE
# =============================================================================

class ExpenseInsightService:
    """
    Public entry point for AI features.

    Flow per operation:
    1. Validate input and short-circuit where no provider is needed
    2. Build the prompt and the per-operation generation request
    3. Run the fallback sequence
    4. On total failure: rules (insights, category) or raise (answers)
    """

    def __init__(
        self,
        config: OrchestratorConfig,
        providers: Optional[Sequence[ProviderClient]] = None,
        audit_logger: Optional[AuditLogger] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config
        if providers is None:
            providers = [
                build_provider(provider_config, http_transport=http_transport)
                for provider_config in config.providers
            ]
        self._providers = list(providers)
        self._audit_logger = audit_logger
        self._orchestrator = FallbackOrchestrator(self._providers, config, audit_logger)

    @property
    def orchestrator(self) -> FallbackOrchestrator:
        return self._orchestrator

    def _request(self, operation: OperationKind, prompt: str, system_prompt: Optional[str]) -> GenerationRequest:
        budget = self._config.budget_for(operation)
        return GenerationRequest(
            prompt=prompt,
            max_tokens=budget.max_tokens,
            temperature=budget.temperature,
            system_prompt=system_prompt,
        )

    # ----------------- Insights -----------------

    async def generate_expense_insights(
        self,
        expenses: Sequence[ExpenseRecord],
        budget: Optional[BudgetContext] = None,
    ) -> list[Insight]:
        """
        Generate 3-5 insights, never an empty list.

        No expenses -> welcome insights, without contacting any provider.
        All providers failed -> rule-based insights.
        """
        correlation_id = create_correlation_id()

        if not expenses:
            if self._audit_logger:
                await self._audit_logger.log_welcome_returned(correlation_id)
            return welcome_insights()

        if self._audit_logger:
            await self._audit_logger.log_request(
                operation=OperationKind.INSIGHTS.value,
                input_size=len(expenses),
                correlation_id=correlation_id,
                has_budget=budget is not None,
            )

        request = self._request(
            OperationKind.INSIGHTS,
            build_insight_prompt(expenses, budget),
            INSIGHT_SYSTEM_PROMPT,
        )

        def parse(text: str, provider: ProviderClient) -> list[Insight]:
            return require_insights(
                text,
                default_confidence=provider.default_confidence,
                id_prefix=f"{provider.name}-insight",
            )

        try:
            outcome = await self._orchestrator.run(
                OperationKind.INSIGHTS, request, parse, correlation_id
            )
        except AllProvidersFailedError:
            insights = generate_rule_based_insights(expenses)
            if self._audit_logger:
                await self._audit_logger.log_degraded_to_rules(len(insights), correlation_id)
            return insights

        return outcome.value

    async def generate_dashboard_insights(
        self,
        expenses: Sequence[ExpenseRecord],
        budget: Optional[BudgetContext] = None,
        as_of: Optional[date] = None,
    ) -> list[Insight]:
        """
        Insights for the dashboard: the batch above, with a monthly
        budget status insight in front when a budget is set.
        """
        insights = await self.generate_expense_insights(expenses, budget)
        if budget is not None and not any(i.id == BUDGET_INSIGHT_ID for i in insights):
            insights.insert(0, build_budget_insight(budget, as_of or date.today()))
        return insights

    # ----------------- Answers -----------------

    async def generate_financial_answer(
        self,
        question: str,
        budget: Optional[BudgetContext] = None,
    ) -> str:
        """
        Answer a financial question in plain text.

        Raises:
            ValueError: empty question
            AllProvidersFailedError: no provider produced an answer
        """
        if not question or not question.strip():
            raise ValueError("Question cannot be empty")

        correlation_id = create_correlation_id()
        if self._audit_logger:
            await self._audit_logger.log_request(
                operation=OperationKind.ANSWER.value,
                input_size=len(question),
                correlation_id=correlation_id,
                has_budget=budget is not None,
            )

        request = self._request(
            OperationKind.ANSWER,
            build_answer_prompt(question, budget),
            ANSWER_SYSTEM_PROMPT,
        )
        outcome = await self._orchestrator.run(
            OperationKind.ANSWER,
            request,
            lambda text, provider: clean_answer(text),
            correlation_id,
        )
        return outcome.value

    # ----------------- Categories -----------------

    async def suggest_expense_category(self, description: str) -> CategorySuggestion:
        """
        Suggest a category for an expense description.

        Falls back to the keyword classifier when every provider fails,
        so provider failures never raise.

        Raises:
            ValueError: blank description or longer than 200 characters
        """
        if not description or not description.strip():
            raise ValueError("Description cannot be empty")
        description = description.strip()
        if len(description) > MAX_CATEGORY_DESCRIPTION_LENGTH:
            raise ValueError(
                f"Description must be at most {MAX_CATEGORY_DESCRIPTION_LENGTH} characters"
            )

        correlation_id = create_correlation_id()
        if self._audit_logger:
            await self._audit_logger.log_request(
                operation=OperationKind.CATEGORY.value,
                input_size=len(description),
                correlation_id=correlation_id,
            )

        request = self._request(
            OperationKind.CATEGORY,
            build_category_prompt(description),
            CATEGORY_SYSTEM_PROMPT,
        )
        try:
            outcome = await self._orchestrator.run(
                OperationKind.CATEGORY,
                request,
                lambda text, provider: normalize_category(text),
                correlation_id,
            )
        except AllProvidersFailedError:
            category = classify_category(description)
            if self._audit_logger:
                await self._audit_logger.log_category_rules_fallback(
                    category.value, correlation_id
                )
            return CategorySuggestion(
                category=category,
                source=RULES_SOURCE,
                confidence=RULES_CATEGORY_CONFIDENCE,
            )

        provider = next(p for p in self._providers if p.name == outcome.provider)
        return CategorySuggestion(
            category=outcome.value,
            source=outcome.provider,
            confidence=provider.default_confidence,
        )

    # ----------------- Provider status -----------------

    def check_api_keys(self) -> dict[str, bool]:
        """Which providers have a credential. Never contacts a provider."""
        return {provider.name: provider.is_configured for provider in self._providers}

    def has_any_provider(self) -> bool:
        return any(provider.is_configured for provider in self._providers)

    def describe_providers(self) -> list[ProviderInfo]:
        return [
            ProviderInfo(
                name=provider.name,
                models=list(provider.config.models),
                configured=provider.is_configured,
                default_confidence=provider.default_confidence,
            )
            for provider in self._orchestrator.providers
        ]

    async def _probe(self, provider: ProviderClient) -> ProviderHealth:
        budget = self._config.budget_for(OperationKind.HEALTH)
        request = GenerationRequest(
            prompt=HEALTH_PROMPT,
            max_tokens=budget.max_tokens,
            temperature=budget.temperature,
        )
        try:
            await asyncio.wait_for(provider.generate(request), timeout=budget.timeout_s)
        except asyncio.TimeoutError:
            health = ProviderHealth(
                provider=provider.name,
                status=HealthStatus.ERROR,
                error=f"Health check timed out after {budget.timeout_s:g}s",
            )
        except ProviderError as e:
            if e.kind == ProviderErrorKind.RATE_LIMITED:
                status = HealthStatus.RATE_LIMITED
            elif e.kind == ProviderErrorKind.UNCONFIGURED:
                status = HealthStatus.UNCONFIGURED
            else:
                status = HealthStatus.ERROR
            health = ProviderHealth(provider=provider.name, status=status, error=str(e))
        else:
            health = ProviderHealth(provider=provider.name, status=HealthStatus.HEALTHY)

        if self._audit_logger:
            await self._audit_logger.log_health_checked(
                provider=health.provider,
                status=health.status.value,
                error=health.error,
            )
        return health

    async def check_provider_health(self, provider: Optional[str] = None) -> list[ProviderHealth]:
        """
        Probe providers concurrently with a tiny request.

        Args:
            provider: only probe this provider (by name)

        Raises:
            ValueError: unknown provider name
        """
        targets = self._orchestrator.providers
        if provider is not None:
            targets = [p for p in targets if p.name == provider.strip().lower()]
            if not targets:
                raise ValueError(f"Unknown provider: {provider}")
        return list(await asyncio.gather(*(self._probe(p) for p in targets)))


def create_insight_service(
    config: Optional[OrchestratorConfig] = None,
    audit_logger: Optional[AuditLogger] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ExpenseInsightService:
    """
    Factory function to create the insight service.

    Args:
        config: explicit configuration; built from environment settings
                when omitted
        audit_logger: defaults to a local-only AuditLogger
        http_transport: httpx transport for the provider clients
                        (tests pass httpx.MockTransport)
    """
    if config is None:
        settings = get_settings()
        configure_logging(settings.ai.log_level, settings.ai.log_json)
        config = OrchestratorConfig.from_settings(settings)
    return ExpenseInsightService(
        config=config,
        audit_logger=audit_logger or AuditLogger(),
        http_transport=http_transport,
    )
