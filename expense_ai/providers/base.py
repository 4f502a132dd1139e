"""
Provider Client Base

DESIGN DECISION: A provider client performs exactly ONE request/response
cycle against one provider. It knows nothing about fallback, prompts or
insights. It:
1. Shapes the request the way its provider expects
2. Negotiates the model identifier (unknown model -> try the next one)
3. Extracts the text from the provider's response envelope
4. Classifies every failure into ProviderErrorKind

Anything that goes wrong surfaces as a ProviderError carrying a kind.
Opaque exceptions never leave this layer.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError

from expense_ai.config.settings import ProviderConfig
from expense_ai.models.provider import ProviderErrorKind


logger = structlog.get_logger(__name__)

# Transport-level ceiling. The orchestrator's per-attempt timeout is
# normally the tighter bound.
DEFAULT_HTTP_TIMEOUT_S = 60.0


class ExpenseAIError(Exception):
    """Base exception for the insight orchestrator."""
    pass


class ProviderError(ExpenseAIError):
    """One provider attempt failed, with a classified reason."""

    def __init__(self, kind: ProviderErrorKind, provider: str, message: str):
        self.kind = kind
        self.provider = provider
        super().__init__(message)


class NormalizationError(ExpenseAIError):
    """A provider answered but nothing usable could be extracted."""
    pass


class GenerationRequest(BaseModel):
    """Provider-agnostic description of one text generation."""

    prompt: str = Field(..., min_length=1)
    max_tokens: int = Field(..., ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    system_prompt: Optional[str] = None


def classify_status(status_code: int) -> ProviderErrorKind:
    """Map a non-success HTTP status to an error kind."""
    if status_code == 429:
        return ProviderErrorKind.RATE_LIMITED
    if status_code in (401, 403):
        return ProviderErrorKind.UNAUTHORIZED
    return ProviderErrorKind.SERVICE_UNAVAILABLE


def error_detail(response: httpx.Response) -> str:
    """Best-effort error text from a provider error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] if response.text else ""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return str(body)[:200]


class ProviderClient(ABC):
    """
    Abstract client for one text-generation provider.

    Subclasses describe the request shape and response envelope; the
    negotiation loop and error classification live here.
    """

    #: Display name used in aggregate error messages
    display_name: str = "Provider"

    def __init__(
        self,
        config: ProviderConfig,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config
        self._transport = http_transport

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def is_configured(self) -> bool:
        """Presence query for the credential - never contacts the provider."""
        return self._config.is_configured

    @property
    def default_confidence(self) -> float:
        return self._config.default_confidence

    # ----------------- Provider-specific shaping -----------------

    @abstractmethod
    def _targets(self) -> list[tuple[str, Optional[str]]]:
        """(model, api_version) pairs in order of preference."""

    @abstractmethod
    def _build_call(
        self,
        model: str,
        version: Optional[str],
        request: GenerationRequest,
    ) -> tuple[str, dict[str, str], dict[str, str], dict[str, Any]]:
        """Return (url, headers, query_params, json_payload)."""

    @abstractmethod
    def _extract_text(self, data: Any) -> Optional[str]:
        """Pull the completion text out of the response envelope."""

    def _is_model_not_found(self, response: httpx.Response) -> bool:
        """Whether a failed response means 'try the next model identifier'."""
        return response.status_code in (400, 404)

    def _classify_failure(self, response: httpx.Response) -> ProviderErrorKind:
        return classify_status(response.status_code)

    # ----------------- Core call -----------------

    def _fail(self, kind: ProviderErrorKind, message: str) -> ProviderError:
        return ProviderError(kind, self.name, message)

    async def generate(self, request: GenerationRequest) -> str:
        """
        Perform one generation against this provider.

        Returns the raw completion text (stripped).

        Raises:
            ProviderError: always classified, never opaque
        """
        if not self.is_configured:
            raise self._fail(
                ProviderErrorKind.UNCONFIGURED,
                f"{self.name.upper()}_API_KEY not configured",
            )

        rejected: list[str] = []

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=DEFAULT_HTTP_TIMEOUT_S,
            ) as client:
                for model, version in self._targets():
                    label = f"{model}/{version}" if version else model
                    url, headers, params, payload = self._build_call(model, version, request)

                    response = await client.post(
                        url,
                        headers=headers,
                        params=params,
                        json=payload,
                    )

                    if response.status_code >= 400:
                        if self._is_model_not_found(response):
                            logger.debug(
                                "provider_model_rejected",
                                provider=self.name,
                                model=label,
                                status=response.status_code,
                            )
                            rejected.append(label)
                            continue
                        raise self._fail(
                            self._classify_failure(response),
                            f"{self.display_name} API error ({label}): "
                            f"{response.status_code} - {error_detail(response)}",
                        )

                    try:
                        data = response.json()
                    except ValueError:
                        raise self._fail(
                            ProviderErrorKind.MALFORMED_RESPONSE,
                            f"{self.display_name} returned a non-JSON body ({label})",
                        )

                    text = self._extract_text(data)
                    if not text or not text.strip():
                        raise self._fail(
                            ProviderErrorKind.MALFORMED_RESPONSE,
                            f"No content received from {self.display_name} ({label})",
                        )

                    logger.debug("provider_call_succeeded", provider=self.name, model=label)
                    return text.strip()

        except httpx.TimeoutException as e:
            raise self._fail(
                ProviderErrorKind.TIMEOUT,
                f"{self.display_name} request timed out: {e}",
            )
        except httpx.HTTPError as e:
            raise self._fail(
                ProviderErrorKind.SERVICE_UNAVAILABLE,
                f"{self.display_name} transport error: {e}",
            )

        raise self._fail(
            ProviderErrorKind.SERVICE_UNAVAILABLE,
            f"All {self.display_name} models failed (rejected: {', '.join(rejected)})",
        )


def parse_envelope(model: type[BaseModel], data: Any) -> Optional[BaseModel]:
    """Validate a response envelope; None when the shape is unrecognizable."""
    try:
        return model.model_validate(data)
    except ValidationError:
        return None
