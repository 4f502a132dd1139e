"""Provider clients package."""

from typing import Optional

import httpx

from expense_ai.config.settings import ProviderConfig
from expense_ai.providers.base import (
    ExpenseAIError,
    GenerationRequest,
    NormalizationError,
    ProviderClient,
    ProviderError,
    classify_status,
)
from expense_ai.providers.gemini import GeminiClient
from expense_ai.providers.groq import GroqClient


PROVIDER_CLIENTS: dict[str, type[ProviderClient]] = {
    "groq": GroqClient,
    "gemini": GeminiClient,
}


def build_provider(
    config: ProviderConfig,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProviderClient:
    """Instantiate the client class registered for config.name."""
    try:
        client_cls = PROVIDER_CLIENTS[config.name]
    except KeyError:
        raise ValueError(f"Unknown provider: {config.name}")
    return client_cls(config, http_transport=http_transport)


__all__ = [
    "ExpenseAIError",
    "GeminiClient",
    "GenerationRequest",
    "GroqClient",
    "NormalizationError",
    "PROVIDER_CLIENTS",
    "ProviderClient",
    "ProviderError",
    "build_provider",
    "classify_status",
]
