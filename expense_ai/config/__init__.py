"""Configuration package."""

from expense_ai.config.settings import (
    AIServiceSettings,
    GeminiSettings,
    GroqSettings,
    OperationBudget,
    OrchestratorConfig,
    ProviderConfig,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AIServiceSettings",
    "GeminiSettings",
    "GroqSettings",
    "OperationBudget",
    "OrchestratorConfig",
    "ProviderConfig",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
