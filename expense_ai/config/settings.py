"""
Configuration Management for ExpenseTracker AI

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Environment settings are read here and ONLY here.
The orchestrator never reads the environment itself - it receives an
explicit OrchestratorConfig at construction, built from these settings
(or by hand in tests). No module holds provider credentials globally.
"""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from expense_ai.models.provider import OperationKind


class GroqSettings(BaseSettings):
    """Groq (OpenAI-compatible chat completions) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GROQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Groq API key (optional - provider is skipped without it)"
    )
    base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Groq API base URL"
    )
    # Tried in order; a model the API rejects as unknown is skipped
    models: list[str] = Field(
        default=[
            "llama-3.1-8b-instant",
            "llama-3.1-70b-versatile",
            "llama-3.3-70b-versatile",
            "mixtral-8x7b-32768",
        ],
        min_length=1,
        description="Model identifiers in order of preference"
    )
    default_confidence: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Confidence assigned to insights that omit one"
    )


class GeminiSettings(BaseSettings):
    """Google Gemini (generateContent REST API) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (optional - provider is skipped without it)"
    )
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Gemini API base URL"
    )
    models: list[str] = Field(
        default=["gemini-1.5-flash", "gemini-pro"],
        min_length=1,
        description="Model identifiers in order of preference"
    )
    api_versions: list[str] = Field(
        default=["v1", "v1beta"],
        min_length=1,
        description="API versions tried for each model"
    )
    default_confidence: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Confidence assigned to insights that omit one"
    )


class AIServiceSettings(BaseSettings):
    """
    Orchestration settings.

    Timeouts apply to ONE provider attempt, not the whole request.
    """

    model_config = SettingsConfigDict(
        env_prefix="AI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    provider_order: list[str] = Field(
        default=["groq", "gemini"],
        min_length=1,
        description="Providers in fallback order"
    )
    preferred_provider: Optional[str] = Field(
        default=None,
        description="Provider moved to the front of the fallback order"
    )

    # Per-attempt timeouts (seconds)
    insights_timeout_s: float = Field(default=30.0, gt=0)
    answer_timeout_s: float = Field(default=15.0, gt=0)
    category_timeout_s: float = Field(default=10.0, gt=0)
    health_timeout_s: float = Field(default=10.0, gt=0)

    # Response size caps (tokens)
    insights_max_tokens: int = Field(default=1500, ge=16, le=8192)
    answer_max_tokens: int = Field(default=400, ge=16, le=8192)
    category_max_tokens: int = Field(default=50, ge=1, le=512)

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False = human-readable console)"
    )

    @field_validator("provider_order")
    @classmethod
    def validate_provider_order(cls, v: list[str]) -> list[str]:
        """Reject duplicate providers in the fallback order."""
        normalized = [name.strip().lower() for name in v]
        if len(set(normalized)) != len(normalized):
            raise ValueError("provider_order must not repeat a provider")
        return normalized

    @field_validator("preferred_provider")
    @classmethod
    def normalize_preferred(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip().lower()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Loaded lazily so a missing optional key never blocks startup

    @property
    def groq(self) -> GroqSettings:
        return GroqSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def ai(self) -> AIServiceSettings:
        return AIServiceSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}. A provider section is
    valid only when it loads AND carries an API key.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("groq", "gemini"):
        try:
            section = getattr(settings, name)
            results[name] = bool(section.api_key)
            if not section.api_key:
                results[f"{name}_error"] = f"{name.upper()}_API_KEY is not set"
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    try:
        _ = settings.ai
        results["ai"] = True
    except Exception as e:
        results["ai"] = False
        results["ai_error"] = str(e)

    return results


# =============================================================================
# EXPLICIT ORCHESTRATOR CONFIGURATION
# =============================================================================

class ProviderConfig(BaseModel):
    """Everything one provider client needs. Built from settings or by hand."""

    name: str = Field(..., description="Provider identifier: groq or gemini")
    api_key: Optional[str] = None
    base_url: str
    models: list[str] = Field(..., min_length=1)
    api_versions: list[str] = Field(default_factory=list)
    default_confidence: float = Field(default=0.8, ge=0.0, le=1.0)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


class OperationBudget(BaseModel):
    """Timeout, size cap and sampling temperature for one operation."""

    timeout_s: float = Field(..., gt=0)
    max_tokens: int = Field(..., ge=1)
    temperature: float = Field(..., ge=0.0, le=2.0)


class OrchestratorConfig(BaseModel):
    """
    Complete configuration for the fallback orchestrator.

    providers is the fallback order. preferred_provider, when set,
    is moved to the front - the remaining providers keep their order
    and are always tried before giving up.
    """

    providers: list[ProviderConfig] = Field(..., min_length=1)
    preferred_provider: Optional[str] = None
    operations: dict[OperationKind, OperationBudget]

    def budget_for(self, operation: OperationKind) -> OperationBudget:
        return self.operations[operation]

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "OrchestratorConfig":
        """Build the orchestrator configuration from environment settings."""
        settings = settings or get_settings()
        ai = settings.ai
        groq = settings.groq
        gemini = settings.gemini

        known = {
            "groq": ProviderConfig(
                name="groq",
                api_key=groq.api_key,
                base_url=groq.base_url,
                models=groq.models,
                default_confidence=groq.default_confidence,
            ),
            "gemini": ProviderConfig(
                name="gemini",
                api_key=gemini.api_key,
                base_url=gemini.base_url,
                models=gemini.models,
                api_versions=gemini.api_versions,
                default_confidence=gemini.default_confidence,
            ),
        }

        unknown = [name for name in ai.provider_order if name not in known]
        if unknown:
            raise ValueError(f"Unknown providers in AI_PROVIDER_ORDER: {', '.join(unknown)}")

        return cls(
            providers=[known[name] for name in ai.provider_order],
            preferred_provider=ai.preferred_provider,
            operations={
                OperationKind.INSIGHTS: OperationBudget(
                    timeout_s=ai.insights_timeout_s,
                    max_tokens=ai.insights_max_tokens,
                    temperature=0.7,
                ),
                OperationKind.ANSWER: OperationBudget(
                    timeout_s=ai.answer_timeout_s,
                    max_tokens=ai.answer_max_tokens,
                    temperature=0.7,
                ),
                OperationKind.CATEGORY: OperationBudget(
                    timeout_s=ai.category_timeout_s,
                    max_tokens=ai.category_max_tokens,
                    temperature=0.3,  # classification favours determinism
                ),
                OperationKind.HEALTH: OperationBudget(
                    timeout_s=ai.health_timeout_s,
                    max_tokens=10,
                    temperature=0.0,
                ),
            },
        )
