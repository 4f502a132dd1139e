"""
Gemini Provider Client

Google's generateContent REST API. Every (model, API version) pair is
tried in order, because model availability differs between v1 and
v1beta and between accounts.

Gemini has no system role on v1, so the system prompt is folded into
the user text.

GOTCHA: Gemini answers an invalid API key with 400, the same status it
uses for "unknown model". The error reason tells them apart - a bad key
must not be mistaken for model negotiation.
"""

from typing import Any, Optional

import httpx
from pydantic import BaseModel

from expense_ai.models.provider import ProviderErrorKind
from expense_ai.providers.base import GenerationRequest, ProviderClient, parse_envelope


# ----------------- Response envelope -----------------

class GeminiPart(BaseModel):
    text: Optional[str] = None


class GeminiContent(BaseModel):
    parts: list[GeminiPart] = []


class GeminiCandidate(BaseModel):
    content: Optional[GeminiContent] = None


class GeminiGenerateResponse(BaseModel):
    """The subset of a generateContent response we rely on."""

    candidates: list[GeminiCandidate] = []

    @property
    def text(self) -> Optional[str]:
        if not self.candidates or self.candidates[0].content is None:
            return None
        parts = self.candidates[0].content.parts
        return parts[0].text if parts else None


INVALID_KEY_REASONS = {"API_KEY_INVALID", "API_KEY_SERVICE_BLOCKED"}


class GeminiClient(ProviderClient):
    """Client for Gemini generateContent."""

    display_name = "Gemini"

    def _targets(self) -> list[tuple[str, Optional[str]]]:
        versions = self._config.api_versions or ["v1beta"]
        return [
            (model, version)
            for model in self._config.models
            for version in versions
        ]

    def _build_call(
        self,
        model: str,
        version: Optional[str],
        request: GenerationRequest,
    ) -> tuple[str, dict[str, str], dict[str, str], dict[str, Any]]:
        text = request.prompt
        if request.system_prompt:
            text = f"{request.system_prompt}\n\n{request.prompt}"

        url = (
            f"{self._config.base_url.rstrip('/')}/{version}/models/"
            f"{model}:generateContent"
        )
        headers = {"Content-Type": "application/json"}
        params = {"key": self._config.api_key or ""}
        payload = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_tokens,
                "candidateCount": 1,
            },
        }
        return url, headers, params, payload

    def _extract_text(self, data: Any) -> Optional[str]:
        envelope = parse_envelope(GeminiGenerateResponse, data)
        return envelope.text if envelope else None

    def _is_model_not_found(self, response: httpx.Response) -> bool:
        if response.status_code == 404:
            return True
        if response.status_code != 400:
            return False
        return not self._is_invalid_key(response)

    def _classify_failure(self, response: httpx.Response) -> ProviderErrorKind:
        if response.status_code == 400 and self._is_invalid_key(response):
            return ProviderErrorKind.UNAUTHORIZED
        return super()._classify_failure(response)

    @staticmethod
    def _is_invalid_key(response: httpx.Response) -> bool:
        try:
            body = response.json()
        except ValueError:
            return False
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            return False
        for detail in error.get("details") or []:
            if isinstance(detail, dict) and detail.get("reason") in INVALID_KEY_REASONS:
                return True
        return "api key not valid" in str(error.get("message", "")).lower()
