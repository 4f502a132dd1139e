"""
Groq Provider Client

Groq serves Llama/Mixtral models behind an OpenAI-compatible chat
completions endpoint. Requests carry a system and a user message;
the credential travels as a bearer token.
"""

from typing import Any, Optional

from pydantic import BaseModel

from expense_ai.providers.base import GenerationRequest, ProviderClient, parse_envelope


# ----------------- Response envelope -----------------

class GroqMessage(BaseModel):
    content: Optional[str] = None


class GroqChoice(BaseModel):
    message: Optional[GroqMessage] = None


class GroqChatResponse(BaseModel):
    """The subset of a chat completion we rely on."""

    choices: list[GroqChoice] = []

    @property
    def text(self) -> Optional[str]:
        if not self.choices or self.choices[0].message is None:
            return None
        return self.choices[0].message.content


class GroqClient(ProviderClient):
    """Client for Groq chat completions."""

    display_name = "Groq"

    def _targets(self) -> list[tuple[str, Optional[str]]]:
        return [(model, None) for model in self._config.models]

    def _build_call(
        self,
        model: str,
        version: Optional[str],
        request: GenerationRequest,
    ) -> tuple[str, dict[str, str], dict[str, str], dict[str, Any]]:
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        url = f"{self._config.base_url.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": model,
            "messages": messages,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        return url, headers, {}, payload

    def _extract_text(self, data: Any) -> Optional[str]:
        envelope = parse_envelope(GroqChatResponse, data)
        return envelope.text if envelope else None
