"""OpenAI-compatible chat completions over httpx."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are PiPa, a friendly assistant with the personality of a clever cat. "
    "You are helpful and concise, warm and motivating, with a playful feline touch "
    "and the occasional cat emoji. Help the user with whatever they ask, "
    "including staying on track with their habits."
)

PLACEHOLDER_KEYS = frozenset({"", "tu_api_key_aqui", "your_api_key_here", "changeme"})


@dataclass(frozen=True, slots=True)
class Completion:
    text: str
    tokens_used: int
    model: str


class ChatProviderError(Exception):
    """The completion call failed. ``code`` carries the API error code when present."""

    def __init__(self, message: str, code: str | None = None):
        self.code = code
        super().__init__(message)


def is_configured(api_key: str | None) -> bool:
    return api_key is not None and api_key.strip() not in PLACEHOLDER_KEYS


class ChatProvider:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-3.5-turbo",
        max_tokens: int = 500,
        temperature: float = 0.7,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._transport = transport

    async def complete(self, user_message: str) -> Completion:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_message},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint, headers=headers, json=body)
        except httpx.TimeoutException as exc:
            raise ChatProviderError("Timeout", code="timeout") from exc
        except httpx.HTTPError as exc:
            raise ChatProviderError(str(exc)) from exc

        if response.status_code >= 400:
            code = None
            try:
                error = response.json().get("error")
                if isinstance(error, dict):
                    code = error.get("code")
            except (ValueError, AttributeError):
                pass
            raise ChatProviderError(f"HTTP {response.status_code}", code=code)

        try:
            data = response.json()
            choices = data.get("choices") or []
            if not choices:
                raise ChatProviderError("Empty completion")
            text = choices[0]["message"]["content"]
            tokens = (data.get("usage") or {}).get("total_tokens", 0)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise ChatProviderError("Malformed completion", code="malformed_response") from exc
        if not isinstance(text, str):
            raise ChatProviderError("Malformed completion", code="malformed_response")
        logger.info("Completion generated (%d tokens)", tokens)
        return Completion(text=text, tokens_used=tokens, model=data.get("model", self.model))
