"""Client for the external text-generation service (Gemini ``generateContent``)."""

import logging
from dataclasses import dataclass

import httpx

from mentorlink.core import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeminiClientConfig:
    api_key: str
    api_url: str
    timeout_seconds: float = 10.0

    @classmethod
    def from_settings(cls) -> 'GeminiClientConfig':
        return cls(
            api_key=config.GEMINI_API_KEY,
            api_url=config.GEMINI_API_URL,
            timeout_seconds=config.GEMINI_TIMEOUT_SECONDS,
        )


class TextGenerationError(Exception):
    """Raised when the service cannot produce text for a prompt."""


class GeminiTextClient:
    def __init__(self, client_config: GeminiClientConfig, http_client: httpx.Client | None = None):
        self.config = client_config
        self._http = http_client or httpx.Client(
            timeout=client_config.timeout_seconds,
            headers={'x-goog-api-key': client_config.api_key},
        )

    def generate(self, prompt: str) -> str:
        if not self.config.api_key:
            raise TextGenerationError('GEMINI_API_KEY is not configured')

        body = {'contents': [{'parts': [{'text': prompt}]}]}
        try:
            response = self._http.post(self.config.api_url, json=body)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TextGenerationError(f'Text generation request failed: {exc}') from exc

        text = extract_text(payload)
        if not text:
            raise TextGenerationError('Text generation returned no text')
        return text

    def close(self) -> None:
        self._http.close()


def extract_text(payload: dict) -> str | None:
    """Return the first candidate's first text part, if there is one."""
    if not isinstance(payload, dict):
        return None
    candidates = payload.get('candidates') or []
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return None
    content = candidates[0].get('content')
    if not isinstance(content, dict):
        return None
    parts = content.get('parts') or []
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get('text')
    return text.strip() if isinstance(text, str) and text.strip() else None
