"""Groq chat-completions provider."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any

import aiohttp

from gate.analysis.provider import Provider, ProviderError

logger = logging.getLogger(__name__)

GROQ_URL = "https://api.groq.com/openai/v1/chat/completions"

SYSTEM_PROMPT = """You are a professional grammar and writing assistant. Analyze the provided text and return a JSON object with suggestions for improvements in grammar, spelling, punctuation, and style.

Return your response in this exact JSON format:
{
  "suggestions": [
    {
      "id": "unique-id",
      "category": "grammar|spelling|punctuation|style",
      "start": 0,
      "end": 10,
      "original": "text with issue",
      "replacements": ["corrected text"],
      "confidence": 0.95
    }
  ]
}

Rules:
- Only include actual errors or improvements
- Be conservative - don't flag correct text
- Provide clear, helpful replacements
- Use confidence scores: 0.9+ for clear errors, 0.7-0.9 for suggestions
- Return empty suggestions array if text is perfect"""


class GroqProvider(Provider):
    name = "groq"

    def __init__(
        self,
        api_key: str,
        model: str = "mixtral-8x7b-32768",
        url: str = GROQ_URL,
        session: aiohttp.ClientSession | None = None,
        timeout_sec: float = 30.0,
    ):
        self.api_key = api_key
        self.model = model
        self.url = url
        self.timeout = aiohttp.ClientTimeout(total=timeout_sec)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def analyze_text(self, text: str) -> dict[str, Any]:
        if not self.api_key:
            raise ProviderError("Groq API key not configured")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            "temperature": 0.3,
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with self._get_session().post(self.url, json=payload, headers=headers) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    logger.warning("groq request failed: %s", resp.status)
                    raise ProviderError(f"Groq API error: {resp.status} - {body}")
                try:
                    data = await resp.json(content_type=None)
                except ValueError as e:
                    raise ProviderError(f"Groq returned invalid JSON: {e}")
        except asyncio.TimeoutError:
            logger.warning("groq request timed out after %ss", self.timeout.total)
            raise ProviderError("Groq API request timed out")

        return self.parse_completion(data)

    @staticmethod
    def parse_completion(data: Any) -> dict[str, Any]:
        try:
            content = data["choices"][0]["message"]["content"]
            result = json.loads(content)
        except (KeyError, IndexError, TypeError, json.JSONDecodeError) as e:
            raise ProviderError(f"malformed Groq completion: {e}")
        if not isinstance(result, dict):
            raise ProviderError("Groq completion is not an object")

        suggestions = result.get("suggestions") or []
        stamp = int(time.time() * 1000)
        if isinstance(suggestions, list):
            suggestions = [
                {**s, "id": s.get("id") or f"groq-{stamp}-{i}"} if isinstance(s, dict) else s
                for i, s in enumerate(suggestions)
            ]
        result["suggestions"] = suggestions
        return result
