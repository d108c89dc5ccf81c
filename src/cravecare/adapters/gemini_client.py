"""Google Gemini generateContent client."""

import base64
from dataclasses import dataclass

import httpx

from cravecare.errors import (
    InvalidResponseSchema,
    NetworkFailure,
    RateLimited,
    UpstreamStatusError,
)
from cravecare.services.ai import GenerativeClient, InlineImage

_TOO_MANY_REQUESTS = 429


@dataclass
class HttpxGeminiClient(GenerativeClient):
    """HTTPX-backed Gemini client requesting JSON output."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxGeminiClient":
        """Create a Gemini client with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image: InlineImage | None,
        temperature: float,
    ) -> str | None:
        """Call generateContent and return the first candidate's text."""
        parts: list[dict[str, object]] = []
        if image is not None:
            parts.append(
                {
                    "inlineData": {
                        "mimeType": image.mime_type,
                        "data": base64.b64encode(image.data).decode("ascii"),
                    }
                }
            )
        parts.append({"text": prompt})
        url = f"{self.base_url}/models/{model}:generateContent"
        try:
            response = await self.http_client.post(
                url,
                params={"key": self.api_key},
                json={
                    "contents": [{"parts": parts}],
                    "generationConfig": {
                        "responseMimeType": "application/json",
                        "temperature": temperature,
                    },
                },
                timeout=60,
            )
        except httpx.HTTPError as exc:
            raise NetworkFailure(f"Gemini request to {model} failed: {exc}") from exc
        if response.status_code == _TOO_MANY_REQUESTS:
            raise RateLimited(f"Rate limited on {model}")
        if response.is_error:
            raise UpstreamStatusError(response.status_code, response.text[:500])
        try:
            payload = response.json()
        except ValueError as exc:
            message = f"Gemini body from {model} is not JSON"
            raise InvalidResponseSchema(message) from exc
        return _candidate_text(payload)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _candidate_text(payload: object) -> str | None:
    """Extract candidates[0].content.parts[0].text from a response body."""
    if not isinstance(payload, dict):
        raise InvalidResponseSchema("Gemini body is not a JSON object")
    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list) or not candidates:
        return None
    candidate = candidates[0]
    content = candidate.get("content") if isinstance(candidate, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    return text if isinstance(text, str) and text else None
