"""OpenAI Responses API client for recipe and dish prompts."""

import base64
from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from cravecare.errors import NetworkFailure, RateLimited, UpstreamStatusError
from cravecare.services.ai import GenerativeClient, InlineImage


@dataclass
class OpenAIGenerativeClient(GenerativeClient):
    """Generative client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIGenerativeClient":
        """Create an OpenAI client; retries are left to the fallback runner."""
        return cls(client=AsyncOpenAI(api_key=api_key, max_retries=0))

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image: InlineImage | None,
        temperature: float,
    ) -> str | None:
        """Call OpenAI Responses API in JSON mode."""
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        if image is not None:
            encoded = base64.b64encode(image.data).decode("utf-8")
            content.append(
                {
                    "type": "input_image",
                    "image_url": f"data:{image.mime_type};base64,{encoded}",
                }
            )
        try:
            response = await self.client.responses.create(
                model=model,
                input=[{"role": "user", "content": content}],
                text={"format": {"type": "json_object"}},
                temperature=temperature,
                store=False,
            )
        except openai.RateLimitError as exc:
            raise RateLimited(f"Rate limited on {model}") from exc
        except openai.APIStatusError as exc:
            raise UpstreamStatusError(exc.status_code, exc.message) from exc
        except openai.APIConnectionError as exc:
            raise NetworkFailure(f"OpenAI request to {model} failed: {exc}") from exc
        return response.output_text or None

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
