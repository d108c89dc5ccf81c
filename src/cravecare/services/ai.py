"""Recipe generation and dish grading through generative models."""

import asyncio
import json
import logging
import random
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar
from uuid import uuid4

from cravecare.domain.grading import (
    GENERIC_GRADE_FALLBACK,
    DishGradeResult,
    RecipePayload,
)
from cravecare.domain.phases import PHASES, Phase
from cravecare.domain.recipes import (
    Recipe,
    appliance_display_name,
    emoji_for_recipe,
    fallback_recipe,
)
from cravecare.errors import (
    InvalidResponseSchema,
    MissingCredential,
    NetworkFailure,
    RateLimited,
    UpstreamStatusError,
)

T = TypeVar("T")

_CODE_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)

_logger = logging.getLogger(__name__)

DISH_ANALYSIS_PROMPT = """You are a friendly nutrition coach for young women in India \
(hostel/college context). Look at this photo of a meal/dish.

Grade it on a "Hostel Grade" scale from A+ down to F: A+ = excellent, balanced, \
nutritious; A = great; B = good; C = okay; D = poor; F = very poor (e.g. only Maggi \
or junk). Consider: balance of protein, carbs, fat, fiber, veggies, and how \
filling/nutritious it looks.

Return ONLY a valid JSON object in this exact format:
{
  "grade": "A+" or "A" or "B" or "C" or "D" or "F",
  "protein": approximate grams (number),
  "carbs": approximate grams (number),
  "fat": approximate grams (number),
  "fiber": approximate grams (number),
  "calories": approximate calories for this plate (number),
  "verdict": "One short, warm, encouraging sentence (max 15 words) with an emoji.",
  "upgradeTip": "One specific, actionable tip to upgrade this exact dish for a \
better grade. Keep it under 20 words."
}"""


@dataclass(frozen=True)
class InlineImage:
    """Image bytes sent alongside a prompt."""

    data: bytes
    mime_type: str


@dataclass(frozen=True)
class RecipePreferences:
    """User preferences folded into recipe prompts."""

    has_pcos: bool = False
    primary_goal: str | None = None
    budget: float | None = None


@dataclass(frozen=True)
class AIOutcome(Generic[T]):
    """A generated value, or its static substitute with a notice."""

    value: T
    used_fallback: bool
    notice: str | None = None


class GenerativeClient(Protocol):
    """Interface for a text/vision model endpoint returning JSON text."""

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image: InlineImage | None,
        temperature: float,
    ) -> str | None:
        """Return the response text, or None when the body is empty.

        Raises RateLimited on HTTP 429, UpstreamStatusError on other error
        statuses, NetworkFailure when the request cannot be sent and
        InvalidResponseSchema when the body is not the expected envelope.
        """


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around a JSON payload."""
    return _CODE_FENCE.sub("", text).strip()


def parse_json_object(text: str) -> dict[str, object]:
    """Parse a model response into a JSON object."""
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as exc:
        raise InvalidResponseSchema(f"Response is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidResponseSchema("Response is not a JSON object")
    return data


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def build_recipe_prompt(
    appliance: str, phase: Phase, preferences: RecipePreferences | None = None
) -> str:
    """Build the recipe generation prompt."""
    info = PHASES[phase]
    prefs = preferences or RecipePreferences()
    lines = [
        "You are a helpful nutritionist creating recipes for women's health.",
        "Create a simple recipe that:",
        f"- Uses ONLY a {appliance_display_name(appliance)}",
        f"- Suitable for the {info.name} phase ({info.days})",
        f"- Focuses on {info.nutrient}",
        "- Budget-friendly Indian ingredients",
        "- Takes 5-10 minutes",
        "- Costs under ₹60 per serving",
    ]
    if prefs.has_pcos:
        lines.append("- Is PCOS-friendly")
    if prefs.primary_goal:
        lines.append(f"- Aligns with goal: {prefs.primary_goal}")
    lines.append("")
    lines.append("Return ONLY a valid JSON object in this exact format:")
    lines.append(
        json.dumps(
            {
                "name": "Recipe Name",
                "time": "X min",
                "calories": 200,
                "keyNutrient": info.nutrient,
                "ingredients": ["item 1", "item 2"],
                "steps": ["step 1", "step 2"],
            },
            indent=2,
            ensure_ascii=False,
        )
    )
    return "\n".join(lines)


@dataclass
class FallbackRunner:
    """Walks a model chain, retrying each model on rate limits.

    For each model, attempts run up to max_attempts. A 429 waits
    base_delay * 2**(attempt - 1) + jitter seconds and retries; any other
    failure, an empty body or an unparseable body moves to the next model.
    """

    client: GenerativeClient
    models: tuple[str, ...]
    max_attempts: int = 4
    base_delay_seconds: float = 2.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    jitter: Callable[[], float] = field(default_factory=lambda: random.Random().random)

    def retry_delay(self, attempt: int) -> float:
        """Return the backoff delay in seconds before the next attempt."""
        return self.base_delay_seconds * 2 ** (attempt - 1) + self.jitter()

    async def run(
        self,
        *,
        prompt: str,
        parse: Callable[[str], T],
        image: InlineImage | None = None,
        temperature: float = 0.7,
    ) -> T | None:
        """Return the first parsed result from the chain, or None."""
        for model in self.models:
            result = await self._run_model(model, prompt, parse, image, temperature)
            if result is not None:
                _logger.info("Generated response using %s", model)
                return result
            _logger.warning("Falling back from %s", model)
        _logger.error("All models exhausted without a usable response")
        return None

    async def _run_model(  # noqa: PLR0913
        self,
        model: str,
        prompt: str,
        parse: Callable[[str], T],
        image: InlineImage | None,
        temperature: float,
    ) -> T | None:
        for attempt in range(1, self.max_attempts + 1):
            try:
                text = await self.client.generate(
                    model=model, prompt=prompt, image=image, temperature=temperature
                )
            except RateLimited:
                if attempt >= self.max_attempts:
                    _logger.warning("Rate limited on %s, no retries left", model)
                    return None
                wait = self.retry_delay(attempt)
                _logger.warning(
                    "Rate limited on %s, retrying in %.1fs (attempt %s/%s)",
                    model,
                    wait,
                    attempt,
                    self.max_attempts,
                )
                await self.sleep(wait)
                continue
            except (UpstreamStatusError, NetworkFailure, InvalidResponseSchema) as exc:
                _logger.error("Model %s failed: %s", model, exc)
                return None
            if not text:
                _logger.error("Empty response body from %s", model)
                return None
            try:
                return parse(text)
            except InvalidResponseSchema as exc:
                _logger.error("Could not parse response from %s: %s", model, exc)
                return None
        return None


@dataclass
class AIService:
    """Builds prompts, runs the model chain and coerces results."""

    runner: FallbackRunner
    api_key: str | None

    async def generate_recipe(
        self,
        appliance: str,
        phase: Phase,
        preferences: RecipePreferences | None = None,
    ) -> Recipe | None:
        """Generate a recipe, or return None when every model fails."""
        self._require_credential()
        payload = await self.runner.run(
            prompt=build_recipe_prompt(appliance, phase, preferences),
            parse=parse_json_object,
            temperature=0.7,
        )
        if payload is None:
            return None
        data = RecipePayload.from_payload(payload)
        return Recipe(
            id=f"ai-{uuid4()}",
            name=data.name,
            appliance=appliance,
            phase=phase,
            time=data.time,
            calories=data.calories,
            key_nutrient=data.nutrient_or(phase),
            ingredients=tuple(data.ingredients),
            steps=tuple(data.steps),
            emoji=emoji_for_recipe(data.name, phase),
        )

    async def grade_dish(
        self, image_bytes: bytes, mime_type: str | None = None
    ) -> DishGradeResult | None:
        """Grade a dish photo, or return None when every model fails."""
        self._require_credential()
        image = InlineImage(
            data=image_bytes, mime_type=mime_type or detect_mime_type(image_bytes)
        )
        payload = await self.runner.run(
            prompt=DISH_ANALYSIS_PROMPT,
            parse=parse_json_object,
            image=image,
            temperature=0.5,
        )
        if payload is None:
            return None
        return DishGradeResult.from_payload(payload)

    async def recipe_or_fallback(
        self,
        appliance: str,
        phase: Phase,
        preferences: RecipePreferences | None = None,
    ) -> AIOutcome[Recipe]:
        """Generate a recipe, substituting the canned recipe on any failure."""
        try:
            recipe = await self.generate_recipe(appliance, phase, preferences)
        except MissingCredential:
            return AIOutcome(
                value=fallback_recipe(appliance, phase),
                used_fallback=True,
                notice=(
                    "Using fallback recipe. "
                    "Configure an AI API key for generated recipes."
                ),
            )
        if recipe is None:
            return AIOutcome(
                value=fallback_recipe(appliance, phase),
                used_fallback=True,
                notice="Failed to generate AI recipe. Using fallback recipe.",
            )
        return AIOutcome(value=recipe, used_fallback=False)

    async def grade_or_fallback(
        self, image_bytes: bytes, mime_type: str | None = None
    ) -> AIOutcome[DishGradeResult]:
        """Grade a dish, substituting a generic result on any failure."""
        try:
            result = await self.grade_dish(image_bytes, mime_type)
        except MissingCredential:
            result = None
        if result is None:
            return AIOutcome(
                value=GENERIC_GRADE_FALLBACK,
                used_fallback=True,
                notice="Couldn't grade this dish right now.",
            )
        return AIOutcome(value=result, used_fallback=False)

    def _require_credential(self) -> None:
        if not self.api_key:
            raise MissingCredential("No AI API key configured")
