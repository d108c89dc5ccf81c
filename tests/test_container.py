"""Tests for container wiring."""

import asyncio

from cravecare.adapters.gemini_client import HttpxGeminiClient
from cravecare.adapters.openai_generative_client import OpenAIGenerativeClient
from cravecare.config import Settings
from cravecare.containers import build_container, build_generative_client
from cravecare.domain.models import TokenReason
from cravecare.services.navigation import Identity
from cravecare.services.store import LOCAL_PROFILE_ID


def test_build_container_creates_local_services(settings: Settings) -> None:
    container = build_container(settings)

    services = container.services_for(None)

    assert container.remote_store_factory is None
    assert container.resolve_identity("any-token") is None
    assert services.profile_id == LOCAL_PROFILE_ID
    assert services.rewards.daily_caps[TokenReason.HEALTHY_MEAL] == 2
    assert container.ai_service.runner.models == ("gemini-2.5-flash", "gemini-2.5-pro")
    asyncio.run(container.close_resources())


def test_identity_without_token_stays_local(settings: Settings) -> None:
    container = build_container(settings)

    services = container.services_for(Identity(user_id="user-1"))

    assert services.profile_id == LOCAL_PROFILE_ID
    asyncio.run(container.close_resources())


def test_generative_client_follows_provider(settings: Settings) -> None:
    openai_settings = settings.model_copy(
        update={"ai_provider": "openai", "openai_api_key": "sk-test"}
    )

    gemini = build_generative_client(settings)
    openai_client = build_generative_client(openai_settings)

    assert isinstance(gemini, HttpxGeminiClient)
    assert isinstance(openai_client, OpenAIGenerativeClient)
    asyncio.run(gemini.close())
    asyncio.run(openai_client.close())
