"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from cravecare.adapters.gemini_client import HttpxGeminiClient
from cravecare.adapters.local_store import JsonFileKeyValueStore, LocalCraveCareStore
from cravecare.adapters.openai_generative_client import OpenAIGenerativeClient
from cravecare.adapters.supabase_auth import SupabaseIdentityProvider
from cravecare.adapters.supabase_store import SupabaseCraveCareStore
from cravecare.config import Settings
from cravecare.domain.models import TokenReason
from cravecare.services.ai import AIService, FallbackRunner
from cravecare.services.grocery import GroceryService
from cravecare.services.navigation import Identity
from cravecare.services.rewards import DAILY_CAPS, RewardService
from cravecare.services.spend import SpendService
from cravecare.services.store import CraveCareStore, select_store


@dataclass
class ProfileServices:
    """Services bound to one owning profile."""

    store: CraveCareStore
    profile_id: str
    rewards: RewardService
    spend: SpendService
    grocery: GroceryService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    local_store: CraveCareStore
    remote_store_factory: Callable[[str], CraveCareStore] | None
    resolve_identity: Callable[[str], Identity | None]
    ai_service: AIService
    close_resources: Callable[[], Awaitable[None]]

    def services_for(
        self, identity: Identity | None, access_token: str | None = None
    ) -> ProfileServices:
        """Build unloaded services for the store that owns an identity."""
        remote = None
        if identity is not None and access_token and self.remote_store_factory:
            remote = self.remote_store_factory(access_token)
        store, profile_id = select_store(
            identity.user_id if identity else None, self.local_store, remote
        )
        timezone_name = self.settings.timezone
        caps = dict(DAILY_CAPS)
        caps[TokenReason.HEALTHY_MEAL] = self.settings.max_healthy_meal_tokens_per_day
        rewards = RewardService(
            store=store,
            profile_id=profile_id,
            timezone_name=timezone_name,
            tokens_per_cheat_day=self.settings.tokens_per_cheat_day,
            daily_caps=caps,
        )
        return ProfileServices(
            store=store,
            profile_id=profile_id,
            rewards=rewards,
            spend=SpendService(
                store=store,
                profile_id=profile_id,
                rewards=rewards,
                timezone_name=timezone_name,
            ),
            grocery=GroceryService(store=store, profile_id=profile_id),
        )


def build_generative_client(
    settings: Settings,
) -> HttpxGeminiClient | OpenAIGenerativeClient:
    """Create the model client for the configured provider."""
    if settings.ai_provider == "openai":
        return OpenAIGenerativeClient.create(settings.openai_api_key or "")
    return HttpxGeminiClient.create(
        api_key=settings.gemini_api_key or "",
        base_url=settings.gemini_base_url,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    local_store = LocalCraveCareStore(
        JsonFileKeyValueStore(Path(resolved_settings.local_store_path))
    )
    remote_store_factory: Callable[[str], CraveCareStore] | None = None
    identity_provider: SupabaseIdentityProvider | None = None
    if resolved_settings.remote_enabled:
        url = resolved_settings.supabase_url or ""
        anon_key = resolved_settings.supabase_anon_key or ""
        identity_provider = SupabaseIdentityProvider(create_client(url, anon_key))

        def remote_store(access_token: str) -> CraveCareStore:
            client = create_client(url, anon_key)
            client.postgrest.auth(access_token)
            return SupabaseCraveCareStore(client)

        remote_store_factory = remote_store

    def resolve_identity(access_token: str) -> Identity | None:
        if identity_provider is None:
            return None
        return identity_provider.identity_for_token(access_token)

    generative_client = build_generative_client(resolved_settings)
    ai_service = AIService(
        runner=FallbackRunner(
            client=generative_client,
            models=resolved_settings.model_chain,
            max_attempts=resolved_settings.ai_max_attempts,
            base_delay_seconds=resolved_settings.ai_base_retry_delay_seconds,
        ),
        api_key=resolved_settings.ai_api_key,
    )

    async def close_resources() -> None:
        await generative_client.close()

    return AppContainer(
        settings=resolved_settings,
        local_store=local_store,
        remote_store_factory=remote_store_factory,
        resolve_identity=resolve_identity,
        ai_service=ai_service,
        close_resources=close_resources,
    )
