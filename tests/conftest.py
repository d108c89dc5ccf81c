"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest

from cravecare.adapters.local_store import InMemoryKeyValueStore, LocalCraveCareStore
from cravecare.config import Settings
from cravecare.containers import AppContainer
from cravecare.errors import NotAuthenticated, PersistenceConflict
from cravecare.services.ai import (
    AIService,
    FallbackRunner,
    GenerativeClient,
    InlineImage,
)
from cravecare.services.navigation import Identity, IdentityProvider
from cravecare.services.store import CraveCareStore


@dataclass
class FixedClock:
    """Clock returning a controllable instant."""

    now: datetime = datetime(2024, 5, 10, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def sequential_ids(prefix: str = "id") -> Callable[[], str]:
    counter = count(1)
    return lambda: f"{prefix}-{next(counter)}"


@dataclass
class FlakyStore:
    """Store wrapper that fails the named operations."""

    inner: CraveCareStore
    fail_on: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def __getattr__(self, name: str):  # type: ignore[no-untyped-def]
        operation = getattr(self.inner, name)

        def wrapper(*args, **kwargs):  # type: ignore[no-untyped-def]
            self.calls.append(name)
            if name in self.fail_on:
                raise PersistenceConflict(f"{name} rejected")
            return operation(*args, **kwargs)

        return wrapper


@dataclass
class FakeGenerativeClient(GenerativeClient):
    """Generative client replaying scripted outcomes per model.

    Each scripted outcome is either response text, None, or an exception
    instance to raise.
    """

    script: dict[str, list[object]] = field(default_factory=dict)
    calls: list[dict[str, object]] = field(default_factory=list)

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image: InlineImage | None,
        temperature: float,
    ) -> str | None:
        self.calls.append(
            {
                "model": model,
                "prompt": prompt,
                "image": image,
                "temperature": temperature,
            }
        )
        outcomes = self.script.get(model, [])
        outcome = outcomes.pop(0) if outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        return outcome  # type: ignore[return-value]

    async def close(self) -> None:
        return None


@dataclass
class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@dataclass
class FakeIdentityProvider(IdentityProvider):
    """Identity provider with a switchable session."""

    session: Identity | None = None
    fail_sign_out: bool = False
    sign_outs: int = 0

    def get_session(self) -> Identity | None:
        return self.session

    def sign_in(self, email: str, password: str) -> Identity:
        self.session = Identity(user_id=f"user-{email}", email=email)
        return self.session

    def sign_up(self, email: str, password: str) -> Identity | None:
        return None

    def sign_out(self) -> None:
        self.sign_outs += 1
        if self.fail_sign_out:
            raise NotAuthenticated("session already gone")
        self.session = None


def build_runner(
    client: GenerativeClient, sleep: RecordingSleep | None = None
) -> FallbackRunner:
    return FallbackRunner(
        client=client,
        models=("gemini-2.5-flash", "gemini-2.5-pro"),
        max_attempts=4,
        base_delay_seconds=2.0,
        sleep=sleep or RecordingSleep(),
        jitter=lambda: 0.0,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv: InMemoryKeyValueStore, clock: FixedClock) -> LocalCraveCareStore:
    return LocalCraveCareStore(kv=kv, clock=clock, id_factory=sequential_ids())


@pytest.fixture
def settings(tmp_path) -> Settings:  # type: ignore[no-untyped-def]
    return Settings(
        _env_file=None,
        gemini_api_key="gemini-key",
        local_store_path=str(tmp_path / "local-store.json"),
        timezone="UTC",
    )


@pytest.fixture
def generative_client() -> FakeGenerativeClient:
    return FakeGenerativeClient()


@pytest.fixture
def container(
    settings: Settings,
    store: LocalCraveCareStore,
    generative_client: FakeGenerativeClient,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        local_store=store,
        remote_store_factory=None,
        resolve_identity=lambda _token: None,
        ai_service=AIService(
            runner=build_runner(generative_client), api_key=settings.ai_api_key
        ),
        close_resources=close_resources,
    )


@pytest.fixture
def remote_store(clock: FixedClock) -> LocalCraveCareStore:
    return LocalCraveCareStore(
        kv=InMemoryKeyValueStore(), clock=clock, id_factory=sequential_ids("remote")
    )


@pytest.fixture
def remote_container(
    container: AppContainer, remote_store: LocalCraveCareStore
) -> AppContainer:
    tokens = {"good-token": Identity(user_id="user-1", email="a@example.com")}
    container.remote_store_factory = lambda _token: remote_store
    container.resolve_identity = tokens.get
    return container
