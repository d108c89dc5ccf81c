"""Screen state machine driven by session and profile state."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from cravecare.domain.models import UserProfile
from cravecare.errors import (
    CraveCareError,
    InvalidTransition,
    NotAuthenticated,
    PersistenceConflict,
)
from cravecare.services.store import CraveCareStore

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

_logger = logging.getLogger(__name__)


class AppState(str, Enum):
    """Top-level screens."""

    LOADING = "loading"
    AUTH = "auth"
    ONBOARDING = "onboarding"
    APP = "app"


class Tab(str, Enum):
    """Tabs inside the main app."""

    HOME = "home"
    TRACK = "track"
    GROCERY = "grocery"
    PROFILE = "profile"


@dataclass(frozen=True)
class Identity:
    """An authenticated user."""

    user_id: str
    email: str | None = None


class IdentityProvider(Protocol):
    """Interface for the external identity service."""

    def get_session(self) -> Identity | None:
        """Return the identity of the current session, if any."""

    def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with credentials or raise NotAuthenticated."""

    def sign_up(self, email: str, password: str) -> Identity | None:
        """Register; returns None while email confirmation is pending."""

    def sign_out(self) -> None:
        """End the current session."""


@dataclass
class StaticIdentityProvider(IdentityProvider):
    """Identity provider with a fixed, already verified session."""

    identity: Identity | None = None

    def get_session(self) -> Identity | None:
        return self.identity

    def sign_in(self, email: str, password: str) -> Identity:
        raise NotAuthenticated("Sign-in is not available for a fixed session")

    def sign_up(self, email: str, password: str) -> Identity | None:
        raise NotAuthenticated("Sign-up is not available for a fixed session")

    def sign_out(self) -> None:
        self.identity = None


@dataclass
class NavigationMachine:
    """Decides which screen is shown from session and profile state.

    Every reset bumps ``generation`` so callers can drop responses that
    arrive after the session they were issued for has ended.
    """

    identity_provider: IdentityProvider
    store: CraveCareStore
    state: AppState = AppState.LOADING
    identity: Identity | None = None
    profile: UserProfile | None = None
    tab: Tab = Tab.HOME
    generation: int = 0

    def launch(self) -> AppState:
        """Resolve the starting screen from an existing session."""
        try:
            identity = self.identity_provider.get_session()
        except NotAuthenticated:
            _logger.warning("Session lookup failed on launch")
            identity = None
        if identity is None:
            return self._to_auth()
        return self._resolve(identity)

    def handle_authenticated(self) -> AppState:
        """Re-resolve after the auth screen reports a successful sign-in."""
        try:
            identity = self.identity_provider.get_session()
        except NotAuthenticated:
            return self._to_auth()
        if identity is None:
            return self.state
        return self._resolve(identity)

    def handle_auth_event(self, event: str, identity: Identity | None) -> AppState:
        """Apply a notification from the identity provider."""
        if event == SIGNED_OUT or identity is None:
            return self._to_auth()
        if event == SIGNED_IN:
            return self._resolve(identity)
        return self.state

    def complete_onboarding(self, draft: UserProfile) -> AppState:
        """Persist the new profile and enter the app.

        A failed write still enters the app with the draft profile.
        """
        if self.state != AppState.ONBOARDING or self.identity is None:
            raise InvalidTransition(f"Cannot complete onboarding from {self.state}")
        user_id = self.identity.user_id
        try:
            self.store.create_profile(user_id, draft)
            self.profile = self.store.get_profile(user_id) or draft
        except (PersistenceConflict, OSError):
            _logger.exception("Saving profile failed for %s, continuing", user_id)
            self.profile = draft
        self.state = AppState.APP
        return self.state

    def logout(self) -> AppState:
        """Sign out, clear session state and return to auth."""
        try:
            self.identity_provider.sign_out()
        except CraveCareError:
            _logger.warning("Sign-out failed, clearing local session anyway")
        return self._to_auth()

    def select_tab(self, tab: Tab) -> Tab:
        """Switch tabs inside the main app."""
        if self.state != AppState.APP:
            raise InvalidTransition(f"Tabs are unavailable in {self.state}")
        self.tab = tab
        return self.tab

    def is_current(self, generation: int) -> bool:
        """Return whether a response issued at ``generation`` may be applied."""
        return generation == self.generation

    def _resolve(self, identity: Identity) -> AppState:
        self.identity = identity
        try:
            profile = self.store.get_profile(identity.user_id)
        except (PersistenceConflict, OSError):
            _logger.exception("Profile lookup failed for %s", identity.user_id)
            return self._to_auth()
        if profile is None:
            self.state = AppState.ONBOARDING
        else:
            self.profile = profile
            self.state = AppState.APP
        return self.state

    def _to_auth(self) -> AppState:
        self.identity = None
        self.profile = None
        self.tab = Tab.HOME
        self.generation += 1
        self.state = AppState.AUTH
        return self.state
