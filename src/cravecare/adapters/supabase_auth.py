"""Supabase Auth identity provider."""

from dataclasses import dataclass

from supabase import AuthError, Client

from cravecare.errors import NotAuthenticated
from cravecare.services.navigation import Identity, IdentityProvider


def _identity_from_user(user: object) -> Identity | None:
    user_id = getattr(user, "id", None)
    if not user_id:
        return None
    return Identity(user_id=str(user_id), email=getattr(user, "email", None))


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Identity provider backed by Supabase Auth."""

    client: Client

    def get_session(self) -> Identity | None:
        """Return the identity of the stored session, if any."""
        try:
            session = self.client.auth.get_session()
        except AuthError as exc:
            raise NotAuthenticated(str(exc)) from exc
        return _identity_from_user(getattr(session, "user", None))

    def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with email and password."""
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise NotAuthenticated(str(exc)) from exc
        identity = _identity_from_user(response.user)
        if identity is None:
            raise NotAuthenticated("Sign-in returned no user")
        return identity

    def sign_up(self, email: str, password: str) -> Identity | None:
        """Register a user; None while email confirmation is pending."""
        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except AuthError as exc:
            raise NotAuthenticated(str(exc)) from exc
        if response.session is None:
            return None
        return _identity_from_user(response.user)

    def sign_out(self) -> None:
        """End the current session."""
        try:
            self.client.auth.sign_out()
        except AuthError as exc:
            raise NotAuthenticated(str(exc)) from exc

    def identity_for_token(self, access_token: str) -> Identity | None:
        """Verify an access token and return its identity."""
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError:
            return None
        return _identity_from_user(getattr(response, "user", None))
