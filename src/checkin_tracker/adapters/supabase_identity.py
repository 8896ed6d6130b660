"""Supabase Auth identity provider."""

import logging
from dataclasses import dataclass

from supabase import AsyncClient, AuthError

from checkin_tracker.domain.errors import AuthenticationError
from checkin_tracker.domain.sessions import AdminIdentity
from checkin_tracker.services.auth import IdentityProvider

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Email/password identity backed by Supabase Auth.

    The client is shared by every admin, so its own stored session is never
    relied on: lookups and sign-out always name the caller's access token.
    """

    client: AsyncClient

    async def sign_in(self, email: str, password: str) -> AdminIdentity:
        """Sign in with email and password."""
        try:
            response = await self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            _logger.warning("Supabase sign-in failed: %s", exc)
            raise AuthenticationError("Invalid email or password") from exc
        if response.user is None or response.session is None:
            raise AuthenticationError("Invalid email or password")
        return AdminIdentity(
            uid=str(response.user.id),
            email=response.user.email,
            access_token=response.session.access_token,
        )

    async def sign_out(self, access_token: str) -> None:
        """Revoke the Supabase session that issued the access token."""
        try:
            await self.client.auth.admin.sign_out(access_token)
        except AuthError as exc:
            _logger.warning("Supabase sign-out failed: %s", exc)
            raise AuthenticationError("Not signed in") from exc

    async def get_user(self, access_token: str) -> AdminIdentity | None:
        """Return the user behind an access token."""
        try:
            response = await self.client.auth.get_user(access_token)
        except AuthError:
            return None
        if response is None or response.user is None:
            return None
        return AdminIdentity(
            uid=str(response.user.id),
            email=response.user.email,
            access_token=access_token,
        )
