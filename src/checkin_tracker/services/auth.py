"""Admin authentication against the external identity provider."""

import logging
from dataclasses import dataclass
from typing import Protocol

from checkin_tracker.domain.errors import AuthenticationError, ValidationError
from checkin_tracker.domain.sessions import AdminIdentity

_logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """Interface for email/password identity services."""

    async def sign_in(self, email: str, password: str) -> AdminIdentity:
        """Sign in and return the identity with its access token."""

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""

    async def get_user(self, access_token: str) -> AdminIdentity | None:
        """Return the identity behind an access token, if valid."""


@dataclass
class AdminAuthService:
    """Signs admins in and out and checks bearer tokens."""

    identity: IdentityProvider
    allowed_emails: set[str] | None = None

    async def sign_in(self, email: str, password: str) -> AdminIdentity:
        """Sign an admin in with email and password."""
        email = (email or "").strip()
        password = (password or "").strip()
        if not email or not password:
            raise ValidationError("Please enter email and password")
        admin = await self.identity.sign_in(email, password)
        if not self._is_allowed(admin):
            _logger.warning("Sign-in rejected for non-admin %s", admin.email)
            raise AuthenticationError("Invalid email or password")
        _logger.info("Admin signed in: %s", admin.email)
        return admin

    async def sign_out(self, admin: AdminIdentity) -> None:
        """Revoke the given admin's own session."""
        if not admin.access_token:
            raise AuthenticationError("Not signed in")
        await self.identity.sign_out(admin.access_token)
        _logger.info("Admin signed out: %s", admin.email)

    async def authenticate(self, access_token: str | None) -> AdminIdentity:
        """Resolve a bearer token to an allowed admin."""
        if not access_token:
            raise AuthenticationError("Not signed in")
        admin = await self.identity.get_user(access_token)
        if admin is None or not self._is_allowed(admin):
            raise AuthenticationError("Not signed in")
        return admin

    def _is_allowed(self, admin: AdminIdentity) -> bool:
        if self.allowed_emails is None:
            return True
        return (admin.email or "").lower() in self.allowed_emails
