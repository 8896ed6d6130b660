"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import AsyncClient, AsyncClientOptions

from checkin_tracker.adapters.ip_lookup_client import HttpxIpLookupClient
from checkin_tracker.adapters.supabase_identity import SupabaseIdentityProvider
from checkin_tracker.adapters.supabase_live_feed import SupabaseLiveFeed
from checkin_tracker.adapters.supabase_participant_repository import (
    SupabaseParticipantRepository,
)
from checkin_tracker.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from checkin_tracker.config import Settings, parse_admin_emails
from checkin_tracker.services.auth import AdminAuthService
from checkin_tracker.services.contacts import ContactExportService
from checkin_tracker.services.live import LiveFeed
from checkin_tracker.services.participants import ParticipantRegistrar
from checkin_tracker.services.sessions import SessionLifecycleService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    lifecycle_service: SessionLifecycleService
    registrar: ParticipantRegistrar
    export_service: ContactExportService
    auth_service: AdminAuthService
    live_feed: LiveFeed
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = AsyncClient(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    # Auth keeps its own client so admin sign-ins never change the service role.
    identity_client = AsyncClient(
        resolved_settings.supabase_url,
        resolved_settings.supabase_anon_key or resolved_settings.supabase_service_key,
        options=AsyncClientOptions(auto_refresh_token=False, persist_session=False),
    )
    session_repository = SupabaseSessionRepository(supabase_client)
    participant_repository = SupabaseParticipantRepository(supabase_client)
    ip_lookup_client = HttpxIpLookupClient.create(resolved_settings.ip_lookup_url)
    lifecycle_service = SessionLifecycleService(session_repository)
    registrar = ParticipantRegistrar(
        session_repository=session_repository,
        participant_repository=participant_repository,
        ip_lookup=ip_lookup_client,
    )
    export_service = ContactExportService(
        session_repository=session_repository,
        participant_repository=participant_repository,
        filename_prefix=resolved_settings.export_filename_prefix,
    )
    auth_service = AdminAuthService(
        identity=SupabaseIdentityProvider(identity_client),
        allowed_emails=parse_admin_emails(resolved_settings.admin_emails),
    )
    live_feed = SupabaseLiveFeed(
        client=supabase_client,
        session_repository=session_repository,
        participant_repository=participant_repository,
    )

    async def close_resources() -> None:
        await ip_lookup_client.close()

    return AppContainer(
        settings=resolved_settings,
        lifecycle_service=lifecycle_service,
        registrar=registrar,
        export_service=export_service,
        auth_service=auth_service,
        live_feed=live_feed,
        close_resources=close_resources,
    )
