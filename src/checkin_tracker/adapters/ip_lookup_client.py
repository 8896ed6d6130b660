"""Public IP lookup client used for registration audit."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IpLookupResult:
    """Outcome of a best-effort IP lookup."""

    ip: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Return true when an address was resolved."""
        return self.ip is not None

    def value_or(self, default: str) -> str:
        """Collapse the result to an address or the given default."""
        return self.ip if self.ip is not None else default


class IpLookupClient(Protocol):
    """Interface for resolving the caller's public IP address."""

    async def lookup(self) -> IpLookupResult:
        """Return the public IP address, never raising."""


@dataclass
class HttpxIpLookupClient(IpLookupClient):
    """HTTPX-backed lookup against an ipify-style endpoint."""

    url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, url: str) -> "HttpxIpLookupClient":
        """Create a lookup client with a managed httpx session."""
        return cls(url=url, http_client=httpx.AsyncClient())

    async def lookup(self) -> IpLookupResult:
        """Fetch the public IP; failures are returned, not raised."""
        try:
            response = await self.http_client.get(self.url, timeout=5)
            response.raise_for_status()
            ip = response.json()["ip"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            _logger.warning("IP lookup failed: %s", exc)
            return IpLookupResult(error=f"{type(exc).__name__}: {exc}")
        if not isinstance(ip, str) or not ip:
            return IpLookupResult(error="empty ip in response")
        return IpLookupResult(ip=ip)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
