"""Abstract base class for remote service adapters.

An adapter owns one remote authentication protocol and the data calls made
with the resulting session. The proxy broker drives every adapter through
the same ``login`` → ``fetch`` → ``normalize`` sequence; add a service by
adding a subclass and registering it in ``broker.adapters.ADAPTERS``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from broker.services.errors import AuthenticationFailed, Unauthorized, UpstreamError, UpstreamTimeout
from broker.utils.constants import LOGIN_TIMEOUT, SESSION_TTL_SECONDS

logger = logging.getLogger(__name__)


class ServiceAdapter(ABC):
    """Contract that every remote service adapter must satisfy."""

    service_tag: str
    display_name: str
    required_fields: tuple[str, ...] = ()
    # Secret fields that identify the remote account (folded into the cache key)
    identity_fields: tuple[str, ...] = ()
    login_timeout: float = LOGIN_TIMEOUT

    @property
    def ttl(self) -> float:
        return SESSION_TTL_SECONDS[self.service_tag]

    @abstractmethod
    async def login(self, client: httpx.AsyncClient, host: str, secrets: dict[str, Any]) -> Any:
        """Authenticate and return the session material to cache.

        Raises AuthenticationFailed when the remote rejects the credentials.
        """

    @abstractmethod
    async def fetch(
        self, client: httpx.AsyncClient, host: str, session: Any, params: dict[str, Any]
    ) -> Any:
        """Fetch raw data with a session.

        Raises Unauthorized when the primary call is rejected with HTTP 401.
        """

    @abstractmethod
    def normalize(self, raw: Any, host: str, params: dict[str, Any]) -> Any:
        """Shape the raw response into the adapter's output model."""

    # ── HTTP helpers ─────────────────────────────────────────────

    async def _post_login(
        self, client: httpx.AsyncClient, url: str, body: dict[str, Any]
    ) -> httpx.Response:
        try:
            resp = await client.post(url, json=body, timeout=self.login_timeout)
        except httpx.TimeoutException:
            raise UpstreamTimeout(
                f"{self.display_name} login did not answer within {self.login_timeout:g}s"
            ) from None
        except httpx.RequestError as e:
            raise UpstreamError(f"{self.display_name} unreachable: {e}") from None

        if resp.is_error:
            logger.warning(f"{self.display_name} login rejected: {resp.status_code}")
            raise AuthenticationFailed(
                f"{self.display_name} authentication failed: {resp.status_code} {resp.reason_phrase}",
                remote_status=resp.status_code,
            )
        return resp

    async def _get(
        self,
        client: httpx.AsyncClient,
        url: str,
        *,
        timeout: float,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            resp = await client.get(url, headers=headers, params=params, timeout=timeout)
        except httpx.TimeoutException:
            raise UpstreamTimeout(f"{self.display_name} did not answer within {timeout:g}s") from None
        except httpx.RequestError as e:
            raise UpstreamError(f"{self.display_name} unreachable: {e}") from None

        if resp.status_code == 401:
            raise Unauthorized(f"{self.display_name} rejected the session")
        if resp.is_error:
            raise UpstreamError(
                f"{self.display_name} returned {resp.status_code}: {resp.reason_phrase}",
                remote_status=resp.status_code,
            )
        return resp

    async def _get_json(self, client: httpx.AsyncClient, url: str, **kwargs) -> Any:
        resp = await self._get(client, url, **kwargs)
        try:
            return resp.json()
        except ValueError:
            raise UpstreamError(f"{self.display_name} returned invalid JSON") from None


def cookie_pairs(resp: httpx.Response) -> list[str]:
    """Return the ``name=value`` part of every Set-Cookie header."""
    return [c.split(";", 1)[0].strip() for c in resp.headers.get_list("set-cookie") if c.strip()]
