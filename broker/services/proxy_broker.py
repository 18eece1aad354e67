"""Session-cached authenticated proxy.

For one adapter and one request:

1. resolve secrets (raw, or from the vault by credential reference)
2. derive the cache key from (service, host, hashed secret identity)
3. reuse a cached session, or log in and cache the new one
4. fetch with the session
5. on HTTP 401 from the primary call, drop the session, log in again and
   fetch once more; a second 401 is final
6. normalize

A request therefore logs in at most twice. Logins for the same key are
serialized, so concurrent requests against a cold key share one login.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import httpx

from broker.adapters.base import ServiceAdapter
from broker.services.errors import AuthenticationFailed, CredentialMissingField, Unauthorized, UpstreamTimeout
from broker.services.session_cache import SessionCache, make_cache_key
from broker.services.vault import CredentialVault

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialRef:
    credential_id: int
    user_id: int


class ProxyBroker:
    def __init__(self, cache: SessionCache, client: httpx.AsyncClient):
        self.cache = cache
        self.client = client
        self._login_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def resolve_secrets(
        self,
        adapter: ServiceAdapter,
        secrets: dict[str, Any] | None = None,
        ref: CredentialRef | None = None,
        vault: CredentialVault | None = None,
    ) -> dict[str, Any]:
        if ref is not None:
            if vault is None:
                raise RuntimeError("A credential reference needs a vault to resolve against")
            resolved = vault.resolve(ref.credential_id, ref.user_id)
        else:
            resolved = secrets or {}

        if not isinstance(resolved, dict):
            raise CredentialMissingField(f"{adapter.display_name} credential payload is not an object")
        missing = [f for f in adapter.required_fields if not resolved.get(f)]
        if missing:
            raise CredentialMissingField(
                f"{adapter.display_name} credential is missing: {', '.join(missing)}"
            )
        return resolved

    def cache_key(self, adapter: ServiceAdapter, host: str, secrets: dict[str, Any]) -> str:
        return make_cache_key(
            adapter.service_tag, host, *(str(secrets[f]) for f in adapter.identity_fields)
        )

    async def call(
        self,
        adapter: ServiceAdapter,
        host: str,
        *,
        secrets: dict[str, Any] | None = None,
        ref: CredentialRef | None = None,
        vault: CredentialVault | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Run one authenticated request against ``host`` and return normalized data."""
        host = host.rstrip("/")
        params = params or {}
        resolved = self.resolve_secrets(adapter, secrets, ref, vault)
        key = self.cache_key(adapter, host, resolved)

        session = self.cache.get(key)
        if session is None:
            session = await self._login(adapter, key, host, resolved)
        else:
            logger.debug(f"Using cached {adapter.display_name} session for {host}")

        try:
            raw = await adapter.fetch(self.client, host, session, params)
        except Unauthorized:
            logger.info(f"{adapter.display_name} rejected cached session for {host}; re-authenticating")
            self._discard(key, session)
            session = await self._login(adapter, key, host, resolved, stale=session)
            try:
                raw = await adapter.fetch(self.client, host, session, params)
            except Unauthorized:
                self._discard(key, session)
                raise AuthenticationFailed(
                    f"{adapter.display_name} rejected a freshly issued session",
                    remote_status=401,
                ) from None

        return adapter.normalize(raw, host, params)

    def _discard(self, key: str, session: Any) -> None:
        # Leave a newer session stored by a concurrent request in place
        self.cache.discard(key, session)

    @asynccontextmanager
    async def _key_lock(self, key: str):
        """Per-key login lock, dropped once no request holds or waits on it."""
        lock = self._login_locks.get(key)
        if lock is None:
            lock = self._login_locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._login_locks[key]

    async def _login(
        self,
        adapter: ServiceAdapter,
        key: str,
        host: str,
        secrets: dict[str, Any],
        stale: Any = None,
    ) -> Any:
        async with self._key_lock(key):
            # Another request may have logged in while this one waited
            current = self.cache.get(key)
            if current is not None and current is not stale:
                return current

            logger.info(f"Authenticating with {adapter.display_name} at {host}")
            try:
                session = await asyncio.wait_for(
                    adapter.login(self.client, host, secrets), adapter.login_timeout
                )
            except asyncio.TimeoutError:
                raise UpstreamTimeout(
                    f"{adapter.display_name} login did not answer within {adapter.login_timeout:g}s"
                ) from None
            self.cache.put(key, session, adapter.ttl)
            logger.info(f"{adapter.display_name} authentication successful, session cached")
            return session
