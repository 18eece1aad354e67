"""Pi-hole v6 adapter: password login, session id passed in the query string."""

import logging
from typing import Any

import httpx

from broker.adapters.base import ServiceAdapter
from broker.schemas.widgets import PiholeClients, PiholeGravity, PiholeQueries, PiholeSummary
from broker.services.errors import AuthenticationFailed, UpstreamError
from broker.utils.constants import PIHOLE_TIMEOUT

logger = logging.getLogger(__name__)


class PiholeAdapter(ServiceAdapter):
    service_tag = "pihole"
    display_name = "Pi-hole"
    required_fields = ("password",)
    identity_fields = ("password",)
    login_timeout = PIHOLE_TIMEOUT

    async def login(self, client: httpx.AsyncClient, host: str, secrets: dict[str, Any]) -> str:
        resp = await self._post_login(client, f"{host}/api/auth", {"password": secrets["password"]})
        try:
            session = resp.json().get("session") or {}
        except ValueError:
            raise UpstreamError("Pi-hole returned invalid JSON from /api/auth") from None

        if not session.get("valid") or not session.get("sid"):
            raise AuthenticationFailed(
                f"Pi-hole authentication failed: {session.get('message') or 'Invalid credentials'}",
                remote_status=resp.status_code,
            )
        return session["sid"]

    async def fetch(
        self, client: httpx.AsyncClient, host: str, session: str, params: dict[str, Any]
    ) -> dict:
        return await self._get_json(
            client,
            f"{host}/api/stats/summary",
            params={"sid": session},
            timeout=PIHOLE_TIMEOUT,
        )

    def normalize(self, raw: dict, host: str, params: dict[str, Any]) -> PiholeSummary:
        queries = raw.get("queries") or {}
        clients = raw.get("clients") or {}
        gravity = raw.get("gravity") or {}
        return PiholeSummary(
            queries=PiholeQueries(
                total=queries.get("total") or 0,
                blocked=queries.get("blocked") or 0,
                percent_blocked=queries.get("percent_blocked") or 0.0,
                unique_domains=queries.get("unique_domains") or 0,
                forwarded=queries.get("forwarded") or 0,
                cached=queries.get("cached") or 0,
            ),
            clients=PiholeClients(
                active=clients.get("active") or 0,
                total=clients.get("total") or 0,
            ),
            gravity=PiholeGravity(
                domains_being_blocked=gravity.get("domains_being_blocked") or 0,
                last_update=gravity.get("last_update"),
            ),
        )
