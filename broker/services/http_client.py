"""Outbound HTTP client shared by all service adapters."""

from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx

from broker.config import settings


def _cookieless_jar() -> CookieJar:
    # Session cookies are carried explicitly per request from the SessionCache;
    # a shared jar would leak one user's controller session into another's calls.
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


def build_http_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Build the process-wide client. Owned by the app lifespan."""
    return httpx.AsyncClient(
        verify=settings.verify_tls,
        cookies=_cookieless_jar(),
        follow_redirects=False,
        timeout=httpx.Timeout(10.0),
        headers={"Accept": "application/json"},
        transport=transport,
    )
