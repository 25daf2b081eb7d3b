"""httpx wrapper for the GitHub REST API.

Why a wrapper:
- Standardizes base URL, timeouts, auth and API version headers.
- Eases testing: a `transport` can be injected (e.g. `httpx.MockTransport`).
"""

from __future__ import annotations

import httpx

from core.config import RelaySettings

GITHUB_API_VERSION = "2022-11-28"


def build_async_client(
    settings: RelaySettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` bound to the configured API.

    Why a builder:
    - Centralizes timeouts/headers so every endpoint behaves the same.
    - Redirects are followed: log downloads answer with a 302 to blob
      storage, and httpx drops the Authorization header on cross-origin hops.
    """

    settings = settings or RelaySettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    if settings.github_token:
        headers["Authorization"] = f"Bearer {settings.github_token}"
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=settings.api_url.rstrip("/"),
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )
