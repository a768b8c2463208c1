"""httpx wrapper.

Why a wrapper:
- Standardizes the headers, timeouts and origin of every gRPC request.
- Eases testing: any `httpx.AsyncBaseTransport` (e.g. `httpx.MockTransport`)
  can stand in for the node.
"""

from __future__ import annotations

from typing import Awaitable, Callable

import httpx

from arc_cli.core.config import AppSettings
from arc_cli.core.domain.models import Endpoint

RequestHook = Callable[[httpx.Request], Awaitable[None]]


def build_origin_hook(endpoint: Endpoint) -> RequestHook:
    """Request hook that rewrites every outbound request to `endpoint`'s origin.

    The scheme, host and port of the request URL are replaced and the `Host`
    header (sent as `:authority` over HTTP/2) is set to the endpoint's
    authority. Raises `httpx.InvalidURL` when the endpoint cannot be expressed
    as a URL.
    """

    origin = httpx.URL(str(endpoint))
    authority = endpoint.authority

    async def set_origin(request: httpx.Request) -> None:
        request.url = request.url.copy_with(
            scheme=origin.scheme,
            host=origin.host,
            port=endpoint.port,
        )
        request.headers["Host"] = authority

    return set_origin


def build_async_client(
    endpoint: Endpoint,
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the `httpx.AsyncClient` used for gRPC calls to `endpoint`.

    Why a builder:
    - Every request carries the same origin, User-Agent and timeout policy.
    - `connect_timeout_seconds` unset means no timeout at all.
    """

    settings = settings or AppSettings()
    return httpx.AsyncClient(
        base_url=str(endpoint),
        transport=transport,
        timeout=httpx.Timeout(settings.connect_timeout_seconds),
        headers={"User-Agent": settings.user_agent},
        event_hooks={"request": [build_origin_hook(endpoint)]},
        follow_redirects=False,
    )
