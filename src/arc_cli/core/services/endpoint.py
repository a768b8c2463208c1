"""Endpoint validation.

Runs before anything touches the network: a malformed `--address` is
rejected with zero side effects.
"""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from arc_cli.core.domain.models import Endpoint
from arc_cli.core.errors import InvalidEndpoint

_DEFAULT_PORTS = {"http": 80, "https": 443}


def validate_endpoint(value: str) -> Endpoint:
    """Parse a service URI such as `http://localhost:4225` into an `Endpoint`."""

    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, TypeError) as exc:
        raise InvalidEndpoint(f"Invalid URI {value!r}: {exc}") from exc

    if url.scheme not in _DEFAULT_PORTS:
        raise InvalidEndpoint(f"Invalid URI {value!r}: scheme must be http or https")
    if not url.host:
        raise InvalidEndpoint(f"Invalid URI {value!r}: missing host")

    try:
        return Endpoint(
            scheme=url.scheme,
            host=url.host,
            port=url.port or _DEFAULT_PORTS[url.scheme],
        )
    except ValidationError as exc:
        raise InvalidEndpoint(f"Invalid URI {value!r}: {exc.errors()[0]['msg']}") from exc
