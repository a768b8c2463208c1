from __future__ import annotations

import pytest

from arc_cli.core.domain.models import Endpoint
from arc_cli.core.errors import InvalidEndpoint
from arc_cli.core.services.endpoint import validate_endpoint


def test_validate_endpoint_default_address() -> None:
    endpoint = validate_endpoint("http://localhost:4225")
    assert endpoint == Endpoint(scheme="http", host="localhost", port=4225)
    assert str(endpoint) == "http://localhost:4225"
    assert not endpoint.uses_tls


@pytest.mark.parametrize(
    ("uri", "port"),
    [("http://127.0.0.1", 80), ("https://node.example", 443), ("https://node.example:8443", 8443)],
)
def test_validate_endpoint_fills_scheme_default_port(uri: str, port: int) -> None:
    assert validate_endpoint(uri).port == port


def test_validate_endpoint_ipv6_authority_is_bracketed() -> None:
    endpoint = validate_endpoint("http://[::1]:4225")
    assert endpoint.host == "::1"
    assert endpoint.authority == "[::1]:4225"


@pytest.mark.parametrize(
    "uri",
    ["", "localhost:4225", "node-without-scheme", "ftp://node:4225", "http://", "http://node:notaport"],
)
def test_validate_endpoint_rejects_malformed_uri(uri: str) -> None:
    with pytest.raises(InvalidEndpoint, match="Invalid URI"):
        validate_endpoint(uri)
