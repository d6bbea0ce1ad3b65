from __future__ import annotations

import json

import pytest

from log_shipper.backends import GenericBackend, LogDNABackend, build_backend
from log_shipper.config import ShipperConfig
from log_shipper.models import LogEntry, LogLevel


def sample_entries() -> list[LogEntry]:
    return [
        LogEntry.create(LogLevel.INFO, "order created", {"order_id": "order_1"}, pid=42),
        LogEntry.create(LogLevel.WARN, "", None, pid=42),
    ]


def test_generic_without_key_has_no_authorization() -> None:
    backend = GenericBackend(ShipperConfig(url="https://ingest.example.com/bulk"))

    request = backend.build_request(sample_entries())

    assert "Authorization" not in request.headers
    assert request.headers["Content-Type"] == "application/json"
    assert request.url == "https://ingest.example.com/bulk"


def test_generic_posts_entry_array_with_bearer() -> None:
    backend = GenericBackend(ShipperConfig(url="https://ingest.example.com/bulk", api_key="secret"))

    request = backend.build_request(sample_entries())
    body = json.loads(request.body())

    assert request.headers["Authorization"] == "Bearer secret"
    assert isinstance(body, list)
    assert body[0] == {
        "level": "info",
        "time": body[0]["time"],
        "pid": 42,
        "msg": "order created",
        "meta": {"order_id": "order_1"},
    }
    assert "meta" not in body[1]


def test_generic_requires_url() -> None:
    with pytest.raises(ValueError):
        GenericBackend(ShipperConfig(provider_name="generic"))


def test_logdna_basic_auth_from_key() -> None:
    backend = LogDNABackend(ShipperConfig(provider_name="logdna", api_key="abc"), hostname="web-1")

    request = backend.build_request(sample_entries())

    assert request.headers["Authorization"] == "Basic YWJjOg=="


def test_logdna_lines_payload() -> None:
    backend = LogDNABackend(ShipperConfig(provider_name="logdna", app_name="checkout"), hostname="web 1")

    request = backend.build_request(sample_entries())
    body = json.loads(request.body())

    assert request.url == "https://logs.logdna.com/logs/ingest?hostname=web%201"
    assert "Authorization" not in request.headers
    first, second = body["lines"]
    assert first == {"line": "order created", "app": "checkout", "level": "info", "meta": {"order_id": "order_1"}}
    # empty messages ship the whole entry as the line
    assert json.loads(second["line"])["level"] == "warn"
    assert second["meta"] == {}


def test_logdna_configured_url_wins() -> None:
    backend = LogDNABackend(ShipperConfig(provider_name="logdna", url="https://proxy.internal/ingest"))
    assert backend.build_request(sample_entries()).url == "https://proxy.internal/ingest"


def test_logdna_hostname_escaped_like_a_uri_component() -> None:
    backend = LogDNABackend(ShipperConfig(provider_name="logdna"), hostname="web(1)!*' eu/west")
    assert backend.url == "https://logs.logdna.com/logs/ingest?hostname=web(1)!*'%20eu%2Fwest"


def test_build_backend_selects_by_provider() -> None:
    assert isinstance(build_backend(ShipperConfig(provider_name="logdna")), LogDNABackend)
    assert isinstance(build_backend(ShipperConfig(url="https://x.example.com")), GenericBackend)
    assert isinstance(build_backend(ShipperConfig(provider_name="papertrail", url="https://x.example.com")), GenericBackend)
