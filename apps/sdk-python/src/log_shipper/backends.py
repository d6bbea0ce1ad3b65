"""Provider adapters that turn entries into outbound requests."""

from __future__ import annotations

import base64
import json
import socket
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence
from urllib.parse import quote

from .config import Provider, ShipperConfig
from .models import LogEntry

LOGDNA_INGEST_URL = "https://logs.logdna.com/logs/ingest"
# characters a URI component keeps unescaped besides letters, digits and "-._~"
_URI_COMPONENT_SAFE = "!*'()"


@dataclass
class ShipRequest:
    url: str
    payload: Any
    headers: Dict[str, str] = field(default_factory=dict)

    def body(self) -> bytes:
        return json.dumps(self.payload, separators=(",", ":"), default=str).encode("utf-8")


class ShipBackend:
    provider: Provider

    def build_request(self, entries: Sequence[LogEntry]) -> ShipRequest:  # pragma: no cover - interface
        raise NotImplementedError


class GenericBackend(ShipBackend):
    """Posts the raw array of entries to an explicitly configured URL."""

    provider = Provider.GENERIC

    def __init__(self, config: ShipperConfig) -> None:
        if not config.url:
            raise ValueError("LOG_SHIP_URL must be configured for the generic shipper")
        self._config = config

    def build_request(self, entries: Sequence[LogEntry]) -> ShipRequest:
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return ShipRequest(
            url=self._config.url,
            payload=[entry.to_dict() for entry in entries],
            headers=headers,
        )


class LogDNABackend(ShipBackend):
    """Line-oriented ingestion with host/app metadata and Basic auth."""

    provider = Provider.LOGDNA

    def __init__(self, config: ShipperConfig, hostname: str | None = None) -> None:
        self._config = config
        host = hostname if hostname is not None else socket.gethostname()
        self._url = config.url or f"{LOGDNA_INGEST_URL}?hostname={quote(host or 'server', safe=_URI_COMPONENT_SAFE)}"

    @property
    def url(self) -> str:
        return self._url

    def _line(self, entry: LogEntry) -> Dict[str, Any]:
        return {
            "line": entry.msg or json.dumps(entry.to_dict(), separators=(",", ":"), default=str),
            "app": self._config.app_name,
            "level": entry.level.value if entry.level else "info",
            "meta": dict(entry.meta) if entry.meta else {},
        }

    def build_request(self, entries: Sequence[LogEntry]) -> ShipRequest:
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            token = base64.b64encode(f"{self._config.api_key}:".encode("utf-8")).decode("ascii")
            headers["Authorization"] = f"Basic {token}"
        lines: List[Dict[str, Any]] = [self._line(entry) for entry in entries]
        return ShipRequest(url=self._url, payload={"lines": lines}, headers=headers)


def build_backend(config: ShipperConfig) -> ShipBackend:
    provider = config.provider
    if provider is Provider.LOGDNA:
        return LogDNABackend(config)
    if provider is Provider.GENERIC:
        return GenericBackend(config)
    raise ValueError(f"Unsupported log shipping provider: {provider}")  # pragma: no cover - exhaustive


__all__ = [
    "LOGDNA_INGEST_URL",
    "ShipRequest",
    "ShipBackend",
    "GenericBackend",
    "LogDNABackend",
    "build_backend",
]
