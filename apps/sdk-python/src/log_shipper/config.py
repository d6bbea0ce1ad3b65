"""Configuration objects for the log shipper."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Provider(str, Enum):
    GENERIC = "generic"
    LOGDNA = "logdna"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Provider":
        # Anything that is not a known line-oriented provider ships generically.
        normalized = (value or "").strip().lower()
        for provider in cls:
            if provider.value == normalized:
                return provider
        return cls.GENERIC


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class ShipperConfig:
    url: str = ""
    provider_name: str = ""
    api_key: str = ""
    batch_size: int = 25
    flush_interval_ms: int = 2000
    max_retries: int = 3
    app_name: str = "razorpay-server"
    timeout: float = 10.0
    max_buffer_size: int = 0

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.flush_interval_ms < 0:
            raise ValueError("flush_interval_ms must not be negative")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.max_buffer_size < 0:
            raise ValueError("max_buffer_size must not be negative")

    @property
    def provider(self) -> Provider:
        return Provider.parse(self.provider_name)

    @property
    def enabled(self) -> bool:
        """Shipping runs when there is somewhere to send to."""
        return bool(self.url) or self.provider is Provider.LOGDNA

    @classmethod
    def from_env(cls) -> "ShipperConfig":
        timeout_raw = os.environ.get("LOG_SHIP_TIMEOUT", "").strip()
        return cls(
            url=os.environ.get("LOG_SHIP_URL", "").strip(),
            provider_name=os.environ.get("LOG_SHIP_PROVIDER", "").strip().lower(),
            api_key=os.environ.get("LOG_SHIP_API_KEY", ""),
            batch_size=_int_env("LOG_BATCH_SIZE", 25),
            flush_interval_ms=_int_env("LOG_FLUSH_INTERVAL_MS", 2000),
            max_retries=_int_env("LOG_MAX_RETRIES", 3),
            app_name=os.environ.get("LOG_SHIP_APP", "razorpay-server"),
            timeout=float(timeout_raw) if timeout_raw else 10.0,
            max_buffer_size=_int_env("LOG_BUFFER_MAX", 0),
        )


__all__ = ["Provider", "ShipperConfig"]
