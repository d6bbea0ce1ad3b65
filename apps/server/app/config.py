"""Server configuration utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from log_shipper.config import ShipperConfig


@dataclass(frozen=True)
class ServerSettings:
    metrics_token: str = ""
    host: str = "0.0.0.0"
    port: int = 3000
    shipping: ShipperConfig = field(default_factory=ShipperConfig)

    @classmethod
    def from_env(cls) -> "ServerSettings":
        return cls(
            metrics_token=os.environ.get("METRICS_TOKEN", "").strip(),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "3000")),
            shipping=ShipperConfig.from_env(),
        )


__all__ = ["ServerSettings"]
