"""Counters describing how log shipping is going."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest


@dataclass(frozen=True)
class MetricsSnapshot:
    provider: Optional[str]
    url_configured: bool
    buffer_size: int
    batch_size: int
    flush_interval_ms: int
    max_retries: int
    max_buffer_size: Optional[int]
    last_flush_at: Optional[str]
    total_batches_shipped: int
    total_batches_failed: int
    total_entries_dropped: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ShipperMetrics:
    """Lifetime counters for one shipper, mirrored into a private Prometheus registry."""

    def __init__(self, depth: Callable[[], int]) -> None:
        self.batches_shipped = 0
        self.batches_failed = 0
        self.entries_dropped = 0
        self.last_flush_at: Optional[datetime] = None

        self.registry = CollectorRegistry()
        self._shipped = Counter(
            "log_ship_batches_shipped_total",
            "Log batches delivered successfully",
            registry=self.registry,
        )
        self._failed = Counter(
            "log_ship_batches_failed_total",
            "Log batch delivery attempts that failed",
            registry=self.registry,
        )
        self._dropped = Counter(
            "log_ship_entries_dropped_total",
            "Log entries discarded without delivery",
            ["reason"],
            registry=self.registry,
        )
        self._depth = Gauge("log_ship_buffer_depth", "Entries waiting in the buffer", registry=self.registry)
        self._depth.set_function(lambda: float(depth()))

    def record_shipped(self, when: Optional[datetime] = None) -> None:
        self.batches_shipped += 1
        self.last_flush_at = when or datetime.now(timezone.utc)
        self._shipped.inc()

    def record_failed(self) -> None:
        self.batches_failed += 1
        self._failed.inc()

    def record_dropped(self, count: int, reason: str) -> None:
        if count <= 0:
            return
        self.entries_dropped += count
        self._dropped.labels(reason=reason).inc(count)

    def last_flush_iso(self) -> Optional[str]:
        if self.last_flush_at is None:
            return None
        return self.last_flush_at.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def exposition(self) -> bytes:
        return generate_latest(self.registry)


__all__ = ["MetricsSnapshot", "ShipperMetrics"]
