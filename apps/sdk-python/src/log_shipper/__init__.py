"""Batched remote log shipping."""

from .backends import GenericBackend, LogDNABackend, ShipBackend, ShipRequest, build_backend
from .buffer import BatchBuffer
from .config import Provider, ShipperConfig
from .handler import ShippingHandler
from .metrics import MetricsSnapshot, ShipperMetrics
from .models import BufferedItem, LogEntry, LogLevel
from .scheduler import FlushScheduler
from .shipper import LogShipper, backoff_delay_ms

__all__ = [
    "BatchBuffer",
    "BufferedItem",
    "FlushScheduler",
    "GenericBackend",
    "LogDNABackend",
    "LogEntry",
    "LogLevel",
    "LogShipper",
    "MetricsSnapshot",
    "Provider",
    "ShipBackend",
    "ShipRequest",
    "ShipperConfig",
    "ShipperMetrics",
    "ShippingHandler",
    "backoff_delay_ms",
    "build_backend",
]
