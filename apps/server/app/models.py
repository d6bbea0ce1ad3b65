"""Pydantic models for the server's HTTP surface."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from log_shipper.metrics import MetricsSnapshot


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "server"


class IndexResponse(BaseModel):
    message: str
    endpoints: list[str]


class MetricsTokenConfig(BaseModel):
    token_present: bool


class LogShippingConfig(BaseModel):
    enabled: bool
    provider: Optional[str] = None


class ConfigResponse(BaseModel):
    metrics: MetricsTokenConfig
    log_shipping: LogShippingConfig


class LogShippingMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    provider: Optional[str] = None
    url_configured: bool = Field(alias="urlConfigured")
    buffer_size: int = Field(alias="bufferSize")
    batch_size: int = Field(alias="batchSize")
    flush_interval_ms: int = Field(alias="flushIntervalMs")
    max_retries: int = Field(alias="maxRetries")
    last_flush_at: Optional[str] = Field(default=None, alias="lastFlushAt")
    total_batches_shipped: int = Field(alias="totalBatchesShipped")
    total_batches_failed: int = Field(alias="totalBatchesFailed")
    total_entries_dropped: int = Field(default=0, alias="totalEntriesDropped")

    @classmethod
    def from_snapshot(cls, snapshot: MetricsSnapshot) -> "LogShippingMetrics":
        return cls(
            provider=snapshot.provider,
            url_configured=snapshot.url_configured,
            buffer_size=snapshot.buffer_size,
            batch_size=snapshot.batch_size,
            flush_interval_ms=snapshot.flush_interval_ms,
            max_retries=snapshot.max_retries,
            last_flush_at=snapshot.last_flush_at,
            total_batches_shipped=snapshot.total_batches_shipped,
            total_batches_failed=snapshot.total_batches_failed,
            total_entries_dropped=snapshot.total_entries_dropped,
        )


class MetricsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    log_shipping: LogShippingMetrics = Field(alias="logShipping")
