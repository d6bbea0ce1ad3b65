"""Batched, retrying delivery of log entries to a remote ingestion endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set

import httpx

from .backends import ShipBackend, build_backend
from .buffer import BatchBuffer
from .config import ShipperConfig
from .metrics import MetricsSnapshot, ShipperMetrics
from .models import BufferedItem, LogEntry
from .scheduler import FlushScheduler

logger = logging.getLogger(__name__)

BACKOFF_BASE_MS = 1000
BACKOFF_MAX_FACTOR = 8
BACKOFF_MAX_EXPONENT = 5


def backoff_delay_ms(attempts: int) -> int:
    """Retry delay after a failed batch whose items now carry ``attempts``."""
    exponent = min(BACKOFF_MAX_EXPONENT, max(attempts, 1))
    return BACKOFF_BASE_MS * min(BACKOFF_MAX_FACTOR, 2**exponent)


class LogShipper:
    """Accumulates log entries and ships them in batches.

    Everything that mutates the buffer, the flush timer or the counters runs on
    the event loop passed to :meth:`start`. ``enqueue`` may be called from any
    thread and never blocks or raises; off-loop calls are handed to the loop.

    Delivery is at-least-once. A failed batch goes back to the head of the
    buffer with every item's attempt count bumped, and items past
    ``max_retries`` are dropped with a warning.
    """

    def __init__(
        self,
        config: ShipperConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        backend: Optional[ShipBackend] = None,
    ) -> None:
        self._config = config
        self._enabled = config.enabled
        self._backend = backend if backend is not None else (build_backend(config) if self._enabled else None)
        self._buffer = BatchBuffer(max_size=config.max_buffer_size)
        self._scheduler = FlushScheduler(self._on_timer)
        self._metrics = ShipperMetrics(depth=lambda: len(self._buffer))
        self._client = httpx.AsyncClient(timeout=config.timeout, transport=transport)
        self._flush_lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()
        self._flush_task: Optional[asyncio.Task] = None
        self._backoff_armed = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._closed = False

    async def __aenter__(self) -> "LogShipper":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @property
    def config(self) -> ShipperConfig:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def buffer(self) -> BatchBuffer:
        return self._buffer

    @property
    def scheduler(self) -> FlushScheduler:
        return self._scheduler

    @property
    def metrics(self) -> ShipperMetrics:
        return self._metrics

    async def start(self) -> None:
        """Bind to the running loop and pick up anything buffered before startup."""
        self._loop = asyncio.get_running_loop()
        self._scheduler.bind(self._loop)
        if self._buffer:
            self._after_append()

    def enqueue(self, entry: LogEntry) -> None:
        if not self._enabled or self._closed:
            return
        loop = self._loop
        if loop is None:
            # Not started yet: hold the entry, start() arms the first flush.
            self._record_overflow(self._buffer.append(entry))
            return
        if _running_loop() is loop:
            self._enqueue_on_loop(entry)
            return
        try:
            loop.call_soon_threadsafe(self._enqueue_on_loop, entry)
        except RuntimeError:
            self._metrics.record_dropped(1, "loop_closed")

    def flush_now(self) -> Optional[asyncio.Task]:
        """Cancel any pending timer and start a flush without waiting for it."""
        loop = self._loop
        if loop is None or self._closed or not self._enabled:
            return None
        if _running_loop() is not loop:
            try:
                loop.call_soon_threadsafe(self.flush_now)
            except RuntimeError:
                logger.debug("Event loop closed; flush request ignored")
            return None
        self._cancel_timer()
        return self._request_flush()

    async def flush(self) -> bool:
        """Ship one batch from the head of the buffer; True when a batch was delivered."""
        async with self._flush_lock:
            return await self._ship_one_batch()

    def snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(
            provider=self._config.provider_name or None,
            url_configured=bool(self._config.url),
            buffer_size=len(self._buffer),
            batch_size=self._config.batch_size,
            flush_interval_ms=self._config.flush_interval_ms,
            max_retries=self._config.max_retries,
            max_buffer_size=self._buffer.max_size,
            last_flush_at=self._metrics.last_flush_iso(),
            total_batches_shipped=self._metrics.batches_shipped,
            total_batches_failed=self._metrics.batches_failed,
            total_entries_dropped=self._metrics.entries_dropped,
        )

    async def aclose(self) -> None:
        """Stop scheduling, let an in-flight flush finish, then release the client.

        Entries still buffered at this point are abandoned.
        """
        self._closed = True
        self._cancel_timer()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        abandoned = len(self._buffer)
        if abandoned:
            logger.warning("Abandoning %s buffered log entries on shutdown", abandoned)
        await self._client.aclose()

    def _enqueue_on_loop(self, entry: LogEntry) -> None:
        if self._closed:
            return
        self._record_overflow(self._buffer.append(entry))
        self._after_append()

    def _after_append(self) -> None:
        # A full buffer flushes at once unless failed items are waiting out their backoff.
        if len(self._buffer) >= self._config.batch_size and not self._in_backoff():
            self._cancel_timer()
            self._request_flush()
        else:
            self._scheduler.schedule(self._config.flush_interval_ms)

    def _in_backoff(self) -> bool:
        return self._backoff_armed and self._scheduler.armed

    def _cancel_timer(self) -> None:
        self._scheduler.cancel()
        self._backoff_armed = False

    def _on_timer(self) -> None:
        self._backoff_armed = False
        if not self._closed:
            self._request_flush()

    def _request_flush(self) -> asyncio.Task:
        """Start a flush task, or hand back the one already pending or in flight."""
        if self._flush_task is not None:
            return self._flush_task
        assert self._loop is not None
        task = self._loop.create_task(self._run_flush())
        self._flush_task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_flush(self) -> None:
        try:
            delivered = await self.flush()
        finally:
            self._flush_task = None
        # Keep draining while a full batch is waiting.
        if delivered and not self._closed and len(self._buffer) >= self._config.batch_size:
            self._cancel_timer()
            self._request_flush()

    async def _ship_one_batch(self) -> bool:
        if self._backend is None or not self._buffer:
            return False
        batch = self._buffer.take_batch(self._config.batch_size)
        entries = [item.entry for item in batch]
        try:
            request = self._backend.build_request(entries)
            response = await self._client.post(request.url, content=request.body(), headers=request.headers)
            response.raise_for_status()
        except Exception as exc:
            self._handle_failure(batch, exc)
            return False

        self._metrics.record_shipped()
        logger.debug("Shipped %s log entries to %s", len(batch), self._backend.provider.value)
        if self._buffer and not self._closed:
            self._scheduler.schedule(self._config.flush_interval_ms)
        return True

    def _handle_failure(self, batch: List[BufferedItem], exc: Exception) -> None:
        self._metrics.record_failed()
        logger.warning("Log batch of %s entries failed (%s); scheduling retry", len(batch), exc)

        retry: List[BufferedItem] = []
        exhausted = 0
        for item in batch:
            item.attempts += 1
            if item.attempts <= self._config.max_retries:
                retry.append(item)
            else:
                exhausted += 1
                logger.warning(
                    "Dropping log entry after %s attempts: level=%s msg=%s",
                    item.attempts,
                    item.entry.level.value,
                    item.entry.msg,
                )
        self._metrics.record_dropped(exhausted, "retries_exhausted")
        self._record_overflow(self._buffer.requeue_front(retry))

        if self._closed:
            return
        # Items in a batch always share an attempt count, so the head item keys the delay.
        if self._scheduler.schedule(backoff_delay_ms(batch[0].attempts)):
            self._backoff_armed = True

    def _record_overflow(self, evicted: int) -> None:
        if evicted:
            logger.warning("Log buffer full; discarded %s oldest entries", evicted)
            self._metrics.record_dropped(evicted, "overflow")


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


__all__ = ["LogShipper", "backoff_delay_ms"]
