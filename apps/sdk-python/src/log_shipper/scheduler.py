"""Single-timer flush scheduling."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class FlushScheduler:
    """Owns the one pending flush timer.

    Idle means no timer; Armed means exactly one ``call_later`` handle is
    pending. ``schedule`` never replaces an armed timer, so callers that want a
    different delay must ``cancel`` first.
    """

    def __init__(self, on_fire: Callable[[], None], loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._on_fire = on_fire
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._delay_ms: Optional[int] = None

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def pending_delay_ms(self) -> Optional[int]:
        return self._delay_ms if self._handle is not None else None

    def schedule(self, delay_ms: int) -> bool:
        """Arm the timer; returns False when one is already pending."""
        if self._handle is not None:
            return False
        if self._loop is None:
            raise RuntimeError("FlushScheduler is not bound to an event loop")
        self._delay_ms = delay_ms
        self._handle = self._loop.call_later(delay_ms / 1000.0, self._fire)
        logger.debug("Flush armed in %sms", delay_ms)
        return True

    def cancel(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        self._delay_ms = None

    def _fire(self) -> None:
        # Back to Idle before flushing so the flush itself may re-arm.
        self._handle = None
        self._delay_ms = None
        self._on_fire()


__all__ = ["FlushScheduler"]
