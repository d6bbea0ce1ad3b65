"""In-memory queue of entries waiting to be shipped."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, Iterator, List, Optional

from .models import BufferedItem, LogEntry


class BatchBuffer:
    """Ordered pending entries with per-item attempt counts.

    Fresh entries are appended at the tail and leave from the head, but items
    that failed delivery are put back at the head. Once retries happen the
    delivery order is therefore not strictly FIFO; retried items jump ahead of
    anything enqueued while their batch was in flight.

    Only the event loop that owns the shipper touches the buffer, so there is
    no locking here.
    """

    def __init__(self, max_size: Optional[int] = None) -> None:
        self._items: Deque[BufferedItem] = deque()
        self._max_size = max_size or None

    def append(self, entry: LogEntry) -> int:
        """Queue ``entry`` and return how many old items were evicted for it."""
        self._items.append(BufferedItem(entry=entry))
        return self._evict_overflow()

    def take_batch(self, max_size: int) -> List[BufferedItem]:
        count = min(max_size, len(self._items))
        return [self._items.popleft() for _ in range(count)]

    def requeue_front(self, items: Iterable[BufferedItem]) -> int:
        # extendleft reverses its input; feed it reversed to keep batch order.
        self._items.extendleft(reversed(list(items)))
        return self._evict_overflow()

    def _evict_overflow(self) -> int:
        if self._max_size is None:
            return 0
        evicted = 0
        while len(self._items) > self._max_size:
            self._items.popleft()
            evicted += 1
        return evicted

    @property
    def max_size(self) -> Optional[int]:
        return self._max_size

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[BufferedItem]:
        return iter(list(self._items))


__all__ = ["BatchBuffer"]
