"""Bridge from the standard ``logging`` module into a :class:`LogShipper`."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from .models import LogEntry, LogLevel
from .shipper import LogShipper

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}

# Loggers written to while shipping; forwarding them would feed the buffer from its own flushes.
INTERNAL_LOGGERS = ("log_shipper", "httpx", "httpcore")


class ShippingHandler(logging.Handler):
    """Enqueues every record it handles; never blocks the logging call."""

    def __init__(
        self,
        shipper: LogShipper,
        level: int = logging.NOTSET,
        exclude: Iterable[str] = INTERNAL_LOGGERS,
    ) -> None:
        super().__init__(level=level)
        self._shipper = shipper
        self._exclude = tuple(exclude)

    def emit(self, record: logging.LogRecord) -> None:
        if self._is_excluded(record.name):
            return
        try:
            self._shipper.enqueue(record_to_entry(record))
        except Exception:
            self.handleError(record)

    def _is_excluded(self, name: str) -> bool:
        return any(name == prefix or name.startswith(prefix + ".") for prefix in self._exclude)


def record_to_entry(record: logging.LogRecord) -> LogEntry:
    meta = _extra_fields(record)
    if record.exc_info and record.exc_info[0] is not None:
        meta = dict(meta or {})
        meta["exc_info"] = logging.Formatter().formatException(record.exc_info)
    return LogEntry.create(
        LogLevel.from_logging(record.levelno),
        record.getMessage(),
        meta,
        created=datetime.fromtimestamp(record.created, tz=timezone.utc),
        pid=record.process,
    )


def _extra_fields(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    extra = {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }
    return extra or None


__all__ = ["ShippingHandler", "record_to_entry"]
