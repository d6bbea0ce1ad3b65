"""Log records as they travel through the shipping pipeline."""

from __future__ import annotations

import logging
import os
import types
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class LogLevel(str, Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"

    @classmethod
    def from_logging(cls, levelno: int) -> "LogLevel":
        if levelno >= logging.CRITICAL:
            return cls.FATAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.TRACE


def _utc_iso(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class LogEntry:
    level: LogLevel
    time: str
    pid: int
    msg: str
    meta: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        # read-only snapshot, detached from the caller's mapping
        if self.meta is not None:
            object.__setattr__(self, "meta", types.MappingProxyType(dict(self.meta)))

    @classmethod
    def create(
        cls,
        level: LogLevel | str,
        msg: str,
        meta: Optional[Mapping[str, Any]] = None,
        *,
        created: Optional[datetime] = None,
        pid: Optional[int] = None,
    ) -> "LogEntry":
        return cls(
            level=LogLevel(level),
            time=_utc_iso(created),
            pid=os.getpid() if pid is None else pid,
            msg=msg,
            meta=meta,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "level": self.level.value,
            "time": self.time,
            "pid": self.pid,
            "msg": self.msg,
        }
        if self.meta is not None:
            data["meta"] = dict(self.meta)
        return data


@dataclass
class BufferedItem:
    """A pending entry plus the number of failed deliveries it has been part of."""

    entry: LogEntry
    attempts: int = field(default=0)


__all__ = ["LogLevel", "LogEntry", "BufferedItem"]
