from __future__ import annotations

from log_shipper.buffer import BatchBuffer
from log_shipper.models import LogEntry, LogLevel


def entry(msg: str) -> LogEntry:
    return LogEntry.create(LogLevel.INFO, msg)


def msgs(buffer: BatchBuffer) -> list[str]:
    return [item.entry.msg for item in buffer]


def test_append_grows_one_per_entry() -> None:
    buffer = BatchBuffer()
    for i in range(40):
        buffer.append(entry(str(i)))
        assert len(buffer) == i + 1
    assert all(item.attempts == 0 for item in buffer)


def test_take_batch_removes_from_head() -> None:
    buffer = BatchBuffer()
    for msg in "abcde":
        buffer.append(entry(msg))

    batch = buffer.take_batch(3)

    assert [item.entry.msg for item in batch] == ["a", "b", "c"]
    assert msgs(buffer) == ["d", "e"]
    assert [item.entry.msg for item in buffer.take_batch(10)] == ["d", "e"]
    assert buffer.take_batch(10) == []


def test_requeue_front_keeps_relative_order() -> None:
    buffer = BatchBuffer()
    for msg in "abcd":
        buffer.append(entry(msg))
    batch = buffer.take_batch(2)
    buffer.append(entry("e"))

    buffer.requeue_front(batch)

    assert msgs(buffer) == ["a", "b", "c", "d", "e"]


def test_bounded_buffer_evicts_oldest() -> None:
    buffer = BatchBuffer(max_size=3)
    evicted = [buffer.append(entry(msg)) for msg in "abcde"]

    assert evicted == [0, 0, 0, 1, 1]
    assert msgs(buffer) == ["c", "d", "e"]
    assert buffer.max_size == 3


def test_zero_max_size_means_unbounded() -> None:
    buffer = BatchBuffer(max_size=0)
    for i in range(100):
        buffer.append(entry(str(i)))
    assert len(buffer) == 100
    assert buffer.max_size is None
