from __future__ import annotations

import asyncio

import pytest

from log_shipper.scheduler import FlushScheduler


@pytest.mark.asyncio
async def test_second_schedule_is_ignored_while_armed() -> None:
    fired: list[int] = []
    scheduler = FlushScheduler(lambda: fired.append(1), loop=asyncio.get_running_loop())

    assert scheduler.schedule(10) is True
    assert scheduler.schedule(1) is False
    assert scheduler.pending_delay_ms == 10

    await asyncio.sleep(0.05)

    assert fired == [1]
    assert not scheduler.armed
    assert scheduler.pending_delay_ms is None


@pytest.mark.asyncio
async def test_cancel_returns_to_idle() -> None:
    fired: list[int] = []
    scheduler = FlushScheduler(lambda: fired.append(1), loop=asyncio.get_running_loop())

    scheduler.schedule(10)
    scheduler.cancel()
    scheduler.cancel()
    await asyncio.sleep(0.03)

    assert fired == []
    assert not scheduler.armed
    assert scheduler.schedule(10) is True
    scheduler.cancel()


@pytest.mark.asyncio
async def test_fire_callback_may_rearm() -> None:
    fired: list[bool] = []
    scheduler: FlushScheduler

    def on_fire() -> None:
        fired.append(scheduler.armed)
        if len(fired) < 2:
            scheduler.schedule(5)

    scheduler = FlushScheduler(on_fire, loop=asyncio.get_running_loop())
    scheduler.schedule(5)
    await asyncio.sleep(0.05)

    assert fired == [False, False]
    assert not scheduler.armed


def test_unbound_scheduler_refuses_to_arm() -> None:
    scheduler = FlushScheduler(lambda: None)
    with pytest.raises(RuntimeError):
        scheduler.schedule(10)
