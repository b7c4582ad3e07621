"""Tests for deferred page checks."""

import asyncio

import pytest

from pageflow.scheduler import AsyncioScheduler, ManualScheduler


def test_manual_scheduler_supersedes_pending_check():
    """Test that only the last scheduled callback for a key runs."""
    scheduler = ManualScheduler()
    calls = []
    scheduler.schedule("page", lambda: calls.append("first"))
    scheduler.schedule("page", lambda: calls.append("second"))
    assert scheduler.pending_count == 1
    assert scheduler.tick() == 1
    assert calls == ["second"]
    assert not scheduler.is_pending("page")


def test_manual_scheduler_defers_rescheduled_callbacks():
    scheduler = ManualScheduler()
    calls = []

    def again():
        calls.append("again")

    scheduler.schedule("a", lambda: scheduler.schedule("b", again))
    scheduler.tick()
    assert calls == []
    assert scheduler.is_pending("b")
    assert scheduler.flush() == 1
    assert calls == ["again"]


def test_manual_scheduler_cancel():
    scheduler = ManualScheduler()
    scheduler.schedule("page", lambda: None)
    assert scheduler.cancel("page")
    assert not scheduler.cancel("page")
    assert scheduler.tick() == 0


def test_flush_detects_endless_rescheduling():
    scheduler = ManualScheduler()

    def forever():
        scheduler.schedule("page", forever)

    scheduler.schedule("page", forever)
    with pytest.raises(RuntimeError):
        scheduler.flush(max_ticks=5)


def test_asyncio_scheduler_runs_on_next_tick():
    """Test that callbacks run on the event loop, latest one per key."""
    calls = []

    async def run():
        scheduler = AsyncioScheduler()
        scheduler.schedule("page", lambda: calls.append("first"))
        scheduler.schedule("page", lambda: calls.append("second"))
        assert calls == []
        assert scheduler.is_pending("page")
        await asyncio.sleep(0)
        assert not scheduler.is_pending("page")

    asyncio.run(run())
    assert calls == ["second"]


def test_asyncio_scheduler_logs_failures(caplog):
    async def run():
        scheduler = AsyncioScheduler()
        scheduler.schedule("page", lambda: 1 / 0)
        await asyncio.sleep(0)

    asyncio.run(run())
    assert "Scheduled check 'page' failed" in caplog.text


def test_asyncio_scheduler_cancel():
    calls = []

    async def run():
        scheduler = AsyncioScheduler()
        scheduler.schedule("page", lambda: calls.append("ran"))
        assert scheduler.cancel("page")
        await asyncio.sleep(0)

    asyncio.run(run())
    assert calls == []
