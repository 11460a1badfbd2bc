"""Timer tests"""

import asyncio
from unittest.mock import Mock

import pytest

from rotalock.core.idle import IdleQueue
from rotalock.telemetry import metrics
from rotalock.timer import Timer


@pytest.fixture
def timer():
    """Timer with a fast tick"""
    return Timer(tick_interval=0.05, idle=IdleQueue())


class TestTimerInterval:
    """Interval tasks"""

    @pytest.mark.asyncio
    async def test_register_interval_sync_callback(self, timer):
        """Sync callback runs periodically"""
        counter = {"value": 0}

        def sync_callback():
            counter["value"] += 1

        timer.register_interval("test_sync", 0.1, sync_callback)

        task = asyncio.create_task(timer.run())
        await asyncio.sleep(0.45)
        timer.stop()
        await asyncio.sleep(0.1)

        assert counter["value"] >= 3
        assert task.done()

    @pytest.mark.asyncio
    async def test_register_interval_async_callback(self, timer):
        """Async callback is awaited"""
        counter = {"value": 0}

        async def async_callback():
            counter["value"] += 1
            await asyncio.sleep(0.01)

        timer.register_interval("test_async", 0.1, async_callback)

        timer.start()
        await asyncio.sleep(0.45)
        timer.stop()
        await asyncio.sleep(0.1)

        assert counter["value"] >= 3

    def test_unregister_interval(self, timer):
        timer.register_interval("test", 0.1, Mock())
        assert timer.interval_task_count == 1

        assert timer.unregister_interval("test") is True
        assert timer.unregister_interval("test") is False
        assert timer.interval_task_count == 0

    def test_register_same_name_replaces(self, timer):
        timer.register_interval("sync", 0.1, Mock())
        timer.register_interval("sync", 0.2, Mock())

        assert timer.get_interval_tasks() == ["sync"]


class TestTimerTick:
    """Single tick behaviour"""

    @pytest.mark.asyncio
    async def test_tick_drains_idle_queue(self):
        idle = IdleQueue()
        timer = Timer(idle=idle)
        callback = Mock()
        idle.call_idle(callback)

        await timer.tick()

        callback.assert_called_once()

    @pytest.mark.asyncio
    async def test_interval_runs_before_idle_drain(self):
        idle = IdleQueue()
        timer = Timer(idle=idle)
        order = []
        idle.call_idle(lambda: order.append("idle"))
        timer.register_interval("sync", 10.0, lambda: order.append("sync"))

        await timer.tick()

        assert order == ["sync", "idle"]

    @pytest.mark.asyncio
    async def test_interval_not_due(self):
        timer = Timer()
        callback = Mock()
        timer.register_interval("slow", 3600.0, callback)

        await timer.tick()
        await timer.tick()

        assert callback.call_count == 1

    @pytest.mark.asyncio
    async def test_failing_callback_isolated(self):
        timer = Timer()
        timer.register_interval("bad", 0.0, Mock(side_effect=RuntimeError("boom")))
        good = Mock()
        timer.register_interval("good", 0.0, good)

        await timer.tick()

        good.assert_called_once()
        assert metrics.get_counter("timer.errors", {"task": "bad"}) == 1


class TestTimerLifecycle:
    @pytest.mark.asyncio
    async def test_stop_when_not_running(self, timer):
        timer.stop()
        assert not timer.is_running

    @pytest.mark.asyncio
    async def test_run_twice_warns(self, timer, caplog):
        timer.start()
        await asyncio.sleep(0.01)

        await timer.run()

        assert "Already running" in caplog.text
        timer.stop()
        await asyncio.sleep(0.06)
