"""Pytest configuration and shared fixtures"""

import pytest

from rotalock.adapters.memory import MemoryPanelHost
from rotalock.bus import NotificationBus
from rotalock.core.clock import ManualClock
from rotalock.core.idle import IdleQueue
from rotalock.persistence import MemoryPersistence
from rotalock.rotation.scheduler import RotationScheduler
from rotalock.rotation.types import RotationMode, RotationSettings
from rotalock.telemetry import metrics


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics around every test"""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def host():
    """Memory host with three open panels"""
    host = MemoryPanelHost()
    for i in range(3):
        host.open_panel(title=f"Inspector {i + 1}")
    return host


@pytest.fixture
def legacy_host():
    """Memory host without direct update"""
    host = MemoryPanelHost(direct_update_supported=False)
    for i in range(3):
        host.open_panel(title=f"Inspector {i + 1}")
    return host


@pytest.fixture
def bus():
    return NotificationBus()


@pytest.fixture
def events(bus):
    """Every event published on ``bus``, in order"""
    received = []
    bus.subscribe_all(received.append)
    return received


@pytest.fixture
def idle():
    return IdleQueue()


@pytest.fixture
def clock():
    return ManualClock(start=100.0)


@pytest.fixture
def persistence():
    return MemoryPersistence()


@pytest.fixture
def make_scheduler(bus, idle, clock, persistence):
    """Factory building a scheduler subscribed to the given host"""
    created = []

    def factory(host, mode=RotationMode.CYCLE, auto_focus=False, **kwargs):
        settings = kwargs.pop("settings", None) or RotationSettings(
            mode=mode, auto_focus_on_update=auto_focus
        )
        kwargs.setdefault("persistence", persistence)
        scheduler = RotationScheduler(
            host,
            bus,
            settings=settings,
            idle=idle,
            clock=clock,
            selection_source=host,
            **kwargs,
        )
        created.append(scheduler)
        return scheduler

    yield factory

    for scheduler in created:
        scheduler.dispose()
