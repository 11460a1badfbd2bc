"""Lock command tests"""

from rotalock.adapters.memory import MemoryPanelHost
from rotalock.bus import LockChanged
from rotalock.commands import toggle_active_lock, toggle_all_locks


class TestToggleActiveLock:
    def test_toggles_focused_panel(self, host, bus, events):
        b = host.list_panels()[1]
        host.focus(b)

        assert toggle_active_lock(host, bus) is b

        assert host.is_locked(b)
        assert events == [LockChanged(panel=b, locked=True)]

    def test_falls_back_to_first_panel(self, host):
        a = host.list_panels()[0]
        host.set_locked(a, True)

        toggle_active_lock(host)

        assert not host.is_locked(a)

    def test_no_panels(self):
        assert toggle_active_lock(MemoryPanelHost()) is None


class TestToggleAllLocks:
    def test_any_unlocked_locks_all(self, host, bus, events):
        host.set_locked(host.list_panels()[0], True)

        assert toggle_all_locks(host, bus) is True

        assert all(host.is_locked(p) for p in host.list_panels())
        assert len(events) == 3

    def test_all_locked_unlocks_all(self, host):
        host.lock_all()

        assert toggle_all_locks(host) is False
        assert not any(host.is_locked(p) for p in host.list_panels())

    def test_no_panels(self):
        assert toggle_all_locks(MemoryPanelHost()) is None
