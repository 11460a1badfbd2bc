"""MemoryPanelHost and host factory tests"""

from unittest.mock import Mock

import pytest

from rotalock.adapters import MemoryPanelHost, PanelCapability, create_host
from rotalock.rotation.filters import ObjectInfo


class TestPanels:
    """Panel lifecycle"""

    def test_open_panel_mirrors_selection(self):
        host = MemoryPanelHost()
        obj = host.create_object("Cube")
        host.select(obj)

        panel = host.open_panel()

        assert panel.displayed is obj
        assert not panel.locked
        assert panel.panel_id == "panel-1"

    def test_ids_never_reused(self):
        host = MemoryPanelHost()
        first = host.open_panel()
        host.close(first)
        second = host.open_panel()

        assert second.panel_id != first.panel_id
        assert not host.is_live(first)
        assert host.is_live(second)

    def test_locked_panel_ignores_selection(self, host):
        a, b, _ = host.list_panels()
        host.set_locked(a, True)
        obj = host.create_object("Cube")

        host.select(obj)

        assert a.displayed is None
        assert b.displayed is obj

    def test_repaint_unlocked_shows_selection(self, host):
        a = host.list_panels()[0]
        host.set_locked(a, True)
        obj = host.create_object("Cube")
        host.select(obj)

        host.set_locked(a, False)
        host.repaint(a)

        assert a.displayed is obj
        assert a.repaint_count == 1

    def test_closed_panel_ignores_calls(self, host):
        a = host.list_panels()[0]
        host.close(a)

        host.set_locked(a, True)

        assert not a.locked
        assert host.try_direct_update(a, host.create_object("Cube")) is False

    def test_find_panel(self, host):
        b = host.list_panels()[1]
        assert host.find_panel(host.panel_key(b)) is b
        assert host.find_panel("missing") is None


class TestDirectUpdate:
    """Direct update capability"""

    def test_direct_update_keeps_lock(self, host):
        a = host.list_panels()[0]
        host.set_locked(a, True)
        obj = host.create_object("Cube")

        assert host.try_direct_update(a, obj) is True
        assert a.displayed is obj
        assert a.locked

    def test_legacy_host_has_no_direct_update(self, legacy_host):
        a = legacy_host.list_panels()[0]
        assert not legacy_host.is_direct_update_supported()
        assert legacy_host.try_direct_update(a, legacy_host.create_object("Cube")) is False

    def test_destroyed_object_not_displayed(self, host):
        a = host.list_panels()[0]
        obj = host.create_object("Cube")
        host.try_direct_update(a, obj)

        host.destroy_object(obj)

        assert host.get_displayed_object(a) is None
        assert not host.is_object_valid(obj)
        assert host.resolve(obj.object_id) is None


class TestSelectionAndFocus:
    """Selection listeners and focus"""

    def test_listeners_notified_after_mirroring(self, host):
        a = host.list_panels()[0]
        seen = []
        host.subscribe(lambda obj: seen.append(a.displayed))
        obj = host.create_object("Cube")

        host.select(obj)

        assert seen == [obj]

    def test_unsubscribe(self, host):
        listener = Mock()
        host.subscribe(listener)
        host.subscribe(listener)
        assert host.listener_count == 1

        host.unsubscribe(listener)
        host.select(host.create_object("Cube"))

        listener.assert_not_called()

    def test_focus_surfaces(self, host):
        a = host.list_panels()[0]
        host.focus(a)
        assert host.get_focused_panel() is a
        assert not host.is_focus_on_non_rotatable()

        host.focus_surface_named("project")

        assert host.get_focused_panel() is None
        assert host.is_focus_on_non_rotatable()

    def test_describe(self, host):
        obj = host.create_object("Lit", kind="Shader", path="Assets/Lit.shader")
        assert host.describe(obj) == ObjectInfo(kind="Shader", path="Assets/Lit.shader")
        assert host.describe("other") is None
        assert obj.is_asset


class TestBaseDefaults:
    """PanelCapability default methods"""

    def test_lock_all_unlock_all(self, host):
        host.lock_all()
        assert all(p.locked for p in host.list_panels())
        host.unlock_all()
        assert not any(p.locked for p in host.list_panels())

    def test_abstract_contract(self):
        with pytest.raises(TypeError):
            PanelCapability()


class TestCreateHost:
    """Host factory"""

    def test_memory_host(self):
        host = create_host("memory", panels=2)
        assert isinstance(host, MemoryPanelHost)
        assert len(host.list_panels()) == 2
        assert host.is_direct_update_supported()

    def test_legacy_host(self):
        host = create_host("memory-legacy")
        assert not host.is_direct_update_supported()

    def test_unknown_host_raises(self):
        with pytest.raises(ValueError, match="Unknown host type"):
            create_host("remote")
