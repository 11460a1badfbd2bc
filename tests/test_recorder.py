"""HistoryRecorder tests"""

import pytest

from rotalock.history import FavoritesService, HistoryRecorder, SelectionHistory


@pytest.fixture
def recorder(host, bus):
    history = SelectionHistory(host.resolve, host.select, bus=bus)
    favorites = FavoritesService(host.resolve, bus=bus)
    recorder = HistoryRecorder(history, favorites, host)
    yield recorder
    recorder.dispose()


class TestRecording:
    """Selection -> history"""

    def test_records_host_selection(self, recorder, host):
        host.select(host.create_object("Player"))
        host.select(host.create_object("Enemy"))

        assert [e.name for e in recorder.history.entries()] == ["Player", "Enemy"]

    def test_skip_assets_when_disabled(self, recorder, host):
        recorder.record_assets = False

        host.select(host.create_object("Lit", kind="Shader", path="Assets/Lit.shader"))
        host.select(host.create_object("Player"))

        assert [e.name for e in recorder.history.entries()] == ["Player"]

    def test_skip_scene_objects_when_disabled(self, recorder, host):
        recorder.record_scene_objects = False

        host.select(host.create_object("Player"))

        assert recorder.history.entries() == []

    def test_recording_switch(self, recorder, host):
        recorder.recording_enabled = False
        host.select(host.create_object("Player"))
        assert recorder.history.entries() == []

    def test_dispose_unsubscribes(self, recorder, host):
        recorder.dispose()
        recorder.dispose()

        host.select(host.create_object("Player"))

        assert host.listener_count == 0
        assert recorder.history.entries() == []


class TestSelectionHelpers:
    """History / favorite selection"""

    def test_go_back_and_forward(self, recorder, host):
        first, second = host.create_object("A"), host.create_object("B")
        host.select(first)
        host.select(second)

        recorder.go_back()
        assert host.get_selection() is first
        recorder.go_forward()
        assert host.get_selection() is second
        assert len(recorder.history.entries()) == 2

    def test_select_from_history(self, recorder, host):
        first, second = host.create_object("A"), host.create_object("B")
        host.select(first)
        host.select(second)

        assert recorder.select_from_history(recorder.history.entries()[0]) is True

        assert host.get_selection() is first
        assert [e.name for e in recorder.history.entries()] == ["A", "B", "A"]
        assert recorder.history.current_index == 2

    def test_select_from_history_destroyed(self, recorder, host):
        obj = host.create_object("A")
        host.select(obj)
        entry = recorder.history.entries()[0]
        host.destroy_object(obj)

        assert recorder.select_from_history(entry) is False
        assert recorder.select_from_history(None) is False

    def test_favorites(self, recorder, host):
        obj = host.create_object("A")
        host.select(obj)

        assert recorder.add_current_to_favorites() is True
        host.select(host.create_object("B"))
        assert recorder.select_from_favorite(recorder.favorites.entries()[0]) is True

        assert host.get_selection() is obj
        assert [e.name for e in recorder.history.entries()] == ["A", "B", "A"]

    def test_cleanup_all(self, recorder, host):
        obj = host.create_object("A")
        host.select(obj)
        recorder.add_current_to_favorites()
        host.destroy_object(obj)

        assert recorder.cleanup_all() == 2
