"""Persistence tests"""

import json

import pytest

from rotalock.persistence import JsonFilePersistence, MemoryPersistence
from rotalock.telemetry import metrics


@pytest.fixture
def settings_file(tmp_path):
    return tmp_path / "rotalock" / "settings.json"


class TestMemoryPersistence:
    """Dictionary store"""

    def test_load_default(self):
        assert MemoryPersistence().load("missing", 42) == 42

    def test_values_are_copied(self):
        store = MemoryPersistence()
        value = {"entries": [1]}
        store.save("k", value)
        value["entries"].append(2)

        loaded = store.load("k")
        loaded["entries"].append(3)

        assert store.load("k") == {"entries": [1]}

    def test_delete(self):
        store = MemoryPersistence({"k": None})
        assert store.has_key("k")
        assert store.delete("k") is True
        assert store.delete("k") is False


class TestJsonFilePersistence:
    """Single-file JSON store"""

    def test_round_trip_through_file(self, settings_file):
        store = JsonFilePersistence(settings_file)
        assert store.save("RotationLockSettings", {"is_enabled": True}) is True

        reopened = JsonFilePersistence(settings_file)

        assert reopened.load("RotationLockSettings") == {"is_enabled": True}

    def test_file_format(self, settings_file):
        JsonFilePersistence(settings_file).save("k", [1, 2])

        data = json.loads(settings_file.read_text())

        assert data["version"] == 1
        assert data["values"] == {"k": [1, 2]}
        assert len(data["checksum"]) == 64

    def test_no_temp_files_left(self, settings_file):
        JsonFilePersistence(settings_file).save("k", 1)
        assert [p.name for p in settings_file.parent.iterdir()] == ["settings.json"]

    def test_missing_file_is_empty(self, settings_file):
        store = JsonFilePersistence(settings_file)
        assert store.load("k", "default") == "default"
        assert not settings_file.exists()

    def test_checksum_mismatch_ignored(self, settings_file):
        JsonFilePersistence(settings_file).save("k", 1)
        data = json.loads(settings_file.read_text())
        data["values"]["k"] = 2
        settings_file.write_text(json.dumps(data))

        store = JsonFilePersistence(settings_file)

        assert store.load("k") is None
        assert metrics.get_counter("persist.error", {"op": "load", "reason": "checksum"}) == 1

    def test_version_mismatch_ignored(self, settings_file):
        JsonFilePersistence(settings_file, version=1).save("k", 1)

        store = JsonFilePersistence(settings_file, version=2)

        assert not store.has_key("k")

    def test_invalid_json_ignored(self, settings_file):
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text("{not json")

        store = JsonFilePersistence(settings_file)

        assert store.load("k") is None
        assert metrics.get_counter("persist.error", {"op": "load", "reason": "json"}) == 1

    def test_failed_write_rolls_back(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = JsonFilePersistence(blocker / "settings.json")

        assert store.save("k", 1) is False
        assert not store.has_key("k")
        assert metrics.get_counter("persist.error", {"op": "save"}) == 1

    def test_delete(self, settings_file):
        store = JsonFilePersistence(settings_file)
        store.save("a", 1)
        store.save("b", 2)

        assert store.delete("a") is True
        assert store.delete("a") is False
        assert JsonFilePersistence(settings_file).load("b") == 2
        assert not JsonFilePersistence(settings_file).has_key("a")
