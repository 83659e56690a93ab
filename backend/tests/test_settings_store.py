"""Tests for the JSON settings store."""

import json
import os
from unittest.mock import patch

import pytest

from conftest import MemoryStore
from hugill.kube_types import WorkspaceBinding
from hugill.settings_store import JsonFileStore, PersistenceError, SettingsStore
from hugill.workspaces import BindingStore


class TestJsonFileStore:
    """Test cases for JsonFileStore."""

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileStore(str(tmp_path / "settings.json"))

        assert store.get("workspaces") is None

    def test_set_writes_whole_document(self, tmp_path):
        path = tmp_path / "nested" / "settings.json"
        store = JsonFileStore(str(path))

        store.set("namespace", "dev")
        store.set("poll_interval_msec", 1000)

        assert json.loads(path.read_text()) == {"namespace": "dev", "poll_interval_msec": 1000}
        assert JsonFileStore(str(path)).get("namespace") == "dev"

    def test_get_returns_copy(self, tmp_path):
        store = JsonFileStore(str(tmp_path / "settings.json"))
        store.set("workspaces", [{"a": 1}])

        store.get("workspaces").append({"b": 2})

        assert store.get("workspaces") == [{"a": 1}]

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")

        assert JsonFileStore(str(path)).get("namespace") is None

    def test_non_object_file_is_empty(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]")

        assert JsonFileStore(str(path)).get("namespace") is None

    def test_unserializable_value_raises(self, tmp_path):
        store = JsonFileStore(str(tmp_path / "settings.json"))

        with pytest.raises(PersistenceError):
            store.set("bad", object())

        assert not [name for name in os.listdir(tmp_path) if name.startswith(".settings-")]

    def test_failed_write_keeps_previous_values(self, tmp_path):
        path = tmp_path / "settings.json"
        store = JsonFileStore(str(path))
        store.set("namespace", "dev")

        with patch("hugill.settings_store.os.replace", side_effect=OSError("read-only")):
            with pytest.raises(PersistenceError):
                store.set("namespace", "prod")

        assert store.get("namespace") == "dev"
        assert json.loads(path.read_text()) == {"namespace": "dev"}

    def test_failed_write_is_not_flushed_by_later_set(self, tmp_path):
        path = tmp_path / "settings.json"
        store = JsonFileStore(str(path))

        with patch("hugill.settings_store.os.replace", side_effect=OSError("read-only")):
            with pytest.raises(PersistenceError):
                store.set("workspaces", [{"a": 1}])
        store.set("namespace", "dev")

        assert json.loads(path.read_text()) == {"namespace": "dev"}

    def test_unsaved_binding_is_dropped_on_reload(self, tmp_path):
        path = tmp_path / "settings.json"
        bindings = BindingStore(JsonFileStore(str(path)))
        bindings.load()

        with patch("hugill.settings_store.os.replace", side_effect=OSError("read-only")):
            with pytest.raises(PersistenceError):
                bindings.upsert("kind", "default", "c1", {}, "/ws/proj")

        assert bindings.resolve_workspace_folder("kind", "default", "c1", {}) == "/ws/proj"
        assert not path.exists()
        assert bindings.load() == []


class TestSettingsStore:
    """Test cases for SettingsStore.app_settings."""

    def test_defaults(self):
        settings = SettingsStore(MemoryStore()).app_settings()

        assert settings.namespace is None
        assert settings.poll_interval_msec == 5000
        assert settings.workspaces == []

    def test_reads_persisted_values(self):
        store = MemoryStore({
            "namespace": "dev",
            "poll_interval_msec": 250,
            "workspaces": [{
                "context": "kind-dev",
                "namespace": "dev",
                "container_name": "c1",
                "labels": {"app": "x"},
                "workspace_folder": "/ws",
            }],
        })

        settings = SettingsStore(store).app_settings()

        assert settings.namespace == "dev"
        assert settings.poll_interval_msec == 250
        assert settings.workspaces[0].container_name == "c1"

    @pytest.mark.parametrize("value", ["fast", True, 0, -5, 1.5])
    def test_invalid_interval_falls_back(self, value):
        settings = SettingsStore(MemoryStore({"poll_interval_msec": value})).app_settings(default_poll_interval_msec=700)

        assert settings.poll_interval_msec == 700

    def test_invalid_workspaces_do_not_affect_other_keys(self):
        settings = SettingsStore(MemoryStore({"namespace": "dev", "workspaces": 3})).app_settings()

        assert settings.namespace == "dev"
        assert settings.workspaces == []

    def test_update_workspaces(self):
        store = MemoryStore()
        binding = WorkspaceBinding(context="c", namespace="n", container_name="x", workspace_folder="/ws")

        SettingsStore(store).update_workspaces([binding])

        assert store.data["workspaces"] == [{
            "context": "c",
            "namespace": "n",
            "container_name": "x",
            "labels": {},
            "workspace_folder": "/ws",
        }]
