# tests/test_settings_manager.py
import json

import pytest

from vsmb_designer.managers.settings_manager import SettingsManager, SettingCategory
from vsmb_designer.managers.storage import InMemoryStore
from vsmb_designer.utils.config import SETTINGS_STORAGE_KEY


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def settings_manager(store):
    # A fresh store per test keeps user settings out of the way
    return SettingsManager(store=store)


@pytest.fixture
def changes(settings_manager):
    received = []
    settings_manager.add_listener(lambda key, value: received.append((key, value)))
    return received


def test_settings_manager_defaults(settings_manager):
    assert settings_manager.get("default_output_format") == "useReducer"
    assert settings_manager.get("default_output_language") == "ts"
    assert settings_manager.get("history_capacity") == 50
    assert settings_manager.get("autosave_enabled") is True
    assert settings_manager.get("non_existent_key") is None
    assert settings_manager.get("non_existent_key", "fallback") == "fallback"


def test_settings_manager_set_get(settings_manager, store):
    assert settings_manager.set("autosave_enabled", False)
    assert settings_manager.get("autosave_enabled") is False

    assert settings_manager.set("history_capacity", 120)
    assert settings_manager.get("history_capacity") == 120

    assert settings_manager.set("default_output_format", "XState")
    assert store.get(SETTINGS_STORAGE_KEY)["default_output_format"] == "XState"


def test_invalid_values_are_rejected(settings_manager):
    assert not settings_manager.set("history_capacity", 0)
    assert not settings_manager.set("history_capacity", True)
    assert not settings_manager.set("autosave_enabled", 1)
    assert not settings_manager.set("default_output_language", "rust")
    assert not settings_manager.set("share_base_url", "ftp://example.com")
    assert not settings_manager.set("unknown", 1)
    assert settings_manager.get("history_capacity") == 50


def test_float_setting_accepts_int(settings_manager):
    assert settings_manager.set("layout_timeout_seconds", 2)
    assert settings_manager.get("layout_timeout_seconds") == 2
    assert not settings_manager.set("layout_timeout_seconds", 0.01)


def test_settings_manager_listener(settings_manager, changes):
    settings_manager.set("layout_use_graphviz", False)
    assert changes == [("layout_use_graphviz", False)]

    # Same value again: no notification
    settings_manager.set("layout_use_graphviz", False)
    assert len(changes) == 1


def test_remove_listener(settings_manager):
    received = []
    listener = lambda key, value: received.append(key)
    settings_manager.add_listener(listener)
    settings_manager.remove_listener(listener)
    settings_manager.set("log_level", "DEBUG")
    assert received == []


def test_reset_to_defaults(settings_manager, changes):
    # Change a setting
    settings_manager.set("autosave_enabled", False)
    settings_manager.set("log_level", "ERROR")
    changes.clear()

    # Reset
    settings_manager.reset_to_defaults()

    # Verify it has been reset
    assert settings_manager.get("autosave_enabled") is True
    assert settings_manager.get("log_level") == "WARNING"
    # Only the keys that actually changed are reported
    assert sorted(key for key, _ in changes) == ["autosave_enabled", "log_level"]
    assert all(settings_manager.is_default_value(k) for k in settings_manager.get_all_setting_keys())


def test_categories(settings_manager):
    assert settings_manager.get_by_category(SettingCategory.LAYOUT) == {
        "layout_timeout_seconds": 5.0,
        "layout_use_graphviz": True,
    }
    settings_manager.set("layout_use_graphviz", False)
    settings_manager.set("history_capacity", 10)
    settings_manager.reset_category(SettingCategory.LAYOUT)
    assert settings_manager.get("layout_use_graphviz") is True
    assert settings_manager.get("history_capacity") == 10


def test_batch_update_notifies_at_the_end(settings_manager, changes):
    settings_manager.begin_batch_update()
    settings_manager.set("history_capacity", 20)
    settings_manager.set("diagram_history_limit", 5)
    assert changes == []
    settings_manager.end_batch_update()
    assert changes == [("history_capacity", 20), ("diagram_history_limit", 5)]


def test_settings_are_loaded_from_store():
    store = InMemoryStore({SETTINGS_STORAGE_KEY: {"history_capacity": 75, "log_level": "LOUD"}})
    manager = SettingsManager(store=store)
    assert manager.get("history_capacity") == 75
    # Invalid stored values fall back to the default
    assert manager.get("log_level") == "INFO"


def test_export_import(settings_manager, tmp_path):
    path = tmp_path / "settings.json"
    settings_manager.set("default_output_language", "js")
    assert settings_manager.export_settings(str(path))
    assert json.loads(path.read_text(encoding="utf-8"))["default_output_language"] == "js"

    other = SettingsManager(store=InMemoryStore())
    assert other.import_settings(str(path))
    assert other.get("default_output_language") == "js"


def test_import_skips_unknown_and_invalid(settings_manager, tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"history_capacity": -1, "mystery": 3, "log_level": "DEBUG"}), encoding="utf-8")
    assert settings_manager.import_settings(str(path))
    assert settings_manager.get("history_capacity") == 50
    assert settings_manager.get("log_level") == "DEBUG"

    assert not settings_manager.import_settings(str(tmp_path / "missing.json"))


def test_setting_info(settings_manager):
    info = settings_manager.get_setting_info("history_capacity")
    assert info.category == SettingCategory.EDITOR
    assert (info.min_value, info.max_value) == (1, 500)
    assert settings_manager.get_setting_info("nope") is None
