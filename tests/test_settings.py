import json
import logging

import pytest
from pydantic import ValidationError

from monitorspaces.config.settings import (
    Settings,
    SettingsError,
    SettingsStore,
    SettleDelays,
    settings_from_dict,
    settings_from_json,
)


def test_defaults():
    s = Settings()
    assert s.workspace_modifier == "Alt"
    assert s.switch_mode == "swap"
    assert not s.warp_pointer_to_focus
    assert s.raise_on_cycle_focus
    assert s.saved_system_keybindings == ""
    assert s.wallpaper_groups == "[]"
    assert s.workspace_count == 10
    assert s.delays.pointer_restore == (50, 150)
    assert s.delays.focus_restore == 200


@pytest.mark.parametrize("key, value", [
    ("workspace_modifier", "Hyper"),
    ("switch_mode", "teleport"),
    ("debug_mode", "yes"),
    ("wallpaper_groups", []),
    ("bindings", {"switch-to-workspace-0": "<Alt>1"}),
    ("no_such_key", 1),
])
def test_invalid_values_are_rejected(store, key, value):
    with pytest.raises(SettingsError):
        store.set(key, value)


def test_change_notifies_subscribers_of_that_key(store):
    seen = []
    store.connect("switch_mode", lambda k, v: seen.append((k, v)))
    store.connect("debug_mode", lambda k, v: seen.append(("other", v)))

    store.set("switch_mode", "warp")
    store.set("switch_mode", "warp")
    assert seen == [("switch_mode", "warp")]


def test_disconnect(store):
    seen = []
    handle = store.connect("debug_mode", lambda k, v: seen.append(v))
    store.disconnect(handle)
    store.set("debug_mode", True)
    assert seen == []


def test_failing_subscriber_does_not_stop_the_rest(store, caplog):
    seen = []

    def boom(key, value):
        raise RuntimeError("boom")

    store.connect("debug_mode", boom)
    store.connect("debug_mode", lambda k, v: seen.append(v))
    with caplog.at_level(logging.ERROR):
        store.set("debug_mode", True)
    assert seen == [True]
    assert "debug_mode" in caplog.text


def test_get(store):
    assert store.get("workspace_modifier") == "Alt"
    with pytest.raises(SettingsError):
        store.get("nope")


def test_save_and_load(tmp_path):
    path = tmp_path / "cfg" / "settings.json"
    store = SettingsStore(path=path)
    store.set("workspace_modifier", "Super")
    store.set("bindings", {"cycle-focus-forward": ["<Super>Tab"]})

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["workspace_modifier"] == "Super"
    assert data["delays"]["pointer_restore"] == [50, 150]

    loaded = SettingsStore.load(path)
    assert loaded.settings.workspace_modifier == "Super"
    assert loaded.settings.bindings == {"cycle-focus-forward": ["<Super>Tab"]}
    assert loaded.settings.delays == SettleDelays()
    assert loaded.path == path


def test_load_missing_file(tmp_path):
    store = SettingsStore.load(tmp_path / "missing.json")
    assert store.settings == Settings()


def test_load_corrupt_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert SettingsStore.load(path).settings == Settings()

    path.write_text("[1, 2]", encoding="utf-8")
    assert SettingsStore.load(path).settings == Settings()


def test_invalid_file_values_fall_back_to_defaults(caplog):
    with caplog.at_level(logging.WARNING):
        s = settings_from_dict({
            "switch_mode": "warp",
            "workspace_modifier": 3,
            "unknown": True,
            "delays": {"focus_restore": -1},
        })
    assert s.switch_mode == "warp"
    assert s.workspace_modifier == "Alt"
    assert s.delays == SettleDelays()
    assert "unknown" in caplog.text


def test_delays_from_a_dict():
    d = SettleDelays.model_validate({"pointer_restore": [10, 20], "swap_settle": 0})
    assert d.pointer_restore == (10, 20)
    assert d.swap_settle == 0
    assert d.size_settle == 50


@pytest.mark.parametrize("data", [
    {"pointer_restore": [200, 100]},
    {"pointer_restore": [10]},
    {"focus_restore": True},
    {"unlock_refresh": "500"},
    {"size_settle": -5},
    {"no_such_delay": 10},
])
def test_invalid_delays(data):
    with pytest.raises(ValidationError):
        SettleDelays.model_validate(data)


def test_delays_can_be_set_from_a_dict(store):
    store.set("delays", {"internal_switch": 10})
    assert store.settings.delays.internal_switch == 10


def test_unordered_pointer_restore_is_rejected_by_set(store):
    with pytest.raises(SettingsError, match="pointer_restore"):
        store.set("delays", {"pointer_restore": [300, 100]})
    assert store.settings.delays.pointer_restore == (50, 150)


def test_rejected_set_keeps_the_old_value(store):
    seen = []
    store.connect("switch_mode", lambda k, v: seen.append(v))
    with pytest.raises(SettingsError):
        store.set("switch_mode", "teleport")
    assert store.get("switch_mode") == "swap"
    assert seen == []


def test_settings_from_json_keeps_the_valid_fields(caplog):
    with caplog.at_level(logging.WARNING):
        s = settings_from_json(json.dumps({
            "switch_mode": "warp",
            "debug_mode": "yes",
            "delays": {"swap_settle": 5},
        }))
    assert s.switch_mode == "warp"
    assert s.debug_mode is False
    assert s.delays.swap_settle == 5
    assert "debug_mode" in caplog.text


def test_settings_from_json_valid_document():
    s = settings_from_json('{"workspace_modifier": "Ctrl", "delays": {"pointer_restore": [0, 0]}}')
    assert s.workspace_modifier == "Ctrl"
    assert s.delays.pointer_restore == (0, 0)
