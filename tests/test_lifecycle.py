import json
from unittest.mock import Mock

import pytest

from monitorspaces.config.hotkeys import default_bindings
from monitorspaces.mapping.commands import CommandDispatcher, build_default_commands
from monitorspaces.mapping.host import HostEvent
from monitorspaces.mapping.lifecycle import PREREQUISITES, LifecycleManager
from monitorspaces.mapping.listeners import MappingListener
from monitorspaces.mapping.rect import Rect

from tests.fakes import FakeHost, Rig, make_monitors


class Setup:
    def __init__(self, host: FakeHost) -> None:
        self.host = host
        self.rig = Rig(host)
        self.engine = self.rig.engine
        self.dispatcher = CommandDispatcher()
        build_default_commands(self.dispatcher, self.rig.coordinator)
        self.listener = Mock(spec=MappingListener)
        self.rig.listeners.add(self.listener)
        self.lifecycle = LifecycleManager(
            self.engine, self.rig.placement, self.rig.focus,
            self.rig.coordinator, self.dispatcher,
        )


@pytest.fixture
def setup(host):
    return Setup(host)


# ----------------------------------------------------------------------
# Enable
# ----------------------------------------------------------------------
def test_enable_builds_the_initial_map(setup, host):
    host.active = 3
    setup.lifecycle.enable()

    assert setup.lifecycle.enabled
    assert setup.engine.mapper.all_mappings() == {0: 3, 1: 4, 2: 5}
    assert host.count >= 10
    setup.listener.on_monitors_rebuilt.assert_called_once_with({0: 3, 1: 4, 2: 5})


def test_secondary_workspaces_wrap_around(setup, host):
    host.active = 9
    setup.lifecycle.enable()
    assert setup.engine.mapper.all_mappings() == {0: 9, 1: 0, 2: 1}


def test_enable_registers_shortcuts_and_signals(setup, host):
    setup.lifecycle.enable()

    assert set(host.keybindings) == set(default_bindings())
    assert host.keybindings["switch-to-workspace-0"][0] == ["<Alt>1"]
    assert host.subscriber_count == 6
    assert setup.engine.store.settings.bindings == default_bindings()


def test_shortcut_runs_its_command(setup, host):
    setup.lifecycle.enable()
    host.pointer = (1000, 900)

    _accels, callback = host.keybindings["switch-to-workspace-4"]
    callback()
    assert setup.engine.mapper.get_workspace_for_monitor(0) == 4


def test_enable_twice_is_ignored(setup, host):
    setup.lifecycle.enable()
    setup.lifecycle.enable()
    assert host.subscriber_count == 6


def test_host_events_reach_the_engine(setup, host):
    setup.lifecycle.enable()
    host.pointer = (2500, 500)
    w = host.add_window("new", Rect(100, 100, 400, 300))

    host.emit(HostEvent.WINDOW_CREATED, w)
    host.emit(HostEvent.WINDOW_MAPPED, w)
    assert setup.engine.pending_placement == {w.id: 1}
    setup.rig.settle(50)
    assert setup.engine.locator.window_monitor(w) == 1
    assert len(w.moves) == 1


# ----------------------------------------------------------------------
# Requisitos
# ----------------------------------------------------------------------
def test_missing_host_settings_count_as_met(setup, host):
    assert setup.lifecycle.check_prerequisites() == []
    setup.lifecycle.enable()
    assert host.consent_requests == []


def test_unmet_prerequisites_ask_for_consent(setup, host):
    host.settings = {"workspaces-only-on-primary": False, "dynamic-workspaces": True}
    assert sorted(setup.lifecycle.check_prerequisites()) == sorted(PREREQUISITES)

    setup.lifecycle.enable()

    assert len(host.consent_requests) == 1
    assert "dynamic-workspaces" in host.consent_requests[0][1]
    assert host.settings == PREREQUISITES
    assert setup.lifecycle.enabled


def test_refused_consent_disables_the_extension(setup, host):
    host.settings = {"workspaces-only-on-primary": False}
    host.consent_answer = False

    setup.lifecycle.enable()

    assert host.disabled
    assert not setup.lifecycle.enabled
    assert host.settings == {"workspaces-only-on-primary": False}
    assert host.keybindings == {}


# ----------------------------------------------------------------------
# Disable y snapshot
# ----------------------------------------------------------------------
def test_disable_releases_everything_but_keeps_history(setup, host):
    setup.lifecycle.enable()
    main = host.add_window("main", Rect(100, 100, 400, 300))
    setup.engine.last_focused[0] = main.id
    setup.rig.placement.stash_position(main, 4)
    setup.engine.pending_placement[99] = 1

    setup.lifecycle.disable()

    assert not setup.lifecycle.enabled
    assert host.subscriber_count == 0
    assert host.keybindings == {}
    assert len(setup.engine.mapper) == 0
    assert setup.engine.pending_placement == {}
    assert setup.engine.last_focused == {0: main.id}
    assert main.id in setup.engine.saved_positions


def test_disable_when_not_enabled(setup, host):
    setup.lifecycle.disable()
    assert not setup.lifecycle.enabled


def test_lock_cycle_brings_secondary_windows_back(setup, host):
    setup.lifecycle.enable()
    setup.engine.mapper.set_mapping(1, 6)
    side = host.add_window("side", Rect(2020, 150, 500, 400))

    setup.lifecycle.disable()
    assert side.rect == Rect(100, 150, 500, 400)
    assert side.get_workspace() == host.active
    assert side.id in setup.engine.disable_snapshot

    setup.lifecycle.enable()
    assert side.rect.x == 100
    setup.rig.settle(490)
    assert side.rect.x == 100
    setup.rig.settle(20)

    assert side.rect == Rect(2020, 150, 500, 400)
    assert setup.engine.mapper.get_workspace_for_monitor(1) == 6
    assert setup.engine.disable_snapshot == {}
    assert setup.engine.mapper.is_consistent()


def test_disable_before_snapshot_restore_cancels_it(setup, host):
    setup.lifecycle.enable()
    side = host.add_window("side", Rect(2020, 150, 500, 400))
    setup.lifecycle.disable()
    setup.lifecycle.enable()
    setup.lifecycle.disable()

    setup.rig.settle(1000)
    assert side.rect.x == 100
    assert side.id in setup.engine.disable_snapshot


def test_snapshot_restore_swaps_with_the_secondary_showing_it(setup, host):
    setup.lifecycle.enable()
    setup.engine.mapper.swap(1, 2)
    side = host.add_window("side", Rect(2020, 150, 500, 400))

    setup.lifecycle.disable()
    setup.lifecycle.enable()
    assert setup.engine.mapper.all_mappings() == {0: 0, 1: 1, 2: 2}
    setup.rig.settle(600)

    assert setup.engine.mapper.all_mappings() == {0: 0, 1: 2, 2: 1}
    assert setup.engine.mapper.is_consistent()
    assert side.rect == Rect(2020, 150, 500, 400)


def test_snapshot_restore_keeps_the_primary_workspace():
    host = FakeHost(make_monitors(2))
    setup = Setup(host)
    setup.lifecycle.enable()
    side = host.add_window("side", Rect(2020, 150, 500, 400))

    setup.lifecycle.disable()
    host.active = 1
    setup.lifecycle.enable()
    setup.rig.settle(600)

    assert setup.engine.mapper.all_mappings() == {0: 1, 1: 2}
    assert setup.engine.mapper.is_consistent()
    assert side.rect == Rect(2020, 150, 500, 400)
    assert setup.engine.disable_snapshot == {}


def test_disable_drops_a_pending_placement(setup, host):
    setup.lifecycle.enable()
    host.pointer = (2500, 500)
    w = host.add_window("new", Rect(100, 100, 400, 300))
    host.emit(HostEvent.WINDOW_CREATED, w)

    setup.lifecycle.disable()
    setup.rig.settle(50)

    assert w.moves == []
    assert w.workspace_changes == []
    assert not w.is_hidden()
    assert setup.engine.pending_placement == {}


# ----------------------------------------------------------------------
# Hot-plug y sesion
# ----------------------------------------------------------------------
def test_monitor_hotplug_rebuilds_the_map(setup, host):
    setup.lifecycle.enable()
    setup.engine.mapper.set_mapping(2, 8)
    setup.listener.reset_mock()

    host.monitors = make_monitors(2)
    host.emit(HostEvent.MONITORS_CHANGED)

    assert setup.engine.monitors.count == 2
    assert setup.engine.mapper.all_mappings() == {0: 0, 1: 1}
    setup.listener.on_monitors_rebuilt.assert_called_once_with({0: 0, 1: 1})


def test_unlock_refreshes_secondary_windows(setup, host):
    setup.lifecycle.enable()
    side = host.add_window("side", Rect(2020, 150, 500, 400), workspace=7)

    host.emit(HostEvent.SESSION_UPDATED, "user", None)
    setup.rig.settle(400)
    assert side.workspace_changes == []
    setup.rig.settle(200)
    assert side.workspace_changes == [host.active]
    assert side.resizes[0] == Rect(2020, 150, 500, 400)


def test_lock_screen_mode_does_nothing(setup, host):
    setup.lifecycle.enable()
    side = host.add_window("side", Rect(2020, 150, 500, 400))
    host.emit(HostEvent.SESSION_UPDATED, "unlock-dialog", None)
    setup.rig.settle(1000)
    assert side.workspace_changes == []


def test_parent_mode_user_counts(setup, host):
    setup.lifecycle.enable()
    side = host.add_window("side", Rect(2020, 150, 500, 400))
    setup.lifecycle.on_session_updated("unlock-dialog", "user")
    setup.rig.settle(600)
    assert side.workspace_changes == [host.active]


# ----------------------------------------------------------------------
# Ajustes en caliente y atajos del sistema
# ----------------------------------------------------------------------
def test_modifier_change_rebinds_shortcuts(setup, host):
    setup.lifecycle.enable()
    setup.engine.store.set("workspace_modifier", "Super")

    assert host.keybindings["switch-to-workspace-0"][0] == ["<Super>1"]
    assert host.keybindings["move-window-to-workspace-9"][0] == ["<Super><Shift>0"]
    assert setup.engine.store.settings.bindings["switch-to-workspace-2"] == ["<Super>3"]


def test_debug_mode_toggles_the_debug_log(host, tmp_path):
    from monitorspaces.mapping.debuglog import DebugLog

    setup = Setup(host)
    setup.engine.debug = DebugLog(tmp_path / "debug.log")
    setup.lifecycle.enable()
    assert not setup.engine.debug.enabled

    setup.engine.store.set("debug_mode", True)
    assert setup.engine.debug.enabled
    setup.lifecycle.disable()
    assert not setup.engine.debug.enabled
    assert "STATE: DEBUG ACTIVADO" in (tmp_path / "debug.log").read_text(encoding="utf-8")


def test_system_shortcuts_are_overridden_and_restored(setup, host):
    host.system_keybindings = {
        "switch-to-workspace-1": ["<Alt>1"],
        "move-to-workspace-1": ["<Alt><Shift>Home"],
    }
    setup.lifecycle.enable()

    assert host.system_keybindings["switch-to-workspace-1"] == []
    assert host.system_keybindings["move-to-workspace-1"] == []
    saved = json.loads(setup.engine.store.settings.saved_system_keybindings)
    assert saved["switch-to-workspace-1"] == ["<Alt>1"]

    setup.lifecycle.disable()
    assert host.system_keybindings["switch-to-workspace-1"] == ["<Alt>1"]
    assert host.system_keybindings["move-to-workspace-1"] == ["<Alt><Shift>Home"]
    assert setup.engine.store.settings.saved_system_keybindings == ""


def test_dump_state(setup):
    setup.lifecycle.enable()
    text = setup.lifecycle.dump_state()
    assert "activo" in text
    assert "Suscripciones: 8" in text
