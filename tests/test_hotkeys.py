from unittest.mock import Mock

from monitorspaces.config.hotkeys import (
    default_bindings,
    modifier_accelerator,
    register_all_hotkeys,
    rewrite_workspace_bindings,
    unregister_all_hotkeys,
)
from monitorspaces.mapping.commands import CommandDispatcher


def test_default_bindings():
    b = default_bindings()
    assert len(b) == 32
    assert b["switch-to-workspace-0"] == ["<Alt>1"]
    assert b["switch-to-workspace-9"] == ["<Alt>0"]
    assert b["move-window-to-workspace-4"] == ["<Alt><Shift>5"]
    assert b["warp-to-monitor-7"] == ["<Alt><Control>F8"]
    assert b["cycle-focus-backward"] == ["<Alt><Shift>Tab"]
    assert b["swap-window-forward"] == ["<Alt>bracketright"]


def test_modifier_accelerator():
    assert modifier_accelerator("Super") == "<Super>"
    assert modifier_accelerator("Ctrl") == "<Control>"
    assert modifier_accelerator("Alt") == "<Alt>"
    assert modifier_accelerator("whatever") == "<Alt>"


def test_rewrite_keeps_custom_non_workspace_bindings():
    custom = {
        "switch-to-workspace-0": ["<Control>1"],
        "cycle-focus-forward": ["<Super>j"],
    }
    b = rewrite_workspace_bindings(custom, "Super")

    assert b["switch-to-workspace-0"] == ["<Super>1"]
    assert b["cycle-focus-forward"] == ["<Super>j"]
    assert b["swap-window-backward"] == ["<Super>bracketleft"]
    assert len(b) == 32


def _dispatcher(*names):
    d = CommandDispatcher()
    for name in names:
        d.register(name, Mock())
    return d


def test_register_all_hotkeys(host):
    dispatcher = _dispatcher("switch-to-workspace-0", "cycle-focus-forward")
    bindings = {
        "switch-to-workspace-0": ["<Alt>1"],
        "cycle-focus-forward": [],
        "not-a-command": ["<Alt>x"],
    }

    assert register_all_hotkeys(host, dispatcher, bindings) == 1
    assert list(host.keybindings) == ["switch-to-workspace-0"]

    _accels, callback = host.keybindings["switch-to-workspace-0"]
    callback()
    dispatcher.get("switch-to-workspace-0").fn.assert_called_once_with()


def test_failed_registration_is_not_counted(host):
    host.add_keybinding = Mock(return_value=False)
    dispatcher = _dispatcher("switch-to-workspace-0")
    assert register_all_hotkeys(host, dispatcher, {"switch-to-workspace-0": ["<Alt>1"]}) == 0


def test_unregister_all_hotkeys(host):
    dispatcher = _dispatcher(*default_bindings())
    register_all_hotkeys(host, dispatcher, default_bindings())
    assert len(host.keybindings) == 32

    unregister_all_hotkeys(host, default_bindings())
    assert host.keybindings == {}
