import pytest

from monitorspaces.config.combo_parser import (
    MOD_ALT,
    MOD_CONTROL,
    MOD_SHIFT,
    MOD_WIN,
    ComboParseError,
    combo_to_str,
    is_valid_combo,
    parse_combo,
)


@pytest.mark.parametrize("combo, expected", [
    ("alt+shift+1", (MOD_ALT | MOD_SHIFT, 0x31)),
    ("<Alt><Shift>1", (MOD_ALT | MOD_SHIFT, 0x31)),
    ("<Super>0", (MOD_WIN, 0x30)),
    ("<Alt><Control>F1", (MOD_ALT | MOD_CONTROL, 0x70)),
    ("<Alt>Tab", (MOD_ALT, 0x09)),
    ("<Alt>bracketright", (MOD_ALT, 0xDD)),
    ("Ctrl + Alt + T", (MOD_CONTROL | MOD_ALT, 0x54)),
    ("win+F12", (MOD_WIN, 0x7B)),
    ("space", (0, 0x20)),
])
def test_parse_combo(combo, expected):
    assert parse_combo(combo) == expected


@pytest.mark.parametrize("combo", [
    "",
    "   ",
    "alt+shift",
    "<Alt>",
    "alt+nosuchkey",
    "<Hyper>1",
    "alt+menu+1",
    "<Control><Primary>1",
    "alt+1+2",
])
def test_invalid_combos(combo):
    with pytest.raises(ComboParseError):
        parse_combo(combo)
    assert not is_valid_combo(combo)


def test_combo_to_str():
    assert combo_to_str(MOD_ALT | MOD_SHIFT, 0x31) == "Alt+Shift+1"
    assert combo_to_str(MOD_WIN | MOD_CONTROL, 0x70) == "Win+Ctrl+F1"
    assert combo_to_str(0, 0xFF) == "0xFF"


def test_every_default_binding_parses():
    from monitorspaces.config.hotkeys import default_bindings

    for modifier in ("Alt", "Super", "Ctrl"):
        for accelerators in default_bindings(modifier).values():
            assert all(is_valid_combo(a) for a in accelerators)
