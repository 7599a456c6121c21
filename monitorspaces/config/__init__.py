"""
monitorspaces.config - Ajustes y atajos de teclado.

Este paquete contiene:
    - settings     : Settings, SettleDelays y SettingsStore (JSON + avisos)
    - combo_parser : Parser de aceleradores ("alt+1", "<Alt>1")
    - hotkeys      : Atajos por defecto y su registro en el host
    - keybindings  : Atajos del sistema que chocan con los nuestros
"""

from monitorspaces.config.settings import (
    Settings,
    SettingsError,
    SettingsStore,
    SettleDelays,
    WORKSPACE_COUNT,
)
from monitorspaces.config.combo_parser import ComboParseError, parse_combo

__all__ = [
    "Settings",
    "SettingsError",
    "SettingsStore",
    "SettleDelays",
    "WORKSPACE_COUNT",
    "ComboParseError",
    "parse_combo",
]
