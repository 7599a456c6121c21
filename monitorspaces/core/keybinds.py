"""
monitorspaces.core.keybinds - Hotkeys globales con nombre.

Cada atajo con nombre ("switch-to-workspace-3") puede tener varios
aceleradores; cada acelerador es un RegisterHotKey con su propio id.
WM_HOTKEY llega por el message loop del WindowManager, que llama a
dispatch() con el id.

Uso tipico:
    hk = HotkeyManager()
    hk.bind("switch-to-workspace-0", ["<Alt>1"], callback)
    ...
    hk.unbind("switch-to-workspace-0")
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from monitorspaces.config.combo_parser import ComboParseError, combo_to_str, parse_combo
from monitorspaces.core import win32

log = logging.getLogger(__name__)


# Type for hotkey callbacks: called with no arguments
HotkeyCallback = Callable[[], None]


@dataclass(frozen=True, slots=True)
class Hotkey:
    """Represents a registered hotkey binding."""

    id: int
    name: str
    modifiers: int
    vk: int
    callback: HotkeyCallback


class HotkeyManager:
    """
    Gestiona hotkeys globales del sistema agrupados por nombre.

    Cuando el message loop recibe WM_HOTKEY, dispatch() busca el ID
    y ejecuta el callback correspondiente.
    """

    def __init__(self) -> None:
        # hotkey_id -> Hotkey
        self._hotkeys: dict[int, Hotkey] = {}
        # nombre -> ids registrados
        self._names: dict[str, list[int]] = {}
        self._next_id: int = 1

    @property
    def count(self) -> int:
        return len(self._hotkeys)

    @property
    def names(self) -> list[str]:
        return sorted(self._names)

    def bind(self, name: str, accelerators: list[str], callback: HotkeyCallback) -> bool:
        """
        Registra todos los aceleradores de *name*. Si ya existia, lo sustituye.

        Returns:
            True si al menos uno quedo registrado.
        """
        self.unbind(name)
        ids: list[int] = []
        for accel in accelerators:
            try:
                modifiers, vk = parse_combo(accel)
            except ComboParseError as e:
                log.warning("Hotkey %s: acelerador invalido %r: %s", name, accel, e)
                continue
            hotkey_id = self._register(name, modifiers, vk, callback)
            if hotkey_id is not None:
                ids.append(hotkey_id)

        if ids:
            self._names[name] = ids
        return bool(ids)

    def _register(
        self, name: str, modifiers: int, vk: int, callback: HotkeyCallback,
    ) -> int | None:
        hotkey_id = self._next_id
        self._next_id += 1

        if not win32.register_hotkey(hotkey_id, modifiers | win32.MOD_NOREPEAT, vk):
            log.error("Failed to register hotkey: %s (%s)",
                      combo_to_str(modifiers, vk), name)
            return None

        self._hotkeys[hotkey_id] = Hotkey(
            id=hotkey_id, name=name, modifiers=modifiers, vk=vk, callback=callback,
        )
        log.debug("Hotkey registered: id=%d %s  %s",
                  hotkey_id, combo_to_str(modifiers, vk), name)
        return hotkey_id

    def unbind(self, name: str) -> bool:
        ids = self._names.pop(name, None)
        if ids is None:
            return False
        for hotkey_id in ids:
            self._hotkeys.pop(hotkey_id, None)
            win32.unregister_hotkey(hotkey_id)
        log.debug("Hotkey unregistered: %s (%d)", name, len(ids))
        return True

    def unregister_all(self) -> None:
        """Unregister all hotkeys. Call this on shutdown."""
        for hotkey_id in list(self._hotkeys.keys()):
            win32.unregister_hotkey(hotkey_id)
        count = len(self._hotkeys)
        self._hotkeys.clear()
        self._names.clear()
        log.info("All hotkeys unregistered (%d total)", count)

    def dispatch(self, hotkey_id: int) -> bool:
        """
        Dispatch a WM_HOTKEY event to the appropriate callback.

        Returns:
            True if a callback was found and executed.
        """
        hotkey = self._hotkeys.get(hotkey_id)
        if hotkey is None:
            log.warning("Unknown hotkey id: %d", hotkey_id)
            return False

        log.debug("Hotkey dispatched: %s", hotkey.name)
        try:
            hotkey.callback()
        except Exception:
            log.exception("Error in hotkey callback: %s", hotkey.name)

        return True

    def dump_state(self) -> str:
        lines = [
            f"=== HotkeyManager: {len(self._hotkeys)} hotkeys ===",
            "",
        ]
        for hk in self._hotkeys.values():
            lines.append(
                f"  id={hk.id:3d}  {combo_to_str(hk.modifiers, hk.vk):<20s} {hk.name}"
            )
        return "\n".join(lines)
