"""
monitorspaces.core.desktop - Backend Win32 del motor de mapeo.

Windows no tiene un workspace global con la semantica que el motor
necesita, asi que se simula:

    VirtualDesktop  cada ventana lleva una etiqueta de workspace; hay un
                    indice activo. Las ventanas cuyo centro cae en un
                    monitor secundario son sticky (siempre visibles); las
                    del primario con otra etiqueta se ocultan con SW_HIDE.
    SessionWatcher  ventana oculta (pywin32) que recibe
                    WM_WTSSESSION_CHANGE y WM_DISPLAYCHANGE.
    Win32Host       implementa Host sobre WindowManager, HotkeyManager,
                    VirtualDesktop y win32api (monitores, cursor, MessageBox).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Optional, TYPE_CHECKING

import win32api
import win32con
import win32gui
import win32ts

from monitorspaces.config.settings import WORKSPACE_COUNT
from monitorspaces.core import win32
from monitorspaces.core.manager import WMEvent
from monitorspaces.mapping.host import Host, HostEvent, KeybindingCallback
from monitorspaces.mapping.locator import monitor_for_point
from monitorspaces.mapping.monitor import Monitor
from monitorspaces.mapping.rect import Rect

if TYPE_CHECKING:
    from monitorspaces.core.keybinds import HotkeyManager
    from monitorspaces.core.manager import WindowManager
    from monitorspaces.core.window import Window

log = logging.getLogger(__name__)


# ============================================================================
# VirtualDesktop
# ============================================================================
class VirtualDesktop:
    """Workspace global simulado sobre las ventanas Win32."""

    def __init__(self, count: int = WORKSPACE_COUNT) -> None:
        self._count = count
        self._active: int = 0
        # hwnd -> workspace
        self._tags: dict[int, int] = {}
        # Ventanas ocultas por nosotros
        self._hidden: set[int] = set()
        # hwnds con un show/hide propio cuyo WinEvent aun no llego
        self._own_toggles: set[int] = set()
        self._monitors: dict[int, Monitor] = {}

    @property
    def active(self) -> int:
        return self._active

    @property
    def count(self) -> int:
        return self._count

    def ensure(self, count: int) -> None:
        if count > self._count:
            self._count = count

    def set_monitors(self, monitors: Iterable[Monitor]) -> None:
        self._monitors = {m.index: m for m in monitors}

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------
    def is_sticky(self, window: Window) -> bool:
        rect = window.frame_rect()
        index = monitor_for_point(rect.center_x, rect.center_y, self._monitors.values())
        return index is not None and not self._monitors[index].is_primary

    def workspace_of(self, window: Window) -> Optional[int]:
        if self.is_sticky(window):
            return None
        # Una ventana nunca vista adopta el workspace activo
        return self._tags.setdefault(window.hwnd, self._active)

    def is_hidden_by_us(self, hwnd: int) -> bool:
        return hwnd in self._hidden

    def consume_own_toggle(self, hwnd: int) -> bool:
        """True (una sola vez) si el ultimo show/hide de *hwnd* fue nuestro."""
        if hwnd in self._own_toggles:
            self._own_toggles.discard(hwnd)
            return True
        return False

    # ------------------------------------------------------------------
    # Cambios
    # ------------------------------------------------------------------
    def set_workspace(self, window: Window, index: int) -> None:
        self._tags[window.hwnd] = index
        self.sync(window)

    def activate(self, index: int, windows: Iterable[Window]) -> None:
        self._active = index
        for w in windows:
            self.sync(w)

    def sync(self, window: Window) -> None:
        """Muestra u oculta *window* segun su etiqueta y su monitor."""
        hwnd = window.hwnd
        if window.is_destroyed():
            self.forget(hwnd)
            return

        visible = self.is_sticky(window) or self._tags.setdefault(hwnd, self._active) == self._active
        if visible and hwnd in self._hidden:
            self._hidden.discard(hwnd)
            self._own_toggles.add(hwnd)
            win32.show_window(hwnd, win32.SW_SHOWNOACTIVATE)
        elif not visible and hwnd not in self._hidden:
            self._hidden.add(hwnd)
            self._own_toggles.add(hwnd)
            win32.show_window(hwnd, win32.SW_HIDE)

    def forget(self, hwnd: int) -> None:
        self._tags.pop(hwnd, None)
        self._hidden.discard(hwnd)
        self._own_toggles.discard(hwnd)

    def restore_all(self) -> int:
        """Vuelve a mostrar todo lo que se oculto. Llamar al salir."""
        count = 0
        for hwnd in list(self._hidden):
            if win32.is_window_valid(hwnd):
                win32.show_window(hwnd, win32.SW_SHOWNOACTIVATE)
                count += 1
        self._hidden.clear()
        log.info("Ventanas ocultas restauradas: %d", count)
        return count

    def dump_state(self) -> str:
        lines = [
            f"=== VirtualDesktop: activo {self._active}/{self._count} ===",
            f"    Etiquetadas: {len(self._tags)}  Ocultas: {len(self._hidden)}",
        ]
        return "\n".join(lines)


# ============================================================================
# SessionWatcher
# ============================================================================
WM_WTSSESSION_CHANGE = 0x02B1
WTS_SESSION_LOCK = 0x7
WTS_SESSION_UNLOCK = 0x8

WATCHER_CLASS = "monitorspaces.SessionWatcher"


class SessionWatcher:
    """Traduce bloqueo/desbloqueo y cambios de pantalla a HostEvent."""

    def __init__(self, host: Host) -> None:
        self._host = host
        self._hinstance = win32api.GetModuleHandle(None)
        self._atom: int = 0
        self._hwnd: int = 0

    def start(self) -> None:
        wc = win32gui.WNDCLASS()
        wc.hInstance = self._hinstance
        wc.lpszClassName = WATCHER_CLASS
        wc.lpfnWndProc = self._wnd_proc
        self._atom = win32gui.RegisterClass(wc)

        # Ventana top-level sin WS_VISIBLE: las message-only no reciben broadcasts
        self._hwnd = win32gui.CreateWindow(
            self._atom, "monitorspaces", 0, 0, 0, 0, 0, 0, 0, self._hinstance, None,
        )
        win32ts.WTSRegisterSessionNotification(self._hwnd, win32ts.NOTIFY_FOR_THIS_SESSION)
        log.info("SessionWatcher activo (hwnd=%#x)", self._hwnd)

    def stop(self) -> None:
        if self._hwnd:
            win32ts.WTSUnRegisterSessionNotification(self._hwnd)
            win32gui.DestroyWindow(self._hwnd)
            self._hwnd = 0
        if self._atom:
            win32gui.UnregisterClass(self._atom, self._hinstance)
            self._atom = 0

    def _wnd_proc(self, hwnd: int, msg: int, wparam: int, lparam: int) -> int:
        if msg == WM_WTSSESSION_CHANGE:
            if wparam == WTS_SESSION_UNLOCK:
                self._host.emit(HostEvent.SESSION_UPDATED, "user", None)
            elif wparam == WTS_SESSION_LOCK:
                self._host.emit(HostEvent.SESSION_UPDATED, "unlock-dialog", None)
            return 0
        if msg == win32con.WM_DISPLAYCHANGE:
            log.info("WM_DISPLAYCHANGE")
            self._host.emit(HostEvent.MONITORS_CHANGED)
            return 0
        return win32gui.DefWindowProc(hwnd, msg, wparam, lparam)


# ============================================================================
# Win32Host
# ============================================================================
class Win32Host(Host):
    """
    Host real.

    Los ajustes de requisitos no existen en Win32 (el VirtualDesktop ya
    tiene workspaces solo en el primario y un numero fijo), asi que
    get_setting queda en None. Tampoco hay atajos de workspace del sistema
    que puedan chocar.
    """

    def __init__(
        self,
        wm: WindowManager,
        hotkeys: HotkeyManager,
        desktop: VirtualDesktop,
        on_disable: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__()
        self._wm = wm
        self._hotkeys = hotkeys
        self._desktop = desktop
        self._on_disable = on_disable if on_disable is not None else wm.stop

        wm.on(WMEvent.WINDOW_ADDED, self._on_window_added)
        wm.on(WMEvent.FOCUS_CHANGED, self._on_focus_changed)

    def _on_window_added(self, event: WMEvent, window: Optional[Window]) -> None:
        if window is not None:
            self.emit(HostEvent.WINDOW_MAPPED, window)

    def _on_focus_changed(self, event: WMEvent, window: Optional[Window]) -> None:
        self.emit(HostEvent.FOCUS_CHANGED)

    # ------------------------------------------------------------------
    # Monitores y puntero
    # ------------------------------------------------------------------
    def get_monitors(self) -> list[Monitor]:
        """
        Monitores via win32api.EnumDisplayMonitors / GetMonitorInfo.

        Orden: el primario primero, luego por nombre de dispositivo.
        """
        found: list[tuple[str, Rect, bool]] = []
        for hmonitor, _hdc, _rect in win32api.EnumDisplayMonitors(None, None):
            try:
                info = win32api.GetMonitorInfo(hmonitor)
            except win32api.error:
                log.warning("No se pudo obtener info del monitor %s", hmonitor)
                continue
            is_primary = bool(info["Flags"] & win32con.MONITORINFOF_PRIMARY)
            found.append((info["Device"], Rect.from_ltrb(*info["Monitor"]), is_primary))

        found.sort(key=lambda m: (not m[2], m[0]))
        monitors = [
            Monitor(index=i, rect=rect, is_primary=primary, name=name)
            for i, (name, rect, primary) in enumerate(found)
        ]
        self._desktop.set_monitors(monitors)
        return monitors

    def get_pointer(self) -> tuple[int, int]:
        x, y = win32api.GetCursorPos()
        return (x, y)

    def warp_pointer(self, x: int, y: int) -> None:
        win32api.SetCursorPos((int(x), int(y)))

    # ------------------------------------------------------------------
    # Ventanas
    # ------------------------------------------------------------------
    def list_windows(self) -> list[Window]:
        return self._wm.windows_in_stacking_order()

    def get_focus_window(self) -> Optional[Window]:
        return self._wm.get(win32.get_foreground_window())

    def unset_input_focus(self) -> None:
        shell = win32.get_shell_window()
        if shell:
            win32.set_foreground_window(shell)

    # ------------------------------------------------------------------
    # Workspace global
    # ------------------------------------------------------------------
    def get_active_workspace(self) -> int:
        return self._desktop.active

    def activate_workspace(self, index: int) -> None:
        if index == self._desktop.active:
            return
        self._desktop.activate(index, self._wm.windows)
        self.emit(HostEvent.WORKSPACE_CHANGED)

    def workspace_count(self) -> int:
        return self._desktop.count

    def ensure_workspace(self, index: int) -> None:
        self._desktop.ensure(index + 1)

    def get_animations_enabled(self) -> bool:
        return win32.get_client_area_animation()

    def set_animations_enabled(self, enabled: bool) -> None:
        win32.set_client_area_animation(enabled)

    # ------------------------------------------------------------------
    # Atajos y ciclo de vida
    # ------------------------------------------------------------------
    def add_keybinding(
        self, name: str, accelerators: list[str], callback: KeybindingCallback,
    ) -> bool:
        return self._hotkeys.bind(name, accelerators, callback)

    def remove_keybinding(self, name: str) -> None:
        self._hotkeys.unbind(name)

    def request_consent(
        self,
        title: str,
        message: str,
        on_accept: Callable[[], None],
        on_reject: Callable[[], None],
    ) -> None:
        answer = win32api.MessageBox(
            0, message, title, win32con.MB_OKCANCEL | win32con.MB_ICONQUESTION,
        )
        if answer == win32con.IDOK:
            on_accept()
        else:
            on_reject()

    def disable_self(self) -> None:
        log.info("Desactivacion solicitada")
        self._on_disable()
