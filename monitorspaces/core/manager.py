"""
monitorspaces.core.manager - WindowManager: message loop y ventanas vivas.

WindowManager:

  1. Al arrancar enumera las ventanas existentes que pasan el filtro.
  2. Instala un WinEventHook para saber cuando aparecen, desaparecen o
     reciben el foco.
  3. Mantiene el conjunto de Window seguidas (incluidas las que el
     VirtualDesktop oculto: esas no se dejan de seguir al ocultarse).
  4. Ejecuta el message loop: WM_HOTKEY va al HotkeyManager y un timer
     periodico de hilo hace avanzar el Scheduler del motor.
"""

from __future__ import annotations

import enum
import logging
import signal
from collections.abc import Callable
from typing import Optional, TYPE_CHECKING

from monitorspaces.core import win32
from monitorspaces.core.filter import is_trackable
from monitorspaces.core.window import Window

if TYPE_CHECKING:
    from monitorspaces.core.desktop import VirtualDesktop
    from monitorspaces.core.keybinds import HotkeyManager

log = logging.getLogger(__name__)


# Periodo del timer que hace avanzar el Scheduler
TICK_INTERVAL_MS = 10


class WMEvent(enum.Enum):
    """Events that the WindowManager can emit to subscribers."""

    # Una ventana seguible aparecio (creada o visible por primera vez).
    WINDOW_ADDED = "window_added"

    # Una ventana seguida fue destruida o la oculto otro proceso.
    WINDOW_REMOVED = "window_removed"

    # Cambio la ventana en primer plano.
    FOCUS_CHANGED = "focus_changed"


# All callbacks receive (event, window).
EventCallback = Callable[["WMEvent", Optional[Window]], None]


class WindowManager:
    """
    Ventanas seguidas + eventos + message loop.

    Usage:
        wm = WindowManager(desktop)
        wm.on(WMEvent.WINDOW_ADDED, my_callback)
        wm.start()   # blocks in the Win32 message loop
    """

    def __init__(self, desktop: VirtualDesktop) -> None:
        self._desktop = desktop
        self._windows: dict[int, Window] = {}
        self._focused: Optional[Window] = None

        self._subscribers: dict[WMEvent, list[EventCallback]] = {
            ev: [] for ev in WMEvent
        }

        self._hook_handle: int = 0
        # Must prevent GC of the ctypes callback
        self._hook_proc: Optional[win32.WinEventProc] = None

        self._timer_id: int = 0
        self._tick: Optional[Callable[[], None]] = None
        self._hotkey_manager: Optional[HotkeyManager] = None

        self._running: bool = False
        self._loop_thread_id: int = 0

    # ------------------------------------------------------------------
    # Public: window access
    # ------------------------------------------------------------------
    @property
    def windows(self) -> list[Window]:
        return list(self._windows.values())

    @property
    def focused(self) -> Optional[Window]:
        return self._focused

    @property
    def count(self) -> int:
        return len(self._windows)

    def get(self, hwnd: int) -> Optional[Window]:
        return self._windows.get(hwnd)

    def windows_in_stacking_order(self) -> list[Window]:
        """Ventanas seguidas de abajo a arriba (la ultima es la superior)."""
        order: list[Window] = []

        def _callback(hwnd: int, _: int) -> bool:
            window = self._windows.get(hwnd)
            if window is not None:
                order.append(window)
            return True

        win32.enum_windows(_callback)
        order.reverse()
        return order

    # ------------------------------------------------------------------
    # Public: event subscription and loop collaborators
    # ------------------------------------------------------------------
    def on(self, event: WMEvent, callback: EventCallback) -> None:
        self._subscribers[event].append(callback)

    def set_hotkey_manager(self, hk_manager: HotkeyManager) -> None:
        """Must be called before start()."""
        self._hotkey_manager = hk_manager

    def set_tick(self, tick: Callable[[], None]) -> None:
        """Funcion llamada en cada WM_TIMER del loop (Scheduler.run_pending)."""
        self._tick = tick

    def _emit(self, event: WMEvent, window: Optional[Window] = None) -> None:
        for cb in self._subscribers[event]:
            try:
                cb(event, window)
            except Exception:
                log.exception(
                    "Error in event callback for %s on %s", event.value, window
                )

    # ------------------------------------------------------------------
    # Internal: manage / unmanage
    # ------------------------------------------------------------------
    def _manage(self, hwnd: int) -> Optional[Window]:
        if hwnd in self._windows:
            return None

        window = Window(hwnd, self._desktop)
        if not is_trackable(window):
            return None

        self._windows[hwnd] = window
        log.info("TRACK    %s", window)
        self._emit(WMEvent.WINDOW_ADDED, window)
        return window

    def _unmanage(self, hwnd: int) -> Optional[Window]:
        window = self._windows.pop(hwnd, None)
        if window is None:
            return None

        log.info("UNTRACK  [%#010x]", hwnd)
        if self._focused is not None and self._focused.hwnd == hwnd:
            self._focused = None
        self._desktop.forget(hwnd)
        self._emit(WMEvent.WINDOW_REMOVED, window)
        return window

    def _scan_existing(self) -> None:
        """Enumerate all currently-open trackable windows."""
        found: list[Window] = []

        def _callback(hwnd: int, _: int) -> bool:
            w = Window(hwnd, self._desktop)
            if is_trackable(w):
                found.append(w)
            return True

        win32.enum_windows(_callback)
        for w in found:
            self._windows[w.hwnd] = w
            log.info("INITIAL  %s", w)

        fg_hwnd = win32.get_foreground_window()
        self._focused = self._windows.get(fg_hwnd)
        log.info("Initial scan complete: %d windows, focused: %s",
                 len(self._windows), self._focused)

    # ------------------------------------------------------------------
    # Internal: WinEvent callback
    # ------------------------------------------------------------------
    def _on_win_event(
        self,
        hook: int,
        event: int,
        hwnd: int,
        id_object: int,
        id_child: int,
        event_thread: int,
        event_time: int,
    ) -> None:
        """Raw WinEvent callback; only top-level window events are kept."""
        if id_object != win32.OBJID_WINDOW or id_child != win32.CHILDID_SELF:
            return
        if not hwnd:
            return

        try:
            if event == win32.EVENT_OBJECT_SHOW:
                self._handle_show(hwnd)
            elif event == win32.EVENT_OBJECT_DESTROY:
                self._unmanage(hwnd)
            elif event == win32.EVENT_OBJECT_HIDE:
                self._handle_hide(hwnd)
            elif event == win32.EVENT_SYSTEM_FOREGROUND:
                self._handle_foreground(hwnd)
            elif event == win32.EVENT_SYSTEM_MINIMIZEEND:
                self._manage(hwnd)
        except Exception:
            log.exception("Error handling event %#06x for hwnd %#010x", event, hwnd)

    def _handle_show(self, hwnd: int) -> None:
        if self._desktop.consume_own_toggle(hwnd):
            return
        self._manage(hwnd)

    def _handle_hide(self, hwnd: int) -> None:
        # Las ocultaciones del VirtualDesktop no dejan de seguir la ventana
        if self._desktop.consume_own_toggle(hwnd) or self._desktop.is_hidden_by_us(hwnd):
            return
        self._unmanage(hwnd)

    def _handle_foreground(self, hwnd: int) -> None:
        if hwnd not in self._windows:
            self._manage(hwnd)

        window = self._windows.get(hwnd)
        if window is not None and window != self._focused:
            self._focused = window
            log.debug("FOCUS -> %s", window)
            self._emit(WMEvent.FOCUS_CHANGED, window)

    # ------------------------------------------------------------------
    # Public: lifecycle
    # ------------------------------------------------------------------
    def scan(self) -> None:
        """Enumera las ventanas existentes (antes de activar el motor)."""
        win32.co_initialize()
        self._scan_existing()

    def start(self) -> None:
        """
        Instala el hook y entra en el message loop (bloquea hasta stop()
        o SIGINT/SIGTERM). Llamar a scan() antes.
        """
        self._hook_proc = win32.WinEventProc(self._on_win_event)
        self._hook_handle = win32.set_win_event_hook(
            event_min=win32.EVENT_MIN,
            event_max=win32.EVENT_MAX,
            callback=self._hook_proc,
        )
        if not self._hook_handle:
            log.error("Failed to install WinEvent hook!")
            win32.co_uninitialize()
            raise RuntimeError("SetWinEventHook failed")
        log.info("WinEvent hook installed (handle=%#x)", self._hook_handle)

        self._timer_id = win32.set_thread_timer(TICK_INTERVAL_MS)

        def _signal_handler(sig: int, frame: object) -> None:
            log.info("Signal %d received, stopping...", sig)
            self.stop()

        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)

        self._running = True
        self._loop_thread_id = win32.get_current_thread_id()
        log.info("Entering message loop (%d windows)", len(self._windows))

        while self._running:
            got_msg, msg = win32.get_message()
            if not got_msg:
                break

            if msg.message == win32.WM_HOTKEY and self._hotkey_manager is not None:
                self._hotkey_manager.dispatch(msg.wParam)
                continue

            if msg.message == win32.WM_TIMER and not msg.hWnd:
                if self._tick is not None:
                    try:
                        self._tick()
                    except Exception:
                        log.exception("Error in loop tick")
                continue

            win32.translate_and_dispatch(msg)

        self._cleanup()
        log.info("Message loop stopped.")

    def stop(self) -> None:
        """
        Request the event loop to stop.
        Safe to call from any thread or from within a callback.
        """
        self._running = False
        if self._loop_thread_id:
            win32.post_thread_message(self._loop_thread_id, win32.WM_QUIT, 0, 0)
        else:
            win32.post_quit_message(0)

    def _cleanup(self) -> None:
        if self._hotkey_manager is not None:
            self._hotkey_manager.unregister_all()

        if self._timer_id:
            win32.kill_thread_timer(self._timer_id)
            self._timer_id = 0

        if self._hook_handle:
            win32.unhook_win_event(self._hook_handle)
            self._hook_handle = 0
            log.info("WinEvent hook removed")

        self._hook_proc = None
        win32.co_uninitialize()

    def dump_state(self) -> str:
        lines = [
            f"=== WindowManager: {len(self._windows)} windows ===",
            f"    Focused: {self._focused}",
            "",
        ]
        for w in self._windows.values():
            marker = " >> " if w == self._focused else "    "
            lines.append(f"{marker}{w}")
        return "\n".join(lines)
