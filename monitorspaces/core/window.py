"""
monitorspaces.core.window - Window: HostWindow sobre un HWND real.

Cada Window es un handle ligero a una ventana Win32. Las propiedades se
leen del sistema en cada acceso. El workspace no existe en Win32: lo
guarda el VirtualDesktop, que tambien decide si la ventana se muestra.
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import win32api
import win32con

from monitorspaces.core import win32
from monitorspaces.mapping.host import HostWindow, WindowType
from monitorspaces.mapping.rect import Rect

if TYPE_CHECKING:
    from monitorspaces.core.desktop import VirtualDesktop

log = logging.getLogger(__name__)


# Clase de los cuadros de dialogo estandar
DIALOG_CLASS = "#32770"


class Window(HostWindow):
    """
    Ventana de nivel superior vista por el motor.

    Igualdad y hash se basan solo en el HWND, que tambien es el ``id``.
    """

    __slots__ = (
        "_hwnd",
        "_desktop",
        "_fullscreen",
        "_saved_style",
        "_saved_ex_style",
        "_saved_rect",
    )

    def __init__(self, hwnd: int, desktop: VirtualDesktop) -> None:
        self._hwnd = hwnd
        self._desktop = desktop
        self._fullscreen: bool = False
        self._saved_style: int = 0
        self._saved_ex_style: int = 0
        self._saved_rect: tuple[int, int, int, int] = (0, 0, 0, 0)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    @property
    def hwnd(self) -> int:
        return self._hwnd

    @property
    def id(self) -> int:
        return self._hwnd

    @property
    def title(self) -> str:
        return win32.get_window_text(self._hwnd)

    @property
    def class_name(self) -> str:
        return win32.get_class_name(self._hwnd)

    @property
    def process_name(self) -> str:
        return win32.get_process_name(win32.get_window_pid(self._hwnd))

    # ------------------------------------------------------------------
    # Style flags
    # ------------------------------------------------------------------
    @property
    def style(self) -> int:
        return win32.get_window_style(self._hwnd)

    @property
    def ex_style(self) -> int:
        return win32.get_window_ex_style(self._hwnd)

    @property
    def is_child(self) -> bool:
        return bool(self.style & win32.WS_CHILD)

    @property
    def is_tool_window(self) -> bool:
        return bool(self.ex_style & win32.WS_EX_TOOLWINDOW)

    @property
    def is_app_window(self) -> bool:
        return bool(self.ex_style & win32.WS_EX_APPWINDOW)

    @property
    def is_no_activate(self) -> bool:
        return bool(self.ex_style & win32.WS_EX_NOACTIVATE)

    @property
    def is_visible(self) -> bool:
        return win32.is_window_visible(self._hwnd)

    @property
    def is_cloaked(self) -> bool:
        return win32.is_window_cloaked(self._hwnd)

    # ------------------------------------------------------------------
    # HostWindow: clasificacion
    # ------------------------------------------------------------------
    @property
    def window_type(self) -> WindowType:
        if self.is_tool_window and not self.is_app_window:
            return WindowType.OTHER
        if self.class_name == DIALOG_CLASS or win32.get_owner(self._hwnd):
            return WindowType.DIALOG
        return WindowType.NORMAL

    @property
    def skip_taskbar(self) -> bool:
        # Una ventana con propietario no aparece en la taskbar salvo WS_EX_APPWINDOW
        if self.is_app_window:
            return False
        return self.is_tool_window or bool(win32.get_owner(self._hwnd))

    @property
    def minimized(self) -> bool:
        return win32.is_window_iconic(self._hwnd)

    @property
    def is_maximized(self) -> bool:
        return win32.is_window_zoomed(self._hwnd)

    @property
    def is_fullscreen(self) -> bool:
        return self._fullscreen

    @property
    def layer(self) -> int:
        return 1 if self.ex_style & win32.WS_EX_TOPMOST else 0

    def frame_rect(self) -> Rect:
        return Rect.from_ltrb(*win32.get_window_rect(self._hwnd))

    def is_destroyed(self) -> bool:
        return not win32.is_window_valid(self._hwnd)

    def is_hidden(self) -> bool:
        return not self.is_visible or self.is_cloaked

    # ------------------------------------------------------------------
    # HostWindow: workspace (delegado al VirtualDesktop)
    # ------------------------------------------------------------------
    def get_workspace(self) -> Optional[int]:
        return self._desktop.workspace_of(self)

    def is_on_all_workspaces(self) -> bool:
        return self._desktop.is_sticky(self)

    def located_on_workspace(self, index: int) -> bool:
        ws = self.get_workspace()
        return ws is None or ws == index

    def change_workspace(self, index: int) -> None:
        self._desktop.set_workspace(self, index)

    # ------------------------------------------------------------------
    # HostWindow: geometria
    # ------------------------------------------------------------------
    def move_frame(self, x: int, y: int) -> None:
        win32.set_window_pos(
            self._hwnd, x, y, 0, 0,
            flags=win32.SWP_NOSIZE | win32.SWP_NOZORDER | win32.SWP_NOACTIVATE,
        )
        self._desktop.sync(self)

    def move_resize_frame(self, x: int, y: int, w: int, h: int) -> None:
        win32.set_window_pos(self._hwnd, x, y, w, h)
        self._desktop.sync(self)

    # ------------------------------------------------------------------
    # HostWindow: estado
    # ------------------------------------------------------------------
    def maximize(self) -> None:
        win32.show_window(self._hwnd, win32.SW_MAXIMIZE)

    def unmaximize(self) -> None:
        if self.is_maximized:
            win32.show_window(self._hwnd, win32.SW_RESTORE)

    # Mask of style bits removed when entering fullscreen
    _FS_STYLE_MASK = win32.WS_CAPTION | win32.WS_THICKFRAME

    # Mask of extended style bits removed when entering fullscreen
    _FS_EX_STYLE_MASK = (
        win32.WS_EX_DLGMODALFRAME
        | win32.WS_EX_WINDOWEDGE
        | win32.WS_EX_CLIENTEDGE
        | win32.WS_EX_STATICEDGE
    )

    def make_fullscreen(self) -> None:
        """Borderless fullscreen sobre el monitor mas cercano."""
        if self._fullscreen or self.is_destroyed():
            return

        self._saved_style = self.style
        self._saved_ex_style = self.ex_style
        self._saved_rect = win32.get_window_rect(self._hwnd)

        if self.minimized or self.is_maximized:
            win32.show_window(self._hwnd, win32.SW_RESTORE)

        win32.set_window_style(self._hwnd, self._saved_style & ~self._FS_STYLE_MASK)
        win32.set_window_ex_style(self._hwnd, self._saved_ex_style & ~self._FS_EX_STYLE_MASK)

        hmonitor = win32api.MonitorFromWindow(self._hwnd, win32con.MONITOR_DEFAULTTONEAREST)
        monitor = Rect.from_ltrb(*win32api.GetMonitorInfo(hmonitor)["Monitor"])
        win32.set_window_pos(
            self._hwnd, monitor.x, monitor.y, monitor.w, monitor.h,
            flags=win32.SWP_NOZORDER | win32.SWP_NOACTIVATE | win32.SWP_FRAMECHANGED,
        )
        self._fullscreen = True
        log.info("FULLSCREEN ON  %s", self)

    def unmake_fullscreen(self) -> None:
        if not self._fullscreen:
            return
        self._fullscreen = False
        if self.is_destroyed():
            return

        win32.set_window_style(self._hwnd, self._saved_style)
        win32.set_window_ex_style(self._hwnd, self._saved_ex_style)

        left, top, right, bottom = self._saved_rect
        win32.set_window_pos(
            self._hwnd, left, top, right - left, bottom - top,
            flags=win32.SWP_NOZORDER | win32.SWP_NOACTIVATE | win32.SWP_FRAMECHANGED,
        )
        log.info("FULLSCREEN OFF %s", self)

    # ------------------------------------------------------------------
    # HostWindow: foco
    # ------------------------------------------------------------------
    def focus(self) -> None:
        """
        Foreground sin restaurar.

        Win32 no permite dar foco sin elevar, asi que focus() y
        activate() solo difieren en que activate() restaura la ventana.
        """
        win32.set_foreground_window(self._hwnd)

    def activate(self) -> None:
        if self.minimized:
            win32.show_window(self._hwnd, win32.SW_RESTORE)
        win32.bring_window_to_top(self._hwnd)
        win32.set_foreground_window(self._hwnd)

    # ------------------------------------------------------------------
    # Dunder methods
    # ------------------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if isinstance(other, Window):
            return self._hwnd == other._hwnd
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._hwnd)

    def __repr__(self) -> str:
        title = self.title if not self.is_destroyed() else "<destroyed>"
        return f"Window(hwnd={self._hwnd:#010x}, title={title!r})"

    def __str__(self) -> str:
        if self.is_destroyed():
            return f"[{self._hwnd:#010x}] <destroyed>"
        r = self.frame_rect()
        return (
            f"[{self._hwnd:#010x}] {self.title!r} | {self.process_name} | "
            f"ws {self.get_workspace()} | {r.w}x{r.h}+{r.x}+{r.y}"
        )
