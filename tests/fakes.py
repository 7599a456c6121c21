"""
Host en memoria para los tests.

FakeHost reproduce el modelo del backend real: un workspace global con
una etiqueta por ventana, ventanas sticky cuando su centro cae en un
monitor secundario y ocultas cuando estan en el primario con otra
etiqueta. Todo se puede inspeccionar (llamadas, movimientos, foco).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Optional

from monitorspaces.config.settings import SettingsStore
from monitorspaces.mapping.engine import MappingEngine
from monitorspaces.mapping.focus import FocusTracker
from monitorspaces.mapping.host import Host, HostEvent, HostWindow, WindowType
from monitorspaces.mapping.listeners import ListenerSet
from monitorspaces.mapping.locator import monitor_for_rect
from monitorspaces.mapping.monitor import Monitor
from monitorspaces.mapping.placement import PlacementEngine
from monitorspaces.mapping.rect import Rect
from monitorspaces.mapping.scheduler import Scheduler
from monitorspaces.mapping.switcher import SwitchCoordinator


# Tres monitores 1920x1080 en fila; el primero es el primario
PRIMARY = Rect(0, 0, 1920, 1080)
RIGHT = Rect(1920, 0, 1920, 1080)
FAR_RIGHT = Rect(3840, 0, 1920, 1080)


def make_monitors(count: int = 3) -> list[Monitor]:
    rects = [PRIMARY, RIGHT, FAR_RIGHT][:count]
    return [Monitor(i, r, is_primary=(i == 0), name=f"DISPLAY{i + 1}") for i, r in enumerate(rects)]


class ManualClock:
    """Reloj que solo avanza cuando el test lo pide.

    Cuenta milisegundos enteros para no acumular error de coma flotante.
    """

    def __init__(self) -> None:
        self.ms = 0

    def __call__(self) -> float:
        return self.ms / 1000.0

    def advance_ms(self, ms: int) -> None:
        self.ms += ms


# ============================================================================
# FakeWindow
# ============================================================================
class FakeWindow(HostWindow):

    def __init__(
        self,
        host: FakeHost,
        window_id: int,
        title: str,
        rect: Rect,
        window_type: WindowType = WindowType.NORMAL,
        workspace: Optional[int] = None,
        skip_taskbar: bool = False,
        layer: int = 0,
    ) -> None:
        self._host = host
        self._id = window_id
        self._title = title
        self.rect = rect
        self._type = window_type
        self.tag = host.active if workspace is None else workspace
        self._skip_taskbar = skip_taskbar
        self._layer = layer

        self.destroyed = False
        self.is_minimized = False
        self.maximized = False
        self.fullscreen = False

        self.moves: list[tuple[int, int]] = []
        self.resizes: list[Rect] = []
        self.workspace_changes: list[int] = []
        self.monitor_hints: list[int] = []
        self.focus_calls = 0
        self.activate_calls = 0

    # --- identidad y flags ---
    @property
    def id(self) -> int:
        return self._id

    @property
    def title(self) -> str:
        return self._title

    @property
    def window_type(self) -> WindowType:
        return self._type

    @property
    def skip_taskbar(self) -> bool:
        return self._skip_taskbar

    @property
    def minimized(self) -> bool:
        return self.is_minimized

    @property
    def is_maximized(self) -> bool:
        return self.maximized

    @property
    def is_fullscreen(self) -> bool:
        return self.fullscreen

    @property
    def layer(self) -> int:
        return self._layer

    def frame_rect(self) -> Rect:
        return self.rect

    def is_destroyed(self) -> bool:
        return self.destroyed

    def is_hidden(self) -> bool:
        return not self.is_on_all_workspaces() and self.tag != self._host.active

    # --- workspace ---
    def get_workspace(self) -> Optional[int]:
        return None if self.is_on_all_workspaces() else self.tag

    def is_on_all_workspaces(self) -> bool:
        return self._host.is_sticky(self)

    def located_on_workspace(self, index: int) -> bool:
        return self.is_on_all_workspaces() or self.tag == index

    def change_workspace(self, index: int) -> None:
        self.tag = index
        self.workspace_changes.append(index)

    # --- geometria ---
    def move_frame(self, x: int, y: int) -> None:
        self.rect = self.rect.moved_to(x, y)
        self.moves.append((x, y))

    def move_resize_frame(self, x: int, y: int, w: int, h: int) -> None:
        self.rect = Rect(x, y, w, h)
        self.resizes.append(self.rect)

    def move_to_monitor(self, monitor: int) -> None:
        self.monitor_hints.append(monitor)

    # --- estado ---
    def maximize(self) -> None:
        self.maximized = True

    def unmaximize(self) -> None:
        self.maximized = False

    def make_fullscreen(self) -> None:
        self.fullscreen = True

    def unmake_fullscreen(self) -> None:
        self.fullscreen = False

    # --- foco ---
    def focus(self) -> None:
        self.focus_calls += 1
        self._host.focus_window = self

    def activate(self) -> None:
        self.activate_calls += 1
        self._host.focus_window = self
        self._host.raise_window(self)

    def __repr__(self) -> str:
        return f"FakeWindow({self._id}, {self._title!r}, {self.rect}, ws={self.tag})"


# ============================================================================
# FakeHost
# ============================================================================
class FakeHost(Host):

    def __init__(self, monitors: Optional[list[Monitor]] = None) -> None:
        super().__init__()
        self.monitors = list(monitors) if monitors is not None else make_monitors()
        self.pointer: tuple[int, int] = (960, 540)
        self.windows: list[FakeWindow] = []
        self.focus_window: Optional[FakeWindow] = None
        self.active = 0
        self.count = 1
        self.animations = True

        self.settings: dict[str, bool] = {}
        self.system_keybindings: dict[str, list[str]] = {}
        self.keybindings: dict[str, tuple[list[str], Callable[[], None]]] = {}
        self.consent_answer = True
        self.consent_requests: list[tuple[str, str]] = []
        self.disabled = False

        self.activate_calls: list[int] = []
        self.warps: list[tuple[int, int]] = []
        self.animation_changes: list[bool] = []
        self.unfocus_calls = 0
        self._next_id = 1

    # ------------------------------------------------------------------
    # Helpers de los tests
    # ------------------------------------------------------------------
    def add_window(
        self,
        title: str,
        rect: Rect,
        workspace: Optional[int] = None,
        window_type: WindowType = WindowType.NORMAL,
        **kwargs: object,
    ) -> FakeWindow:
        window = FakeWindow(self, self._next_id, title, rect, window_type, workspace, **kwargs)
        self._next_id += 1
        self.windows.append(window)
        return window

    def is_sticky(self, window: FakeWindow) -> bool:
        index = monitor_for_rect(window.rect, self.monitors)
        if index is None:
            return False
        return not next(m for m in self.monitors if m.index == index).is_primary

    def raise_window(self, window: FakeWindow) -> None:
        self.windows.remove(window)
        self.windows.append(window)

    def switch_externally(self, index: int) -> None:
        """El usuario cambia de workspace por la via del host."""
        self.active = index
        self.emit(HostEvent.WORKSPACE_CHANGED)

    # ------------------------------------------------------------------
    # Host
    # ------------------------------------------------------------------
    def get_monitors(self) -> list[Monitor]:
        return list(self.monitors)

    def get_pointer(self) -> tuple[int, int]:
        return self.pointer

    def warp_pointer(self, x: int, y: int) -> None:
        self.pointer = (x, y)
        self.warps.append((x, y))

    def list_windows(self) -> list[HostWindow]:
        return list(self.windows)

    def get_focus_window(self) -> Optional[HostWindow]:
        return self.focus_window

    def unset_input_focus(self) -> None:
        self.unfocus_calls += 1
        self.focus_window = None

    def get_active_workspace(self) -> int:
        return self.active

    def activate_workspace(self, index: int) -> None:
        self.activate_calls.append(index)
        self.active = index
        self.emit(HostEvent.WORKSPACE_CHANGED)

    def workspace_count(self) -> int:
        return self.count

    def ensure_workspace(self, index: int) -> None:
        self.count = max(self.count, index + 1)

    def get_animations_enabled(self) -> bool:
        return self.animations

    def set_animations_enabled(self, enabled: bool) -> None:
        self.animations = enabled
        self.animation_changes.append(enabled)

    def get_setting(self, key: str) -> Optional[bool]:
        return self.settings.get(key)

    def set_setting(self, key: str, value: bool) -> None:
        self.settings[key] = value

    def get_system_keybinding(self, key: str) -> Optional[list[str]]:
        return self.system_keybindings.get(key)

    def set_system_keybinding(self, key: str, accelerators: list[str]) -> None:
        self.system_keybindings[key] = list(accelerators)

    def add_keybinding(
        self, name: str, accelerators: list[str], callback: Callable[[], None],
    ) -> bool:
        self.keybindings[name] = (list(accelerators), callback)
        return True

    def remove_keybinding(self, name: str) -> None:
        self.keybindings.pop(name, None)

    def request_consent(
        self,
        title: str,
        message: str,
        on_accept: Callable[[], None],
        on_reject: Callable[[], None],
    ) -> None:
        self.consent_requests.append((title, message))
        if self.consent_answer:
            on_accept()
        else:
            on_reject()

    def disable_self(self) -> None:
        self.disabled = True


# ============================================================================
# Rig: engine + componentes sobre un FakeHost
# ============================================================================
class Rig:
    """Todo el motor montado sobre un FakeHost y un reloj manual."""

    def __init__(self, host: FakeHost, store: Optional[SettingsStore] = None) -> None:
        self.host = host
        self.clock = ManualClock()
        self.scheduler = Scheduler(self.clock)
        self.store = store if store is not None else SettingsStore()
        self.listeners = ListenerSet()
        self.engine = MappingEngine(host, self.store, self.scheduler, self.listeners)
        self.placement = PlacementEngine(self.engine)
        self.focus = FocusTracker(self.engine)
        self.coordinator = SwitchCoordinator(self.engine, self.placement, self.focus)

    @property
    def mapper(self):
        return self.engine.mapper

    def map(self, mapping: dict[int, int]) -> None:
        """Refresca los monitores y fija el mapa (el primario define el activo)."""
        self.engine.monitors.refresh()
        for monitor, ws in mapping.items():
            self.engine.mapper.set_mapping(monitor, ws)
        self.host.active = mapping.get(self.engine.monitors.primary, self.host.active)

    def settle(self, ms: int = 2000, step: int = 10) -> None:
        """Avanza el reloj en pasos de *step* ms ejecutando lo vencido."""
        self.scheduler.run_pending()
        elapsed = 0
        while elapsed < ms:
            self.clock.advance_ms(step)
            elapsed += step
            self.scheduler.run_pending()
