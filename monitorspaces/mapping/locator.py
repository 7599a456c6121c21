"""
monitorspaces.mapping.locator - Que monitor es dueno de cada ventana.

Regla unica: una ventana pertenece al monitor que contiene el CENTRO de
su frame (no la interseccion). ``monitor_for_rect`` es la unica
implementacion de esa regla; todo el motor (colocacion, cambios de
workspace, foco, log de depuracion) pasa por aqui.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterable, Sequence
from typing import Optional, TYPE_CHECKING

from monitorspaces.mapping.host import WindowType
from monitorspaces.mapping.rect import Rect

if TYPE_CHECKING:
    from monitorspaces.mapping.host import Host, HostWindow
    from monitorspaces.mapping.monitor import Monitor, MonitorRegistry

log = logging.getLogger(__name__)


# Dos ventanas cuyos bordes superiores difieren menos que esto estan en
# la misma "fila" y se ordenan por x.
RASTER_ROW_TOLERANCE = 50


# ============================================================================
# Funciones puras
# ============================================================================
def monitor_for_point(x: float, y: float, monitors: Iterable[Monitor]) -> Optional[int]:
    """Indice del monitor que contiene el punto, o None."""
    for m in monitors:
        if m.rect.contains_point(x, y):
            return m.index
    return None


def monitor_for_rect(rect: Rect, monitors: Iterable[Monitor]) -> Optional[int]:
    """Indice del monitor que contiene el centro de *rect*, o None."""
    return monitor_for_point(rect.center_x, rect.center_y, monitors)


def _raster_cmp(a: HostWindow, b: HostWindow) -> int:
    ra, rb = a.frame_rect(), b.frame_rect()
    if abs(ra.y - rb.y) < RASTER_ROW_TOLERANCE:
        return ra.x - rb.x
    return ra.y - rb.y


def sort_raster(windows: Iterable[HostWindow]) -> list[HostWindow]:
    """Orden de lectura: arriba-izquierda hacia abajo-derecha."""
    return sorted(windows, key=functools.cmp_to_key(_raster_cmp))


def window_at_point(x: int, y: int, windows: Sequence[HostWindow]) -> Optional[HostWindow]:
    """
    Ventana mas alta (mayor ``layer``) que contiene el punto.

    Con empate de capa gana la primera de la lista.
    """
    target: Optional[HostWindow] = None
    for w in windows:
        if not w.frame_rect().contains_point(x, y):
            continue
        if target is None or w.layer > target.layer:
            target = w
    return target


def _is_listed(window: HostWindow) -> bool:
    """Ventana NORMAL que aparece en la barra de tareas."""
    return window.window_type == WindowType.NORMAL and not window.skip_taskbar


# ============================================================================
# WindowLocator
# ============================================================================
class WindowLocator:
    """Consultas de ventanas por monitor y por workspace sobre el host."""

    def __init__(self, host: Host, monitors: MonitorRegistry) -> None:
        self._host = host
        self._monitors = monitors

    # ------------------------------------------------------------------
    # Monitores
    # ------------------------------------------------------------------
    def window_monitor(self, window: HostWindow) -> Optional[int]:
        return monitor_for_rect(window.frame_rect(), self._monitors.monitors)

    def monitor_at_pointer(self) -> int:
        """Monitor bajo el puntero; el primario si el puntero esta fuera."""
        px, py = self._host.get_pointer()
        index = monitor_for_point(px, py, self._monitors.monitors)
        if index is None:
            log.warning("Puntero (%d,%d) fuera de todo monitor, usando el primario",
                        px, py)
            return self._monitors.primary
        return index

    # ------------------------------------------------------------------
    # Ventanas
    # ------------------------------------------------------------------
    def all_windows(self) -> list[HostWindow]:
        return [w for w in self._host.list_windows() if not w.is_destroyed()]

    def find_window(self, window_id: int) -> Optional[HostWindow]:
        for w in self.all_windows():
            if w.id == window_id:
                return w
        log.debug("find_window: ventana %d no encontrada", window_id)
        return None

    def windows_on_monitor(self, monitor: int, include_hidden: bool = False) -> list[HostWindow]:
        """
        Ventanas NORMAL (sin skip-taskbar) cuyo centro esta en *monitor*.

        No descarta ventanas sticky: el host las vuelve sticky al moverlas
        a un secundario. Las ocultas se incluyen solo con *include_hidden*.
        """
        geo = self._monitors.geometry(monitor)
        if geo is None:
            return []
        result = []
        for w in self.all_windows():
            if not _is_listed(w):
                continue
            if not include_hidden and w.is_hidden():
                continue
            rect = w.frame_rect()
            if geo.contains_point(rect.center_x, rect.center_y):
                result.append(w)
        return result

    def windows_on_workspace(self, workspace: int) -> list[HostWindow]:
        """Ventanas NORMAL cuyo workspace del host es *workspace* (sin sticky)."""
        return [
            w for w in self.all_windows()
            if _is_listed(w)
            and not w.is_on_all_workspaces()
            and w.get_workspace() == workspace
        ]

    def windows_visible_on_monitor_for_workspace(
        self, monitor: int, workspace: int,
    ) -> list[HostWindow]:
        """
        Ventanas que el usuario ve en *monitor* mostrando *workspace*.

        En el primario se respeta el workspace real de cada ventana. En un
        secundario el host lo colapsa todo en "sticky", asi que cualquier
        ventana visible cuyo centro caiga en el monitor cuenta.
        """
        geo = self._monitors.geometry(monitor)
        if geo is None:
            return []
        primary = self._monitors.is_primary(monitor)
        result = []
        for w in self.all_windows():
            if w.window_type != WindowType.NORMAL:
                continue
            if w.is_hidden() or w.minimized:
                continue
            rect = w.frame_rect()
            if not geo.contains_point(rect.center_x, rect.center_y):
                continue
            if primary and w.get_workspace() != workspace:
                continue
            result.append(w)
        return result
