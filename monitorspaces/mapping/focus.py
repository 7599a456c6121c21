"""
monitorspaces.mapping.focus - Historial de foco y correccion de deriva.

    - Recuerda la ultima ventana con foco de cada workspace.
    - Si el host da el foco a una ventana de otro monitor distinto al del
      puntero (heuristicas propias del host), lo devuelve a una ventana
      del monitor del puntero.
    - warp-pointer-to-focus: lleva el puntero al centro de la ventana
      que recibe el foco.
    - Restauracion del puntero tras una operacion que lo haya movido.
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

from monitorspaces.mapping.host import WindowType
from monitorspaces.mapping.locator import window_at_point

if TYPE_CHECKING:
    from monitorspaces.mapping.engine import MappingEngine
    from monitorspaces.mapping.host import HostWindow

log = logging.getLogger(__name__)


# Desplazamiento del puntero (px, por eje) a partir del cual se restaura
POINTER_DRIFT_THRESHOLD = 5


class FocusTracker:
    """Foco por workspace sobre el estado de un MappingEngine."""

    def __init__(self, engine: MappingEngine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Evento del host
    # ------------------------------------------------------------------
    def on_focus_changed(self) -> None:
        eng = self._engine
        window = eng.host.get_focus_window()
        pointer_monitor = eng.locator.monitor_at_pointer()

        if window is not None and window.window_type == WindowType.NORMAL:
            window_monitor = eng.locator.window_monitor(window)

            # Durante un cambio propio el foco es transitorio
            if not eng.internal_switch and window_monitor is not None:
                if eng.mapper.has_monitor(window_monitor):
                    ws = eng.mapper.get_workspace_for_monitor(window_monitor)
                    eng.last_focused[ws] = window.id

            if (
                window_monitor is not None
                and window_monitor != pointer_monitor
                and not eng.is_pending(window.id)
            ):
                eng.trace("Foco en M%d pero puntero en M%d, corrigiendo",
                          window_monitor, pointer_monitor)
                px, py = eng.host.get_pointer()
                self.focus_window_at_position(px, py, pointer_monitor)
                return

        if not eng.settings.warp_pointer_to_focus or window is None:
            return
        if eng.is_pending(window.id):
            eng.trace("Warp omitido para ventana pendiente '%s'", window.short_title())
            return
        if window.window_type != WindowType.NORMAL:
            return

        px, py = eng.host.get_pointer()
        if window.frame_rect().contains_point(px, py):
            # Foco por click: el puntero ya esta dentro
            return
        self.warp_pointer_to_window(window)

    # ------------------------------------------------------------------
    # Dar foco
    # ------------------------------------------------------------------
    def focus_window_at_position(self, x: int, y: int, monitor: int) -> Optional[HostWindow]:
        """
        Da foco a la ventana bajo (x, y) entre las visibles de *monitor*.

        Sin ventana bajo el punto, la mas alta del monitor. Sin ventanas,
        se quita el foco a todas para que no quede en otro monitor.
        """
        eng = self._engine
        ws = eng.mapper.get_workspace_for_monitor(monitor)
        windows = eng.locator.windows_visible_on_monitor_for_workspace(monitor, ws)

        if not windows:
            self.unfocus_all()
            eng.trace("M%d sin ventanas, foco retirado", monitor)
            return None

        target = window_at_point(x, y, windows)
        if target is None:
            # list_windows viene en orden de apilamiento: la ultima es la mas alta
            target = max(reversed(windows), key=lambda w: w.layer)
            eng.trace("Nada bajo el puntero, foco a la mas alta: '%s'",
                      target.short_title())

        target.focus()
        return target

    def focus_last_or_at_position(
        self, monitor: int, workspace: int, x: int, y: int,
    ) -> Optional[HostWindow]:
        """Foco a la ultima ventana de *workspace* si sigue valida; si no, a la de (x, y)."""
        eng = self._engine
        window = self.last_valid_window(monitor, workspace)
        if window is not None:
            self.warp_pointer_to_window(window)
            window.focus()
            eng.trace("Foco restaurado a '%s' (ws %d)", window.short_title(), workspace)
            return window
        return self.focus_window_at_position(x, y, monitor)

    def last_valid_window(self, monitor: int, workspace: int) -> Optional[HostWindow]:
        """
        Ultima ventana con foco de *workspace* si existe, esta en *monitor*
        y es visible en el workspace activo. Si no, olvida el registro.
        """
        eng = self._engine
        window_id = eng.last_focused.get(workspace)
        if window_id is None:
            return None

        window = eng.locator.find_window(window_id)
        if (
            window is not None
            and eng.locator.window_monitor(window) == monitor
            and window.located_on_workspace(eng.host.get_active_workspace())
        ):
            return window

        eng.trace("Registro de foco de ws %d descartado", workspace)
        del eng.last_focused[workspace]
        return None

    def unfocus_all(self) -> None:
        self._engine.host.unset_input_focus()

    # ------------------------------------------------------------------
    # Puntero
    # ------------------------------------------------------------------
    def warp_pointer_to_window(self, window: HostWindow) -> None:
        x, y = window.frame_rect().center
        self._engine.host.warp_pointer(x, y)
        self._engine.trace("Puntero a (%d,%d) para '%s'", x, y, window.short_title())

    def restore_pointer(self, saved_x: int, saved_y: int) -> None:
        """
        Devuelve el puntero a (saved_x, saved_y) si se movio mas del umbral.

        Se comprueba ahora y en dos retardos: el host re-centra el puntero
        de forma asincrona tras cambiar el foco.
        """
        eng = self._engine
        self._do_restore_pointer(saved_x, saved_y, "inmediato")

        first, second = eng.settings.delays.pointer_restore
        (
            eng.queue.chain("restore-pointer")
            .then(first, lambda: self._do_restore_pointer(saved_x, saved_y, f"+{first}ms"))
            .then(second - first,
                  lambda: self._do_restore_pointer(saved_x, saved_y, f"+{second}ms"))
            .start()
        )

    def _do_restore_pointer(self, saved_x: int, saved_y: int, phase: str) -> None:
        px, py = self._engine.host.get_pointer()
        if (
            abs(px - saved_x) > POINTER_DRIFT_THRESHOLD
            or abs(py - saved_y) > POINTER_DRIFT_THRESHOLD
        ):
            self._engine.host.warp_pointer(saved_x, saved_y)
            self._engine.trace("Puntero restaurado [%s]: (%d,%d) -> (%d,%d)",
                               phase, px, py, saved_x, saved_y)
