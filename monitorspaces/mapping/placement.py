"""
monitorspaces.mapping.placement - Posiciones relativas y colocacion de ventanas.

Responsabilidades:
    - Cache de posiciones relativas (stash / restore) por ventana y
      workspace. Una entrada se consume exactamente una vez.
    - Colocacion de ventanas nuevas en el monitor donde estaba el puntero
      al crearse, con el workspace que corresponde a ese monitor.
    - Snapshot de las ventanas de los monitores secundarios antes de
      desactivar y su restauracion al volver a activar.
    - Refresco de los secundarios tras desbloquear la sesion.

Regla de workspace para una ventana que aterriza en un monitor:
    primario   -> workspace logico que muestra el primario
    secundario -> workspace activo del host (la ventana queda sticky)
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

from monitorspaces.mapping.engine import PreservedWindow, SavedPosition
from monitorspaces.mapping.host import WindowType
from monitorspaces.mapping.rect import Rect
from monitorspaces.mapping.scheduler import windows_alive

if TYPE_CHECKING:
    from monitorspaces.mapping.engine import MappingEngine
    from monitorspaces.mapping.host import HostWindow

log = logging.getLogger(__name__)


class PlacementEngine:
    """Colocacion de ventanas sobre el estado de un MappingEngine."""

    def __init__(self, engine: MappingEngine) -> None:
        self._engine = engine

    # ==================================================================
    # Cache de posiciones relativas
    # ==================================================================
    def stash_position(
        self, window: HostWindow, workspace: int, monitor: Optional[int] = None,
    ) -> Optional[SavedPosition]:
        """
        Guarda el offset de *window* respecto al origen de su monitor
        (o de *monitor* si se indica), etiquetado con *workspace*.
        """
        eng = self._engine
        if monitor is None:
            monitor = eng.locator.window_monitor(window)
        geo = eng.monitors.geometry(monitor) if monitor is not None else None
        if geo is None:
            log.debug("stash: '%s' fuera de todo monitor, no se guarda",
                      window.short_title())
            return None

        rel_x, rel_y = window.frame_rect().relative_to(geo)
        saved = SavedPosition(rel_x, rel_y, workspace)
        eng.saved_positions[window.id] = saved
        eng.trace("  STASH '%s' rel(%d,%d) ws %d",
                  window.short_title(), rel_x, rel_y, workspace)
        return saved

    def restore_position(
        self, window: HostWindow, monitor: int, workspace: Optional[int] = None,
    ) -> tuple[int, int]:
        """
        Mueve *window* dentro de *monitor* y retorna la posicion absoluta.

        Usa (y consume) el offset guardado si esta etiquetado con el
        workspace que va a mostrar el monitor; si no, cuarto de monitor.
        """
        eng = self._engine
        geo = eng.monitors.geometry(monitor)
        if geo is None:
            rect = window.frame_rect()
            return (rect.x, rect.y)
        if workspace is None:
            workspace = eng.mapper.get_workspace_for_monitor(monitor)

        saved = eng.saved_positions.get(window.id)
        if saved is not None and saved.workspace == workspace:
            del eng.saved_positions[window.id]
            x, y = geo.x + saved.rel_x, geo.y + saved.rel_y
        else:
            x, y = geo.x + geo.w // 4, geo.y + geo.h // 4
            eng.trace("  '%s' sin posicion guardada, cuarto de monitor",
                      window.short_title())

        window.move_frame(x, y)
        eng.trace("  RESTORE '%s' -> (%d,%d) en M%d",
                  window.short_title(), x, y, monitor)
        return (x, y)

    def stash_workspace_positions(self, monitor: int, workspace: int) -> int:
        """Guarda la posicion de todas las ventanas de *workspace* respecto a *monitor*."""
        windows = self._engine.locator.windows_on_workspace(workspace)
        for w in windows:
            self.stash_position(w, workspace, monitor)
        return len(windows)

    # ==================================================================
    # Geometria con re-aplicacion diferida
    # ==================================================================
    def reapply_geometry(self, window: HostWindow, rect: Rect) -> None:
        """
        Aplica *rect* ahora y otra vez tras el retardo de asentamiento.

        El host puede recalcular el tamano al sacar una ventana de un
        estado de mosaico; la segunda aplicacion lo corrige.
        """
        window.move_resize_frame(rect.x, rect.y, rect.w, rect.h)
        delay = self._engine.settings.delays.size_settle
        (
            self._engine.queue.chain(f"reapply:{window.id}", windows_alive([window]))
            .then(delay, lambda: window.move_resize_frame(rect.x, rect.y, rect.w, rect.h))
            .start()
        )

    def assign_for_monitor(self, window: HostWindow, monitor: int) -> int:
        """Re-etiqueta *window* segun el monitor donde queda. Retorna el workspace."""
        eng = self._engine
        if eng.monitors.is_primary(monitor):
            workspace = eng.mapper.get_workspace_for_monitor(monitor)
        else:
            workspace = eng.host.get_active_workspace()
        window.change_workspace(workspace)
        return workspace

    # ==================================================================
    # Ventanas nuevas
    # ==================================================================
    def place_new_window(self, window: Optional[HostWindow], source: str = "created") -> None:
        """Handler de ventana nueva (creada o mapeada por primera vez)."""
        eng = self._engine
        if window is None or window.is_destroyed():
            return

        window_id = window.id
        if window_id in eng.recently_processed:
            return

        eng.trace("WINDOW %s: '%s' type=%s skip_taskbar=%s", source.upper(),
                  window.short_title(), window.window_type.value, window.skip_taskbar)

        if window.window_type not in (WindowType.NORMAL, WindowType.DIALOG):
            return
        if window.skip_taskbar:
            return

        # Las dos notificaciones (create + map) llegan para la misma ventana
        eng.recently_processed.add(window_id)
        eng.scheduler.timeout_add(
            eng.settings.delays.recently_processed,
            lambda: eng.recently_processed.discard(window_id),
        )

        # El puntero se lee YA: el warp-to-focus de otros handlers lo mueve
        target = eng.locator.monitor_at_pointer()
        eng.pending_placement[window_id] = target
        eng.trace("WINDOW %s: puntero en M%d, colocacion pendiente",
                  source.upper(), target)

        eng.scheduler.idle_add(
            lambda: self.move_window_to_monitor(window, target, window_id)
        )

    def move_window_to_monitor(
        self, window: HostWindow, target: int, window_id: Optional[int] = None,
    ) -> None:
        """Lleva una ventana nueva al monitor *target* y le asigna workspace."""
        eng = self._engine
        if window_id is None:
            window_id = window.id

        if window.is_destroyed():
            eng.pending_placement.pop(window_id, None)
            return

        target_geo = eng.monitors.geometry(target)
        if target_geo is None:
            log.debug("Colocacion: M%d ya no existe, se omite '%s'",
                      target, window.short_title())
            eng.pending_placement.pop(window_id, None)
            return

        # Mapa vacio: el motor se desactivo antes de este tick
        if not eng.mapper.has_monitor(target):
            log.debug("Colocacion: M%d sin workspace, se omite '%s'",
                      target, window.short_title())
            eng.pending_placement.pop(window_id, None)
            return

        rect = window.frame_rect()
        source = eng.locator.window_monitor(window)

        if source == target:
            window.move_to_monitor(target)
            ws = self.assign_for_monitor(window, target)
            eng.trace("NEW WINDOW '%s' ya en M%d, ws %d",
                      window.short_title(), target, ws)
            self.finish_placement(window, window_id, rect.center)
            return

        source_geo = eng.monitors.geometry(source) if source is not None else None
        if source_geo is not None:
            rel_x, rel_y = rect.relative_to(source_geo)
        else:
            rel_x, rel_y = rect.x % target_geo.w, rect.y % target_geo.h

        placed = rect.moved_to(target_geo.x + rel_x, target_geo.y + rel_y)
        placed = placed.clamp_inside(target_geo)

        window.move_frame(placed.x, placed.y)
        window.move_to_monitor(target)
        ws = self.assign_for_monitor(window, target)

        eng.trace("NEW WINDOW '%s' M%s -> M%d en (%d,%d), ws %d",
                  window.short_title(), source, target, placed.x, placed.y, ws)
        self.finish_placement(window, window_id, placed.center)

    def finish_placement(
        self, window: HostWindow, window_id: int, warp_to: tuple[int, int],
    ) -> None:
        eng = self._engine
        eng.pending_placement.pop(window_id, None)

        if not window.is_destroyed():
            window.activate()

        if eng.settings.warp_pointer_to_focus:
            eng.host.warp_pointer(*warp_to)
            eng.trace("NEW WINDOW: puntero a (%d,%d)", *warp_to)

    # ==================================================================
    # Desactivar / activar
    # ==================================================================
    def save_before_disable(self) -> int:
        """
        Guarda las ventanas de los secundarios y las lleva al primario.

        Las ventanas quedan en el workspace activo del host, que les quita
        el estado sticky (el host lo corrompe al bloquear la sesion).
        Retorna cuantas ventanas se guardaron.
        """
        eng = self._engine
        # Un snapshot que aun no se restauro sigue siendo valido
        if eng.monitors.count == 0:
            return 0
        saved = 0

        primary_geo = eng.monitors.primary_geometry
        active = eng.host.get_active_workspace()

        for monitor in eng.monitors.secondaries():
            logical = eng.mapper.get_workspace_for_monitor(monitor.index)
            for w in eng.locator.windows_on_monitor(monitor.index):
                rect = w.frame_rect()
                rel_x, rel_y = rect.relative_to(monitor.rect)
                eng.disable_snapshot[w.id] = PreservedWindow(
                    monitor=monitor.index,
                    workspace=logical,
                    rel_x=rel_x,
                    rel_y=rel_y,
                    width=rect.w,
                    height=rect.h,
                    title=w.title,
                )
                w.move_resize_frame(primary_geo.x + rel_x, primary_geo.y + rel_y,
                                    rect.w, rect.h)
                w.change_workspace(active)
                log.info("Guardada '%s' de M%d (ws %d) -> primario",
                         w.short_title(), monitor.index, logical)
                saved += 1

        log.info("Snapshot de desactivacion: %d ventanas (%d nuevas)",
                 len(eng.disable_snapshot), saved)
        return saved

    def restore_after_enable(self) -> int:
        """Devuelve las ventanas del snapshot a sus secundarios y lo vacia."""
        eng = self._engine
        snapshot = eng.disable_snapshot
        if not snapshot:
            log.debug("No hay ventanas guardadas que restaurar")
            return 0

        active = eng.host.get_active_workspace()
        restored = 0
        for window_id, info in snapshot.items():
            window = eng.locator.find_window(window_id)
            if window is None:
                log.info("Ventana '%s' ya no existe, se omite", info.title)
                continue
            geo = eng.monitors.geometry(info.monitor)
            if geo is None:
                log.info("M%d ya no existe, se omite '%s'", info.monitor, info.title)
                continue

            rect = Rect(geo.x + info.rel_x, geo.y + info.rel_y, info.width, info.height)
            self.reapply_geometry(window, rect)
            window.move_to_monitor(info.monitor)
            window.change_workspace(active)
            restored += 1
            log.info("Restaurada '%s' en M%d %s", info.title, info.monitor, rect)

        wanted = {info.monitor: info.workspace for info in snapshot.values()}
        for monitor, workspace in sorted(wanted.items()):
            self._restore_mapping(monitor, workspace)

        snapshot.clear()
        log.info("Snapshot restaurado: %d ventanas, mapa %s", restored, eng.mapper)
        return restored

    def _restore_mapping(self, monitor: int, workspace: int) -> None:
        """
        Devuelve *workspace* a *monitor* sin repetirlo en otro monitor.

        Si otro secundario lo muestra, ambos intercambian workspaces. Si lo
        muestra el primario (el host cambio de workspace mientras el motor
        estaba inactivo) el primario lo conserva y *monitor* no cambia.
        """
        eng = self._engine
        if not eng.mapper.has_monitor(monitor):
            return

        holder = eng.mapper.get_monitor_for_workspace(workspace)
        if holder == monitor:
            return
        if holder is None:
            eng.mapper.set_mapping(monitor, workspace)
        elif eng.monitors.is_primary(holder):
            log.info("ws %d sigue en el primario, M%d conserva ws %d",
                     workspace, monitor, eng.mapper.get_workspace_for_monitor(monitor))
        else:
            eng.mapper.swap(monitor, holder)

    def refresh_secondary_windows(self) -> int:
        """Re-aplica workspace y geometria a las ventanas de los secundarios."""
        eng = self._engine
        active = eng.host.get_active_workspace()
        refreshed = 0

        for monitor in eng.monitors.secondaries():
            if not eng.mapper.has_monitor(monitor.index):
                continue
            windows = eng.locator.windows_on_monitor(monitor.index)
            eng.trace("  M%d (ws %d): %d ventanas", monitor.index,
                      eng.mapper.get_workspace_for_monitor(monitor.index), len(windows))
            for w in windows:
                w.change_workspace(active)
                self.reapply_geometry(w, w.frame_rect())
                refreshed += 1

        log.info("Ventanas de secundarios refrescadas: %d", refreshed)
        return refreshed
