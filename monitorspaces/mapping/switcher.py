"""
monitorspaces.mapping.switcher - Orquestador de cambios de workspace.

SwitchCoordinator resuelve cada peticion (atajo o cambio externo del
host) en uno de estos caminos:

    1. No-op:   el workspace ya esta en el monitor que actua.
    2. Warp:    esta en otro monitor y el modo es "warp": solo se mueve
                el puntero (y el foco) a ese monitor.
    3. Swap:    esta en otro monitor y el modo es "swap": los dos monitores
                intercambian sus ventanas y sus entradas del mapa.
    4. Simple:  no esta en ningun monitor: el monitor que actua cambia de
                workspace (camino primario o secundario).

Despues de 3 y 4: aviso a los listeners, restauracion del puntero y,
tras un retardo, foco a la ultima ventana del workspace o a la que este
bajo el puntero.

Todas las peticiones pasan por la OperationQueue del engine: mientras una
operacion tiene pasos diferidos pendientes, la siguiente espera.
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

from monitorspaces.mapping.host import WindowType
from monitorspaces.mapping.locator import sort_raster
from monitorspaces.mapping.rect import Rect
from monitorspaces.mapping.scheduler import windows_alive

if TYPE_CHECKING:
    from monitorspaces.mapping.engine import MappingEngine
    from monitorspaces.mapping.focus import FocusTracker
    from monitorspaces.mapping.host import HostWindow
    from monitorspaces.mapping.placement import PlacementEngine

log = logging.getLogger(__name__)


SWITCH_MODE_SWAP = "swap"
SWITCH_MODE_WARP = "warp"


class SwitchCoordinator:
    """Operaciones de workspace, foco y posicion disparadas por el usuario."""

    def __init__(
        self,
        engine: MappingEngine,
        placement: PlacementEngine,
        focus: FocusTracker,
    ) -> None:
        self._engine = engine
        self._placement = placement
        self._focus = focus

    @property
    def engine(self) -> MappingEngine:
        return self._engine

    # ==================================================================
    # Peticiones (entran por la cola)
    # ==================================================================
    def switch_workspace(self, target: int) -> None:
        """Muestra *target* en el monitor bajo el puntero."""
        pointer = self._engine.host.get_pointer()
        monitor = self._engine.locator.monitor_at_pointer()
        self._engine.queue.submit(
            f"switch:{target}",
            lambda: self._do_switch(target, monitor, pointer),
        )

    def move_window_to_workspace(self, target: int) -> None:
        """Envia la ventana con foco al workspace *target*."""
        pointer = self._engine.host.get_pointer()
        self._engine.queue.submit(
            f"move-window:{target}",
            lambda: self._do_move_window(target, pointer),
        )

    def warp_to_monitor(self, index: int) -> None:
        if not self._engine.monitors.is_valid(index):
            log.debug("Warp: M%d no existe", index)
            return
        self._engine.queue.submit(f"warp:{index}", lambda: self._do_warp(index))

    def cycle_focus(self, forward: bool) -> None:
        self._engine.queue.submit(
            "cycle-focus", lambda: self._do_cycle_focus(forward),
        )

    def swap_window_position(self, forward: bool) -> None:
        self._engine.queue.submit(
            "swap-window", lambda: self._do_swap_window_position(forward),
        )

    def on_external_workspace_change(self) -> None:
        """Handler de WORKSPACE_CHANGED del host."""
        eng = self._engine
        if eng.internal_switch:
            eng.trace("Cambio de workspace del host (propio, se ignora)")
            return
        target = eng.host.get_active_workspace()
        eng.queue.submit(f"external:{target}", lambda: self._do_external(target))

    # ==================================================================
    # Switch
    # ==================================================================
    def _do_switch(self, target: int, monitor: int, pointer: tuple[int, int]) -> None:
        eng = self._engine
        previous = eng.mapper.get_workspace_for_monitor(monitor)

        eng.trace("========== SWITCH M%d ws %d -> ws %d (primario M%d) ==========",
                  monitor, previous, target, eng.monitors.primary)
        eng.dump_state("ANTES del switch")

        if target == previous:
            eng.trace("Sin cambios (mismo workspace)")
            return

        eng.host.ensure_workspace(target)
        existing = eng.mapper.get_monitor_for_workspace(target)

        if existing is not None and existing != monitor:
            if eng.settings.switch_mode == SWITCH_MODE_WARP:
                log.info("WARP ws %d ya en M%d", target, existing)
                self._do_warp(existing)
                eng.listeners.mapping_changed(eng.mapper.all_mappings(), existing, target)
                return
            log.info("SWAP M%d ws %d <-> M%d ws %d",
                     monitor, previous, existing, target)
            self.perform_swap(monitor, existing, previous, target)
        else:
            log.info("SWITCH M%d ws %d -> ws %d", monitor, previous, target)
            if eng.monitors.is_primary(monitor):
                self._simple_switch_primary(monitor, previous, target)
            else:
                self._simple_switch_secondary(monitor, previous, target)
            eng.mapper.set_mapping(monitor, target)

        eng.listeners.mapping_changed(eng.mapper.all_mappings(), monitor, target)
        self._focus.restore_pointer(*pointer)
        self._schedule_refocus(monitor, target)
        eng.dump_state("DESPUES del switch")

    def _schedule_refocus(self, monitor: int, workspace: int) -> None:
        eng = self._engine

        def refocus() -> None:
            px, py = eng.host.get_pointer()
            self._focus.focus_last_or_at_position(monitor, workspace, px, py)
            eng.listeners.focus_settled(monitor, workspace)

        (
            eng.queue.chain("refocus")
            .then(eng.settings.delays.focus_restore, refocus)
            .start()
        )

    def _simple_switch_primary(
        self, monitor: int, previous: int, target: int, skip_activate: bool = False,
    ) -> None:
        """
        Primario: las ventanas visibles se quedan con *previous* (el host las
        ocultara), las de *target* se colocan y se activa *target*.
        """
        eng = self._engine
        for w in eng.locator.windows_on_monitor(monitor):
            self._placement.stash_position(w, previous, monitor)
            w.change_workspace(previous)

        for w in eng.locator.windows_on_workspace(target):
            self._placement.restore_position(w, monitor, target)

        if not skip_activate:
            self.activate_workspace(target)

    def _simple_switch_secondary(self, monitor: int, previous: int, target: int) -> None:
        """
        Secundario: el workspace global no cambia. Las ventanas visibles
        vuelven al primario etiquetadas con *previous* (quedan ocultas) y las
        de *target* que esperan en el primario pasan a este monitor.
        """
        eng = self._engine
        geo = eng.monitors.geometry(monitor)
        primary = eng.monitors.primary
        primary_geo = eng.monitors.geometry(primary)
        if geo is None or primary_geo is None:
            log.debug("Switch secundario: M%d o primario sin geometria", monitor)
            return

        outgoing = eng.locator.windows_on_monitor(monitor)
        eng.trace("  Paso 1: %d ventanas de M%d al primario", len(outgoing), monitor)
        for w in outgoing:
            self._relocate(w, geo, primary, primary_geo)
            w.change_workspace(previous)

        incoming = [
            w for w in eng.locator.windows_on_monitor(primary, include_hidden=True)
            if w.get_workspace() == target
        ]
        active = eng.host.get_active_workspace()
        eng.trace("  Paso 2: %d ventanas de ws %d a M%d", len(incoming), target, monitor)
        for w in incoming:
            self._relocate(w, primary_geo, monitor, geo)
            w.change_workspace(active)

    # ==================================================================
    # Swap
    # ==================================================================
    def perform_swap(
        self, m1: int, m2: int, ws1: int, ws2: int, skip_activate: bool = False,
    ) -> None:
        """
        Intercambia los workspaces (y las ventanas) de *m1* y *m2*.

        *m1* muestra *ws1* y pasara a mostrar *ws2*; *m2* al reves. Solo las
        ventanas que llegan al primario se re-etiquetan: en un secundario
        son sticky. *skip_activate* evita re-activar un workspace que el
        host ya activo (cambio externo).
        """
        eng = self._engine
        geo1 = eng.monitors.geometry(m1)
        geo2 = eng.monitors.geometry(m2)
        if geo1 is None or geo2 is None:
            log.debug("Swap M%d <-> M%d: monitor sin geometria", m1, m2)
            return

        primary = eng.monitors.primary
        windows1 = self._showing(m1, ws1)
        windows2 = self._showing(m2, ws2)
        eng.trace("SWAP: M%d(ws %d) %d ventanas <-> M%d(ws %d) %d ventanas",
                  m1, ws1, len(windows1), m2, ws2, len(windows2))

        new_global: Optional[int] = None
        if m1 == primary:
            new_global = ws2
        elif m2 == primary:
            new_global = ws1

        for w in windows1:
            self._relocate(w, geo1, m2, geo2)
            if m2 == primary and new_global is not None:
                w.change_workspace(new_global)
        for w in windows2:
            self._relocate(w, geo2, m1, geo1)
            if m1 == primary and new_global is not None:
                w.change_workspace(new_global)

        if new_global is not None and not skip_activate:
            self.activate_workspace(new_global)

        eng.mapper.swap(m1, m2)
        eng.trace("SWAP completo: %s", eng.mapper)

    def _showing(self, monitor: int, workspace: int) -> list[HostWindow]:
        """
        Ventanas que *monitor* muestra para *workspace*.

        En el primario se filtra por etiqueta e incluye las ocultas: tras un
        cambio externo el host ya oculto las del workspace saliente.
        """
        eng = self._engine
        if not eng.monitors.is_primary(monitor):
            return eng.locator.windows_on_monitor(monitor)
        return [
            w for w in eng.locator.windows_on_monitor(monitor, include_hidden=True)
            if w.get_workspace() == workspace
        ]

    def _relocate(self, window: HostWindow, source: Rect, dest: int, dest_geo: Rect) -> None:
        """Mueve *window* de *source* a *dest* con el mismo offset y tamano."""
        eng = self._engine
        if not eng.monitors.is_primary(dest):
            # El host no reubica ventanas maximizadas o en fullscreen
            if window.is_maximized:
                window.unmaximize()
            if window.is_fullscreen:
                window.unmake_fullscreen()

        rect = window.frame_rect()
        rel_x, rel_y = rect.relative_to(source)
        target = Rect(dest_geo.x + rel_x, dest_geo.y + rel_y, rect.w, rect.h)
        self._placement.reapply_geometry(window, target)
        window.move_to_monitor(dest)
        eng.trace("  '%s' -> M%d %s", window.short_title(), dest, target)

    # ==================================================================
    # Cambio externo
    # ==================================================================
    def _do_external(self, target: int) -> None:
        """El host cambio de workspace por su cuenta: switch en el primario."""
        eng = self._engine
        primary = eng.monitors.primary
        previous = eng.mapper.get_workspace_for_monitor(primary)

        eng.trace("========== CAMBIO EXTERNO ws %d -> ws %d ==========", previous, target)
        if target == previous:
            return

        existing = eng.mapper.get_monitor_for_workspace(target)
        if existing is not None and existing != primary:
            log.info("SWAP externo M%d <-> M%d (ws %d)", primary, existing, target)
            self.perform_swap(primary, existing, previous, target, skip_activate=True)
        else:
            log.info("SWITCH externo M%d ws %d -> ws %d", primary, previous, target)
            self._placement.stash_workspace_positions(primary, previous)
            eng.mapper.set_mapping(primary, target)

        eng.listeners.mapping_changed(eng.mapper.all_mappings(), primary, target)
        eng.dump_state("DESPUES del cambio externo")

    # ==================================================================
    # Mover ventana a otro workspace
    # ==================================================================
    def logical_workspace_of(self, window: HostWindow, monitor: int) -> Optional[int]:
        """Workspace logico de *window* estando en *monitor*."""
        eng = self._engine
        if eng.monitors.is_primary(monitor):
            return window.get_workspace()
        return eng.mapper.get_workspace_for_monitor(monitor)

    def _do_move_window(self, target: int, pointer: tuple[int, int]) -> None:
        eng = self._engine
        window = eng.host.get_focus_window()
        if window is None:
            log.info("No hay ventana con foco que mover")
            return
        if window.window_type != WindowType.NORMAL:
            log.info("Solo se mueven ventanas normales")
            return

        monitor = eng.locator.window_monitor(window)
        if monitor is None:
            monitor = eng.locator.monitor_at_pointer()
        current = self.logical_workspace_of(window, monitor)

        eng.trace("========== MOVE '%s' ws %s -> ws %d ==========",
                  window.short_title(), current, target)
        if current == target:
            eng.trace("Sin cambios (mismo workspace)")
            return

        eng.host.ensure_workspace(target)
        saved = self._placement.stash_position(window, target, monitor)
        if saved is not None:
            primary_geo = eng.monitors.primary_geometry
            window.move_frame(primary_geo.x + saved.rel_x, primary_geo.y + saved.rel_y)
        window.change_workspace(target)
        log.info("MOVE '%s' ws %s -> ws %d", window.short_title(), current, target)

        self._focus.restore_pointer(*pointer)

    # ==================================================================
    # Warp, ciclo de foco, intercambio de posiciones
    # ==================================================================
    def _do_warp(self, index: int) -> None:
        eng = self._engine
        geo = eng.monitors.geometry(index)
        if geo is None:
            log.debug("Warp: M%d no existe", index)
            return

        ws = eng.mapper.get_workspace_for_monitor(index)
        window = self._focus.last_valid_window(index, ws)
        if window is not None:
            self._focus.warp_pointer_to_window(window)
            window.focus()
        else:
            x, y = geo.center
            eng.host.warp_pointer(x, y)
            self._focus.focus_window_at_position(x, y, index)

        eng.listeners.focus_settled(index, ws)

    def _visible_sorted(self) -> tuple[list[HostWindow], Optional[HostWindow], int]:
        """Ventanas visibles del monitor del puntero, en orden raster."""
        eng = self._engine
        monitor = eng.locator.monitor_at_pointer()
        ws = eng.mapper.get_workspace_for_monitor(monitor)
        windows = sort_raster(
            eng.locator.windows_visible_on_monitor_for_workspace(monitor, ws)
        )
        focused = eng.host.get_focus_window()
        index = -1
        if focused is not None:
            for i, w in enumerate(windows):
                if w.id == focused.id:
                    index = i
                    break
        return windows, focused, index

    def _do_cycle_focus(self, forward: bool) -> None:
        eng = self._engine
        windows, _focused, index = self._visible_sorted()
        if not windows:
            return

        if index == -1:
            nxt = 0
        elif forward:
            nxt = (index + 1) % len(windows)
        else:
            nxt = (index - 1) % len(windows)

        window = windows[nxt]
        if eng.settings.raise_on_cycle_focus:
            window.activate()
        else:
            window.focus()
        eng.trace("Ciclo de foco -> '%s' (%d/%d)",
                  window.short_title(), nxt + 1, len(windows))

        if eng.settings.warp_pointer_to_focus:
            self._focus.warp_pointer_to_window(window)

    def _do_swap_window_position(self, forward: bool) -> None:
        eng = self._engine
        windows, focused, index = self._visible_sorted()
        if len(windows) < 2 or focused is None or index == -1:
            return

        current = windows[index]
        other = windows[(index + (1 if forward else -1)) % len(windows)]

        cur_max, other_max = current.is_maximized, other.is_maximized
        cur_fs, other_fs = current.is_fullscreen, other.is_fullscreen
        eng.trace("Intercambio de posicion '%s' <-> '%s' (max %s/%s, fs %s/%s)",
                  current.short_title(), other.short_title(),
                  cur_max, other_max, cur_fs, other_fs)

        if cur_max:
            current.unmaximize()
        if other_max:
            other.unmaximize()
        if cur_fs:
            current.unmake_fullscreen()
        if other_fs:
            other.unmake_fullscreen()

        def swap_rects() -> None:
            a, b = current.frame_rect(), other.frame_rect()
            current.move_resize_frame(b.x, b.y, b.w, b.h)
            other.move_resize_frame(a.x, a.y, a.w, a.h)
            if eng.settings.warp_pointer_to_focus:
                eng.host.warp_pointer(*b.center)

        def swap_states() -> None:
            if other_max:
                current.maximize()
            if cur_max:
                other.maximize()
            if other_fs:
                current.make_fullscreen()
            if cur_fs:
                other.make_fullscreen()
            current.focus()
            eng.trace("Intercambio de posicion completo")

        delay = eng.settings.delays.swap_settle
        (
            eng.queue.chain("swap-window", windows_alive([current, other]))
            .then(delay, swap_rects)
            .then(delay, swap_states)
            .start()
        )

    # ==================================================================
    # Activacion del workspace global
    # ==================================================================
    def activate_workspace(self, index: int) -> None:
        """
        Activa *index* en el host sin animacion.

        Mientras el flag interno esta puesto, el cambio de workspace y los
        cambios de foco que provoca no se tratan como acciones del usuario.
        """
        eng = self._engine
        delays = eng.settings.delays
        eng.internal_switch = True

        animations = eng.host.get_animations_enabled()
        if animations:
            eng.host.set_animations_enabled(False)

        eng.host.activate_workspace(index)
        eng.trace("  Workspace global activado: %d", index)

        if animations:
            (
                eng.queue.chain("restore-animations")
                .then(delays.animation_restore,
                      lambda: eng.host.set_animations_enabled(True))
                .start()
            )

        def clear_flag() -> None:
            eng.internal_switch = False

        eng.queue.chain("internal-switch").then(delays.internal_switch, clear_flag).start()
