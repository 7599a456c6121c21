"""
monitorspaces.mapping.lifecycle - Activacion y desactivacion del motor.

Secuencia de enable():
    1. Requisitos del host (workspaces solo en el primario, numero fijo
       de workspaces). Si faltan se pide consentimiento; si se rechaza,
       el host se desactiva a si mismo.
    2. Log de depuracion, atajos (reescritos segun el modificador) y
       desactivacion de los atajos del sistema que chocan.
    3. Mapa inicial, registro de atajos y suscripciones.
    4. Restauracion diferida del snapshot de la ultima desactivacion.

disable() guarda las ventanas de los secundarios, suelta todas las
suscripciones y atajos y borra solo el estado que no debe sobrevivir.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TYPE_CHECKING

from monitorspaces.config.hotkeys import (
    register_all_hotkeys,
    rewrite_workspace_bindings,
    unregister_all_hotkeys,
)
from monitorspaces.config.keybindings import (
    override_system_keybindings,
    restore_system_keybindings,
)
from monitorspaces.config.settings import WORKSPACE_COUNT
from monitorspaces.mapping.host import HostEvent
from monitorspaces.mapping.subscriptions import SubscriptionList

if TYPE_CHECKING:
    from monitorspaces.mapping.commands import CommandDispatcher
    from monitorspaces.mapping.engine import MappingEngine
    from monitorspaces.mapping.focus import FocusTracker
    from monitorspaces.mapping.placement import PlacementEngine
    from monitorspaces.mapping.switcher import SwitchCoordinator

log = logging.getLogger(__name__)


# Ajuste del host -> valor necesario
PREREQUISITES: dict[str, bool] = {
    "workspaces-only-on-primary": True,
    "dynamic-workspaces": False,
}

CONSENT_TITLE = "monitorspaces"
CONSENT_MESSAGE = (
    "Para tener workspaces independientes por monitor hay que cambiar "
    "estos ajustes del escritorio:\n\n{changes}\n\n"
    "Aceptar los aplica. Cancelar desactiva monitorspaces."
)

# Modo de sesion del escritorio normal (desbloqueado)
SESSION_USER = "user"


class LifecycleManager:
    """Conecta el motor al host y lo desconecta de forma reversible."""

    def __init__(
        self,
        engine: MappingEngine,
        placement: PlacementEngine,
        focus: FocusTracker,
        coordinator: SwitchCoordinator,
        dispatcher: CommandDispatcher,
    ) -> None:
        self._engine = engine
        self._placement = placement
        self._focus = focus
        self._coordinator = coordinator
        self._dispatcher = dispatcher
        self._subscriptions = SubscriptionList()
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ==================================================================
    # Requisitos
    # ==================================================================
    def check_prerequisites(self) -> list[str]:
        """
        Ajustes del host que no tienen el valor necesario.

        Un ajuste que el host no tiene (None) cuenta como cumplido.
        """
        unmet = []
        for key, required in PREREQUISITES.items():
            value = self._engine.host.get_setting(key)
            if value is not None and value != required:
                unmet.append(key)
        return unmet

    def _apply_prerequisites(self, keys: list[str]) -> None:
        for key in keys:
            self._engine.host.set_setting(key, PREREQUISITES[key])
            log.info("Ajuste del host %s = %s", key, PREREQUISITES[key])

    # ==================================================================
    # Enable / disable
    # ==================================================================
    def enable(self) -> None:
        if self._enabled:
            log.debug("enable: ya activo")
            return

        unmet = self.check_prerequisites()
        if not unmet:
            self._continue_enable()
            return

        host = self._engine.host
        changes = "\n".join(f"  {k} -> {PREREQUISITES[k]}" for k in unmet)
        log.info("Requisitos sin cumplir: %s", ", ".join(unmet))

        def on_accept() -> None:
            self._apply_prerequisites(unmet)
            self._continue_enable()

        def on_reject() -> None:
            log.warning("Requisitos rechazados, desactivando")
            host.disable_self()

        host.request_consent(
            CONSENT_TITLE, CONSENT_MESSAGE.format(changes=changes), on_accept, on_reject,
        )

    def _continue_enable(self) -> None:
        eng = self._engine
        store = eng.store
        settings = eng.settings

        if settings.debug_mode and eng.debug is not None:
            eng.debug.enable()

        store.set("bindings", rewrite_workspace_bindings(
            settings.bindings, settings.workspace_modifier,
        ))
        override_system_keybindings(eng.host, store)

        eng.monitors.refresh()
        self.initialize_mapping()

        register_all_hotkeys(eng.host, self._dispatcher, settings.bindings)
        self._connect_signals()
        self._enabled = True

        eng.listeners.monitors_rebuilt(eng.mapper.all_mappings())
        log.info("monitorspaces activo: %d monitores, mapa %s",
                 eng.monitors.count, eng.mapper)
        eng.dump_state("ENABLE")

        if eng.disable_snapshot:
            source_id = eng.scheduler.timeout_add(
                settings.delays.restore_after_enable, self._restore_snapshot,
            )
            self._subscriptions.add(
                "timer:restore-snapshot", lambda: eng.scheduler.remove(source_id),
            )

    def _connect_signals(self) -> None:
        eng = self._engine
        subs = self._subscriptions
        host = eng.host

        subs.connect(host, HostEvent.WINDOW_CREATED,
                     lambda w: self._placement.place_new_window(w, "created"))
        subs.connect(host, HostEvent.WINDOW_MAPPED,
                     lambda w: self._placement.place_new_window(w, "mapped"))
        subs.connect(host, HostEvent.FOCUS_CHANGED, self._focus.on_focus_changed)
        subs.connect(host, HostEvent.WORKSPACE_CHANGED,
                     self._coordinator.on_external_workspace_change)
        subs.connect(host, HostEvent.MONITORS_CHANGED, self.on_monitors_changed)
        subs.connect(host, HostEvent.SESSION_UPDATED, self.on_session_updated)

        subs.connect_setting(eng.store, "debug_mode", self._on_debug_mode_changed)
        subs.connect_setting(eng.store, "workspace_modifier", self._on_modifier_changed)
        log.debug("Suscripciones activas: %d", len(subs))

    def _restore_snapshot(self) -> None:
        eng = self._engine
        if self._placement.restore_after_enable():
            eng.listeners.monitors_rebuilt(eng.mapper.all_mappings())
            eng.dump_state("SNAPSHOT RESTAURADO")

    def disable(self) -> None:
        if not self._enabled:
            log.debug("disable: no estaba activo")
            return

        eng = self._engine
        self._placement.save_before_disable()

        released = self._subscriptions.release_all()
        unregister_all_hotkeys(eng.host, eng.settings.bindings)
        restore_system_keybindings(eng.host, eng.store)

        eng.reset_for_disable()
        self._enabled = False
        log.info("monitorspaces desactivado (%d suscripciones liberadas)", released)

        if eng.debug is not None:
            eng.debug.disable()

    # ==================================================================
    # Mapa inicial
    # ==================================================================
    def initialize_mapping(self) -> None:
        """
        Primario -> workspace activo del host; cada secundario, en orden,
        el siguiente workspace (modulo 10).
        """
        eng = self._engine
        eng.host.ensure_workspace(WORKSPACE_COUNT - 1)

        current = eng.host.get_active_workspace()
        if eng.monitors.count == 0:
            log.warning("Sin monitores, mapa vacio")
            return

        eng.mapper.set_mapping(eng.monitors.primary, current)
        for offset, monitor in enumerate(eng.monitors.secondaries(), start=1):
            eng.mapper.set_mapping(monitor.index, (current + offset) % WORKSPACE_COUNT)

        eng.trace("Mapa inicial: %s", eng.mapper)

    # ==================================================================
    # Eventos del host
    # ==================================================================
    def on_monitors_changed(self) -> None:
        eng = self._engine
        eng.monitors.refresh()
        eng.mapper.clear()
        self.initialize_mapping()
        log.info("Monitores cambiados: %d, mapa %s", eng.monitors.count, eng.mapper)
        eng.listeners.monitors_rebuilt(eng.mapper.all_mappings())

    def on_session_updated(
        self, current_mode: Optional[str], parent_mode: Optional[str] = None,
    ) -> None:
        eng = self._engine
        eng.trace("Modo de sesion: current=%s parent=%s", current_mode, parent_mode)
        if SESSION_USER not in (current_mode, parent_mode):
            return

        log.info("Sesion desbloqueada, refrescando secundarios")
        eng.scheduler.timeout_add(
            eng.settings.delays.unlock_refresh,
            self._placement.refresh_secondary_windows,
        )

    # ==================================================================
    # Cambios de ajustes
    # ==================================================================
    def _on_debug_mode_changed(self, key: str, value: Any) -> None:
        debug = self._engine.debug
        if debug is None:
            return
        if value:
            debug.enable()
            self._engine.dump_state("DEBUG ACTIVADO")
        else:
            debug.disable()

    def _on_modifier_changed(self, key: str, value: Any) -> None:
        """Re-registra los atajos con el nuevo modificador."""
        eng = self._engine
        unregister_all_hotkeys(eng.host, eng.settings.bindings)
        eng.store.set("bindings", rewrite_workspace_bindings(eng.settings.bindings, value))
        register_all_hotkeys(eng.host, self._dispatcher, eng.settings.bindings)
        log.info("Modificador de workspace: %s", value)

    def dump_state(self) -> str:
        eng = self._engine
        lines = [
            f"=== Lifecycle: {'activo' if self._enabled else 'inactivo'} ===",
            f"  Suscripciones: {len(self._subscriptions)}",
            f"  Snapshot pendiente: {len(eng.disable_snapshot)}",
            f"  Cola: {eng.queue.current or '-'} (+{eng.queue.waiting})",
        ]
        return "\n".join(lines)
