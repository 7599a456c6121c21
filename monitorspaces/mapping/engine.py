"""
monitorspaces.mapping.engine - Estado compartido del motor de mapeo.

MappingEngine es el unico dueno de todo el estado mutable: el mapa
monitor -> workspace, la cache de posiciones relativas, las ventanas
en colocacion, el historial de foco, el snapshot de desactivacion y el
flag de cambio interno. Cada componente recibe el engine de forma
explicita; ninguno guarda estado propio de larga vida.

El engine vive todo el proceso. ``reset_for_disable`` borra solo el
mapa, las ventanas pendientes y las recien procesadas: la cache de
posiciones, el historial de foco y el snapshot sobreviven a un ciclo
disable/enable (p.ej. al bloquear la sesion).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from monitorspaces.config.settings import Settings, SettingsStore
from monitorspaces.mapping.listeners import ListenerSet
from monitorspaces.mapping.locator import WindowLocator
from monitorspaces.mapping.mapper import WorkspaceMapper
from monitorspaces.mapping.monitor import MonitorRegistry
from monitorspaces.mapping.scheduler import OperationQueue, Scheduler

if TYPE_CHECKING:
    from monitorspaces.mapping.debuglog import DebugLog
    from monitorspaces.mapping.host import Host

log = logging.getLogger(__name__)


# ============================================================================
# Registros de estado
# ============================================================================
@dataclass(frozen=True, slots=True)
class SavedPosition:
    """Offset relativo al origen del monitor, valido para un workspace."""
    rel_x: int
    rel_y: int
    workspace: int


@dataclass(frozen=True, slots=True)
class PreservedWindow:
    """Ventana de un monitor secundario guardada al desactivar."""
    monitor: int
    workspace: int
    rel_x: int
    rel_y: int
    width: int
    height: int
    title: str = ""


# ============================================================================
# MappingEngine
# ============================================================================
class MappingEngine:
    """
    Contenedor del estado y de los colaboradores compartidos.

    Atributos de estado:
        mapper:             mapa monitor -> workspace.
        saved_positions:    id_ventana -> SavedPosition (se consume al usarse).
        pending_placement:  id_ventana -> monitor destino (colocacion en curso).
        last_focused:       workspace -> id_ventana.
        disable_snapshot:   id_ventana -> PreservedWindow.
        recently_processed: ids vistos por el handler de ventanas nuevas.
        internal_switch:    True mientras el propio motor cambia de workspace.
    """

    def __init__(
        self,
        host: Host,
        store: SettingsStore,
        scheduler: Optional[Scheduler] = None,
        listeners: Optional[ListenerSet] = None,
        debug: Optional[DebugLog] = None,
    ) -> None:
        self.host = host
        self.store = store
        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self.queue = OperationQueue(self.scheduler)
        self.listeners = listeners if listeners is not None else ListenerSet()
        self.debug = debug

        self.monitors = MonitorRegistry(host)
        self.locator = WindowLocator(host, self.monitors)
        self.mapper = WorkspaceMapper()

        self.saved_positions: dict[int, SavedPosition] = {}
        self.pending_placement: dict[int, int] = {}
        self.last_focused: dict[int, int] = {}
        self.disable_snapshot: dict[int, PreservedWindow] = {}
        self.recently_processed: set[int] = set()
        self.internal_switch: bool = False

    # ------------------------------------------------------------------
    # Atajos de lectura
    # ------------------------------------------------------------------
    @property
    def settings(self) -> Settings:
        return self.store.settings

    def trace(self, message: str, *args: object) -> None:
        """Linea para el log de depuracion (si esta activo) y para log.debug."""
        if args:
            message = message % args
        log.debug(message)
        if self.debug is not None:
            self.debug.write(message)

    def dump_state(self, label: str) -> None:
        if self.debug is not None:
            self.debug.dump_state(self, label)

    # ------------------------------------------------------------------
    # Ciclo de vida del estado
    # ------------------------------------------------------------------
    def reset_for_disable(self) -> None:
        self.mapper.clear()
        self.pending_placement.clear()
        self.recently_processed.clear()
        self.internal_switch = False
        self.queue.reset()
        log.debug(
            "Estado reiniciado (conservado: %d posiciones, %d focos, %d snapshot)",
            len(self.saved_positions), len(self.last_focused),
            len(self.disable_snapshot),
        )

    def is_pending(self, window_id: int) -> bool:
        return window_id in self.pending_placement
