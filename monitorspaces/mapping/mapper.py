"""
monitorspaces.mapping.mapper - Mapa monitor -> workspace logico.

El WorkspaceMapper guarda que workspace logico muestra cada monitor.
Es una funcion total (un monitor sin entrada muestra el workspace 0)
y, en reposo, inyectiva: dos monitores nunca muestran el mismo
workspace. No es sobreyectiva: un workspace puede no estar en ningun
monitor.

No tiene efectos secundarios fuera de su propio estado y ninguna
consulta falla.
"""

from __future__ import annotations

import logging
from typing import Optional

log = logging.getLogger(__name__)


# Workspace que se asume cuando un monitor no tiene entrada
DEFAULT_WORKSPACE = 0


class WorkspaceMapper:
    """Mapa monitor -> workspace con consultas en ambos sentidos."""

    def __init__(self) -> None:
        # indice_monitor -> indice_workspace
        self._map: dict[int, int] = {}

    # ------------------------------------------------------------------
    # Mutacion
    # ------------------------------------------------------------------
    def set_mapping(self, monitor: int, workspace: int) -> None:
        old = self._map.get(monitor)
        self._map[monitor] = workspace
        if old != workspace:
            log.debug("MAP M%d: ws %s -> ws %d", monitor, old, workspace)

    def swap(self, monitor_a: int, monitor_b: int) -> None:
        """Intercambia los workspaces de dos monitores."""
        ws_a = self.get_workspace_for_monitor(monitor_a)
        ws_b = self.get_workspace_for_monitor(monitor_b)
        self._map[monitor_a] = ws_b
        self._map[monitor_b] = ws_a
        log.debug("MAP swap M%d <-> M%d (ws %d <-> ws %d)",
                  monitor_a, monitor_b, ws_a, ws_b)

    def clear(self) -> None:
        self._map.clear()

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------
    def get_workspace_for_monitor(self, monitor: int) -> int:
        return self._map.get(monitor, DEFAULT_WORKSPACE)

    def has_monitor(self, monitor: int) -> bool:
        return monitor in self._map

    def get_monitor_for_workspace(self, workspace: int) -> Optional[int]:
        """Monitor que muestra *workspace*, o None si no esta visible."""
        for monitor, ws in self._map.items():
            if ws == workspace:
                return monitor
        return None

    def is_displayed(self, workspace: int) -> bool:
        return self.get_monitor_for_workspace(workspace) is not None

    def all_mappings(self) -> dict[int, int]:
        """Copia del mapa actual (no se ve afectada por cambios futuros)."""
        return dict(self._map)

    def displayed_workspaces(self) -> list[int]:
        return sorted(set(self._map.values()))

    def is_consistent(self) -> bool:
        """True si ningun workspace aparece en dos monitores."""
        values = list(self._map.values())
        return len(values) == len(set(values))

    def __len__(self) -> int:
        return len(self._map)

    # ------------------------------------------------------------------
    # Representacion
    # ------------------------------------------------------------------
    def __str__(self) -> str:
        parts = [f"M{m}->WS{ws}" for m, ws in sorted(self._map.items())]
        return "[" + ", ".join(parts) + "]"

    def dump_state(self) -> str:
        lines = [f"=== WorkspaceMapper: {len(self._map)} monitores ==="]
        for m, ws in sorted(self._map.items()):
            lines.append(f"  Monitor {m} -> Workspace {ws}")
        lines.append(f"  Visibles: {self.displayed_workspaces()}")
        if not self.is_consistent():
            lines.append("  !! workspace duplicado en varios monitores")
        return "\n".join(lines)
