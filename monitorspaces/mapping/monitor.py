"""
monitorspaces.mapping.monitor - Registro de monitores.

El MonitorRegistry guarda la lista de monitores que reporta el host
(geometria completa y flag de primario) y se reconstruye entero cada
vez que el host avisa de un cambio de configuracion (hot-plug).
Los indices no son estables entre reconstrucciones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from monitorspaces.mapping.rect import Rect

if TYPE_CHECKING:
    from monitorspaces.mapping.host import Host

log = logging.getLogger(__name__)


# ============================================================================
# Monitor
# ============================================================================
@dataclass(frozen=True, slots=True)
class Monitor:
    """
    Representa un monitor fisico conectado al sistema.

    Atributos:
        index:      Indice del monitor segun el host.
        rect:       Geometria completa del monitor.
        is_primary: True si es el monitor principal.
        name:       Nombre del dispositivo (solo informativo).
    """

    index: int
    rect: Rect
    is_primary: bool = False
    name: str = ""

    @property
    def width(self) -> int:
        return self.rect.w

    @property
    def height(self) -> int:
        return self.rect.h


# ============================================================================
# MonitorRegistry
# ============================================================================
class MonitorRegistry:
    """Vista cacheada de los monitores del host."""

    def __init__(self, host: Host) -> None:
        self._host = host
        self._monitors: list[Monitor] = []
        self._primary: int = 0

    def refresh(self) -> None:
        """Re-enumera los monitores del host y recalcula el primario."""
        monitors = sorted(self._host.get_monitors(), key=lambda m: m.index)
        self._monitors = monitors

        primaries = [m.index for m in monitors if m.is_primary]
        if primaries:
            self._primary = primaries[0]
        elif monitors:
            log.warning("Ningun monitor marcado como primario, usando M%d",
                        monitors[0].index)
            self._primary = monitors[0].index
        else:
            log.warning("El host no reporta monitores")
            self._primary = 0

        log.info("Monitores detectados: %d (primario M%d)",
                 len(monitors), self._primary)
        for m in monitors:
            log.debug("  M%d %s primario=%s %s", m.index, m.rect,
                      m.is_primary, m.name)

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------
    @property
    def monitors(self) -> list[Monitor]:
        return list(self._monitors)

    @property
    def count(self) -> int:
        return len(self._monitors)

    @property
    def primary(self) -> int:
        return self._primary

    @property
    def indices(self) -> list[int]:
        return [m.index for m in self._monitors]

    def get(self, index: int) -> Optional[Monitor]:
        for m in self._monitors:
            if m.index == index:
                return m
        return None

    def geometry(self, index: int) -> Optional[Rect]:
        """Geometria del monitor, o None si el indice ya no existe."""
        monitor = self.get(index)
        return monitor.rect if monitor is not None else None

    def is_valid(self, index: int) -> bool:
        return self.get(index) is not None

    def is_primary(self, index: int) -> bool:
        return index == self._primary

    @property
    def primary_geometry(self) -> Rect:
        rect = self.geometry(self._primary)
        if rect is None:
            raise RuntimeError("No hay monitor primario registrado")
        return rect

    def secondaries(self) -> list[Monitor]:
        return [m for m in self._monitors if m.index != self._primary]

    # ------------------------------------------------------------------
    # Debug
    # ------------------------------------------------------------------
    def dump_state(self) -> str:
        lines = [f"=== MonitorRegistry: {len(self._monitors)} monitores ==="]
        for m in self._monitors:
            marker = "*" if m.index == self._primary else " "
            lines.append(f"  {marker}M{m.index} {m.rect} {m.name}")
        return "\n".join(lines)
