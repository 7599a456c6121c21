"""
monitorspaces.mapping.listeners - Consumidores externos del mapa.

Indicador de workspace, banner, resaltados y fondos por workspace no
tienen logica de mapeo propia: reciben el mapa por estos hooks.

    on_mapping_changed(mappings, monitor, workspace)
        Tras un switch/swap/warp. (monitor, workspace) es el par que el
        usuario acaba de pedir (lo que mostraria un banner).
    on_monitors_rebuilt(mappings)
        Al activar y tras un hot-plug: reconstruir widgets por monitor.
    on_focus_settled(monitor, workspace)
        Cuando el foco quedo asentado tras una operacion.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, StrictStr, TypeAdapter, ValidationError, field_validator

log = logging.getLogger(__name__)


def workspace_label(workspace: int) -> str:
    """Etiqueta que ve el usuario: 0..9 se muestran como 1..9,0."""
    return str((workspace + 1) % 10)


# ============================================================================
# Interfaz
# ============================================================================
class MappingListener:
    """Base con hooks vacios; cada consumidor sobreescribe los que usa."""

    def on_mapping_changed(self, mappings: dict[int, int], monitor: int, workspace: int) -> None:
        pass

    def on_monitors_rebuilt(self, mappings: dict[int, int]) -> None:
        pass

    def on_focus_settled(self, monitor: int, workspace: int) -> None:
        pass


class ListenerSet:
    """Reparte cada notificacion; el fallo de un listener no afecta al resto."""

    def __init__(self) -> None:
        self._listeners: list[MappingListener] = []

    def add(self, listener: MappingListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove(self, listener: MappingListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def __len__(self) -> int:
        return len(self._listeners)

    def mapping_changed(self, mappings: dict[int, int], monitor: int, workspace: int) -> None:
        self._fanout("on_mapping_changed", dict(mappings), monitor, workspace)

    def monitors_rebuilt(self, mappings: dict[int, int]) -> None:
        self._fanout("on_monitors_rebuilt", dict(mappings))

    def focus_settled(self, monitor: int, workspace: int) -> None:
        self._fanout("on_focus_settled", monitor, workspace)

    def _fanout(self, hook: str, *args: object) -> None:
        for listener in list(self._listeners):
            try:
                getattr(listener, hook)(*args)
            except Exception:
                log.exception("Error en %s.%s", type(listener).__name__, hook)


# ============================================================================
# Consumidores incluidos
# ============================================================================
class LoggingListener(MappingListener):
    """Escribe el mapa en el log de la aplicacion (hace de indicador)."""

    def on_mapping_changed(self, mappings: dict[int, int], monitor: int, workspace: int) -> None:
        log.info("M%d -> workspace %s | %s", monitor, workspace_label(workspace),
                 _format(mappings))

    def on_monitors_rebuilt(self, mappings: dict[int, int]) -> None:
        log.info("Monitores reconstruidos | %s", _format(mappings))


def _format(mappings: dict[int, int]) -> str:
    return "  ".join(f"M{m}:{workspace_label(ws)}" for m, ws in sorted(mappings.items()))


class WallpaperGroup(BaseModel):
    """Un fondo de pantalla compartido por varios workspaces."""

    path: StrictStr
    workspaces: list[int] = Field(default_factory=list)
    scale: bool = True
    tile: bool = False

    @field_validator("workspaces", mode="before")
    @classmethod
    def keep_integer_workspaces(cls, v: Any) -> Any:
        """Las entradas que no son enteros se descartan."""
        if v is None:
            return []
        if isinstance(v, list):
            return [w for w in v if isinstance(w, int) and not isinstance(w, bool)]
        return v


# Solo la forma externa; cada grupo se valida por separado
_GROUP_ENTRIES = TypeAdapter(list[Any])


def parse_wallpaper_groups(raw: str) -> list[WallpaperGroup]:
    """
    Interpreta el JSON persistido de grupos de fondos.

    Cualquier error de formato produce una lista vacia (y un warning);
    las entradas sueltas mal formadas se descartan.
    """
    if not raw:
        return []
    try:
        entries = _GROUP_ENTRIES.validate_json(raw)
    except ValidationError as e:
        log.warning("wallpaper_groups no es una lista JSON: %s", e.errors()[0]["msg"])
        return []

    groups = []
    for entry in entries:
        try:
            groups.append(WallpaperGroup.model_validate(entry))
        except ValidationError:
            log.warning("Grupo de fondo ignorado: %r", entry)
    return groups


class WallpaperGroupsListener(MappingListener):
    """
    Decide que grupo de fondo corresponde a cada monitor tras un cambio.

    Solo interpreta los grupos y registra la decision; dibujar el fondo
    queda fuera de este paquete.
    """

    def __init__(self, raw_groups: str = "[]") -> None:
        self.groups = parse_wallpaper_groups(raw_groups)
        self.current: dict[int, Optional[WallpaperGroup]] = {}

    def reload(self, raw_groups: str) -> None:
        self.groups = parse_wallpaper_groups(raw_groups)
        log.info("Grupos de fondo cargados: %d", len(self.groups))

    def group_for_workspace(self, workspace: int) -> Optional[WallpaperGroup]:
        for group in self.groups:
            if workspace in group.workspaces:
                return group
        return None

    def _apply(self, mappings: dict[int, int]) -> None:
        for monitor, ws in sorted(mappings.items()):
            group = self.group_for_workspace(ws)
            self.current[monitor] = group
            log.debug("Fondo M%d ws %d -> %s", monitor, ws,
                      group.path if group else "sistema")

    def on_mapping_changed(self, mappings: dict[int, int], monitor: int, workspace: int) -> None:
        self._apply(mappings)

    def on_monitors_rebuilt(self, mappings: dict[int, int]) -> None:
        self.current.clear()
        self._apply(mappings)
