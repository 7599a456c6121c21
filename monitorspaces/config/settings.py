"""
monitorspaces.config.settings - Ajustes persistentes.

Settings es un modelo pydantic con todas las opciones reconocidas.
SettingsStore lo carga y guarda como JSON y avisa de cada cambio a los
suscriptores de esa clave (patron ``changed::clave``).

Ubicacion del fichero:
    Windows: %APPDATA%\\monitorspaces\\settings.json
    Resto:   ~/.config/monitorspaces/settings.json

Un valor invalido en el fichero se sustituye por el de defecto con un
warning; un valor invalido pasado a ``set`` lanza SettingsError.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Annotated, Any, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    TypeAdapter,
    ValidationError,
    model_validator,
)

log = logging.getLogger(__name__)


# Numero fijo de workspaces logicos (0-9, mostrados como 1..9,0)
WORKSPACE_COUNT = 10

# Numero de atajos warp-to-monitor-N
WARP_MONITOR_COUNT = 8

Modifier = Literal["Alt", "Super", "Ctrl"]
SwitchMode = Literal["swap", "warp"]

# Milisegundos; un bool o una cadena no valen como retardo
Delay = Annotated[int, Field(strict=True, ge=0)]

SettingsCallback = Callable[[str, Any], None]


class SettingsError(ValueError):
    """Valor de ajuste invalido."""


def _first_error(error: ValidationError) -> str:
    err = error.errors()[0]
    where = ".".join(str(p) for p in err["loc"])
    return f"{where}: {err['msg']}" if where else err["msg"]


# ============================================================================
# Retardos de asentamiento
# ============================================================================
class SettleDelays(BaseModel):
    """
    Retardos (ms) que dan tiempo al host a aplicar sus propios cambios.

    Ninguno es necesario para la correccion del mapa; solo evitan que el
    host deshaga una geometria o un foco recien aplicados.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    # Re-aplicar tamano tras mover una ventana
    size_settle: Delay = 50

    # Cada paso de swap-window-position
    swap_settle: Delay = 50

    # Comprobaciones diferidas de la restauracion del puntero
    pointer_restore: tuple[Delay, Delay] = (50, 150)

    # Re-foco tras un switch
    focus_restore: Delay = 200

    # Duracion del flag de cambio interno
    internal_switch: Delay = 100

    # Restaurar animaciones tras activar un workspace
    animation_restore: Delay = 50

    # Ventana de deduplicacion create/map de ventanas nuevas
    recently_processed: Delay = 1000

    # Restaurar el snapshot de desactivacion tras activar
    restore_after_enable: Delay = 500

    # Refrescar secundarios tras desbloquear la sesion
    unlock_refresh: Delay = 500

    @model_validator(mode="after")
    def check_pointer_restore_order(self) -> SettleDelays:
        first, second = self.pointer_restore
        if first > second:
            raise ValueError(
                f"pointer_restore debe ser [primero, segundo] con primero <= segundo, "
                f"no {list(self.pointer_restore)}"
            )
        return self


# ============================================================================
# Settings
# ============================================================================
class Settings(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    workspace_modifier: Modifier = "Alt"
    switch_mode: SwitchMode = "swap"
    warp_pointer_to_focus: StrictBool = False
    raise_on_cycle_focus: StrictBool = True
    debug_mode: StrictBool = False
    show_workspace_indicator: StrictBool = True

    # nombre del atajo -> aceleradores ("<Alt>1", "alt+shift+1", ...)
    bindings: dict[StrictStr, list[StrictStr]] = Field(default_factory=dict)

    # JSON: clave de atajo del host -> aceleradores originales
    saved_system_keybindings: StrictStr = ""

    # JSON: lista de grupos de fondo de pantalla
    wallpaper_groups: StrictStr = "[]"

    delays: SettleDelays = Field(default_factory=SettleDelays)

    @property
    def workspace_count(self) -> int:
        return WORKSPACE_COUNT


# Objeto JSON sin validar, para revisar un fichero campo a campo
_RAW_OBJECT = TypeAdapter(dict[str, Any])


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Construye Settings desde un dict; los valores invalidos se ignoran."""
    settings = Settings()
    for key, raw in data.items():
        if key not in Settings.model_fields:
            log.warning("Ajuste desconocido en el fichero: %r (ignorado)", key)
            continue
        try:
            setattr(settings, key, raw)
        except ValidationError as e:
            log.warning("Ajuste %s invalido, usando el de defecto: %s", key, _first_error(e))
    return settings


def settings_from_json(text: str) -> Settings:
    """
    Interpreta el contenido del fichero de ajustes.

    Si el documento completo no valida se revisa campo a campo; si ni
    siquiera es un objeto JSON se usan los defaults.
    """
    try:
        return Settings.model_validate_json(text)
    except ValidationError as e:
        log.warning("Ajustes con %d errores, revisando campo a campo", e.error_count())

    try:
        data = _RAW_OBJECT.validate_json(text)
    except ValidationError as e:
        log.warning("El fichero no es un objeto JSON, usando defaults: %s", _first_error(e))
        return Settings()
    return settings_from_dict(data)


def default_settings_path() -> Path:
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / "monitorspaces" / "settings.json"
    return Path.home() / ".config" / "monitorspaces" / "settings.json"


def _check_key(key: str) -> None:
    if key not in Settings.model_fields:
        raise SettingsError(f"Ajuste desconocido: {key!r}")


# ============================================================================
# SettingsStore
# ============================================================================
class SettingsStore:
    """
    Settings + persistencia + notificacion de cambios.

    Si se crea con ``path``, cada ``set`` que cambia un valor se guarda
    en disco de inmediato.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        path: Optional[Path] = None,
    ) -> None:
        self._settings = settings if settings is not None else Settings()
        self._path = path
        self._subscribers: dict[int, tuple[str, SettingsCallback]] = {}
        self._next_handle: int = 1

    @classmethod
    def load(cls, path: Optional[Path] = None) -> SettingsStore:
        """Carga el fichero (o defaults si no existe o esta corrupto)."""
        if path is None:
            path = default_settings_path()

        settings = Settings()
        if path.exists():
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as e:
                log.warning("No se pudo leer %s, usando defaults: %s", path, e)
            else:
                settings = settings_from_json(text)
            log.info("Ajustes cargados desde %s", path)
        else:
            log.info("Sin fichero de ajustes en %s, usando defaults", path)

        return cls(settings, path)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def path(self) -> Optional[Path]:
        return self._path

    # ------------------------------------------------------------------
    # Lectura / escritura
    # ------------------------------------------------------------------
    def get(self, key: str) -> Any:
        _check_key(key)
        return getattr(self._settings, key)

    def set(self, key: str, value: Any) -> None:
        _check_key(key)
        old = getattr(self._settings, key)
        try:
            setattr(self._settings, key, value)
        except ValidationError as e:
            raise SettingsError(_first_error(e)) from e

        value = getattr(self._settings, key)
        if value == old:
            return
        log.debug("Ajuste %s = %r", key, value)
        if self._path is not None:
            self.save()
        self._emit(key, value)

    def save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(self._settings.model_dump_json(indent=2), encoding="utf-8")

    # ------------------------------------------------------------------
    # Notificaciones
    # ------------------------------------------------------------------
    def connect(self, key: str, callback: SettingsCallback) -> int:
        """Llama a ``callback(key, value)`` cuando *key* cambia."""
        _check_key(key)
        handle = self._next_handle
        self._next_handle += 1
        self._subscribers[handle] = (key, callback)
        return handle

    def disconnect(self, handle: int) -> None:
        self._subscribers.pop(handle, None)

    def _emit(self, key: str, value: Any) -> None:
        for sub_key, cb in list(self._subscribers.values()):
            if sub_key != key:
                continue
            try:
                cb(key, value)
            except Exception:
                log.exception("Error en callback de ajuste %s", key)
