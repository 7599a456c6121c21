"""
monitorspaces.mapping.host - Interfaz de capacidades del host.

El motor de mapeo no habla nunca con la API del sistema: todo pasa por
un objeto Host y por los HostWindow que este entrega. El host solo
entiende UN workspace global; los workspaces por monitor se simulan
encima de el.

Las capacidades opcionales (quitar el foco a todas las ventanas,
animaciones, esquema de atajos propio del host, ajustes de requisitos,
asociacion explicita ventana-monitor) tienen una implementacion por
defecto que no hace nada. Cada backend sobreescribe solo las que
soporta; el motor las llama siempre sin comprobar nada.
"""

from __future__ import annotations

import abc
import enum
import logging
from collections.abc import Callable
from typing import Any, Optional

from monitorspaces.mapping.monitor import Monitor
from monitorspaces.mapping.rect import Rect

log = logging.getLogger(__name__)


# ============================================================================
# Tipos de ventana y eventos
# ============================================================================
class WindowType(enum.Enum):
    """Clasificacion minima que el motor necesita de una ventana."""
    NORMAL = "normal"
    DIALOG = "dialog"
    OTHER = "other"


class HostEvent(enum.Enum):
    """Eventos que el host emite hacia el motor."""

    # Una ventana nueva fue creada (argumento: HostWindow).
    WINDOW_CREATED = "window_created"

    # Una ventana se hizo visible por primera vez (argumento: HostWindow).
    WINDOW_MAPPED = "window_mapped"

    # Cambio la ventana con foco (sin argumentos).
    FOCUS_CHANGED = "focus_changed"

    # Cambio el workspace global activo (sin argumentos).
    WORKSPACE_CHANGED = "workspace_changed"

    # Cambio la configuracion de monitores (sin argumentos).
    MONITORS_CHANGED = "monitors_changed"

    # Cambio el modo de sesion (argumentos: current_mode, parent_mode).
    SESSION_UPDATED = "session_updated"


HostCallback = Callable[..., None]

# Accion que el host invoca al pulsar un atajo registrado
KeybindingCallback = Callable[[], None]


# ============================================================================
# HostWindow
# ============================================================================
class HostWindow(abc.ABC):
    """
    Ventana tal y como la ve el motor.

    La identidad es ``id``: un entero estable asignado por el host
    durante toda la vida de la ventana. El titulo no sirve como
    identidad (cambia y se repite).
    """

    @property
    @abc.abstractmethod
    def id(self) -> int: ...

    @property
    @abc.abstractmethod
    def title(self) -> str: ...

    @property
    @abc.abstractmethod
    def window_type(self) -> WindowType: ...

    @property
    @abc.abstractmethod
    def skip_taskbar(self) -> bool: ...

    @property
    @abc.abstractmethod
    def minimized(self) -> bool: ...

    @property
    @abc.abstractmethod
    def is_maximized(self) -> bool: ...

    @property
    @abc.abstractmethod
    def is_fullscreen(self) -> bool: ...

    @property
    def layer(self) -> int:
        """Capa de apilamiento; mayor = mas arriba."""
        return 0

    @abc.abstractmethod
    def frame_rect(self) -> Rect: ...

    @abc.abstractmethod
    def is_destroyed(self) -> bool: ...

    @abc.abstractmethod
    def is_hidden(self) -> bool: ...

    # --- workspace ---
    @abc.abstractmethod
    def get_workspace(self) -> Optional[int]:
        """Workspace del host, o None si no tiene (p.ej. sticky)."""

    @abc.abstractmethod
    def is_on_all_workspaces(self) -> bool: ...

    @abc.abstractmethod
    def located_on_workspace(self, index: int) -> bool:
        """True si la ventana es visible cuando *index* es el activo."""

    @abc.abstractmethod
    def change_workspace(self, index: int) -> None: ...

    # --- geometria ---
    @abc.abstractmethod
    def move_frame(self, x: int, y: int) -> None: ...

    @abc.abstractmethod
    def move_resize_frame(self, x: int, y: int, w: int, h: int) -> None: ...

    def move_to_monitor(self, monitor: int) -> None:
        """Asociacion explicita con un monitor (no-op si el host no la tiene)."""

    # --- estado ---
    @abc.abstractmethod
    def maximize(self) -> None: ...

    @abc.abstractmethod
    def unmaximize(self) -> None: ...

    @abc.abstractmethod
    def make_fullscreen(self) -> None: ...

    @abc.abstractmethod
    def unmake_fullscreen(self) -> None: ...

    # --- foco ---
    @abc.abstractmethod
    def focus(self) -> None:
        """Dar foco sin elevar."""

    @abc.abstractmethod
    def activate(self) -> None:
        """Dar foco y elevar."""

    def short_title(self, limit: int = 20) -> str:
        title = self.title
        return title if len(title) <= limit else title[:limit] + "..."


# ============================================================================
# Host
# ============================================================================
class Host(abc.ABC):
    """
    Capacidades del host que el motor utiliza.

    Incluye una implementacion concreta de la suscripcion a eventos
    (connect/disconnect/emit) para que los backends solo tengan que
    llamar a ``emit`` desde sus propios manejadores.
    """

    def __init__(self) -> None:
        self._subscribers: dict[int, tuple[HostEvent, HostCallback]] = {}
        self._next_handle: int = 1

    # ------------------------------------------------------------------
    # Eventos
    # ------------------------------------------------------------------
    def connect(self, event: HostEvent, callback: HostCallback) -> int:
        """Suscribe *callback* a *event*. Retorna un handle para disconnect."""
        handle = self._next_handle
        self._next_handle += 1
        self._subscribers[handle] = (event, callback)
        return handle

    def disconnect(self, handle: int) -> None:
        if self._subscribers.pop(handle, None) is None:
            log.debug("disconnect: handle %d desconocido", handle)

    def emit(self, event: HostEvent, *args: Any) -> None:
        for event_type, cb in list(self._subscribers.values()):
            if event_type != event:
                continue
            try:
                cb(*args)
            except Exception:
                log.exception("Error en callback de %s", event.value)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # ------------------------------------------------------------------
    # Monitores y puntero
    # ------------------------------------------------------------------
    @abc.abstractmethod
    def get_monitors(self) -> list[Monitor]: ...

    @abc.abstractmethod
    def get_pointer(self) -> tuple[int, int]: ...

    @abc.abstractmethod
    def warp_pointer(self, x: int, y: int) -> None: ...

    # ------------------------------------------------------------------
    # Ventanas
    # ------------------------------------------------------------------
    @abc.abstractmethod
    def list_windows(self) -> list[HostWindow]:
        """
        Todas las ventanas conocidas, incluidas las ocultas, en orden de
        apilamiento: la ultima de la lista es la que esta mas arriba.
        """

    @abc.abstractmethod
    def get_focus_window(self) -> Optional[HostWindow]: ...

    def unset_input_focus(self) -> None:
        """Quitar el foco a todas las ventanas (opcional)."""

    # ------------------------------------------------------------------
    # Workspace global
    # ------------------------------------------------------------------
    @abc.abstractmethod
    def get_active_workspace(self) -> int: ...

    @abc.abstractmethod
    def activate_workspace(self, index: int) -> None: ...

    @abc.abstractmethod
    def workspace_count(self) -> int: ...

    @abc.abstractmethod
    def ensure_workspace(self, index: int) -> None:
        """Crea workspaces del host hasta *index* inclusive."""

    def get_animations_enabled(self) -> bool:
        return False

    def set_animations_enabled(self, enabled: bool) -> None:
        pass

    # ------------------------------------------------------------------
    # Ajustes del host (requisitos) y esquema de atajos del sistema
    # ------------------------------------------------------------------
    def get_setting(self, key: str) -> Optional[bool]:
        """Valor booleano de un ajuste del host, o None si no existe."""
        return None

    def set_setting(self, key: str, value: bool) -> None:
        pass

    def get_system_keybinding(self, key: str) -> Optional[list[str]]:
        """Atajos propios del host para *key*, o None si no existe."""
        return None

    def set_system_keybinding(self, key: str, accelerators: list[str]) -> None:
        pass

    # ------------------------------------------------------------------
    # Atajos propios y ciclo de vida
    # ------------------------------------------------------------------
    @abc.abstractmethod
    def add_keybinding(
        self, name: str, accelerators: list[str], callback: KeybindingCallback,
    ) -> bool: ...

    @abc.abstractmethod
    def remove_keybinding(self, name: str) -> None: ...

    @abc.abstractmethod
    def request_consent(
        self,
        title: str,
        message: str,
        on_accept: Callable[[], None],
        on_reject: Callable[[], None],
    ) -> None:
        """Dialogo bloqueante de confirmacion."""

    @abc.abstractmethod
    def disable_self(self) -> None:
        """Desactiva toda la funcionalidad por la via propia del host."""
