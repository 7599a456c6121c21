"""
monitorspaces.mapping.debuglog - Log de diagnostico en texto plano.

Un logger dedicado (``monitorspaces.debug``) con un FileHandler que solo
existe mientras debug_mode esta activo. Al activarlo se trunca el
fichero y se escribe una cabecera. Cada linea: ``[HH:MM:SS.mmm] mensaje``.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from monitorspaces.mapping.engine import MappingEngine

log = logging.getLogger(__name__)


DEBUG_LOG_NAME = "mmw-debug.log"
DEBUG_LOGGER = "monitorspaces.debug"


def default_debug_path() -> Path:
    return Path(tempfile.gettempdir()) / DEBUG_LOG_NAME


class DebugLog:
    """Fichero de diagnostico activable en caliente."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path if path is not None else default_debug_path()
        self._logger = logging.getLogger(DEBUG_LOGGER)
        self._logger.propagate = False
        self._logger.setLevel(logging.DEBUG)
        self._handler: Optional[logging.FileHandler] = None

    @property
    def enabled(self) -> bool:
        return self._handler is not None

    def enable(self) -> None:
        if self._handler is not None:
            return
        handler = logging.FileHandler(self.path, mode="w", encoding="utf-8")
        handler.setFormatter(logging.Formatter(
            "[%(asctime)s.%(msecs)03d] %(message)s", datefmt="%H:%M:%S",
        ))
        self._logger.addHandler(handler)
        self._handler = handler
        self._logger.debug("=== monitorspaces debug log %s ===",
                           datetime.now().isoformat(timespec="seconds"))
        log.info("Log de depuracion en %s", self.path)

    def disable(self) -> None:
        if self._handler is None:
            return
        self._logger.removeHandler(self._handler)
        self._handler.close()
        self._handler = None

    def write(self, message: str) -> None:
        if self._handler is not None:
            self._logger.debug(message)

    # ------------------------------------------------------------------
    def dump_state(self, engine: MappingEngine, label: str) -> None:
        """Puntero, mapa y todas las ventanas con su monitor."""
        if self._handler is None:
            return

        monitors = engine.monitors
        px, py = engine.host.get_pointer()
        lines = [
            f"--- STATE: {label} ---",
            f"Pointer: ({px},{py}) on M{engine.locator.monitor_at_pointer()}",
            f"Global workspace: {engine.host.get_active_workspace()}",
            "Mappings:",
        ]
        for m in monitors.monitors:
            marker = " (primary)" if monitors.is_primary(m.index) else ""
            ws = engine.mapper.get_workspace_for_monitor(m.index)
            lines.append(f"  M{m.index}{marker} -> WS{ws} {m.rect}")
        if not engine.mapper.is_consistent():
            lines.append("  !! workspace duplicado en varios monitores")

        lines.append("Windows:")
        for w in engine.locator.all_windows():
            ws = w.get_workspace()
            flags = []
            if w.is_on_all_workspaces():
                flags.append("sticky")
            if w.is_hidden():
                flags.append("hidden")
            if w.minimized:
                flags.append("minimized")
            rect = w.frame_rect()
            monitor = engine.locator.window_monitor(w)
            lines.append(
                f"  [{w.id}] '{w.short_title(30)}' WS{ws if ws is not None else '-'} "
                f"{' '.join(flags) or '-'} ({rect.x},{rect.y}) {rect.w}x{rect.h} "
                f"M{monitor if monitor is not None else '?'}"
            )
        lines.append("--- END STATE ---")

        for line in lines:
            self._logger.debug(line)
