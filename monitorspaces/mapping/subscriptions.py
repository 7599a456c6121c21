"""
monitorspaces.mapping.subscriptions - Registro de suscripciones activas.

Cada suscripcion (evento del host, cambio de ajuste, timer) se anota con
la funcion que la deshace. ``release_all`` las deshace todas una sola
vez, en orden inverso, aunque alguna falle.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from monitorspaces.config.settings import SettingsCallback, SettingsStore
    from monitorspaces.mapping.host import Host, HostCallback, HostEvent

log = logging.getLogger(__name__)


class SubscriptionList:
    """Suscripciones con liberacion determinista (usable con ``with``)."""

    def __init__(self) -> None:
        self._items: list[tuple[str, Callable[[], None]]] = []

    def add(self, label: str, release: Callable[[], None]) -> None:
        self._items.append((label, release))

    def connect(self, host: Host, event: HostEvent, callback: HostCallback) -> int:
        handle = host.connect(event, callback)
        self.add(f"host:{event.value}", lambda: host.disconnect(handle))
        return handle

    def connect_setting(self, store: SettingsStore, key: str, callback: SettingsCallback) -> int:
        handle = store.connect(key, callback)
        self.add(f"setting:{key}", lambda: store.disconnect(handle))
        return handle

    def release_all(self) -> int:
        """Deshace todas las suscripciones. Retorna cuantas se liberaron."""
        released = 0
        while self._items:
            label, release = self._items.pop()
            try:
                release()
                released += 1
            except Exception:
                log.exception("Error liberando suscripcion %s", label)
        return released

    def __len__(self) -> int:
        return len(self._items)

    def __enter__(self) -> SubscriptionList:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.release_all()
