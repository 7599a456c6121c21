"""
monitorspaces.config.keybindings - Atajos del sistema en conflicto.

El host puede tener sus propios atajos de cambiar/mover workspace
(``switch-to-workspace-N`` / ``move-to-workspace-N``, N = 1..10). Si
alguno coincide con los nuestros, se guardan todos en el ajuste
``saved_system_keybindings`` (JSON) y se vacian. Al desactivar se
restauran y el ajuste vuelve a "".
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from monitorspaces.config.settings import WORKSPACE_COUNT

if TYPE_CHECKING:
    from monitorspaces.config.settings import SettingsStore
    from monitorspaces.mapping.host import Host

log = logging.getLogger(__name__)


def system_keybinding_pairs() -> list[tuple[str, str]]:
    """(nombre de nuestro atajo, clave del host) para switch y move."""
    pairs: list[tuple[str, str]] = []
    for i in range(WORKSPACE_COUNT):
        pairs.append((f"switch-to-workspace-{i}", f"switch-to-workspace-{i + 1}"))
        pairs.append((f"move-window-to-workspace-{i}", f"move-to-workspace-{i + 1}"))
    return pairs


def override_system_keybindings(host: Host, store: SettingsStore) -> bool:
    """
    Desactiva los atajos del host si alguno choca con los nuestros.

    Returns:
        True si habia conflicto y se vaciaron.
    """
    bindings = store.settings.bindings
    saved: dict[str, list[str]] = {}
    conflict = False

    for ours, system_key in system_keybinding_pairs():
        current = host.get_system_keybinding(system_key)
        if not current:
            continue
        saved[system_key] = list(current)
        clashing = [a for a in bindings.get(ours, []) if a in current]
        if clashing:
            conflict = True
            log.debug("Conflicto: %s usa %s", system_key, ", ".join(clashing))

    if not conflict:
        log.debug("Sin conflictos con los atajos del sistema")
        return False

    store.set("saved_system_keybindings", json.dumps(saved))
    for system_key in saved:
        host.set_system_keybinding(system_key, [])
    log.info("Atajos del sistema desactivados: %d", len(saved))
    return True


def restore_system_keybindings(host: Host, store: SettingsStore) -> int:
    """
    Devuelve al host los atajos guardados por override_system_keybindings.

    Returns:
        Numero de claves restauradas.
    """
    raw = store.settings.saved_system_keybindings
    if not raw:
        return 0

    try:
        saved = json.loads(raw)
        restored = 0
        for system_key, accelerators in saved.items():
            if isinstance(accelerators, list):
                host.set_system_keybinding(system_key, accelerators)
                restored += 1
    except (json.JSONDecodeError, TypeError, AttributeError) as e:
        log.warning("saved_system_keybindings corrupto, se descarta: %s", e)
        restored = 0

    store.set("saved_system_keybindings", "")
    log.info("Atajos del sistema restaurados: %d", restored)
    return restored
