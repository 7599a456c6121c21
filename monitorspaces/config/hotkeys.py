"""
monitorspaces.config.hotkeys - Atajos por defecto y su registro.

Atajos (con <Mod> = modificador configurado, Alt por defecto):
    Workspaces:
        <Mod> 1..9,0                 -> Mostrar workspace en el monitor del puntero
        <Mod><Shift> 1..9,0          -> Mover ventana enfocada al workspace

    Monitores:
        <Mod><Control> F1..F8        -> Puntero y foco al monitor 0..7

    Foco:
        <Mod> Tab / <Mod><Shift> Tab -> Siguiente / anterior ventana

    Posicion:
        <Mod> ] / <Mod> [            -> Intercambiar con la siguiente / anterior

Cada atajo se llama igual que el comando que ejecuta en el
CommandDispatcher. Los atajos de switch/move se reescriben enteros al
cambiar el modificador; el resto conserva lo que haya en los ajustes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from monitorspaces.config.settings import WARP_MONITOR_COUNT, WORKSPACE_COUNT

if TYPE_CHECKING:
    from monitorspaces.mapping.commands import CommandDispatcher
    from monitorspaces.mapping.host import Host

log = logging.getLogger(__name__)


_MODIFIER_ACCELERATOR: dict[str, str] = {
    "Alt": "<Alt>",
    "Super": "<Super>",
    "Ctrl": "<Control>",
}

_WORKSPACE_PREFIXES = ("switch-to-workspace-", "move-window-to-workspace-")


def modifier_accelerator(modifier: str) -> str:
    """"Super" -> "<Super>", "Ctrl" -> "<Control>", cualquier otro -> "<Alt>"."""
    return _MODIFIER_ACCELERATOR.get(modifier, "<Alt>")


def default_bindings(modifier: str = "Alt") -> dict[str, list[str]]:
    mod = modifier_accelerator(modifier)
    bindings: dict[str, list[str]] = {}

    # ------------------------------------------------------------------
    # <Mod> 1..9,0 y <Mod><Shift> 1..9,0
    # ------------------------------------------------------------------
    for i in range(WORKSPACE_COUNT):
        key = (i + 1) % 10
        bindings[f"switch-to-workspace-{i}"] = [f"{mod}{key}"]
        bindings[f"move-window-to-workspace-{i}"] = [f"{mod}<Shift>{key}"]

    # ------------------------------------------------------------------
    # <Mod><Control> F1..F8
    # ------------------------------------------------------------------
    for i in range(WARP_MONITOR_COUNT):
        bindings[f"warp-to-monitor-{i}"] = [f"{mod}<Control>F{i + 1}"]

    # ------------------------------------------------------------------
    # Foco y posicion
    # ------------------------------------------------------------------
    bindings["cycle-focus-forward"] = [f"{mod}Tab"]
    bindings["cycle-focus-backward"] = [f"{mod}<Shift>Tab"]
    bindings["swap-window-forward"] = [f"{mod}bracketright"]
    bindings["swap-window-backward"] = [f"{mod}bracketleft"]

    return bindings


def rewrite_workspace_bindings(
    bindings: dict[str, list[str]], modifier: str,
) -> dict[str, list[str]]:
    """
    Atajos efectivos para *modifier*.

    Los de switch/move se regeneran siempre; los demas se toman de
    *bindings* y, si faltan, de los valores por defecto.
    """
    result = default_bindings(modifier)
    for name, accelerators in bindings.items():
        if name.startswith(_WORKSPACE_PREFIXES):
            continue
        result[name] = list(accelerators)
    log.info("Atajos de workspace: %s1-0 (switch), %s<Shift>1-0 (move)",
             modifier_accelerator(modifier), modifier_accelerator(modifier))
    return result


def register_all_hotkeys(
    host: Host,
    dispatcher: CommandDispatcher,
    bindings: dict[str, list[str]],
) -> int:
    """
    Registra cada atajo en el host, vinculado al comando del mismo nombre.

    Returns:
        Numero de atajos registrados.
    """
    registered = 0

    def _bind(name: str, accelerators: list[str]) -> None:
        nonlocal registered
        if not dispatcher.has(name):
            log.warning("Hotkey bind: command %r not found, skipping", name)
            return
        if not accelerators:
            log.debug("Hotkey %s sin aceleradores, se omite", name)
            return
        if host.add_keybinding(name, accelerators, lambda: dispatcher.execute(name)):
            registered += 1
        else:
            log.warning("No se pudo registrar %s (%s)", name, ", ".join(accelerators))

    for name in sorted(bindings):
        _bind(name, bindings[name])

    log.info("Hotkeys registrados: %d/%d", registered, len(bindings))
    return registered


def unregister_all_hotkeys(host: Host, bindings: dict[str, list[str]]) -> None:
    for name in sorted(bindings):
        host.remove_keybinding(name)
