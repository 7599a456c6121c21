"""
monitorspaces.mapping.commands - Dispatcher de comandos.

Mapea el nombre de cada atajo ("switch-to-workspace-3",
"cycle-focus-forward", ...) a la operacion del SwitchCoordinator que
ejecuta. Los atajos del fichero de ajustes usan esos mismos nombres:

    dispatcher = CommandDispatcher()
    build_default_commands(dispatcher, coordinator)
    dispatcher.execute("switch-to-workspace-3")

Tambien se puede usar como decorador:
    @dispatcher.command("dump-state")
    def dump_state():
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from monitorspaces.config.settings import WARP_MONITOR_COUNT, WORKSPACE_COUNT

if TYPE_CHECKING:
    from monitorspaces.mapping.switcher import SwitchCoordinator

log = logging.getLogger(__name__)


# Type for command functions: called with no arguments
CommandFn = Callable[[], None]


@dataclass(frozen=True, slots=True)
class Command:
    """Metadata for a registered command."""

    name: str
    fn: CommandFn
    description: str
    category: str


class CommandDispatcher:
    """Registry that maps command name strings to callable functions."""

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}

    @property
    def count(self) -> int:
        return len(self._commands)

    @property
    def command_names(self) -> list[str]:
        return sorted(self._commands.keys())

    def register(
        self,
        name: str,
        fn: CommandFn,
        description: str = "",
        category: str = "general",
    ) -> None:
        """Register a command by name, replacing any previous one."""
        if name in self._commands:
            log.info("Command replaced: %s", name)

        self._commands[name] = Command(
            name=name,
            fn=fn,
            description=description,
            category=category,
        )
        log.debug("Command registered: %s (%s)", name, category)

    def execute(self, name: str) -> bool:
        """
        Execute a command by name.

        Returns:
            True if the command was found and executed successfully.
        """
        cmd = self._commands.get(name)
        if cmd is None:
            log.warning("Unknown command: %s", name)
            return False

        log.debug("Executing command: %s", name)
        try:
            cmd.fn()
        except Exception:
            log.exception("Error executing command: %s", name)
            return False

        return True

    def get(self, name: str) -> Command | None:
        return self._commands.get(name)

    def has(self, name: str) -> bool:
        return name in self._commands

    def command(
        self,
        name: str,
        description: str = "",
        category: str = "general",
    ) -> Callable[[CommandFn], CommandFn]:
        """Decorator to register a function as a command."""

        def decorator(fn: CommandFn) -> CommandFn:
            self.register(name, fn, description=description, category=category)
            return fn

        return decorator

    def list_commands(self, category: str | None = None) -> list[Command]:
        commands = list(self._commands.values())
        if category is not None:
            commands = [c for c in commands if c.category == category]
        return sorted(commands, key=lambda c: c.name)

    def dump_state(self) -> str:
        """Return a formatted string of all commands for debugging."""
        lines = [
            f"=== CommandDispatcher: {len(self._commands)} commands ===",
            "",
        ]
        for cmd in self.list_commands():
            desc = f"  {cmd.description}" if cmd.description else ""
            lines.append(f"  [{cmd.category}] {cmd.name}{desc}")
        return "\n".join(lines)


def build_default_commands(
    dispatcher: CommandDispatcher,
    coordinator: SwitchCoordinator,
) -> None:
    """
    Register every shortcut command into the dispatcher.

    This is the single place that maps shortcut names to coordinator
    operations. Called once during startup.
    """

    # -- Workspace switch / move (0-9) ---------------------------------
    def _make_switch(ws: int) -> CommandFn:
        return lambda: coordinator.switch_workspace(ws)

    def _make_move(ws: int) -> CommandFn:
        return lambda: coordinator.move_window_to_workspace(ws)

    for i in range(WORKSPACE_COUNT):
        dispatcher.register(
            f"switch-to-workspace-{i}",
            _make_switch(i),
            description=f"Show workspace {(i + 1) % 10} on the pointer's monitor",
            category="workspace",
        )
        dispatcher.register(
            f"move-window-to-workspace-{i}",
            _make_move(i),
            description=f"Move focused window to workspace {(i + 1) % 10}",
            category="workspace",
        )

    # -- Warp to monitor (0-7) -----------------------------------------
    def _make_warp(monitor: int) -> CommandFn:
        return lambda: coordinator.warp_to_monitor(monitor)

    for i in range(WARP_MONITOR_COUNT):
        dispatcher.register(
            f"warp-to-monitor-{i}",
            _make_warp(i),
            description=f"Move pointer and focus to monitor {i}",
            category="monitor",
        )

    # -- Focus / position ----------------------------------------------
    @dispatcher.command("cycle-focus-forward", description="Focus next window", category="focus")
    def cycle_forward() -> None:
        coordinator.cycle_focus(True)

    @dispatcher.command("cycle-focus-backward", description="Focus previous window", category="focus")
    def cycle_backward() -> None:
        coordinator.cycle_focus(False)

    @dispatcher.command("swap-window-forward", description="Swap position with next window", category="window")
    def swap_forward() -> None:
        coordinator.swap_window_position(True)

    @dispatcher.command("swap-window-backward", description="Swap position with previous window", category="window")
    def swap_backward() -> None:
        coordinator.swap_window_position(False)

    log.info("Default commands registered: %d", dispatcher.count)
