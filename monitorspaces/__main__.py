"""
monitorspaces - Entry point.

Run with:  python -m monitorspaces   (o el script ``monitorspaces``)
"""

import logging
import sys

from monitorspaces.config.settings import SettingsStore
from monitorspaces.core.desktop import SessionWatcher, VirtualDesktop, Win32Host
from monitorspaces.core.keybinds import HotkeyManager
from monitorspaces.core.manager import WindowManager
from monitorspaces.mapping.commands import CommandDispatcher, build_default_commands
from monitorspaces.mapping.debuglog import DebugLog
from monitorspaces.mapping.engine import MappingEngine
from monitorspaces.mapping.focus import FocusTracker
from monitorspaces.mapping.lifecycle import LifecycleManager
from monitorspaces.mapping.listeners import (
    ListenerSet,
    LoggingListener,
    WallpaperGroupsListener,
    workspace_label,
)
from monitorspaces.mapping.placement import PlacementEngine
from monitorspaces.mapping.scheduler import Scheduler
from monitorspaces.mapping.switcher import SwitchCoordinator


class SafeStreamHandler(logging.StreamHandler):
    """Handler that replaces unencodable characters instead of crashing."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            enc = getattr(self.stream, "encoding", "utf-8") or "utf-8"
            safe = msg.encode(enc, errors="replace").decode(enc, errors="replace")
            self.stream.write(safe + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


def setup_logging() -> None:
    fmt = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
    handler = SafeStreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    # Quiet down noisy loggers
    logging.getLogger("monitorspaces.core.filter").setLevel(logging.INFO)
    logging.getLogger("monitorspaces.core.keybinds").setLevel(logging.INFO)


def main() -> None:
    setup_logging()
    log = logging.getLogger("monitorspaces")

    store = SettingsStore.load()

    # Backend Win32
    desktop = VirtualDesktop()
    wm = WindowManager(desktop)
    hk_manager = HotkeyManager()
    wm.set_hotkey_manager(hk_manager)
    host = Win32Host(wm, hk_manager, desktop)

    # El Scheduler avanza con el timer del message loop
    scheduler = Scheduler()
    wm.set_tick(scheduler.run_pending)

    # Consumidores del mapa
    listeners = ListenerSet()
    listeners.add(LoggingListener())
    wallpapers = WallpaperGroupsListener(store.settings.wallpaper_groups)
    listeners.add(wallpapers)
    store.connect("wallpaper_groups", lambda _key, value: wallpapers.reload(value))

    # Motor
    engine = MappingEngine(host, store, scheduler, listeners, DebugLog())
    placement = PlacementEngine(engine)
    focus = FocusTracker(engine)
    coordinator = SwitchCoordinator(engine, placement, focus)

    dispatcher = CommandDispatcher()
    build_default_commands(dispatcher, coordinator)

    lifecycle = LifecycleManager(engine, placement, focus, coordinator, dispatcher)
    watcher = SessionWatcher(host)

    wm.scan()
    lifecycle.enable()
    watcher.start()

    print("\n" + wm.dump_state() + "\n")
    print("=" * 60)
    print("  monitorspaces running. Press Ctrl+C to stop.")
    print(f"  Settings: {store.path}")
    print(f"  Monitors: {engine.monitors.count}")
    print(f"  Hotkeys: {hk_manager.count}")
    print(f"  Commands: {dispatcher.count}")
    for monitor, ws in sorted(engine.mapper.all_mappings().items()):
        marker = " (primary)" if engine.monitors.is_primary(monitor) else ""
        print(f"  Monitor {monitor}{marker}: workspace {workspace_label(ws)}")
    print("")
    mod = store.settings.workspace_modifier
    print("  Keybindings:")
    print(f"    {mod} + 1..9,0              Show workspace on pointer's monitor")
    print(f"    {mod} + Shift + 1..9,0      Move window to workspace")
    print(f"    {mod} + Ctrl + F1..F8       Warp to monitor")
    print(f"    {mod} + Tab / Shift + Tab   Cycle focus")
    print(f"    {mod} + ] / [               Swap window position")
    print("=" * 60 + "\n")

    try:
        wm.start()
    finally:
        lifecycle.disable()
        watcher.stop()
        # Sin esto las ventanas de workspaces inactivos quedan ocultas al salir
        desktop.restore_all()
        log.info("monitorspaces stopped")


if __name__ == "__main__":
    main()
