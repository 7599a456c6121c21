"""
monitorspaces.mapping - Motor de workspaces independientes por monitor.

Este paquete contiene:
    - rect          : Rect con operaciones de geometria
    - monitor       : Monitor y MonitorRegistry
    - host          : Interfaz Host / HostWindow que implementa cada backend
    - mapper        : WorkspaceMapper - mapa monitor -> workspace
    - locator       : WindowLocator - ventanas por monitor y workspace
    - scheduler     : Scheduler, TaskChain y OperationQueue
    - engine        : MappingEngine - dueno del estado compartido
    - placement     : PlacementEngine - posiciones y ventanas nuevas
    - focus         : FocusTracker - historial de foco y puntero
    - switcher      : SwitchCoordinator - switch, swap, warp, move
    - lifecycle     : LifecycleManager - enable / disable
    - listeners     : Listeners externos (indicador, fondos)
    - commands      : CommandDispatcher y comandos por defecto
    - debuglog      : Fichero de diagnostico
    - subscriptions : SubscriptionList
"""

from monitorspaces.mapping.rect import Rect
from monitorspaces.mapping.monitor import Monitor, MonitorRegistry
from monitorspaces.mapping.host import Host, HostEvent, HostWindow, WindowType
from monitorspaces.mapping.mapper import WorkspaceMapper
from monitorspaces.mapping.locator import WindowLocator
from monitorspaces.mapping.scheduler import OperationQueue, Scheduler, TaskChain
from monitorspaces.mapping.engine import MappingEngine
from monitorspaces.mapping.placement import PlacementEngine
from monitorspaces.mapping.focus import FocusTracker
from monitorspaces.mapping.switcher import SwitchCoordinator
from monitorspaces.mapping.lifecycle import LifecycleManager
from monitorspaces.mapping.listeners import (
    ListenerSet,
    LoggingListener,
    MappingListener,
    WallpaperGroupsListener,
)
from monitorspaces.mapping.commands import CommandDispatcher, build_default_commands
from monitorspaces.mapping.debuglog import DebugLog

__all__ = [
    "Rect",
    "Monitor",
    "MonitorRegistry",
    "Host",
    "HostEvent",
    "HostWindow",
    "WindowType",
    "WorkspaceMapper",
    "WindowLocator",
    "OperationQueue",
    "Scheduler",
    "TaskChain",
    "MappingEngine",
    "PlacementEngine",
    "FocusTracker",
    "SwitchCoordinator",
    "LifecycleManager",
    "ListenerSet",
    "LoggingListener",
    "MappingListener",
    "WallpaperGroupsListener",
    "CommandDispatcher",
    "build_default_commands",
    "DebugLog",
]
