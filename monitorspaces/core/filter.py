"""
monitorspaces.core.filter - Reglas de filtrado de ventanas.

Decide que ventanas de nivel superior sigue el backend (y por tanto ve
el motor de mapeo) y cuales son artefactos del sistema (taskbar,
escritorio, bandeja, overlays invisibles...).

Solo se aplica cuando una ventana aparece por primera vez: las ventanas
que el VirtualDesktop oculta siguen registradas aunque ya no pasen la
regla de visibilidad.
"""

from __future__ import annotations

import logging

from monitorspaces.core import win32
from monitorspaces.core.window import Window

log = logging.getLogger(__name__)

# ============================================================================
# Known system class names to ALWAYS ignore
# ============================================================================
IGNORED_CLASSES: frozenset[str] = frozenset({
    # Windows shell / explorer
    "Shell_TrayWnd",            # Taskbar
    "Shell_SecondaryTrayWnd",   # Secondary monitor taskbar
    "Progman",                  # Desktop Program Manager
    "WorkerW",                  # Desktop wallpaper worker
    "DV2ControlHost",           # Start menu
    "Windows.UI.Core.CoreWindow",  # Some UWP overlays

    # System UI
    "NotifyIconOverflowWindow",
    "TopLevelWindowForOverflowXamlIsland",
    "Shell_InputSwitchTopLevelWindow",
    "MultitaskingViewFrame",    # Alt-Tab / Task View
    "TaskListThumbnailWnd",
    "ForegroundStaging",
    "EdgeUiInputTopWndClass",
    "EdgeUiInputWndClass",
    "NativeHWNDHost",

    # Other
    "tooltips_class32",
    "IME",
    "MSCTFIME UI",
    "#32768",                   # Popup menus
    "#32769",                   # Desktop
})

# Process names that are always excluded
IGNORED_PROCESSES: frozenset[str] = frozenset({
    "SearchUI.exe",
    "SearchHost.exe",
    "ShellExperienceHost.exe",
    "StartMenuExperienceHost.exe",
    "TextInputHost.exe",
    "LockApp.exe",
    "ScreenClippingHost.exe",
})

IGNORED_TITLES: frozenset[str] = frozenset({
    "",
    "Program Manager",
    "Windows Shell Experience Host",
    "Microsoft Text Input Application",
    "Windows Input Experience",
})


def is_trackable(window: Window) -> bool:
    """
    True si *window* es una ventana de aplicacion que el motor debe ver.

    A diferencia de un tiling WM, los dialogos y las ventanas con
    propietario se siguen: el motor decide con ``window_type`` y
    ``skip_taskbar`` que hacer con ellas.

    Reglas, en orden:
        1. HWND valido, visible y no cloaked.
        2. No es ventana hija.
        3. Clase, proceso y titulo fuera de las listas de ignorados.
        4. Sin WS_EX_NOACTIVATE (overlays no interactivos).
        5. Tamano no nulo.
        6. No es la ventana del shell ni la del escritorio.
    """
    hwnd = window.hwnd

    if window.is_destroyed():
        return False
    if not window.is_visible or window.is_cloaked:
        return False
    if window.is_child:
        return False

    cls = window.class_name
    if cls in IGNORED_CLASSES:
        log.debug("Filtered %#010x: ignored class %r", hwnd, cls)
        return False

    proc = window.process_name
    if proc in IGNORED_PROCESSES:
        log.debug("Filtered %#010x: ignored process %r", hwnd, proc)
        return False

    title = window.title
    if title in IGNORED_TITLES:
        log.debug("Filtered %#010x: ignored title %r", hwnd, title)
        return False

    if window.is_no_activate:
        log.debug("Filtered %#010x: WS_EX_NOACTIVATE", hwnd)
        return False

    rect = window.frame_rect()
    if rect.w <= 0 and rect.h <= 0:
        log.debug("Filtered %#010x: zero size", hwnd)
        return False

    if hwnd in (win32.get_shell_window(), win32.get_desktop_window()):
        return False

    return True
