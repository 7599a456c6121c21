"""
monitorspaces.core - Backend Win32.

Este paquete contiene:
    - win32    : Bindings de bajo nivel via ctypes
    - window   : Window - HostWindow sobre un HWND
    - filter   : Que ventanas se siguen
    - keybinds : HotkeyManager - RegisterHotKey por nombre de atajo
    - manager  : WindowManager - WinEventHook y message loop
    - desktop  : VirtualDesktop, SessionWatcher y Win32Host

Los submodulos cargan user32 al importarse; este paquete no los importa
para que ``monitorspaces.mapping`` se pueda usar fuera de Windows.
"""
