"""
monitorspaces - Workspaces independientes por monitor sobre un unico
workspace global del escritorio.

    - config  : Ajustes persistentes y atajos de teclado
    - mapping : Motor de mapeo (independiente de la plataforma)
    - core    : Backend Win32 (pywin32 + ctypes)
"""

__version__ = "0.1.0"
