"""
monitorspaces.config.combo_parser - Parser de aceleradores de teclado.

Convierte aceleradores en los argumentos (modifiers, vk) que necesita
RegisterHotKey. Acepta dos formas:

    "alt+shift+1"      separado por '+', sin distinguir mayusculas
    "<Alt><Shift>1"    estilo GTK: modificadores entre <>, tecla al final

Aliases: win = super = windows = mod, ctrl = control = primary,
alt = menu. Los valores de MOD_* son los de la API Win32 pero se
definen aqui para que el parser no dependa de ella.
"""

from __future__ import annotations

import logging
import re

log = logging.getLogger(__name__)


# ============================================================================
# Modifier flags (RegisterHotKey)
# ============================================================================
MOD_ALT = 0x0001
MOD_CONTROL = 0x0002
MOD_SHIFT = 0x0004
MOD_WIN = 0x0008

_MODIFIER_MAP: dict[str, int] = {
    "alt": MOD_ALT,
    "menu": MOD_ALT,
    "ctrl": MOD_CONTROL,
    "control": MOD_CONTROL,
    "primary": MOD_CONTROL,
    "shift": MOD_SHIFT,
    "win": MOD_WIN,
    "super": MOD_WIN,
    "windows": MOD_WIN,
    "mod": MOD_WIN,
}

_CANONICAL_MODIFIER = {
    MOD_ALT: "alt",
    MOD_CONTROL: "control",
    MOD_SHIFT: "shift",
    MOD_WIN: "win",
}


# ============================================================================
# Virtual key name -> VK code
# ============================================================================
_VK_MAP: dict[str, int] = {}


def _build_vk_map() -> None:
    """Populate the VK name map on first use."""
    if _VK_MAP:
        return

    # Letters A-Z (VK 0x41 - 0x5A)
    for i in range(26):
        _VK_MAP[chr(ord("a") + i)] = 0x41 + i

    # Digits 0-9 (VK 0x30 - 0x39)
    for i in range(10):
        _VK_MAP[str(i)] = 0x30 + i

    # Function keys F1-F24
    for i in range(1, 25):
        _VK_MAP[f"f{i}"] = 0x70 + (i - 1)

    _VK_MAP.update(
        {
            "return": 0x0D,
            "enter": 0x0D,
            "escape": 0x1B,
            "esc": 0x1B,
            "space": 0x20,
            "tab": 0x09,
            "backspace": 0x08,
            "delete": 0x2E,
            "insert": 0x2D,
            "home": 0x24,
            "end": 0x23,
            "pageup": 0x21,
            "page_up": 0x21,
            "pagedown": 0x22,
            "page_down": 0x22,
            "left": 0x25,
            "up": 0x26,
            "right": 0x27,
            "down": 0x28,
            "semicolon": 0xBA,
            "equal": 0xBB,
            "equals": 0xBB,
            "comma": 0xBC,
            "minus": 0xBD,
            "period": 0xBE,
            "slash": 0xBF,
            "grave": 0xC0,
            "backquote": 0xC0,
            "bracketleft": 0xDB,
            "backslash": 0xDC,
            "bracketright": 0xDD,
            "apostrophe": 0xDE,
            "quote": 0xDE,
        }
    )


# ============================================================================
# Public API
# ============================================================================
class ComboParseError(ValueError):
    """Raised when an accelerator string cannot be parsed."""


_ANGLE_RE = re.compile(r"<([^<>]+)>")


def _split(combo: str) -> list[str]:
    """Separa un acelerador en partes en minusculas (modificadores y tecla)."""
    text = combo.strip()
    if text.startswith("<"):
        mods = _ANGLE_RE.findall(text)
        key = _ANGLE_RE.sub("", text).strip()
        parts = [m.strip().lower() for m in mods]
        if key:
            parts.append(key.lower())
        return parts
    parts = [p.strip().lower() for p in text.split("+")]
    return [p for p in parts if p]


def parse_combo(combo: str) -> tuple[int, int]:
    """
    Parse an accelerator into (modifiers, vk).

    Raises:
        ComboParseError: empty string, no key, unknown token, duplicate
                         modifier or more than one key.
    """
    _build_vk_map()

    if not combo or not combo.strip():
        raise ComboParseError("Empty combo string")

    parts = _split(combo)
    if not parts:
        raise ComboParseError(f"No valid parts in combo: {combo!r}")

    modifiers = 0
    vk: int | None = None
    seen_mods: set[str] = set()

    for part in parts:
        if part in _MODIFIER_MAP:
            canonical = _CANONICAL_MODIFIER[_MODIFIER_MAP[part]]
            if canonical in seen_mods:
                raise ComboParseError(f"Duplicate modifier {part!r} in combo: {combo!r}")
            seen_mods.add(canonical)
            modifiers |= _MODIFIER_MAP[part]
        elif part in _VK_MAP:
            if vk is not None:
                raise ComboParseError(
                    f"Multiple key parts in combo: {combo!r}. "
                    f"Only one non-modifier key is allowed."
                )
            vk = _VK_MAP[part]
        else:
            raise ComboParseError(f"Unknown key or modifier: {part!r} in combo: {combo!r}")

    if vk is None:
        raise ComboParseError(
            f"No key found in combo: {combo!r}. "
            f"A combo must have exactly one non-modifier key."
        )

    return modifiers, vk


def combo_to_str(modifiers: int, vk: int) -> str:
    """(modifiers, vk) -> "Win+Ctrl+Alt+Shift+Key", for logs."""
    _build_vk_map()

    parts: list[str] = []
    if modifiers & MOD_WIN:
        parts.append("Win")
    if modifiers & MOD_CONTROL:
        parts.append("Ctrl")
    if modifiers & MOD_ALT:
        parts.append("Alt")
    if modifiers & MOD_SHIFT:
        parts.append("Shift")

    vk_name = None
    for name, code in _VK_MAP.items():
        if code == vk:
            vk_name = name.upper() if len(name) == 1 else name.capitalize()
            break
    if vk_name is None:
        vk_name = f"0x{vk:02X}"

    parts.append(vk_name)
    return "+".join(parts)


def is_valid_combo(combo: str) -> bool:
    try:
        parse_combo(combo)
        return True
    except ComboParseError:
        return False
