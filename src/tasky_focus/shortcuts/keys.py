# src/tasky_focus/shortcuts/keys.py

from __future__ import annotations

import sys
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

KeyCombo = frozenset[str]

MODIFIERS = ("meta", "ctrl", "shift", "alt")

_KEY_NORMALIZATIONS = {
    "delete": "backspace",
    "del": "backspace",
    " ": "space",
    "esc": "escape",
    "return": "enter",
    "cmd": "meta",
    "command": "meta",
    "control": "ctrl",
    "option": "alt",
    "right": "arrowright",
    "left": "arrowleft",
    "up": "arrowup",
    "down": "arrowdown",
}


class Platform(StrEnum):
    MAC = "mac"
    WINDOWS = "windows"

    @classmethod
    def from_raw(cls, raw: str | None) -> Platform:
        value = (raw or "").strip().lower()
        if value in ("mac", "macos", "darwin", "osx"):
            return cls.MAC
        if value in ("windows", "win", "linux", "other"):
            return cls.WINDOWS
        return current_platform()


def current_platform() -> Platform:
    return Platform.MAC if sys.platform == "darwin" else Platform.WINDOWS


def normalize_key(key: str) -> str:
    if key == " ":
        return "space"
    k = key.strip().lower()
    return _KEY_NORMALIZATIONS.get(k, k)


def combo(*keys: str) -> KeyCombo:
    """combo("ctrl", "enter") -> frozenset({"ctrl", "enter"})"""
    return frozenset(normalize_key(k) for k in keys)


@dataclass(slots=True, frozen=True)
class KeyEvent:
    """
    One physical key press.

    is_typing marks events coming from a text input; only global shortcuts
    are eligible for those.
    """

    key: str
    meta: bool = False
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    is_typing: bool = False

    def keys(self) -> KeyCombo:
        pressed = [name for name in MODIFIERS if getattr(self, name)]
        pressed.append(normalize_key(self.key))
        return frozenset(pressed)

    def matches(self, target: KeyCombo) -> bool:
        # Exact match: extra modifiers must not trigger a plainer binding.
        return self.keys() == target

    @classmethod
    def parse(cls, text: str, *, is_typing: bool = False) -> KeyEvent:
        """
        Parse "ctrl+shift+arrowright" / "meta+/" / "space" into an event.

        The last part is the main key; everything before it is a modifier.
        """
        *mods, main = text.strip().split("+")
        flags = {name: False for name in MODIFIERS}
        for part in mods:
            name = normalize_key(part)
            if name in flags:
                flags[name] = True
        return cls(key=normalize_key(main) or "+", is_typing=is_typing, **flags)


_SYMBOLS_MAC = {
    "meta": "⌘",
    "ctrl": "Ctrl",
    "shift": "⇧",
    "alt": "⌥",
}
_SYMBOLS_WINDOWS = {
    "meta": "Ctrl",
    "ctrl": "Ctrl",
    "shift": "⇧",
    "alt": "Alt",
}
_SYMBOLS_COMMON = {
    "enter": "↵",
    "escape": "Esc",
    "arrowup": "↑",
    "arrowdown": "↓",
    "arrowleft": "←",
    "arrowright": "→",
    "space": "Space",
}


def format_shortcut_keys(keys: Iterable[str], platform: Platform | None = None) -> str:
    """Human-readable combo, modifiers first: "⌘ + ⇧ + →"."""
    platform = platform or current_platform()
    symbols = _SYMBOLS_MAC if platform == Platform.MAC else _SYMBOLS_WINDOWS

    normalized = [normalize_key(k) for k in keys]
    ordered = [m for m in MODIFIERS if m in normalized]
    ordered += sorted(k for k in normalized if k not in MODIFIERS)

    out = []
    for k in ordered:
        out.append(symbols.get(k) or _SYMBOLS_COMMON.get(k) or k.upper())
    return " + ".join(out)
