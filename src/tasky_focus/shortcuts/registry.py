# src/tasky_focus/shortcuts/registry.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from ..core.ports import Notice, NoticeLevel, Notifier
from .keys import KeyCombo, KeyEvent, Platform, current_platform, format_shortcut_keys

ShortcutAction = Callable[[], object]

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PlatformKeys:
    """Key combos per platform; any combo in the set triggers the binding."""

    mac: tuple[KeyCombo, ...]
    windows: tuple[KeyCombo, ...]

    @classmethod
    def same(cls, *combos: KeyCombo) -> PlatformKeys:
        return cls(mac=tuple(combos), windows=tuple(combos))

    def for_platform(self, platform: Platform) -> tuple[KeyCombo, ...]:
        return self.mac if platform == Platform.MAC else self.windows


@dataclass(slots=True, frozen=True)
class ShortcutBinding:
    id: str
    description: str
    category: str
    keys: PlatformKeys
    action: ShortcutAction = field(compare=False)
    priority: int = 50
    allow_in_modal: bool = False


@dataclass(slots=True, frozen=True)
class DispatchResult:
    handled: bool
    binding_id: str | None = None
    prevent_default: bool = False
    failed: bool = False


NOT_HANDLED = DispatchResult(handled=False)


class ShortcutDispatcher:
    """
    Priority keyboard dispatcher.

    - register() replaces the whole active set (no merge, no duplicate triggers)
    - one winner per key event: highest priority, ties -> most recently registered
    - modal filtering: only allow_in_modal bindings fire while a dialog is open

    The dispatcher knows nothing about focus lock; policy lives in the actions.
    """

    def __init__(self, *, platform: Platform | None = None, notifier: Notifier | None = None) -> None:
        self.platform = platform or current_platform()
        self._notifier = notifier
        # (registration sequence, binding); a higher sequence is more recent.
        self._bindings: list[tuple[int, ShortcutBinding]] = []
        self._seq = 0
        self._modal_open = False

    # ---- registration ----

    def register(self, bindings: Iterable[ShortcutBinding]) -> None:
        entries: list[tuple[int, ShortcutBinding]] = []
        for binding in bindings:
            self._seq += 1
            entries.append((self._seq, binding))
        self._bindings = entries
        logger.debug("Registered %d shortcuts: %s", len(entries), [b.id for _, b in entries])

    def clear(self) -> None:
        self._bindings = []

    @property
    def bindings(self) -> list[ShortcutBinding]:
        return [b for _, b in self._bindings]

    # ---- modal state ----

    @property
    def modal_open(self) -> bool:
        return self._modal_open

    def set_modal_open(self, is_open: bool) -> None:
        self._modal_open = bool(is_open)

    # ---- dispatch ----

    def eligible(self, event: KeyEvent) -> list[ShortcutBinding]:
        """All bindings that may fire for this event, best candidate first."""
        restricted = self._modal_open or event.is_typing
        matches: list[tuple[int, ShortcutBinding]] = []
        for seq, binding in self._bindings:
            if restricted and not binding.allow_in_modal:
                continue
            if any(event.matches(c) for c in binding.keys.for_platform(self.platform)):
                matches.append((seq, binding))
        matches.sort(key=lambda item: (item[1].priority, item[0]), reverse=True)
        return [b for _, b in matches]

    def dispatch(self, event: KeyEvent) -> DispatchResult:
        candidates = self.eligible(event)
        if not candidates:
            return NOT_HANDLED

        winner = candidates[0]
        if len(candidates) > 1:
            logger.debug(
                "Shortcut conflict on %s: %s wins over %s",
                sorted(event.keys()),
                winner.id,
                [b.id for b in candidates[1:]],
            )

        try:
            winner.action()
        except Exception:
            logger.exception("Error executing keyboard shortcut %s", winner.id)
            if self._notifier is not None:
                self._notifier.notify(
                    Notice(NoticeLevel.ERROR, f"Failed to execute shortcut: {winner.description}")
                )
            return DispatchResult(handled=True, binding_id=winner.id, prevent_default=True, failed=True)

        return DispatchResult(handled=True, binding_id=winner.id, prevent_default=True)

    # ---- help ----

    def help_lines(self) -> list[str]:
        """Shortcuts panel content, grouped by category (registration order)."""
        by_category: dict[str, list[ShortcutBinding]] = {}
        for binding in self.bindings:
            by_category.setdefault(binding.category, []).append(binding)

        lines: list[str] = []
        for category, items in by_category.items():
            lines.append(f"{category.title()}:")
            for b in items:
                combos = " / ".join(
                    format_shortcut_keys(c, self.platform) for c in b.keys.for_platform(self.platform)
                )
                lines.append(f"  {combos:<24} {b.description}")
        return lines
