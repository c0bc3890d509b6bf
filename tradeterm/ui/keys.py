"""Key mapping: Textual key names to router events."""

from __future__ import annotations

from ..core.router import InputEvent, KeyKind

_NAMED_KEYS: dict[str, KeyKind] = {
    "enter": KeyKind.CONFIRM,
    "escape": KeyKind.CANCEL,
    "backspace": KeyKind.BACKSPACE,
    "ctrl+h": KeyKind.BACKSPACE,
    "tab": KeyKind.NEXT_BLOCK,
    "shift+tab": KeyKind.PREV_BLOCK,
    "up": KeyKind.UP,
    "down": KeyKind.DOWN,
}


def translate(key: str, character: str | None = None) -> InputEvent | None:
    kind = _NAMED_KEYS.get(key)
    if kind is not None:
        return InputEvent.key(kind)
    if character and len(character) == 1 and character.isprintable():
        return InputEvent.text(character)
    return None
