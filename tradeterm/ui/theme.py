"""Border/title colors as a pure function of focus."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Theme:
    active: str = "bold #2c82c9"
    hovered: str = "#d7e8ff"
    inactive: str = "#4a5568"
    text: str = "#d8dee9"
    banner: str = "yellow"
    error: str = "bold #ff5f5f"
    highlight: str = "bold black on #2c82c9"


DEFAULT_THEME = Theme()


def get_color(highlight_state: tuple[bool, bool], theme: Theme = DEFAULT_THEME) -> str:
    active, hovered = highlight_state
    if active:
        return theme.active
    if hovered:
        return theme.hovered
    return theme.inactive
