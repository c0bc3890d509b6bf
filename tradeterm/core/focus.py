"""Focus queries and hover cycling over the current route."""

from __future__ import annotations

from .models import Block, Route, blocks_for
from .navigation import NavigationStack


def is_active(route: Route, block: Block) -> bool:
    return route.active_block == block


def is_hovered(route: Route, block: Block) -> bool:
    return route.hovered_block == block


def highlight_state(route: Route, block: Block) -> tuple[bool, bool]:
    return is_active(route, block), is_hovered(route, block)


def next_hover(route: Route, direction: int) -> Block:
    blocks = blocks_for(route.screen)
    if not blocks:
        return route.hovered_block
    try:
        idx = blocks.index(route.hovered_block)
    except ValueError:
        return blocks[0]
    step = 1 if direction >= 0 else -1
    return blocks[(idx + step) % len(blocks)]


def cycle_hover(nav: NavigationStack, direction: int) -> Block:
    block = next_hover(nav.current(), direction)
    nav.set_hovered(block)
    return block


def activate_hovered(nav: NavigationStack) -> Block:
    block = nav.current().hovered_block
    nav.set_active(block)
    return block


def focus(nav: NavigationStack, block: Block) -> bool:
    if block not in blocks_for(nav.current().screen):
        return False
    nav.set_active(block)
    nav.set_hovered(block)
    return True
