"""Total dispatch from (mode, key event) to exactly one effect.

`route_input` reads a `RouteContext` snapshot and never touches state. Any
combination it does not recognize maps to `NOOP`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .models import LIST_BLOCKS, Block, OrderAction, OrderFormState, OrderType, Screen


class KeyKind(str, Enum):
    CHAR = "char"
    BACKSPACE = "backspace"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    NEXT_BLOCK = "next_block"
    PREV_BLOCK = "prev_block"
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class InputEvent:
    kind: KeyKind
    char: str = ""

    @classmethod
    def key(cls, kind: KeyKind) -> "InputEvent":
        return cls(kind)

    @classmethod
    def text(cls, char: str) -> "InputEvent":
        return cls(KeyKind.CHAR, char)


class EffectKind(str, Enum):
    NOOP = "noop"
    EDIT_BUFFER = "edit_buffer"
    CHANGE_FOCUS = "change_focus"
    MOVE_SELECTION = "move_selection"
    ORDER_TRANSITION = "order_transition"
    NAVIGATE_BACK = "navigate_back"
    REQUEST_SEARCH = "request_search"
    REQUEST_QUOTE = "request_quote"
    REQUEST_SUBMIT = "request_submit"
    QUIT = "quit"


@dataclass(frozen=True)
class Effect:
    kind: EffectKind
    # EDIT_BUFFER: "append" | "backspace"; CHANGE_FOCUS: "cycle" | "activate" | "focus";
    # ORDER_TRANSITION: "begin" | "confirm_quantity" | "cancel"
    op: str = ""
    char: str = ""
    direction: int = 0
    block: Block | None = None
    query: str = ""
    action: OrderAction | None = None
    order_type: OrderType | None = None


NOOP = Effect(EffectKind.NOOP)

_ORDER_KEYS: dict[str, tuple[OrderAction, OrderType]] = {
    "b": (OrderAction.BUY, OrderType.MARKET),
    "s": (OrderAction.SELL, OrderType.MARKET),
    "B": (OrderAction.BUY, OrderType.MARKET_ON_CLOSE),
    "S": (OrderAction.SELL, OrderType.MARKET_ON_CLOSE),
}
_SELECTION_CHARS = {"j": 1, "k": -1}


@dataclass(frozen=True)
class RouteContext:
    screen: Screen
    active_block: Block
    hovered_block: Block
    order_state: OrderFormState = OrderFormState.QUANTITY
    buffer: str = ""


def route_input(ctx: RouteContext, event: InputEvent) -> Effect:
    if event.kind is KeyKind.NEXT_BLOCK:
        return Effect(EffectKind.CHANGE_FOCUS, op="cycle", direction=1)
    if event.kind is KeyKind.PREV_BLOCK:
        return Effect(EffectKind.CHANGE_FOCUS, op="cycle", direction=-1)
    if ctx.screen is Screen.ORDER_FORM:
        return _route_order_form(ctx, event)
    if ctx.active_block is Block.INPUT:
        return _route_text_input(ctx, event)
    return _route_blocks(ctx, event)


def _route_order_form(ctx: RouteContext, event: InputEvent) -> Effect:
    if event.kind is KeyKind.CANCEL:
        return Effect(EffectKind.ORDER_TRANSITION, op="cancel")
    if event.kind is KeyKind.CONFIRM:
        if ctx.hovered_block != ctx.active_block:
            return Effect(EffectKind.CHANGE_FOCUS, op="activate")
        if ctx.order_state is OrderFormState.QUANTITY:
            return Effect(EffectKind.ORDER_TRANSITION, op="confirm_quantity")
        return Effect(EffectKind.REQUEST_SUBMIT)
    if ctx.order_state is not OrderFormState.QUANTITY:
        return NOOP
    if event.kind is KeyKind.CHAR and len(event.char) == 1 and event.char in "0123456789":
        return Effect(EffectKind.EDIT_BUFFER, op="append", char=event.char)
    if event.kind is KeyKind.BACKSPACE:
        return Effect(EffectKind.EDIT_BUFFER, op="backspace")
    return NOOP


def _route_text_input(ctx: RouteContext, event: InputEvent) -> Effect:
    if event.kind is KeyKind.CHAR and event.char:
        return Effect(EffectKind.EDIT_BUFFER, op="append", char=event.char)
    if event.kind is KeyKind.BACKSPACE:
        return Effect(EffectKind.EDIT_BUFFER, op="backspace")
    if event.kind is KeyKind.CONFIRM:
        if ctx.hovered_block != ctx.active_block:
            return Effect(EffectKind.CHANGE_FOCUS, op="activate")
        query = ctx.buffer.strip()
        if not query:
            return NOOP
        return Effect(EffectKind.REQUEST_SEARCH, query=query)
    if event.kind is KeyKind.CANCEL:
        return Effect(EffectKind.NAVIGATE_BACK)
    return NOOP


def _route_blocks(ctx: RouteContext, event: InputEvent) -> Effect:
    active = ctx.active_block
    if event.kind is KeyKind.CONFIRM:
        if ctx.hovered_block != active:
            return Effect(EffectKind.CHANGE_FOCUS, op="activate")
        if active in LIST_BLOCKS:
            return Effect(EffectKind.REQUEST_QUOTE, block=active)
        return NOOP
    if event.kind in (KeyKind.UP, KeyKind.DOWN):
        if active not in LIST_BLOCKS:
            return NOOP
        delta = -1 if event.kind is KeyKind.UP else 1
        return Effect(EffectKind.MOVE_SELECTION, block=active, direction=delta)
    if event.kind is KeyKind.CANCEL:
        return Effect(EffectKind.NAVIGATE_BACK)
    if event.kind is not KeyKind.CHAR:
        return NOOP
    char = event.char
    if char in _SELECTION_CHARS and active in LIST_BLOCKS:
        return Effect(EffectKind.MOVE_SELECTION, block=active, direction=_SELECTION_CHARS[char])
    if char in _ORDER_KEYS and ctx.screen is Screen.TICKER_DETAIL and active is Block.TICKER_DETAIL:
        action, order_type = _ORDER_KEYS[char]
        return Effect(EffectKind.ORDER_TRANSITION, op="begin", action=action, order_type=order_type)
    if char == "/":
        return Effect(EffectKind.CHANGE_FOCUS, op="focus", block=Block.INPUT)
    if char == "q":
        return Effect(EffectKind.QUIT)
    return NOOP
