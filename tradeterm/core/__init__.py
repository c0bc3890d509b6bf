"""Interaction core: navigation, focus, order workflow and input routing."""

from .models import (
    HOME_ROUTE,
    SCREEN_BLOCKS,
    Account,
    Block,
    DraftOrder,
    Holding,
    OrderAction,
    OrderFormState,
    OrderReceipt,
    OrderType,
    Quote,
    QuoteRequest,
    Route,
    Screen,
    SearchRequest,
    Snapshot,
    SubmitRequest,
    TickerSummary,
    blocks_for,
)
from .navigation import NavigationStack
from .order_form import OrderWorkflow
from .router import Effect, EffectKind, InputEvent, KeyKind, RouteContext, route_input
from .state import AppState

__all__ = [
    "HOME_ROUTE",
    "SCREEN_BLOCKS",
    "Account",
    "AppState",
    "Block",
    "DraftOrder",
    "Effect",
    "EffectKind",
    "Holding",
    "InputEvent",
    "KeyKind",
    "NavigationStack",
    "OrderAction",
    "OrderFormState",
    "OrderReceipt",
    "OrderType",
    "OrderWorkflow",
    "Quote",
    "QuoteRequest",
    "Route",
    "RouteContext",
    "Screen",
    "SearchRequest",
    "Snapshot",
    "SubmitRequest",
    "TickerSummary",
    "blocks_for",
    "route_input",
]
