"""Application state aggregator.

`AppState` is the single owner of navigation history, focus, the order
workflow, the text input buffer, selection indices and the reference-data
snapshots. The host feeds it key events and service outcomes; the renderer
only reads its view properties.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from . import focus
from .models import (
    Block,
    DraftOrder,
    OrderAction,
    OrderFormState,
    OrderType,
    OrderReceipt,
    Quote,
    QuoteRequest,
    Request,
    Route,
    Screen,
    SearchRequest,
    Selection,
    Snapshot,
    SubmitRequest,
    TickerSummary,
)
from .navigation import NavigationStack
from .order_form import OrderWorkflow
from .router import Effect, EffectKind, InputEvent, RouteContext, route_input

logger = logging.getLogger(__name__)


@dataclass
class StatusLine:
    text: str = ""
    is_error: bool = False

    def set(self, text: str, *, is_error: bool = False) -> None:
        self.text = text
        self.is_error = is_error


class AppState:
    def __init__(self, watch_list: Sequence[str] = ()) -> None:
        self._nav = NavigationStack()
        self._workflow = OrderWorkflow()
        self._buffer: list[str] = []
        self._accounts = Snapshot()
        self._portfolio = Snapshot()
        self._search_results = Snapshot()
        self._watch_list = Snapshot.of(TickerSummary(symbol=s) for s in watch_list)
        self._quote = Snapshot()
        self._selection: dict[Block, Selection] = {
            Block.WATCH_LIST: Selection().clamp(len(self._watch_list)),
            Block.PORTFOLIO: Selection(),
            Block.SEARCH_RESULTS: Selection(),
        }
        self._search_seq = 0
        self._quote_seq = 0
        self.status = StatusLine()
        self.should_quit = False

    # region Views
    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(self._nav)

    def current_route(self) -> Route:
        return self._nav.current()

    def is_active(self, block: Block) -> bool:
        return focus.is_active(self._nav.current(), block)

    def is_hovered(self, block: Block) -> bool:
        return focus.is_hovered(self._nav.current(), block)

    @property
    def input_text(self) -> str:
        return "".join(self._buffer)

    @property
    def order_state(self) -> OrderFormState:
        return self._workflow.state

    @property
    def draft(self) -> DraftOrder | None:
        return self._workflow.draft

    @property
    def order_error(self) -> str | None:
        return self._workflow.error

    @property
    def submitting(self) -> bool:
        return self._workflow.submitting

    @property
    def accounts(self) -> Snapshot:
        return self._accounts

    @property
    def portfolio(self) -> Snapshot:
        return self._portfolio

    @property
    def search_results(self) -> Snapshot:
        return self._search_results

    @property
    def watch_list(self) -> Snapshot:
        return self._watch_list

    @property
    def quote(self) -> Quote | None:
        return self._quote.items[0] if self._quote.items else None

    def selected_index(self, block: Block) -> int | None:
        selection = self._selection.get(block)
        return selection.index if selection else None

    def selected_symbol(self, block: Block) -> str | None:
        snapshot = self._snapshot_for(block)
        index = self.selected_index(block)
        if snapshot is None or index is None or index >= len(snapshot.items):
            return None
        return getattr(snapshot.items[index], "symbol", None) or None
    # endregion

    # region Input
    def handle(self, event: InputEvent) -> Request | None:
        route = self._nav.current()
        ctx = RouteContext(
            screen=route.screen,
            active_block=route.active_block,
            hovered_block=route.hovered_block,
            order_state=self._workflow.state,
            buffer=self.input_text,
        )
        return self.apply(route_input(ctx, event))

    def apply(self, effect: Effect) -> Request | None:
        kind = effect.kind
        if kind is EffectKind.EDIT_BUFFER:
            self._edit_buffer(effect)
        elif kind is EffectKind.CHANGE_FOCUS:
            self._change_focus(effect)
        elif kind is EffectKind.MOVE_SELECTION and effect.block is not None:
            if effect.direction < 0:
                self.select_prev(effect.block)
            else:
                self.select_next(effect.block)
        elif kind is EffectKind.ORDER_TRANSITION:
            self._order_transition(effect)
        elif kind is EffectKind.NAVIGATE_BACK:
            self.navigate_back()
        elif kind is EffectKind.REQUEST_SEARCH:
            return self._request_search(effect.query)
        elif kind is EffectKind.REQUEST_QUOTE and effect.block is not None:
            return self._request_quote(effect.block)
        elif kind is EffectKind.REQUEST_SUBMIT:
            return self._request_submit()
        elif kind is EffectKind.QUIT:
            self.should_quit = True
        return None

    def _edit_buffer(self, effect: Effect) -> None:
        on_order_form = self._nav.current().screen is Screen.ORDER_FORM
        if effect.op == "append":
            if on_order_form and not self._workflow.accepts(effect.char):
                return
            self._buffer.append(effect.char)
        elif effect.op == "backspace" and self._buffer:
            if on_order_form and self._workflow.state is not OrderFormState.QUANTITY:
                return
            self._buffer.pop()

    def _change_focus(self, effect: Effect) -> None:
        if effect.op == "cycle":
            focus.cycle_hover(self._nav, effect.direction)
        elif effect.op == "activate":
            focus.activate_hovered(self._nav)
        elif effect.op == "focus" and effect.block is not None:
            focus.focus(self._nav, effect.block)

    def _order_transition(self, effect: Effect) -> None:
        if effect.op == "begin" and effect.action is not None:
            self.begin_order(effect.action, effect.order_type)
        elif effect.op == "confirm_quantity":
            if self._workflow.confirm_quantity(self.input_text):
                self._buffer.clear()
        elif effect.op == "cancel":
            self.cancel_order()
    # endregion

    # region Navigation
    def navigate_back(self) -> Route:
        top = self._nav.current()
        if top.screen is Screen.ORDER_FORM and len(self._nav) > 1:
            self._workflow.cancel()
            self._buffer.clear()
        return self._nav.pop()

    def begin_order(
        self, action: OrderAction, order_type: OrderType | None = None
    ) -> DraftOrder | None:
        if self._nav.current().screen is Screen.ORDER_FORM:
            return None
        quote = self.quote
        if quote is None:
            self.status.set("Order: no ticker selected", is_error=True)
            return None
        if order_type is None:
            draft = self._workflow.begin(action, symbol=quote.symbol)
        else:
            draft = self._workflow.begin(action, order_type, symbol=quote.symbol)
        self._buffer.clear()
        self._nav.push(Screen.ORDER_FORM, Block.INPUT, Block.INPUT)
        return draft

    def cancel_order(self) -> None:
        if self._workflow.submitting:
            self.status.set("Order cancelled")
        self._workflow.cancel()
        self._buffer.clear()
        if self._nav.current().screen is Screen.ORDER_FORM:
            self._nav.pop()
    # endregion

    # region Selection
    def select_next(self, block: Block) -> int | None:
        return self._step_selection(block, 1)

    def select_prev(self, block: Block) -> int | None:
        return self._step_selection(block, -1)

    def _step_selection(self, block: Block, delta: int) -> int | None:
        snapshot = self._snapshot_for(block)
        if snapshot is None or not snapshot.items:
            return self.selected_index(block)
        self._selection[block] = self._selection[block].step(delta, len(snapshot.items))
        return self._selection[block].index

    def _snapshot_for(self, block: Block) -> Snapshot | None:
        if block is Block.WATCH_LIST:
            return self._watch_list
        if block is Block.PORTFOLIO:
            return self._portfolio
        if block is Block.SEARCH_RESULTS:
            return self._search_results
        return None
    # endregion

    # region Outbound requests
    def _request_search(self, query: str) -> SearchRequest:
        self._search_seq += 1
        self.status.set(f"Searching {query!r}...")
        return SearchRequest(self._search_seq, query)

    def _request_quote(self, block: Block) -> QuoteRequest | None:
        symbol = self.selected_symbol(block)
        if not symbol:
            return None
        self._quote_seq += 1
        self.status.set(f"Loading {symbol}...")
        return QuoteRequest(self._quote_seq, symbol)

    def _request_submit(self) -> SubmitRequest | None:
        pending = self._workflow.request_submit()
        if pending is None:
            return None
        ticket, draft = pending
        logger.info("Submitting draft #%s: %s", ticket, draft.describe())
        self.status.set(f"Submitting {draft.describe()}...")
        return SubmitRequest(ticket, draft)
    # endregion

    # region Snapshot intake
    def replace_accounts(self, accounts: Iterable) -> None:
        self._accounts = Snapshot.of(accounts)

    def accounts_failed(self, reason: str, *, initial: bool = False) -> None:
        self._accounts = Snapshot.failed(reason)
        self.status.set(f"Accounts error: {reason}", is_error=True)
        # An open order form keeps the screen; the status line carries the error.
        if initial and self._nav.current().screen not in (Screen.ERROR, Screen.ORDER_FORM):
            self._nav.push(Screen.ERROR, Block.HOME, Block.HOME)

    def replace_portfolio(self, holdings: Iterable) -> None:
        self._portfolio = Snapshot.of(holdings)
        self._clamp(Block.PORTFOLIO)

    def portfolio_failed(self, reason: str) -> None:
        self._portfolio = Snapshot.failed(reason)
        self._clamp(Block.PORTFOLIO)
        self.status.set(f"Portfolio error: {reason}", is_error=True)

    def replace_search_results(self, seq: int, results: Iterable[TickerSummary]) -> bool:
        if seq != self._search_seq:
            logger.debug("Ignoring stale search response %s", seq)
            return False
        self._search_results = Snapshot.of(results)
        self._selection[Block.SEARCH_RESULTS] = Selection().clamp(len(self._search_results))
        count = len(self._search_results)
        self.status.set(f"{count} result(s)" if count else "No results")
        self._show(Screen.SEARCH, Block.SEARCH_RESULTS)
        return True

    def search_failed(self, seq: int, reason: str) -> bool:
        if seq != self._search_seq:
            return False
        self._search_results = Snapshot.failed(reason)
        self._clamp(Block.SEARCH_RESULTS)
        self.status.set(f"Search error: {reason}", is_error=True)
        return True

    def replace_quote(self, seq: int, quote: Quote) -> bool:
        if seq != self._quote_seq:
            logger.debug("Ignoring stale quote response %s", seq)
            return False
        self._quote = Snapshot.of([quote])
        self.status.set(f"{quote.symbol} loaded")
        self._show(Screen.TICKER_DETAIL, Block.TICKER_DETAIL)
        return True

    def quote_failed(self, seq: int, reason: str) -> bool:
        if seq != self._quote_seq:
            return False
        if self._nav.current().screen not in (Screen.TICKER_DETAIL, Screen.ORDER_FORM):
            self._quote = Snapshot.failed(reason)
        self.status.set(f"Quote error: {reason}", is_error=True)
        return True

    def _clamp(self, block: Block) -> None:
        snapshot = self._snapshot_for(block)
        length = len(snapshot.items) if snapshot is not None else 0
        self._selection[block] = self._selection[block].clamp(length)

    def _show(self, screen: Screen, block: Block) -> None:
        current = self._nav.current().screen
        if current is Screen.ORDER_FORM:
            return
        if current is screen:
            self._nav.replace_top(screen, block, block)
            return
        self._nav.push(screen, block, block)
    # endregion

    # region Order outcomes
    def order_submitted(self, ticket: int, receipt: OrderReceipt | None = None) -> bool:
        if not self._workflow.on_submit_result(ticket, True):
            return False
        if self._nav.current().screen is Screen.ORDER_FORM:
            self._nav.pop()
        self._buffer.clear()
        if receipt is not None:
            self.status.set(f"Order #{receipt.order_id} {receipt.status}")
        else:
            self.status.set("Order sent")
        return True

    def order_failed(self, ticket: int, reason: str) -> bool:
        if not self._workflow.on_submit_result(ticket, False, reason):
            return False
        logger.warning("Order ticket %s failed: %s", ticket, reason)
        self.status.set(f"Order error: {reason}", is_error=True)
        return True
    # endregion
