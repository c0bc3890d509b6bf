"""Trading dashboard TUI: search, quotes, portfolio and order entry."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Header, Static

from ..client import IBKRClient
from ..config import AppConfig, load_config
from ..core.models import QuoteRequest, Request, SearchRequest, SubmitRequest
from ..core.router import InputEvent, KeyKind
from ..core.state import AppState
from ..utils.exceptions import OrderRejected
from .keys import translate
from .render import (
    render_help,
    render_input,
    render_main,
    render_portfolio,
    render_status,
    render_watch_list,
)
from .theme import DEFAULT_THEME, Theme

logger = logging.getLogger(__name__)


def _reason(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class TradeTermApp(App):
    BINDINGS = [
        Binding("tab", "route('tab')", "Next", priority=True),
        Binding("shift+tab", "route('shift+tab')", "Prev", show=False, priority=True),
        Binding("enter", "route('enter')", "Select", priority=True),
        Binding("escape", "route('escape')", "Back", priority=True),
        Binding("up", "route('up')", "Up", show=False, priority=True),
        Binding("down", "route('down')", "Down", show=False, priority=True),
        Binding("backspace", "route('backspace')", "Delete", show=False, priority=True),
        Binding("ctrl+h", "route('ctrl+h')", "Delete", show=False, priority=True),
        Binding("ctrl+r", "refresh", "Refresh"),
    ]

    CSS = """
    Screen {
        layout: vertical;
    }

    #top {
        height: 3;
    }

    #input {
        width: 65%;
    }

    #help {
        width: 35%;
    }

    #body {
        height: 1fr;
    }

    #sidebar {
        width: 20%;
    }

    #watch-list {
        height: 1fr;
    }

    #portfolio {
        height: 4fr;
    }

    #main {
        width: 80%;
        height: 1fr;
    }

    #status {
        height: 1;
        padding: 0 1;
    }
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        client: IBKRClient | None = None,
        state: AppState | None = None,
        palette: Theme = DEFAULT_THEME,
    ) -> None:
        super().__init__()
        self._app_config = config or load_config()
        self._broker = client or IBKRClient(self._app_config)
        self._app_state = state or AppState(self._app_config.watch_list)
        self._colors = palette
        self._request_tasks: set[asyncio.Task] = set()
        self._regions: dict[str, Static] = {}

    @property
    def app_state(self) -> AppState:
        return self._app_state

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Horizontal(
            Static("", id="input"),
            Static("", id="help"),
            id="top",
        )
        yield Horizontal(
            Vertical(
                Static("", id="watch-list"),
                Static("", id="portfolio"),
                id="sidebar",
            ),
            Static("", id="main"),
            id="body",
        )
        yield Static("Starting...", id="status")
        yield Footer()

    async def on_mount(self) -> None:
        for name in ("input", "help", "watch-list", "portfolio", "main", "status"):
            self._regions[name] = self.query_one(f"#{name}", Static)
        self._render_state()
        self._spawn_request(self._load_accounts(initial=True))
        self._spawn_request(self._load_portfolio())

    async def on_unmount(self) -> None:
        for task in list(self._request_tasks):
            task.cancel()
        self._regions = {}
        await self._broker.disconnect()

    # region Input
    def action_route(self, key: str) -> None:
        event = translate(key)
        if event is not None:
            self._route_event(event)

    def on_key(self, event: events.Key) -> None:
        translated = translate(event.key, event.character)
        # Named keys arrive through the priority bindings.
        if translated is None or translated.kind is not KeyKind.CHAR:
            return
        event.stop()
        self._route_event(translated)

    async def action_refresh(self) -> None:
        self._spawn_request(self._load_accounts(initial=False))
        self._spawn_request(self._load_portfolio())

    def _route_event(self, event: InputEvent) -> None:
        request = self._app_state.handle(event)
        if self._app_state.should_quit:
            self.exit()
            return
        if request is not None:
            self._start_request(request)
        self._render_state()
    # endregion

    # region Requests
    def _start_request(self, request: Request) -> None:
        if isinstance(request, SearchRequest):
            self._spawn_request(self._run_search(request))
        elif isinstance(request, QuoteRequest):
            self._spawn_request(self._run_quote(request))
        elif isinstance(request, SubmitRequest):
            self._spawn_request(self._run_submit(request))

    def _spawn_request(self, coro: Coroutine) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            return
        task = loop.create_task(coro)
        self._request_tasks.add(task)
        task.add_done_callback(self._request_tasks.discard)

    async def _run_search(self, request: SearchRequest) -> None:
        try:
            results = await self._broker.search(request.query)
        except Exception as exc:  # pragma: no cover - UI surface
            logger.warning("Search %r failed: %s", request.query, exc)
            self._app_state.search_failed(request.seq, _reason(exc))
        else:
            self._app_state.replace_search_results(request.seq, results)
        self._render_state()

    async def _run_quote(self, request: QuoteRequest) -> None:
        try:
            quote = await self._broker.fetch_quote(request.symbol)
        except Exception as exc:  # pragma: no cover - UI surface
            logger.warning("Quote %s failed: %s", request.symbol, exc)
            self._app_state.quote_failed(request.seq, _reason(exc))
        else:
            self._app_state.replace_quote(request.seq, quote)
        self._render_state()

    async def _run_submit(self, request: SubmitRequest) -> None:
        try:
            receipt = await self._broker.submit_order(request.draft)
        except OrderRejected as exc:
            self._app_state.order_failed(request.ticket, exc.reason)
        except Exception as exc:  # pragma: no cover - UI surface
            logger.exception("Order ticket %s errored", request.ticket)
            self._app_state.order_failed(request.ticket, _reason(exc))
        else:
            if self._app_state.order_submitted(request.ticket, receipt):
                self._spawn_request(self._load_portfolio())
        self._render_state()

    async def _load_accounts(self, *, initial: bool) -> None:
        try:
            accounts = await self._broker.fetch_accounts()
        except Exception as exc:  # pragma: no cover - UI surface
            logger.warning("Account load failed: %s", exc)
            self._app_state.accounts_failed(_reason(exc), initial=initial)
        else:
            self._app_state.replace_accounts(accounts)
        self._render_state()

    async def _load_portfolio(self) -> None:
        try:
            holdings = await self._broker.fetch_portfolio()
        except Exception as exc:  # pragma: no cover - UI surface
            logger.warning("Portfolio load failed: %s", exc)
            self._app_state.portfolio_failed(_reason(exc))
        else:
            self._app_state.replace_portfolio(holdings)
        self._render_state()
    # endregion

    def _render_state(self) -> None:
        if not self._regions:
            return
        state, colors = self._app_state, self._colors
        self._regions["input"].update(render_input(state, colors))
        self._regions["help"].update(render_help(state, colors))
        self._regions["watch-list"].update(render_watch_list(state, colors))
        self._regions["portfolio"].update(render_portfolio(state, colors))
        self._regions["main"].update(render_main(state, colors))
        self._regions["status"].update(render_status(state, colors))
