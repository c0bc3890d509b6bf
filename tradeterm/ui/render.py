"""Pure projection of `AppState` into rich renderables.

Nothing here mutates state; each function reads the aggregator's view
properties and returns a `Text` or `Panel` for one region of the screen.
"""

from __future__ import annotations

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.models import Block, OrderFormState, Screen
from ..core.state import AppState
from .common import _fmt_date, _fmt_money, _fmt_qty, _fmt_quote, _fmt_time, _fmt_volume
from .theme import DEFAULT_THEME, Theme, get_color

_HELP_BY_SCREEN = {
    Screen.HOME: "Tab move  Enter select  / search  q quit",
    Screen.SEARCH: "Tab move  Enter open  j/k select  Esc back",
    Screen.TICKER_DETAIL: "b/s market  B/S on close  Esc back",
    Screen.ORDER_FORM: "Enter confirm  Esc cancel",
    Screen.ERROR: "Esc back",
}


def _highlight(state: AppState, block: Block) -> tuple[bool, bool]:
    return state.is_active(block), state.is_hovered(block)


def _panel(body, title: str, state: AppState, block: Block, theme: Theme) -> Panel:
    style = get_color(_highlight(state, block), theme)
    return Panel(
        body,
        title=Text(title, style=style),
        title_align="left",
        border_style=style,
        style=theme.text,
    )


def screen_to_draw(state: AppState) -> Screen:
    screen = state.current_route().screen
    if screen is Screen.TICKER_DETAIL and state.quote is None:
        return Screen.HOME
    if screen not in _MAIN_RENDERERS:
        return Screen.HOME
    return screen


def input_title(state: AppState) -> str:
    if state.current_route().screen is not Screen.ORDER_FORM:
        return "Search"
    if state.order_state is OrderFormState.QUANTITY:
        return "No. of shares"
    return "Preview Order"


def render_input(state: AppState, theme: Theme = DEFAULT_THEME) -> Panel:
    return _panel(Text(state.input_text), input_title(state), state, Block.INPUT, theme)


def render_help(state: AppState, theme: Theme = DEFAULT_THEME) -> Panel:
    hint = _HELP_BY_SCREEN.get(state.current_route().screen, "")
    return _panel(Text(hint, style="dim"), "Help", state, Block.INPUT, theme)


def _list_body(symbols: list[str], selected: int | None, state: AppState, block: Block, theme: Theme) -> Text:
    text = Text()
    active = state.is_active(block)
    for idx, symbol in enumerate(symbols):
        if idx:
            text.append("\n")
        if idx == selected:
            style = theme.highlight if active else f"bold {get_color(_highlight(state, block), theme)}"
            text.append(f"> {symbol}", style=style)
        else:
            text.append(f"  {symbol}")
    return text


def render_watch_list(state: AppState, theme: Theme = DEFAULT_THEME) -> Panel:
    symbols = [item.symbol for item in state.watch_list.items]
    body = _list_body(symbols, state.selected_index(Block.WATCH_LIST), state, Block.WATCH_LIST, theme)
    return _panel(body, "Watch List", state, Block.WATCH_LIST, theme)


def render_portfolio(state: AppState, theme: Theme = DEFAULT_THEME) -> Panel:
    snapshot = state.portfolio
    if snapshot.error:
        body = Text(snapshot.error, style=theme.error)
    else:
        symbols = [f"{item.symbol} {_fmt_qty(item.position)}" for item in snapshot.items]
        body = _list_body(symbols, state.selected_index(Block.PORTFOLIO), state, Block.PORTFOLIO, theme)
    return _panel(body, "Portfolio", state, Block.PORTFOLIO, theme)


def render_home(state: AppState, theme: Theme = DEFAULT_THEME) -> Panel:
    text = Text()
    text.append("Accounts\n\n", style=theme.banner)
    snapshot = state.accounts
    if snapshot.error:
        text.append(snapshot.error, style=theme.error)
    for account in snapshot.items:
        text.append(f" ➤ {account.account_id}\n", style=theme.text)
        if account.net_liquidation is not None:
            amount = _fmt_money(account.net_liquidation)
            if account.currency:
                amount = f"{amount} {account.currency}"
            text.append(f"    Account Value: {amount}\n")
        if account.gross_position_value is not None:
            text.append(f"    Net Market Value: {_fmt_money(account.gross_position_value)}\n")
        if account.account_type:
            text.append(f"    {account.account_type}\n")
        text.append("\n")
    return _panel(text, "Stats", state, Block.HOME, theme)


def render_search_results(state: AppState, theme: Theme = DEFAULT_THEME) -> Panel:
    snapshot = state.search_results
    if snapshot.error:
        body = Text(snapshot.error, style=theme.error)
    elif not snapshot.items:
        body = Text("No results", style="dim")
    else:
        labels = []
        for item in snapshot.items:
            label = item.symbol
            if item.description:
                label = f"{label}  {item.description}"
            if item.exchange:
                label = f"{label}  [{item.exchange}]"
            labels.append(label)
        body = _list_body(labels, state.selected_index(Block.SEARCH_RESULTS), state, Block.SEARCH_RESULTS, theme)
    return _panel(body, "Search Results", state, Block.SEARCH_RESULTS, theme)


def render_ticker_detail(state: AppState, theme: Theme = DEFAULT_THEME) -> Panel:
    quote = state.quote
    if quote is None:
        return render_home(state, theme)
    table = Table.grid(expand=True, padding=(0, 2))
    for _ in range(3):
        table.add_column(ratio=1)
    table.add_row(f"exch ➤ {quote.exchange or 'n/a'}", f"date ➤ {_fmt_time(quote.time)}", "")
    table.add_row(
        f"bid  |  ${_fmt_quote(quote.bid)}",
        f"ask  |  ${_fmt_quote(quote.ask)}",
        f"last  |  ${_fmt_quote(quote.last)}",
    )
    table.add_row(
        f"open  |  ${_fmt_quote(quote.open)}",
        f"high  |  ${_fmt_quote(quote.high)}",
        f"low  |  ${_fmt_quote(quote.low)}",
    )
    table.add_row(f"close  |  ${_fmt_quote(quote.close)}", f"volume  |  {_fmt_volume(quote.volume)}", "")
    table.add_row(
        f"eps  |  {_fmt_quote(quote.eps)}",
        f"pe  |  {_fmt_quote(quote.pe)}",
        f"beta  |  {_fmt_quote(quote.beta)}",
    )
    table.add_row(f"high 52  |  ${_fmt_quote(quote.high_52w)}", f"low 52  |  ${_fmt_quote(quote.low_52w)}", "")
    table.add_row(
        f"dividend  |  ${_fmt_quote(quote.dividend)}",
        f"ex dividend date ➤ {_fmt_date(quote.ex_dividend_date)}",
        "",
    )
    return _panel(table, quote.symbol, state, Block.TICKER_DETAIL, theme)


def render_order_form(state: AppState, theme: Theme = DEFAULT_THEME) -> Panel:
    draft = state.draft
    lines: list[Text] = []
    if draft is not None:
        lines.append(Text.assemble("Order Action ➤ ", (draft.action.value, "bold red")))
        lines.append(Text.assemble("Symbol ➤ ", (draft.symbol or "Error", "bold red")))
        lines.append(Text.assemble("Order Type ➤ ", (draft.order_type.label, "bold")))
        lines.append(Text(""))
    if state.order_state is OrderFormState.QUANTITY:
        lines.append(Text("1. Input number of shares"))
    elif draft is not None:
        lines.append(Text(f"1. Number of shares: {draft.quantity}"))
        if state.submitting:
            lines.append(Text("2. Submitting...", style="yellow"))
        else:
            lines.append(Text("2. Yay! Press Enter to Submit"))
    if state.order_error:
        lines.append(Text(f"Error: {state.order_error}", style=theme.error))
    return _panel(Group(*lines), "Order Form", state, Block.ORDER_FORM, theme)


def render_error(state: AppState, theme: Theme = DEFAULT_THEME) -> Panel:
    body = Text("Esc to go back.", style=theme.banner)
    if state.status.is_error and state.status.text:
        body.append(f"\n\n{state.status.text}", style=theme.error)
    return _panel(body, "Something went wrong", state, Block.HOME, theme)


_MAIN_RENDERERS = {
    Screen.HOME: render_home,
    Screen.SEARCH: render_search_results,
    Screen.TICKER_DETAIL: render_ticker_detail,
    Screen.ORDER_FORM: render_order_form,
    Screen.ERROR: render_error,
}


def render_main(state: AppState, theme: Theme = DEFAULT_THEME) -> Panel:
    return _MAIN_RENDERERS[screen_to_draw(state)](state, theme)


def render_status(state: AppState, theme: Theme = DEFAULT_THEME) -> Text:
    route = state.current_route()
    base = f"{route.screen.value} | focus: {route.active_block.value}"
    if not state.status.text:
        return Text(base, style="dim")
    style = theme.error if state.status.is_error else "dim"
    return Text(f"{base} | {state.status.text}", style=style)
