"""Closed value types shared by the interaction core.

Everything here is an immutable value: routes, snapshots, drafts. The mutable
owners live in `navigation`, `order_form` and `state`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum


class Screen(str, Enum):
    HOME = "home"
    SEARCH = "search"
    TICKER_DETAIL = "ticker_detail"
    ORDER_FORM = "order_form"
    ERROR = "error"


class Block(str, Enum):
    HOME = "home"
    WATCH_LIST = "watch_list"
    PORTFOLIO = "portfolio"
    INPUT = "input"
    SEARCH_RESULTS = "search_results"
    TICKER_DETAIL = "ticker_detail"
    ORDER_FORM = "order_form"


class OrderFormState(str, Enum):
    QUANTITY = "quantity"
    SUBMIT = "submit"


class OrderAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    MARKET = "MKT"
    MARKET_ON_CLOSE = "MOC"

    @property
    def label(self) -> str:
        return "MARKET" if self is OrderType.MARKET else "MARKET ON CLOSE"


# First entry is the screen's default block; list order is the hover cycle.
SCREEN_BLOCKS: dict[Screen, tuple[Block, ...]] = {
    Screen.HOME: (Block.HOME, Block.WATCH_LIST, Block.PORTFOLIO, Block.INPUT),
    Screen.SEARCH: (Block.SEARCH_RESULTS, Block.WATCH_LIST, Block.PORTFOLIO, Block.INPUT),
    Screen.TICKER_DETAIL: (Block.TICKER_DETAIL, Block.WATCH_LIST, Block.PORTFOLIO, Block.INPUT),
    Screen.ORDER_FORM: (Block.ORDER_FORM, Block.INPUT),
    Screen.ERROR: (Block.HOME,),
}

LIST_BLOCKS = (Block.WATCH_LIST, Block.PORTFOLIO, Block.SEARCH_RESULTS)


def blocks_for(screen: Screen) -> tuple[Block, ...]:
    return SCREEN_BLOCKS.get(screen, ())


@dataclass(frozen=True)
class Route:
    screen: Screen
    active_block: Block
    hovered_block: Block

    def is_valid(self) -> bool:
        valid = blocks_for(self.screen)
        return self.active_block in valid and self.hovered_block in valid


HOME_ROUTE = Route(Screen.HOME, Block.HOME, Block.HOME)


@dataclass(frozen=True)
class DraftOrder:
    draft_id: int
    action: OrderAction
    order_type: OrderType
    symbol: str | None = None
    quantity: int | None = None

    def describe(self) -> str:
        qty = self.quantity if self.quantity is not None else "?"
        return f"{self.action.value} {qty} {self.symbol or '?'} {self.order_type.value}"


@dataclass(frozen=True)
class Account:
    account_id: str
    account_type: str = ""
    currency: str | None = None
    net_liquidation: float | None = None
    gross_position_value: float | None = None


@dataclass(frozen=True)
class TickerSummary:
    symbol: str
    sec_type: str = "STK"
    exchange: str = ""
    currency: str = "USD"
    description: str = ""


@dataclass(frozen=True)
class Holding:
    symbol: str
    sec_type: str
    position: float
    market_price: float | None = None
    market_value: float | None = None
    average_cost: float | None = None
    unrealized_pnl: float | None = None


@dataclass(frozen=True)
class Quote:
    symbol: str
    exchange: str = ""
    currency: str = "USD"
    bid: float | None = None
    ask: float | None = None
    last: float | None = None
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: float | None = None
    time: datetime | None = None
    high_52w: float | None = None
    low_52w: float | None = None
    eps: float | None = None
    pe: float | None = None
    beta: float | None = None
    dividend: float | None = None
    ex_dividend_date: date | None = None


@dataclass(frozen=True)
class OrderReceipt:
    order_id: int
    status: str


@dataclass(frozen=True)
class Snapshot:
    """Whole-value cache entry. Replaced, never mutated."""

    items: tuple = ()
    error: str | None = None
    updated_at: datetime | None = None

    @classmethod
    def of(cls, items, error: str | None = None) -> "Snapshot":
        return cls(tuple(items), error, datetime.now(timezone.utc))

    @classmethod
    def failed(cls, error: str) -> "Snapshot":
        return cls((), error, datetime.now(timezone.utc))

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Selection:
    index: int | None = None

    def clamp(self, length: int) -> "Selection":
        if length <= 0:
            return Selection(None)
        if self.index is None:
            return Selection(0)
        return Selection(min(max(self.index, 0), length - 1))

    def step(self, delta: int, length: int) -> "Selection":
        if length <= 0:
            return Selection(None)
        current = 0 if self.index is None else self.index
        return Selection(current + delta).clamp(length)


@dataclass(frozen=True)
class SearchRequest:
    seq: int
    query: str


@dataclass(frozen=True)
class QuoteRequest:
    seq: int
    symbol: str


@dataclass(frozen=True)
class SubmitRequest:
    ticket: int
    draft: DraftOrder


Request = SearchRequest | QuoteRequest | SubmitRequest

