"""Thin async wrapper over ib_insync for search, quotes, accounts and orders.

Every public coroutine either returns plain `tradeterm.core` values or raises.
Callers (the Textual host) translate exceptions into failure outcomes.
"""
from __future__ import annotations

import asyncio
import logging
import math
import time

from ib_insync import IB, AccountValue, MarketOrder, Order, PortfolioItem, Stock, Ticker, Trade

from .config import AppConfig
from .core.models import (
    Account,
    DraftOrder,
    Holding,
    OrderReceipt,
    OrderType,
    Quote,
    TickerSummary,
)
from .utils.exceptions import BrokerConnectionError, OrderRejected

logger = logging.getLogger(__name__)

_SEARCH_SEC_TYPES = ("STK", "ETF", "IND")
_PENDING_STATES = ("PendingSubmit", "ApiPending", "")
_REJECTED_STATES = ("Cancelled", "ApiCancelled", "Inactive")
_ORDER_POLL_SEC = 0.1
# 165: 13/26/52 week range, 258: fundamental ratios, 456: dividends
_QUOTE_GENERIC_TICKS = "165,258,456"
_QUOTE_WAIT_SEC = 2.0


class IBKRClient:
    def __init__(self, config: AppConfig, ib: IB | None = None) -> None:
        self._config = config
        self._ib = ib if ib is not None else IB()
        self._lock = asyncio.Lock()
        self._connect_lock = asyncio.Lock()
        self._account_updates_started = False

    @property
    def is_connected(self) -> bool:
        return self._ib.isConnected()

    async def connect(self) -> None:
        if self._ib.isConnected():
            return
        async with self._connect_lock:
            if self._ib.isConnected():
                return
            await self._connect()

    async def _connect(self) -> None:
        logger.info("Connecting to %s:%s (client %s)", self._config.host, self._config.port, self._config.client_id)
        try:
            await self._ib.connectAsync(
                self._config.host,
                self._config.port,
                clientId=self._config.client_id,
                timeout=self._config.connect_timeout_sec,
            )
        except (OSError, asyncio.TimeoutError) as exc:
            raise BrokerConnectionError(f"connect failed: {exc or type(exc).__name__}") from exc

    async def disconnect(self) -> None:
        if self._ib.isConnected():
            try:
                self._ib.disconnect()
            except OSError:
                # Avoid noisy shutdown if the socket is already closed.
                pass
        self._account_updates_started = False

    async def search(self, query: str) -> list[TickerSummary]:
        async with self._lock:
            await self.connect()
            descriptions = await self._ib.reqMatchingSymbolsAsync(query) or []
        results: list[TickerSummary] = []
        seen: set[str] = set()
        for desc in descriptions:
            summary = _summary_from_contract(getattr(desc, "contract", None))
            if summary is None or summary.symbol in seen:
                continue
            seen.add(summary.symbol)
            results.append(summary)
        return results

    async def fetch_accounts(self) -> list[Account]:
        async with self._lock:
            await self.connect()
            account_ids = [self._config.account] if self._config.account else list(self._ib.managedAccounts())
            values = await self._ib.accountSummaryAsync()
        return [_account_from_values(account_id, values) for account_id in account_ids]

    async def fetch_portfolio(self) -> list[Holding]:
        """Fetch a snapshot of portfolio items (filtered by account if provided)."""
        async with self._lock:
            await self._ensure_account_updates()
            account = self._config.account or ""
            return [_holding_from_item(item) for item in self._ib.portfolio(account)]

    async def fetch_quote(self, symbol: str) -> Quote:
        async with self._lock:
            await self.connect()
            qualified = await self._ib.qualifyContractsAsync(Stock(symbol, "SMART", "USD"))
            if not qualified:
                raise LookupError(f"unknown symbol {symbol}")
            contract = qualified[0]
            # Delayed data fallback when the account lacks a live subscription.
            self._ib.reqMarketDataType(3)
            ticker = self._ib.reqMktData(contract, _QUOTE_GENERIC_TICKS, False, False)
            try:
                await _await_quote(ticker)
            finally:
                self._ib.cancelMktData(contract)
        if not _has_price(ticker):
            raise LookupError(f"no quote for {symbol}")
        return _quote_from_ticker(symbol, ticker)

    async def submit_order(self, draft: DraftOrder) -> OrderReceipt:
        if not draft.symbol or not draft.quantity:
            raise OrderRejected("incomplete order")
        async with self._lock:
            await self.connect()
            qualified = await self._ib.qualifyContractsAsync(Stock(draft.symbol, "SMART", "USD"))
            if not qualified:
                raise OrderRejected(f"unknown symbol {draft.symbol}")
            order = _order_for_draft(draft)
            if self._config.account:
                order.account = self._config.account
            logger.info("Placing %s", draft.describe())
            trade = self._ib.placeOrder(qualified[0], order)
        status = await self._await_status(trade)
        order_id = int(getattr(trade.order, "orderId", 0) or 0)
        if status in _REJECTED_STATES:
            raise OrderRejected(_trade_reason(trade) or status.lower(), order_id=order_id)
        return OrderReceipt(order_id=order_id, status=status or "PendingSubmit")

    async def _await_status(self, trade: Trade) -> str:
        deadline = time.monotonic() + self._config.order_timeout_sec
        status = trade.orderStatus.status
        while status in _PENDING_STATES and time.monotonic() < deadline:
            await asyncio.sleep(_ORDER_POLL_SEC)
            status = trade.orderStatus.status
        return status

    async def _ensure_account_updates(self) -> None:
        if self._account_updates_started:
            return
        await self.connect()
        account = self._config.account or ""
        await self._ib.reqAccountUpdatesAsync(account)
        self._account_updates_started = True


def _safe_num(value: float | None) -> float | None:
    if value is None:
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(num) or not math.isfinite(num):
        return None
    return num


def _summary_from_contract(contract) -> TickerSummary | None:
    if contract is None:
        return None
    symbol = str(getattr(contract, "symbol", "") or "").strip().upper()
    sec_type = str(getattr(contract, "secType", "") or "").strip().upper()
    if not symbol or sec_type not in _SEARCH_SEC_TYPES:
        return None
    return TickerSummary(
        symbol=symbol,
        sec_type=sec_type,
        exchange=str(getattr(contract, "primaryExchange", "") or getattr(contract, "exchange", "") or ""),
        currency=str(getattr(contract, "currency", "") or "USD"),
        description=str(getattr(contract, "description", "") or ""),
    )


def _pick_account_value(values: list[AccountValue]) -> AccountValue | None:
    for currency in ("BASE", "USD"):
        for value in values:
            if value.currency == currency:
                return value
    return values[0] if values else None


def _account_from_values(account_id: str, values: list[AccountValue]) -> Account:
    mine = [v for v in values if v.account == account_id]

    def tagged(tag: str) -> AccountValue | None:
        return _pick_account_value([v for v in mine if v.tag == tag])

    net_liq = tagged("NetLiquidation")
    gross = tagged("GrossPositionValue")
    account_type = tagged("AccountType")
    return Account(
        account_id=account_id,
        account_type=account_type.value if account_type else "",
        currency=net_liq.currency if net_liq else None,
        net_liquidation=_safe_num(net_liq.value) if net_liq else None,
        gross_position_value=_safe_num(gross.value) if gross else None,
    )


def _holding_from_item(item: PortfolioItem) -> Holding:
    contract = item.contract
    return Holding(
        symbol=str(contract.symbol or ""),
        sec_type=str(contract.secType or ""),
        position=float(item.position or 0.0),
        market_price=_safe_num(item.marketPrice),
        market_value=_safe_num(item.marketValue),
        average_cost=_safe_num(item.averageCost),
        unrealized_pnl=_safe_num(item.unrealizedPNL),
    )


def _has_price(ticker: Ticker) -> bool:
    return any(
        _safe_num(getattr(ticker, field, None)) is not None
        for field in ("bid", "ask", "last", "close")
    )


async def _await_quote(ticker: Ticker, timeout: float = _QUOTE_WAIT_SEC) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if _has_price(ticker) and _safe_num(getattr(ticker, "high52week", None)) is not None:
            return
        await asyncio.sleep(_ORDER_POLL_SEC)


def _ratio(ticker: Ticker, key: str) -> float | None:
    ratios = getattr(ticker, "fundamentalRatios", None)
    if ratios is None:
        return None
    return _safe_num(getattr(ratios, key, None))


def _quote_from_ticker(symbol: str, ticker: Ticker) -> Quote:
    contract = ticker.contract
    dividends = getattr(ticker, "dividends", None)
    return Quote(
        symbol=symbol,
        exchange=str(getattr(contract, "primaryExchange", "") or getattr(contract, "exchange", "") or ""),
        currency=str(getattr(contract, "currency", "") or "USD"),
        bid=_safe_num(ticker.bid),
        ask=_safe_num(ticker.ask),
        last=_safe_num(ticker.last),
        open=_safe_num(ticker.open),
        high=_safe_num(ticker.high),
        low=_safe_num(ticker.low),
        close=_safe_num(ticker.close),
        volume=_safe_num(ticker.volume),
        time=ticker.time,
        high_52w=_safe_num(getattr(ticker, "high52week", None)),
        low_52w=_safe_num(getattr(ticker, "low52week", None)),
        eps=_ratio(ticker, "TTMEPSXCLX"),
        pe=_ratio(ticker, "PEEXCLXOR"),
        beta=_ratio(ticker, "BETA"),
        dividend=_safe_num(getattr(dividends, "past12Months", None)),
        ex_dividend_date=getattr(dividends, "nextDate", None),
    )


def _order_for_draft(draft: DraftOrder) -> Order:
    if draft.order_type is OrderType.MARKET:
        return MarketOrder(draft.action.value, draft.quantity)
    return Order(action=draft.action.value, totalQuantity=draft.quantity, orderType=draft.order_type.value)


def _trade_reason(trade: Trade) -> str | None:
    for entry in reversed(list(getattr(trade, "log", None) or [])):
        message = str(getattr(entry, "message", "") or "").strip()
        if message:
            return message
    return None
