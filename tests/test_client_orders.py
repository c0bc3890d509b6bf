from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date
from types import SimpleNamespace

import pytest
from ib_insync import AccountValue, Contract

from tradeterm.client import IBKRClient
from tradeterm.config import AppConfig
from tradeterm.core.models import DraftOrder, OrderAction, OrderType
from tradeterm.utils.exceptions import BrokerConnectionError, OrderRejected


def _ensure_event_loop() -> None:
    try:
        asyncio.get_event_loop()
    except RuntimeError:
        asyncio.set_event_loop(asyncio.new_event_loop())


def _config(**overrides) -> AppConfig:
    cfg = AppConfig(
        host="127.0.0.1",
        port=4001,
        client_id=301,
        account=None,
        watch_list=("SPY",),
        order_timeout_sec=0.3,
        connect_timeout_sec=1.0,
        log_level="INFO",
        log_file=None,
    )
    return replace(cfg, **overrides)


class _FakeIB:
    def __init__(self, *, status: str = "Submitted", log_messages: tuple[str, ...] = ()) -> None:
        self.connected = True
        self.status = status
        self.log_messages = log_messages
        self.placed: list[tuple[object, object]] = []
        self.market_data_types: list[int] = []
        self.account_update_requests: list[str] = []
        self.portfolio_items: list[object] = []
        self.summary: list[AccountValue] = []
        self.accounts: list[str] = []
        self.matches: list[object] = []
        self.ticker: object | None = None
        self.mkt_data_requests: list[tuple[object, str]] = []
        self.mkt_data_cancels: list[object] = []
        self.connect_calls = 0
        self.connect_delay: float | None = None
        self.qualify_ok = True

    def isConnected(self) -> bool:
        return self.connected

    async def connectAsync(self, host, port, clientId, timeout):
        self.connect_calls += 1
        if self.connect_delay is None:
            raise ConnectionRefusedError("refused")
        await asyncio.sleep(self.connect_delay)
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    async def qualifyContractsAsync(self, contract):
        return [contract] if self.qualify_ok else []

    def placeOrder(self, contract, order):
        self.placed.append((contract, order))
        order.orderId = 41 + len(self.placed)
        return SimpleNamespace(
            order=order,
            orderStatus=SimpleNamespace(status=self.status),
            log=[SimpleNamespace(message=m) for m in self.log_messages],
        )

    def managedAccounts(self):
        return list(self.accounts)

    async def accountSummaryAsync(self):
        return list(self.summary)

    async def reqAccountUpdatesAsync(self, account):
        self.account_update_requests.append(account)

    def portfolio(self, account=""):
        return list(self.portfolio_items)

    async def reqMatchingSymbolsAsync(self, query):
        return list(self.matches)

    def reqMarketDataType(self, md_type: int) -> None:
        self.market_data_types.append(int(md_type))

    def reqMktData(self, contract, genericTickList="", snapshot=False, regulatorySnapshot=False):
        self.mkt_data_requests.append((contract, genericTickList))
        return self.ticker

    def cancelMktData(self, contract) -> None:
        self.mkt_data_cancels.append(contract)


def _client(ib: _FakeIB, **overrides) -> IBKRClient:
    _ensure_event_loop()
    return IBKRClient(_config(**overrides), ib=ib)


def _draft(order_type: OrderType = OrderType.MARKET, qty: int | None = 10) -> DraftOrder:
    return DraftOrder(draft_id=1, action=OrderAction.BUY, order_type=order_type, symbol="AAPL", quantity=qty)


def test_market_order_is_placed_and_acknowledged() -> None:
    ib = _FakeIB(status="Submitted")

    receipt = asyncio.run(_client(ib).submit_order(_draft()))

    contract, order = ib.placed[0]
    assert contract.symbol == "AAPL"
    assert order.orderType == "MKT"
    assert order.action == "BUY"
    assert order.totalQuantity == 10
    assert receipt.order_id == 42
    assert receipt.status == "Submitted"


def test_market_on_close_order_type() -> None:
    ib = _FakeIB(status="PreSubmitted")

    receipt = asyncio.run(_client(ib, account="DU5").submit_order(_draft(OrderType.MARKET_ON_CLOSE, 3)))

    _contract, order = ib.placed[0]
    assert order.orderType == "MOC"
    assert order.totalQuantity == 3
    assert order.account == "DU5"
    assert receipt.status == "PreSubmitted"


def test_cancelled_order_raises_with_broker_reason() -> None:
    ib = _FakeIB(status="Cancelled", log_messages=("", "Insufficient buying power"))

    with pytest.raises(OrderRejected) as excinfo:
        asyncio.run(_client(ib).submit_order(_draft()))

    assert excinfo.value.reason == "Insufficient buying power"
    assert excinfo.value.order_id == 42


def test_pending_order_returns_after_timeout() -> None:
    ib = _FakeIB(status="PendingSubmit")

    receipt = asyncio.run(_client(ib, order_timeout_sec=0.15).submit_order(_draft()))

    assert receipt.status == "PendingSubmit"


def test_incomplete_or_unknown_order_is_rejected_before_placing() -> None:
    ib = _FakeIB()
    client = _client(ib)

    with pytest.raises(OrderRejected, match="incomplete"):
        asyncio.run(client.submit_order(_draft(qty=None)))

    ib.qualify_ok = False
    with pytest.raises(OrderRejected, match="unknown symbol"):
        asyncio.run(client.submit_order(_draft()))
    assert ib.placed == []


def test_connect_failure_is_wrapped() -> None:
    ib = _FakeIB()
    ib.connected = False

    with pytest.raises(BrokerConnectionError, match="connect failed"):
        asyncio.run(_client(ib).search("AAPL"))


def test_search_keeps_unique_stock_like_contracts() -> None:
    ib = _FakeIB()
    ib.matches = [
        SimpleNamespace(contract=Contract(symbol="aapl", secType="STK", primaryExchange="NASDAQ", currency="USD")),
        SimpleNamespace(contract=Contract(symbol="AAPL", secType="STK", exchange="SMART", currency="USD")),
        SimpleNamespace(contract=Contract(symbol="AAPL", secType="OPT")),
        SimpleNamespace(contract=None),
        SimpleNamespace(contract=Contract(symbol="SPX", secType="IND", exchange="CBOE", currency="USD")),
    ]

    results = asyncio.run(_client(ib).search("aapl"))

    assert [(r.symbol, r.sec_type, r.exchange) for r in results] == [
        ("AAPL", "STK", "NASDAQ"),
        ("SPX", "IND", "CBOE"),
    ]


def test_fetch_accounts_prefers_base_currency_values() -> None:
    ib = _FakeIB()
    ib.accounts = ["DU1"]
    ib.summary = [
        AccountValue("DU1", "NetLiquidation", "900.0", "USD", ""),
        AccountValue("DU1", "NetLiquidation", "1000.5", "BASE", ""),
        AccountValue("DU1", "GrossPositionValue", "250", "USD", ""),
        AccountValue("DU1", "AccountType", "INDIVIDUAL", "", ""),
        AccountValue("DU2", "NetLiquidation", "5", "USD", ""),
    ]

    accounts = asyncio.run(_client(ib).fetch_accounts())

    assert len(accounts) == 1
    account = accounts[0]
    assert account.account_id == "DU1"
    assert account.net_liquidation == 1000.5
    assert account.currency == "BASE"
    assert account.gross_position_value == 250.0
    assert account.account_type == "INDIVIDUAL"


def test_fetch_portfolio_subscribes_once() -> None:
    ib = _FakeIB()
    ib.portfolio_items = [
        SimpleNamespace(
            contract=SimpleNamespace(symbol="MSFT", secType="STK"),
            position=5.0,
            marketPrice=float("nan"),
            marketValue=2000.0,
            averageCost=380.0,
            unrealizedPNL=100.0,
        )
    ]
    client = _client(ib)

    first = asyncio.run(client.fetch_portfolio())
    asyncio.run(client.fetch_portfolio())

    assert ib.account_update_requests == [""]
    assert first[0].symbol == "MSFT"
    assert first[0].market_price is None
    assert first[0].market_value == 2000.0


def _quote_ticker(**overrides) -> SimpleNamespace:
    nan = float("nan")
    fields = dict(
        contract=SimpleNamespace(primaryExchange="NASDAQ", currency="USD"),
        bid=1.0,
        ask=1.1,
        last=nan,
        open=nan,
        high=1.2,
        low=0.9,
        close=1.05,
        volume=1200.0,
        time=None,
        high52week=2.5,
        low52week=0.75,
        fundamentalRatios=SimpleNamespace(TTMEPSXCLX=0.12, PEEXCLXOR=8.75, BETA=nan),
        dividends=SimpleNamespace(
            past12Months=0.04, next12Months=0.05, nextDate=date(2026, 11, 14), nextAmount=0.01
        ),
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_fetch_quote_uses_delayed_fallback_and_sanitizes_nan() -> None:
    ib = _FakeIB()
    ib.ticker = _quote_ticker()

    quote = asyncio.run(_client(ib).fetch_quote("ABC"))

    assert ib.market_data_types == [3]
    assert quote.symbol == "ABC"
    assert quote.exchange == "NASDAQ"
    assert quote.last is None
    assert quote.bid == 1.0


def test_fetch_quote_maps_range_ratios_and_dividends() -> None:
    ib = _FakeIB()
    ib.ticker = _quote_ticker()

    quote = asyncio.run(_client(ib).fetch_quote("ABC"))

    [(contract, generic_ticks)] = ib.mkt_data_requests
    assert set(generic_ticks.split(",")) >= {"165", "456"}
    assert ib.mkt_data_cancels == [contract]
    assert quote.high_52w == 2.5
    assert quote.low_52w == 0.75
    assert quote.eps == 0.12
    assert quote.pe == 8.75
    assert quote.beta is None
    assert quote.dividend == 0.04
    assert quote.ex_dividend_date == date(2026, 11, 14)


def test_fetch_quote_without_fundamentals_leaves_them_empty() -> None:
    ib = _FakeIB()
    ib.ticker = _quote_ticker(fundamentalRatios=None, dividends=None)

    quote = asyncio.run(_client(ib).fetch_quote("ABC"))

    assert quote.eps is None
    assert quote.dividend is None
    assert quote.ex_dividend_date is None
    assert quote.high_52w == 2.5


def test_fetch_quote_unknown_symbol() -> None:
    ib = _FakeIB()
    ib.qualify_ok = False

    with pytest.raises(LookupError):
        asyncio.run(_client(ib).fetch_quote("NOPE"))
    assert ib.mkt_data_requests == []


def test_concurrent_startup_loads_connect_once() -> None:
    ib = _FakeIB()
    ib.connected = False
    ib.connect_delay = 0.01
    ib.accounts = ["DU1"]
    client = _client(ib)

    async def startup():
        return await asyncio.gather(client.fetch_accounts(), client.fetch_portfolio(), client.search("A"))

    accounts, holdings, results = asyncio.run(startup())

    assert ib.connect_calls == 1
    assert [a.account_id for a in accounts] == ["DU1"]
    assert holdings == []
    assert results == []
