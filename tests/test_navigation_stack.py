from __future__ import annotations

import itertools

import pytest

from tradeterm.core.models import HOME_ROUTE, Block, Route, Screen
from tradeterm.core.navigation import NavigationStack


def test_new_stack_starts_on_home() -> None:
    nav = NavigationStack()

    assert len(nav) == 1
    assert nav.current() == HOME_ROUTE


def test_push_then_pop_returns_to_home() -> None:
    nav = NavigationStack()
    nav.push(Screen.SEARCH, Block.INPUT, Block.INPUT)

    assert nav.current().screen is Screen.SEARCH

    popped = nav.pop()

    assert popped == Route(Screen.SEARCH, Block.INPUT, Block.INPUT)
    assert list(nav) == [HOME_ROUTE]
    assert nav.current().screen is Screen.HOME


def test_pop_on_single_route_is_noop() -> None:
    nav = NavigationStack()

    assert nav.pop() == HOME_ROUTE
    assert nav.pop() == HOME_ROUTE
    assert len(nav) == 1


@pytest.mark.parametrize("pushes", [0, 1, 3])
def test_stack_never_underflows(pushes: int) -> None:
    nav = NavigationStack()
    for _ in range(pushes):
        nav.push(Screen.TICKER_DETAIL, Block.TICKER_DETAIL, Block.TICKER_DETAIL)
    for _ in itertools.repeat(None, pushes + 5):
        nav.pop()
        assert len(nav) >= 1
        assert nav.current() is not None
    assert nav.current() == HOME_ROUTE


def test_focus_changes_edit_top_without_new_history() -> None:
    nav = NavigationStack()
    nav.push(Screen.SEARCH, Block.SEARCH_RESULTS, Block.SEARCH_RESULTS)

    nav.set_hovered(Block.WATCH_LIST)
    nav.set_active(Block.WATCH_LIST)

    assert len(nav) == 2
    assert nav.current() == Route(Screen.SEARCH, Block.WATCH_LIST, Block.WATCH_LIST)
    assert nav.pop().screen is Screen.SEARCH
    assert nav.current() == HOME_ROUTE


def test_focus_edit_with_block_foreign_to_screen_is_ignored() -> None:
    nav = NavigationStack()
    nav.push(Screen.ORDER_FORM, Block.INPUT, Block.INPUT)

    nav.set_active(Block.WATCH_LIST)
    nav.set_hovered(Block.PORTFOLIO)

    assert nav.current() == Route(Screen.ORDER_FORM, Block.INPUT, Block.INPUT)


def test_malformed_push_falls_back_to_home_route() -> None:
    nav = NavigationStack()
    nav.push(Screen.SEARCH, Block.INPUT, Block.INPUT)

    route = nav.push(Screen.ORDER_FORM, Block.WATCH_LIST, Block.WATCH_LIST)

    assert route == HOME_ROUTE
    assert nav.current() == HOME_ROUTE
    assert len(nav) == 3


def test_replace_top_keeps_history_depth() -> None:
    nav = NavigationStack()
    nav.push(Screen.TICKER_DETAIL, Block.TICKER_DETAIL, Block.TICKER_DETAIL)

    nav.replace_top(Screen.TICKER_DETAIL, Block.TICKER_DETAIL, Block.WATCH_LIST)

    assert len(nav) == 2
    assert nav.current().hovered_block is Block.WATCH_LIST


def test_replace_top_never_removes_base_route() -> None:
    nav = NavigationStack()

    nav.replace_top(Screen.SEARCH, Block.SEARCH_RESULTS, Block.SEARCH_RESULTS)

    assert len(nav) == 2
    assert list(nav)[0] == HOME_ROUTE
