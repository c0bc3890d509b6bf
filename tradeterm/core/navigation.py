"""Route history with in-place focus edits on the top entry."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterator

from .models import HOME_ROUTE, Block, Route, Screen, blocks_for

logger = logging.getLogger(__name__)


class NavigationStack:
    """Ordered history of routes. Never empty: the base route cannot be popped."""

    def __init__(self, base: Route = HOME_ROUTE) -> None:
        self._routes: list[Route] = [base if base.is_valid() else HOME_ROUTE]

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(tuple(self._routes))

    def current(self) -> Route:
        return self._routes[-1]

    def push(self, screen: Screen, active_block: Block, hovered_block: Block) -> Route:
        route = Route(screen, active_block, hovered_block)
        if not route.is_valid():
            logger.warning("Malformed route %s; falling back to home", route)
            route = HOME_ROUTE
        self._routes.append(route)
        return route

    def pop(self) -> Route:
        if len(self._routes) == 1:
            return self._routes[0]
        return self._routes.pop()

    def replace_top(self, screen: Screen, active_block: Block, hovered_block: Block) -> Route:
        if len(self._routes) == 1:
            return self.push(screen, active_block, hovered_block)
        self._routes.pop()
        return self.push(screen, active_block, hovered_block)

    def set_active(self, block: Block) -> None:
        self._set_top(active_block=block)

    def set_hovered(self, block: Block) -> None:
        self._set_top(hovered_block=block)

    def _set_top(self, **changes: Block) -> None:
        top = self._routes[-1]
        if any(block not in blocks_for(top.screen) for block in changes.values()):
            return
        self._routes[-1] = replace(top, **changes)
