"""Order entry workflow: Quantity -> Submit, with single-flight submission.

The workflow owns the draft order outright. Nothing else holds a reference to
a mutable draft; callers only ever see frozen `DraftOrder` values.

Transitions never raise. Invalid input is dropped silently, a confirm that
cannot advance is a no-op, and outcomes for drafts that no longer exist are
ignored so a late broker response cannot resurrect a cancelled form.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace

from .models import DraftOrder, OrderAction, OrderFormState, OrderType

logger = logging.getLogger(__name__)


def _parse_quantity(value: str) -> int | None:
    if not value:
        return None
    if not value.isdigit():
        return None
    try:
        parsed = int(value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


class OrderWorkflow:
    def __init__(self) -> None:
        self._state = OrderFormState.QUANTITY
        self._draft: DraftOrder | None = None
        self._in_flight: int | None = None
        self._error: str | None = None
        self._draft_ids = itertools.count(1)

    @property
    def state(self) -> OrderFormState:
        return self._state

    @property
    def draft(self) -> DraftOrder | None:
        return self._draft

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def submitting(self) -> bool:
        return self._in_flight is not None

    def begin(
        self,
        action: OrderAction,
        order_type: OrderType = OrderType.MARKET,
        symbol: str | None = None,
    ) -> DraftOrder:
        self.reset()
        self._draft = DraftOrder(
            draft_id=next(self._draft_ids),
            action=action,
            order_type=order_type,
            symbol=symbol,
        )
        return self._draft

    def reset(self) -> None:
        self._state = OrderFormState.QUANTITY
        self._draft = None
        self._in_flight = None
        self._error = None

    def cancel(self) -> DraftOrder | None:
        discarded = self._draft
        if discarded is not None and self._in_flight is not None:
            logger.info("Discarding in-flight draft #%s", discarded.draft_id)
        self.reset()
        return discarded

    def accepts(self, char: str) -> bool:
        """Only single digits are accepted while a quantity is being entered."""
        if self._state is not OrderFormState.QUANTITY or self._draft is None:
            return False
        return len(char) == 1 and char in "0123456789"

    def confirm_quantity(self, entry: str) -> bool:
        if self._state is not OrderFormState.QUANTITY or self._draft is None:
            return False
        qty = _parse_quantity(entry)
        if qty is None:
            return False
        self._draft = replace(self._draft, quantity=qty)
        self._state = OrderFormState.SUBMIT
        return True

    def request_submit(self) -> tuple[int, DraftOrder] | None:
        """Hand out the draft for submission unless one is already in flight."""
        if self._state is not OrderFormState.SUBMIT or self._draft is None:
            return None
        if self._in_flight is not None:
            return None
        self._in_flight = self._draft.draft_id
        self._error = None
        return self._in_flight, self._draft

    def on_submit_result(self, ticket: int, ok: bool, reason: str | None = None) -> bool:
        """Apply a broker outcome. Returns False when the ticket is stale."""
        if self._draft is None or self._in_flight != ticket:
            logger.debug("Ignoring outcome for stale order ticket %s", ticket)
            return False
        if ok:
            self.reset()
            return True
        self._in_flight = None
        self._error = reason or "order rejected"
        return True
