# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.optimistic",
#   "purpose": "Optimistic boolean toggles with rollback to the last confirmed value.",
#   "sections": [
#     {
#       "id": "notice",
#       "name": "Notice",
#       "anchor": "class-notice",
#       "kind": "class"
#     },
#     {
#       "id": "optimistictoggler",
#       "name": "OptimisticToggler",
#       "anchor": "class-optimistictoggler",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Optimistic boolean toggles with rollback.

``OptimisticToggler`` flips a flag on the engine's copy of an item before the
server confirms it, then restores the previous value if the mutation fails.
Readers of :attr:`PaginationEngine.state` only ever see the old or the new
value.

For every item with toggles in flight the toggler keeps one rollback target:
the last value the server confirmed (or the value before the first pending
toggle, while nothing has been confirmed yet). Races are resolved as follows:

- if the item id is no longer in the engine when the mutation settles,
  nothing is written back (the item is not re-added);
- a failure rolls back only when it belongs to the newest toggle of that
  item, and it restores the confirmed value rather than the value this
  particular toggle saw;
- a success records its value as confirmed; when no newer toggle is still
  in flight, that value is also written to the item.
"""

from __future__ import annotations

import itertools
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, Optional

from .errors import ApiError
from .pagination import PaginationEngine
from .types import Item, Outcome, item_id, item_value, with_value

LOGGER = logging.getLogger(__name__)

MutateFn = Callable[[Item], Awaitable[Outcome[Any]]]

DEFAULT_FAILURE_MESSAGE = "Could not update item"


@dataclass(frozen=True)
class Notice:
    """User-facing notice queued when an optimistic change is reverted."""

    message: str
    item_id: Any
    error: Optional[ApiError] = None


class OptimisticToggler:
    """Toggle one boolean field on items owned by a :class:`PaginationEngine`."""

    def __init__(
        self,
        engine: PaginationEngine,
        field: str = "isFavorite",
        *,
        notify: Optional[Callable[[Notice], None]] = None,
        failure_message: str = DEFAULT_FAILURE_MESSAGE,
    ) -> None:
        self._engine = engine
        self.field = field
        self._notify = notify
        self.failure_message = failure_message
        self.notices: Deque[Notice] = deque()
        # newest toggle token per id; removed once that toggle settles
        self._pending: Dict[Any, int] = {}
        self._in_flight: Dict[Any, int] = {}
        self._confirmed: Dict[Any, Any] = {}
        self._tokens = itertools.count(1)

    def is_pending(self, key: Any) -> bool:
        return key in self._in_flight

    async def toggle(self, item: Item, mutate_fn: MutateFn) -> Outcome[Any]:
        """Flip ``field`` locally, then persist it through ``mutate_fn``.

        ``mutate_fn`` receives the flipped item and returns an
        :class:`Outcome` (an :class:`ApiError` raised instead is treated the
        same as a failed outcome).
        """

        key = item_id(item)
        current = self._engine.get_item(key)
        base = current if current is not None else item
        original = item_value(base, self.field)
        value = not original
        flipped = with_value(base, self.field, value)

        token = next(self._tokens)
        self._confirmed.setdefault(key, original)
        self._in_flight[key] = self._in_flight.get(key, 0) + 1
        self._pending[key] = token
        self._engine.replace_item(key, flipped)

        try:
            try:
                outcome = await mutate_fn(flipped)
            except ApiError as error:
                outcome = Outcome.failure(error)

            latest = self._pending.get(key) == token
            if latest:
                del self._pending[key]

            if outcome.ok:
                self._confirmed[key] = value
                if key not in self._pending:
                    self._write_back(key, value)
                LOGGER.debug("toggle committed id=%s %s=%s", key, self.field, value)
                return outcome

            if not latest:
                LOGGER.info("toggle failed id=%s; newer toggle in flight, not rolling back", key)
            else:
                target = self._confirmed[key]
                if self._write_back(key, target):
                    LOGGER.info("toggle rolled back id=%s %s=%s", key, self.field, target)
                else:
                    LOGGER.info("toggle failed id=%s; item no longer listed", key)
            self._raise_notice(key, outcome.error)
            return outcome
        finally:
            self._settle(key)

    def _write_back(self, key: Any, value: Any) -> bool:
        stored = self._engine.get_item(key)
        if stored is None:
            return False
        if item_value(stored, self.field) != value:
            self._engine.replace_item(key, with_value(stored, self.field, value))
        return True

    def _settle(self, key: Any) -> None:
        remaining = self._in_flight[key] - 1
        if remaining:
            self._in_flight[key] = remaining
            return
        del self._in_flight[key]
        self._confirmed.pop(key, None)
        self._pending.pop(key, None)

    def _raise_notice(self, key: Any, error: Optional[ApiError]) -> None:
        notice = Notice(self.failure_message, key, error)
        self.notices.append(notice)
        if self._notify is not None:
            self._notify(notice)
