# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.pagination",
#   "purpose": "Scroll-driven pagination state machine over page- and token-based APIs.",
#   "sections": [
#     {
#       "id": "scrollphase",
#       "name": "ScrollPhase",
#       "anchor": "class-scrollphase",
#       "kind": "class"
#     },
#     {
#       "id": "scrollstate",
#       "name": "ScrollState",
#       "anchor": "class-scrollstate",
#       "kind": "class"
#     },
#     {
#       "id": "pagestrategy",
#       "name": "PageStrategy",
#       "anchor": "class-pagestrategy",
#       "kind": "class"
#     },
#     {
#       "id": "tokenstrategy",
#       "name": "TokenStrategy",
#       "anchor": "class-tokenstrategy",
#       "kind": "class"
#     },
#     {
#       "id": "paginationengine",
#       "name": "PaginationEngine",
#       "anchor": "class-paginationengine",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Pagination / infinite-scroll engine.

Responsibilities
----------------
- Own one :class:`ScrollState` per screen and move it through
  ``IDLE → LOADING_INITIAL/LOADING_MORE → IDLE | COMPLETE | ERROR``.
- Decide from viewport samples (:meth:`PaginationEngine.on_scroll_sample`)
  when the next page is needed, dropping samples that arrive within the
  debounce window of the last accepted one.
- Hide the pagination protocol behind a strategy: :class:`PageStrategy`
  (``page``/``size``) or :class:`TokenStrategy` (``pageToken``/``pageSize``).
- Keep at most one fetch in flight; :meth:`PaginationEngine.reset` bumps a
  generation counter so a response from before the reset is discarded on
  arrival.

Design Notes
------------
- Page-based completion rule: a page is the last one when it returns fewer
  items than requested (including zero), or when ``meta.total`` is known and
  the loaded count has reached it. ``meta.page``/``meta.limit`` are not used
  because backends disagree on whether ``limit`` is a page size or a page
  count.
- Items are deduplicated by ``id``; the first arrival wins and keeps its
  position.
- Readers get immutable snapshots from :attr:`PaginationEngine.state`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from .config import ScrollConfig
from .errors import ApiError, UNKNOWN_ERROR_MESSAGE, bad_data
from .types import ApiEnvelope, Item, Outcome, PageParams, TokenParams, item_id

LOGGER = logging.getLogger(__name__)

FetchFn = Callable[[Any], Awaitable[Outcome[ApiEnvelope]]]
Clock = Callable[[], float]


class ScrollPhase(str, Enum):
    IDLE = "idle"
    LOADING_INITIAL = "loading-initial"
    LOADING_MORE = "loading-more"
    ERROR = "error"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ScrollState:
    """Immutable snapshot of a :class:`PaginationEngine`."""

    phase: ScrollPhase = ScrollPhase.IDLE
    current_page: int = 0
    next_token: Optional[str] = None
    items: Tuple[Item, ...] = ()
    total_known: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.phase in (ScrollPhase.LOADING_INITIAL, ScrollPhase.LOADING_MORE)

    @property
    def has_more(self) -> bool:
        return self.phase is not ScrollPhase.COMPLETE


@dataclass(frozen=True)
class PageResult:
    """What a strategy extracted from one response."""

    items: Tuple[Item, ...]
    next_token: Optional[str] = None
    total: Optional[int] = None
    exhausted: bool = False


def _field(data: Any, key: str) -> Any:
    if isinstance(data, Mapping):
        return data.get(key)
    return getattr(data, key, None)


def _as_items(value: Any, *, status: int = 200) -> Tuple[Item, ...]:
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
        raise bad_data(TypeError(f"expected a list of items, got {type(value).__name__}"), status=status)
    return tuple(value)


@dataclass(frozen=True)
class PageStrategy:
    """Page-based pagination: ``page`` (1-based) and ``size``."""

    size: int = 20
    sort_by: Optional[str] = None
    filters: Mapping[str, Any] = field(default_factory=dict)

    params_type = PageParams

    def build_params(self, state: ScrollState) -> PageParams:
        return PageParams(page=state.current_page + 1, size=self.size, sort_by=self.sort_by, filters=dict(self.filters))

    def interpret(self, envelope: ApiEnvelope, params: PageParams, loaded: int) -> PageResult:
        items = _as_items(envelope.data)
        total = envelope.meta.total if envelope.meta is not None else None
        exhausted = len(items) < params.size
        if total is not None and loaded + len(items) >= total:
            exhausted = True
        return PageResult(items=items, total=total, exhausted=exhausted)

    def with_filters(self, filters: Mapping[str, Any]) -> "PageStrategy":
        return replace(self, filters=dict(filters))


@dataclass(frozen=True)
class TokenStrategy:
    """Token-based pagination: opaque ``pageToken`` echoed back to the server.

    ``data`` may be a mapping (or model) holding the items under
    ``items_key`` plus ``nextPageToken``, or a plain list with
    ``nextPageToken`` at the envelope level.
    """

    page_size: str = "20"
    order_by: Optional[str] = None
    filters: Mapping[str, Any] = field(default_factory=dict)
    items_key: str = "files"

    params_type = TokenParams

    def build_params(self, state: ScrollState) -> TokenParams:
        return TokenParams(
            page_size=str(self.page_size),
            page_token=state.next_token,
            order_by=self.order_by,
            filters=dict(self.filters),
        )

    def interpret(self, envelope: ApiEnvelope, params: TokenParams, loaded: int) -> PageResult:
        data = envelope.data
        if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
            items = tuple(data)
            token = envelope.extra("nextPageToken")
        else:
            items = _as_items(_field(data, self.items_key))
            token = _field(data, "nextPageToken")
        token = token or None
        total = envelope.meta.total if envelope.meta is not None else None
        return PageResult(items=items, next_token=token, total=total, exhausted=token is None or not items)

    def with_filters(self, filters: Mapping[str, Any]) -> "TokenStrategy":
        return replace(self, filters=dict(filters))


Strategy = Union[PageStrategy, TokenStrategy]


@dataclass(frozen=True)
class _Ticket:
    generation: int
    params: Any


class PaginationEngine:
    """
    Scroll-driven pagination over one resource.

    **Usage**

        engine = PaginationEngine(client.list, PageStrategy(size=10, sort_by="datePublished"))
        await engine.request_more()              # first page
        engine.on_scroll_sample(offset, viewport, total)   # from any scroll source
        snapshot = engine.state
    """

    def __init__(
        self,
        fetch: FetchFn,
        strategy: Strategy,
        *,
        threshold: float = 200,
        debounce_ms: float = 100,
        clock: Clock = time.monotonic,
    ) -> None:
        if not isinstance(strategy, (PageStrategy, TokenStrategy)):
            raise TypeError(f"unsupported pagination strategy: {type(strategy).__name__}")
        self._fetch = fetch
        self._strategy: Strategy = strategy
        self.threshold = threshold
        self.debounce_ms = debounce_ms
        self._clock = clock

        self._phase = ScrollPhase.IDLE
        self._current_page = 0
        self._next_token: Optional[str] = None
        self._items: Dict[Any, Item] = {}
        self._total_known: Optional[int] = None
        self._error_message: Optional[str] = None

        self._generation = 0
        self._in_flight = False
        self._last_sample_at: Optional[float] = None
        self._disposed = False

    @classmethod
    def from_config(
        cls,
        fetch: FetchFn,
        strategy: Strategy,
        config: ScrollConfig,
        *,
        clock: Clock = time.monotonic,
    ) -> "PaginationEngine":
        """Build an engine using the trigger threshold and debounce from ``config``."""
        return cls(
            fetch,
            strategy,
            threshold=config.threshold,
            debounce_ms=config.debounce_ms,
            clock=clock,
        )

    # ---------------------------------------------------------------- reading

    @property
    def state(self) -> ScrollState:
        return ScrollState(
            phase=self._phase,
            current_page=self._current_page,
            next_token=self._next_token,
            items=tuple(self._items.values()),
            total_known=self._total_known,
            error_message=self._error_message,
        )

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def disposed(self) -> bool:
        return self._disposed

    def get_item(self, key: Any) -> Optional[Item]:
        return self._items.get(key)

    # ---------------------------------------------------------------- control

    def reset(self, filters: Optional[Mapping[str, Any]] = None) -> None:
        """Clear items and return to IDLE; any in-flight response will be ignored."""
        if self._disposed:
            return
        self._generation += 1
        self._in_flight = False
        if filters is not None:
            self._strategy = self._strategy.with_filters(filters)
        self._phase = ScrollPhase.IDLE
        self._current_page = 0
        self._next_token = None
        self._items = {}
        self._total_known = None
        self._error_message = None
        LOGGER.debug("pagination reset generation=%d filters=%s", self._generation, dict(self._strategy.filters))

    def dispose(self) -> None:
        """Drop all state; every later call is a no-op."""
        self._generation += 1
        self._in_flight = False
        self._items = {}
        self._disposed = True

    async def request_more(self) -> bool:
        """Fetch the next page if IDLE and nothing is in flight.

        Returns:
            True when a fetch ran and its result was applied.
        """
        ticket = self._begin()
        if ticket is None:
            return False
        return await self._run(ticket)

    async def retry(self) -> bool:
        """Re-issue the request that failed; only valid in ERROR."""
        if self._disposed or self._phase is not ScrollPhase.ERROR or self._in_flight:
            return False
        self._phase = ScrollPhase.IDLE
        return await self.request_more()

    async def load_initial(self, filters: Optional[Mapping[str, Any]] = None) -> bool:
        self.reset(filters)
        return await self.request_more()

    def should_load(self, offset: float, viewport_extent: float, total_extent: float) -> bool:
        distance_from_end = total_extent - offset - viewport_extent
        return (
            distance_from_end <= self.threshold
            and self._phase is ScrollPhase.IDLE
            and not self._in_flight
            and bool(self._items)
        )

    def on_scroll_sample(
        self, offset: float, viewport_extent: float, total_extent: float
    ) -> Optional["asyncio.Task[bool]"]:
        """Evaluate one viewport sample; returns the scheduled fetch task, if any.

        Must be called from within a running event loop.
        """
        if self._disposed:
            return None
        now = self._clock()
        if self._last_sample_at is not None and (now - self._last_sample_at) * 1000.0 < self.debounce_ms:
            return None
        self._last_sample_at = now

        if not self.should_load(offset, viewport_extent, total_extent):
            return None
        loop = asyncio.get_running_loop()
        ticket = self._begin()
        if ticket is None:
            return None
        return loop.create_task(self._run(ticket))

    # ---------------------------------------------------------- item updates

    def replace_item(self, key: Any, item: Item) -> bool:
        """Swap the item stored under ``key`` in place; no-op when absent."""
        if key not in self._items:
            return False
        self._items[key] = item
        return True

    def remove_item(self, key: Any) -> bool:
        return self._items.pop(key, None) is not None

    # -------------------------------------------------------------- internals

    def _begin(self) -> Optional[_Ticket]:
        if self._disposed or self._in_flight or self._phase is not ScrollPhase.IDLE:
            return None
        params = self._strategy.build_params(self.state)
        if not isinstance(params, self._strategy.params_type):
            raise TypeError(f"strategy produced {type(params).__name__}, expected {self._strategy.params_type.__name__}")
        self._in_flight = True
        self._error_message = None
        self._phase = ScrollPhase.LOADING_MORE if self._items else ScrollPhase.LOADING_INITIAL
        LOGGER.debug("pagination fetch phase=%s params=%s", self._phase.value, params)
        return _Ticket(self._generation, params)

    def _is_current(self, ticket: _Ticket) -> bool:
        return not self._disposed and ticket.generation == self._generation

    async def _run(self, ticket: _Ticket) -> bool:
        try:
            try:
                outcome = await self._fetch(ticket.params)
            except ApiError as error:
                outcome = Outcome.failure(error)
            if not self._is_current(ticket):
                LOGGER.debug("discarding stale page generation=%d current=%d", ticket.generation, self._generation)
                return False
            if outcome.ok:
                try:
                    self._apply_success(ticket, outcome.value)
                    return True
                except ApiError as error:
                    outcome = Outcome.failure(error)
            self._apply_failure(outcome.error)
            return False
        finally:
            if self._is_current(ticket) and self._in_flight:
                self._in_flight = False
                if self._phase in (ScrollPhase.LOADING_INITIAL, ScrollPhase.LOADING_MORE):
                    self._phase = ScrollPhase.ERROR
                    self._error_message = "request interrupted"

    def _apply_success(self, ticket: _Ticket, envelope: ApiEnvelope) -> None:
        result = self._strategy.interpret(envelope, ticket.params, len(self._items))
        try:
            keyed = [(item_id(item), item) for item in result.items]
        except (KeyError, AttributeError) as exc:
            raise bad_data(exc, detail="item without id") from exc
        added = 0
        for key, item in keyed:
            if key in self._items:
                continue
            self._items[key] = item
            added += 1

        self._in_flight = False
        self._current_page += 1
        self._next_token = result.next_token
        if result.total is not None:
            self._total_known = result.total
        self._phase = ScrollPhase.COMPLETE if result.exhausted else ScrollPhase.IDLE
        LOGGER.debug(
            "pagination page=%d received=%d added=%d phase=%s",
            self._current_page,
            len(result.items),
            added,
            self._phase.value,
        )

    def _apply_failure(self, error: Optional[ApiError]) -> None:
        self._in_flight = False
        self._phase = ScrollPhase.ERROR
        message = error.message if error is not None else ""
        self._error_message = message or UNKNOWN_ERROR_MESSAGE
        LOGGER.info("pagination failed page=%d message=%s", self._current_page + 1, self._error_message)
