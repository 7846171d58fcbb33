# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.retry",
#   "purpose": "Tenacity-backed executor with exponential backoff for transient failures.",
#   "sections": [
#     {
#       "id": "is-retryable",
#       "name": "is_retryable",
#       "anchor": "function-is-retryable",
#       "kind": "function"
#     },
#     {
#       "id": "backoff-delay-ms",
#       "name": "backoff_delay_ms",
#       "anchor": "function-backoff-delay-ms",
#       "kind": "function"
#     },
#     {
#       "id": "requestexecutor",
#       "name": "RequestExecutor",
#       "anchor": "class-requestexecutor",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Resilient request execution with bounded retry and exponential backoff.

Provides:
- Retryability classification (``NETWORK`` and ``SERVER`` errors only)
- Pure exponential backoff: ``base_delay_ms * 2**n`` before retry ``n + 1``,
  no jitter and no cap (bound the worst case through ``max_attempts``)
- A Tenacity ``AsyncRetrying`` controller per call with a logging
  before-sleep hook
- Conversion of every terminal failure into an :class:`Outcome`

Only idempotent-safe verbs (GET/DELETE) are run through :meth:`execute`;
POST/PUT/PATCH use :meth:`execute_once`, which normalizes errors the same way
but never retries.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

import tenacity
from tenacity import RetryCallState, retry_if_exception, stop_after_attempt, wait_exponential

from .errors import ApiError, ErrorKind, TransportFailure, normalize
from .types import Outcome

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

RequestFn = Callable[[], Awaitable[T]]
SleepFn = Callable[[float], Awaitable[None]]

RETRYABLE_KINDS = frozenset({ErrorKind.NETWORK, ErrorKind.SERVER})


def is_retryable(exception: BaseException) -> bool:
    """Return True when ``exception`` is a transient :class:`ApiError`."""

    return isinstance(exception, ApiError) and exception.kind in RETRYABLE_KINDS


def backoff_delay_ms(base_delay_ms: float, attempt: int) -> float:
    """Delay applied after failed attempt ``attempt`` (0-based)."""

    return base_delay_ms * (2**attempt)


async def _attempt(request_fn: RequestFn[T]) -> T:
    try:
        return await request_fn()
    except TransportFailure as failure:
        raise normalize(failure) from failure


class RequestExecutor:
    """Run request callables with retry for transient failures.

    Args:
        max_attempts: Retries allowed after the first attempt; at most
            ``max_attempts + 1`` transport calls are made
        base_delay_ms: Backoff base in milliseconds
        sleep: Awaitable sleep used between attempts (injectable for tests)
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay_ms: float = 1000,
        *,
        sleep: Optional[SleepFn] = None,
    ) -> None:
        if max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {max_attempts}")
        if base_delay_ms < 0:
            raise ValueError(f"base_delay_ms must be >= 0, got {base_delay_ms}")
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self._sleep: SleepFn = sleep or asyncio.sleep

    def build_retrying(self) -> tenacity.AsyncRetrying:
        """Build a fresh Tenacity controller for one logical request."""

        return tenacity.AsyncRetrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(self.max_attempts + 1),
            # multiplier * 2 ** (attempt_number - 1) seconds, uncapped
            wait=wait_exponential(multiplier=self.base_delay_ms / 1000.0, exp_base=2),
            sleep=self._sleep,
            before_sleep=_log_before_sleep,
            reraise=True,
        )

    async def execute(self, request_fn: RequestFn[T]) -> Outcome[T]:
        """Run ``request_fn`` with retry; never raises :class:`ApiError`."""

        try:
            value = await self.build_retrying()(_attempt, request_fn)
        except ApiError as error:
            return Outcome.failure(error)
        return Outcome.success(value)

    async def execute_once(self, request_fn: RequestFn[T]) -> Outcome[T]:
        """Run ``request_fn`` exactly once (non-idempotent verbs)."""

        try:
            value = await _attempt(request_fn)
        except ApiError as error:
            return Outcome.failure(error)
        return Outcome.success(value)


def _log_before_sleep(retry_state: RetryCallState) -> None:
    """Log each scheduled retry."""

    error: Any = None
    if retry_state.outcome is not None and retry_state.outcome.failed:
        error = retry_state.outcome.exception()
    next_action = retry_state.next_action
    wait_ms = int(next_action.sleep * 1000) if next_action is not None else 0
    LOGGER.warning(
        "retry attempt=%d wait_ms=%d kind=%s status=%s",
        retry_state.attempt_number,
        wait_ms,
        getattr(getattr(error, "kind", None), "value", None),
        getattr(error, "status", None),
    )
