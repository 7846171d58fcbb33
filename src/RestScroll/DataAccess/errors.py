# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.errors",
#   "purpose": "Failure taxonomy and normalization of raw transport failures into ApiError.",
#   "sections": [
#     {
#       "id": "errorkind",
#       "name": "ErrorKind",
#       "anchor": "class-errorkind",
#       "kind": "class"
#     },
#     {
#       "id": "transportfailure",
#       "name": "TransportFailure",
#       "anchor": "class-transportfailure",
#       "kind": "class"
#     },
#     {
#       "id": "apierror",
#       "name": "ApiError",
#       "anchor": "class-apierror",
#       "kind": "class"
#     },
#     {
#       "id": "normalize",
#       "name": "normalize",
#       "anchor": "function-normalize",
#       "kind": "function"
#     },
#     {
#       "id": "bad-data",
#       "name": "bad_data",
#       "anchor": "function-bad-data",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Failure taxonomy and error normalization for the data-access layer.

Responsibilities
----------------
- Define :class:`TransportFailure`, the raw signal raised by the transport when
  no response arrived (status ``0``) or a non-2xx response was received.
- Define :class:`ApiError`, the immutable domain error surfaced to callers as
  the terminal failure of a request, tagged with an :class:`ErrorKind`.
- Translate raw failures into :class:`ApiError` via :func:`normalize`, using the
  server-provided ``message``/``errors`` fields when present and a status-keyed
  default table otherwise.

Design Notes
------------
- ``NETWORK`` and ``SERVER`` errors are transient and eligible for retry;
  ``CLIENT`` and ``BAD_DATA`` are permanent.
- Every normalized failure is logged once at WARNING so request errors are
  visible without the caller having to log them.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional

__all__ = (
    "ErrorKind",
    "TransportFailure",
    "ApiError",
    "DEFAULT_MESSAGES",
    "CONNECTION_ERROR_MESSAGE",
    "UNKNOWN_ERROR_MESSAGE",
    "classify_status",
    "normalize",
    "bad_data",
)

LOGGER = logging.getLogger(__name__)

CONNECTION_ERROR_MESSAGE = "connection error"
UNKNOWN_ERROR_MESSAGE = "unknown error"
BAD_DATA_MESSAGE = "bad data"

DEFAULT_MESSAGES: Mapping[int, str] = {
    400: "bad request",
    401: "unauthorized",
    403: "forbidden",
    404: "not found",
    409: "conflict",
    422: "unprocessable",
    500: "internal error",
    502: "bad gateway",
    503: "unavailable",
}


class ErrorKind(str, Enum):
    """Domain error categories."""

    NETWORK = "network-error"
    CLIENT = "client-error"
    SERVER = "server-error"
    BAD_DATA = "bad-data"


class TransportFailure(Exception):
    """Raised by the transport when a request did not produce a 2xx response.

    ``status`` is ``0`` when no response was received (connection failure or
    timeout); otherwise it is the HTTP status and ``body`` holds the decoded
    response body (JSON when decodable, text otherwise).
    """

    def __init__(
        self,
        status: int,
        *,
        body: Any = None,
        url: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.status = status
        self.body = body
        self.url = url
        self.cause = cause
        if status == 0:
            detail = f"no response from {url or 'server'}"
            if cause is not None:
                detail = f"{detail}: {cause}"
        else:
            detail = f"HTTP {status} from {url or 'server'}"
        super().__init__(detail)

    @property
    def received_response(self) -> bool:
        return self.status != 0


_FROZEN_FIELDS = frozenset({"kind", "status", "message", "cause"})


class ApiError(Exception):
    """Immutable terminal failure of a request."""

    def __init__(self, kind: ErrorKind, status: int, message: str, cause: Any = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.message = message
        self.cause = cause
        self._frozen = True

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _FROZEN_FIELDS and getattr(self, "_frozen", False):
            raise AttributeError(f"ApiError.{name} is read-only")
        super().__setattr__(name, value)

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind.value!r}, status={self.status}, message={self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApiError):
            return NotImplemented
        return (self.kind, self.status, self.message) == (other.kind, other.status, other.message)

    def __hash__(self) -> int:
        return hash((self.kind, self.status, self.message))

    @property
    def retryable(self) -> bool:
        return self.kind in (ErrorKind.NETWORK, ErrorKind.SERVER)


def classify_status(status: int) -> ErrorKind:
    """Map an HTTP status (``0`` for no response) to an :class:`ErrorKind`."""

    if status == 0:
        return ErrorKind.NETWORK
    if 500 <= status <= 599:
        return ErrorKind.SERVER
    # 4xx and anything else we did not ask for (e.g. an unfollowed 3xx)
    return ErrorKind.CLIENT


def _extract_message(body: Any) -> Optional[str]:
    if not isinstance(body, Mapping):
        return None
    message = body.get("message")
    if isinstance(message, str):
        return message
    errors = body.get("errors")
    if isinstance(errors, (list, tuple)) and errors:
        return str(errors[0])
    return None


def normalize(failure: TransportFailure) -> ApiError:
    """Translate a raw transport failure into an :class:`ApiError`.

    Args:
        failure: Failure raised by the transport layer.

    Returns:
        Normalized error whose message is never empty.

    Examples:
        >>> normalize(TransportFailure(404)).message
        'not found'
        >>> normalize(TransportFailure(0)).kind is ErrorKind.NETWORK
        True
    """

    if not failure.received_response:
        error = ApiError(ErrorKind.NETWORK, 0, CONNECTION_ERROR_MESSAGE, cause=failure.cause)
    else:
        message = _extract_message(failure.body)
        if message is None:
            message = DEFAULT_MESSAGES.get(failure.status, UNKNOWN_ERROR_MESSAGE)
        error = ApiError(classify_status(failure.status), failure.status, message, cause=failure.body)

    LOGGER.warning(
        "request failed kind=%s status=%d url=%s message=%s",
        error.kind.value,
        error.status,
        failure.url,
        error.message,
    )
    return error


def bad_data(cause: BaseException, *, status: int = 200, detail: Optional[str] = None) -> ApiError:
    """Build a ``BAD_DATA`` error for a 2xx body that does not match the expected shape."""

    message = BAD_DATA_MESSAGE if not detail else f"{BAD_DATA_MESSAGE}: {detail}"
    LOGGER.warning("response rejected kind=%s status=%d reason=%s", ErrorKind.BAD_DATA.value, status, cause)
    return ApiError(ErrorKind.BAD_DATA, status, message, cause=cause)
