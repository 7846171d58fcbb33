# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess",
#   "purpose": "Data-access public API facade",
#   "sections": []
# }
# === /NAVMAP ===

"""
RestScroll.DataAccess is the data-access core of RestScroll: a resilient
HTTP client with retry/backoff and error normalization, and an
infinite-scroll pagination engine that drives it over page-based and
token-based backends.

Core modules and how they interrelate:

- ``transport`` sends exactly one HTTP request through ``httpx`` and raises
  ``TransportFailure`` for anything that is not a 2xx.
- ``errors`` turns a ``TransportFailure`` (or an unparseable body) into an
  ``ApiError`` with one of four kinds: network, client, server, bad data.
- ``retry`` wraps request callables in a Tenacity ``AsyncRetrying`` loop
  (GET/DELETE only) and converts the terminal result into an ``Outcome``.
- ``client`` offers CRUD, search, file and bulk operations over one entity;
  ``resources`` layers record- and drive-specific helpers on top.
- ``pagination`` owns the scroll state machine; ``optimistic`` applies
  toggles to the engine's items and rolls them back on failure.
- ``config`` and ``logging_config`` carry the ambient settings; ``cli``
  exposes both through a Typer app.
"""

from __future__ import annotations

# --- Globals ---

__all__ = (
    "ApiEnvelope",
    "ApiError",
    "EntityClient",
    "ErrorKind",
    "HttpTransport",
    "Notice",
    "OptimisticToggler",
    "Outcome",
    "PageParams",
    "PageStrategy",
    "PaginationEngine",
    "RequestExecutor",
    "RestScrollConfig",
    "ScrollPhase",
    "ScrollState",
    "TokenParams",
    "TokenStrategy",
    "load_config",
)


# --- Re-exports ---

from .client import EntityClient
from .config import RestScrollConfig, load_config
from .errors import ApiError, ErrorKind
from .optimistic import Notice, OptimisticToggler
from .pagination import PageStrategy, PaginationEngine, ScrollPhase, ScrollState, TokenStrategy
from .retry import RequestExecutor
from .transport import HttpTransport
from .types import ApiEnvelope, Outcome, PageParams, TokenParams
