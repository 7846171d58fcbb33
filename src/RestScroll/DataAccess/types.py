# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.types",
#   "purpose": "Response envelopes, pagination params, outcomes and item helpers.",
#   "sections": [
#     {
#       "id": "pagemeta",
#       "name": "PageMeta",
#       "anchor": "class-pagemeta",
#       "kind": "class"
#     },
#     {
#       "id": "apienvelope",
#       "name": "ApiEnvelope",
#       "anchor": "class-apienvelope",
#       "kind": "class"
#     },
#     {
#       "id": "bulkuploadresult",
#       "name": "BulkUploadResult",
#       "anchor": "class-bulkuploadresult",
#       "kind": "class"
#     },
#     {
#       "id": "pageparams",
#       "name": "PageParams",
#       "anchor": "class-pageparams",
#       "kind": "class"
#     },
#     {
#       "id": "tokenparams",
#       "name": "TokenParams",
#       "anchor": "class-tokenparams",
#       "kind": "class"
#     },
#     {
#       "id": "outcome",
#       "name": "Outcome",
#       "anchor": "class-outcome",
#       "kind": "class"
#     },
#     {
#       "id": "item-id",
#       "name": "item_id",
#       "anchor": "function-item-id",
#       "kind": "function"
#     },
#     {
#       "id": "with-value",
#       "name": "with_value",
#       "anchor": "function-with-value",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Canonical data types for the data-access layer.

Provides the response envelope, pagination parameter shapes and the
:class:`Outcome` result object returned by every public client operation.

Data Flow:
  EntityClient.list(PageParams | TokenParams) → Outcome[ApiEnvelope[list[Item]]]
  PaginationEngine merges envelope.data into its item collection
  OptimisticToggler rewrites single items via item helpers below

Design Principles:
  - Envelopes are pydantic models so a 2xx body with the wrong shape is
    rejected at the boundary (BAD_DATA) instead of deep inside a caller
  - Pagination params and outcomes are frozen dataclasses
  - Items stay opaque: mappings or pydantic models with an ``id``
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Generic, List, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from .errors import ApiError

T = TypeVar("T")

Item = Any
"""An opaque record with a stable unique ``id`` (mapping or pydantic model)."""


# ============================================================================
# RESPONSE ENVELOPE
# ============================================================================


class PageMeta(BaseModel):
    """Paging metadata attached to page-based list responses."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="allow")

    total: Optional[int] = None
    page: Optional[int] = None
    limit: Optional[int] = None


class ApiEnvelope(BaseModel, Generic[T]):
    """Response envelope every endpoint returns.

    ``data`` is a required key; its value is validated against ``T``. Keys the
    model does not declare (e.g. ``nextPageToken``) are kept in
    ``model_extra``.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="allow")

    data: T
    success: bool
    message: Optional[str] = None
    errors: Optional[List[str]] = None
    meta: Optional[PageMeta] = None

    def extra(self, key: str, default: Any = None) -> Any:
        return (self.model_extra or {}).get(key, default)


class FailedUpload(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(extra="allow")

    fileName: str
    error: str


class BulkUploadResult(BaseModel):
    """Body of a bulk upload; partial success is reported per file."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="allow")

    successfulUploads: List[Dict[str, Any]] = []
    failedUploads: List[FailedUpload] = []


# ============================================================================
# PAGINATION PARAMETERS
# ============================================================================


def _query_value(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def clean_query(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop ``None`` values and JSON-encode structured ones."""

    if not params:
        return {}
    return {key: _query_value(value) for key, value in params.items() if value is not None}


@dataclass(frozen=True)
class PageParams:
    """Offset/page-based pagination (1-based ``page``)."""

    page: int = 1
    size: int = 20
    sort_by: Optional[str] = None
    filters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.size <= 0:
            raise ValueError(f"size must be > 0, got {self.size}")

    def to_query(self) -> Dict[str, Any]:
        query: Dict[str, Any] = {"page": self.page, "size": self.size, "sortBy": self.sort_by}
        query.update(self.filters)
        return clean_query(query)


@dataclass(frozen=True)
class TokenParams:
    """Cursor/token-based pagination; ``page_token`` is opaque and server-issued."""

    page_size: str = "20"
    page_token: Optional[str] = None
    order_by: Optional[str] = None
    filters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not str(self.page_size).isdigit() or int(self.page_size) <= 0:
            raise ValueError(f"page_size must be a positive integer string, got {self.page_size!r}")

    def to_query(self) -> Dict[str, Any]:
        query: Dict[str, Any] = {
            "pageToken": self.page_token,
            "pageSize": str(self.page_size),
            "orderBy": self.order_by,
        }
        query.update(self.filters)
        return clean_query(query)


PaginationParams = Any
"""Either :class:`PageParams` or :class:`TokenParams`."""


def pagination_query(pagination: Optional[PaginationParams]) -> Dict[str, Any]:
    if pagination is None:
        return {}
    if not isinstance(pagination, (PageParams, TokenParams)):
        raise TypeError(f"unsupported pagination params: {type(pagination).__name__}")
    return pagination.to_query()


# ============================================================================
# OUTCOME
# ============================================================================


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Terminal result of a request: exactly one of ``value`` or ``error``."""

    value: Optional[T] = None
    error: Optional[ApiError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ApiError) -> "Outcome[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value, raising the :class:`ApiError` if the request failed."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


# ============================================================================
# ITEM HELPERS
# ============================================================================


def item_id(item: Item) -> Any:
    """Return the ``id`` of a mapping or attribute-style item."""

    if isinstance(item, Mapping):
        if "id" not in item:
            raise KeyError("item has no 'id'")
        return item["id"]
    return getattr(item, "id")


def item_value(item: Item, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def with_value(item: Item, name: str, value: Any) -> Item:
    """Return a copy of ``item`` with ``name`` set to ``value``; the original is untouched."""

    if isinstance(item, Mapping):
        updated = dict(item)
        updated[name] = value
        return updated
    if isinstance(item, BaseModel):
        return item.model_copy(update={name: value})
    raise TypeError(f"cannot update field {name!r} on {type(item).__name__}")
