# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.resources.records",
#   "purpose": "Helpers for the page-based records resource.",
#   "sections": [
#     {
#       "id": "list-records",
#       "name": "list_records",
#       "anchor": "function-list-records",
#       "kind": "function"
#     },
#     {
#       "id": "list-favorite-records",
#       "name": "list_favorite_records",
#       "anchor": "function-list-favorite-records",
#       "kind": "function"
#     },
#     {
#       "id": "toggle-favorite",
#       "name": "toggle_favorite",
#       "anchor": "function-toggle-favorite",
#       "kind": "function"
#     },
#     {
#       "id": "bulk-update-records",
#       "name": "bulk_update_records",
#       "anchor": "function-bulk-update-records",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Helpers for the page-based ``records`` resource."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from ..client import EntityClient
from ..types import ApiEnvelope, Item, Outcome, PageParams, item_id, item_value

ENTITY = "records"

FAVORITE_FIELD = "isFavorite"


async def list_records(
    client: EntityClient,
    params: PageParams,
    is_favorite: Optional[bool] = None,
) -> Outcome[ApiEnvelope[List[Any]]]:
    """List records; the ``isFavorite`` filter is only sent when given."""

    query = params.to_query()
    if is_favorite is not None:
        query[FAVORITE_FIELD] = "true" if is_favorite else "false"
    return await client.get(None, params=query, data_type=List[client.item_type])


async def list_favorite_records(
    client: EntityClient, params: Optional[PageParams] = None
) -> Outcome[ApiEnvelope[List[Any]]]:
    if params is None:
        params = PageParams(page=1, size=10, sort_by="ASC")
    return await list_records(client, params, is_favorite=True)


async def toggle_favorite(client: EntityClient, record: Item) -> Outcome[ApiEnvelope[Any]]:
    """PATCH the record's current ``isFavorite`` value.

    Meant as the ``mutate_fn`` of an
    :class:`~RestScroll.DataAccess.optimistic.OptimisticToggler`, which passes
    the already-flipped record.
    """

    value = bool(item_value(record, FAVORITE_FIELD))
    return await client.patch(item_id(record), {FAVORITE_FIELD: value})


async def bulk_update_records(
    client: EntityClient, updates: Sequence[Mapping[str, Any]]
) -> Outcome[ApiEnvelope[List[Any]]]:
    for update in updates:
        if "id" not in update:
            raise ValueError("every bulk update needs an 'id'")
    return await client.bulk_update(updates)
