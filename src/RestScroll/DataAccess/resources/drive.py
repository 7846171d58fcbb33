# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.resources.drive",
#   "purpose": "Helpers for the token-paginated drive resource.",
#   "sections": [
#     {
#       "id": "drivefilelist",
#       "name": "DriveFileList",
#       "anchor": "class-drivefilelist",
#       "kind": "class"
#     },
#     {
#       "id": "sharelink",
#       "name": "ShareLink",
#       "anchor": "class-sharelink",
#       "kind": "class"
#     },
#     {
#       "id": "files-fetcher",
#       "name": "files_fetcher",
#       "anchor": "function-files-fetcher",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Helpers for the token-paginated ``drive`` resource.

List-shaped endpoints return ``{"files": [...], "nextPageToken": ...}`` as
``data``; :class:`DriveFileList` validates that shape and is what
:class:`~RestScroll.DataAccess.pagination.TokenStrategy` reads by default.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from ..client import EntityClient, FileSpec, SaveFn
from ..types import ApiEnvelope, BulkUploadResult, Outcome, TokenParams

ENTITY = "drive"

DEFAULT_PAGE_SIZE = "10"
DEFAULT_FOLDER = "root"
DEFAULT_ORDER = "name"


class DriveFileList(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(extra="allow")

    files: List[Dict[str, Any]]
    nextPageToken: Optional[str] = None
    incompleteSearch: Optional[bool] = None


class ShareLink(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(extra="allow")

    link: str


def _pagination_dict(pagination: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if pagination is None:
        return {}
    if isinstance(pagination, TokenParams):
        return pagination.to_query()
    return {key: value for key, value in pagination.items() if value is not None}


# ========== FILES ==========


async def list_files(
    client: EntityClient, params: Optional[Mapping[str, Any]] = None
) -> Outcome[ApiEnvelope[DriveFileList]]:
    """GET ``files``; ``params`` may be a :class:`TokenParams` or a plain mapping."""

    return await client.get("files", params=_pagination_dict(params), data_type=DriveFileList)


async def get_file_metadata(client: EntityClient, file_id: str) -> Outcome[ApiEnvelope[Dict[str, Any]]]:
    return await client.get(f"files/{file_id}", data_type=Dict[str, Any])


async def upload_drive_file(
    client: EntityClient,
    file: FileSpec,
    *,
    parent_id: Optional[str] = None,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Outcome[ApiEnvelope[Dict[str, Any]]]:
    fields = {"parentId": parent_id or None, "name": name or None, "description": description or None}
    return await client.upload_file(file, fields, path="files", data_type=Dict[str, Any])


async def delete_file(client: EntityClient, file_id: str) -> Outcome[ApiEnvelope[Any]]:
    return await client.delete(f"files/{file_id}")


# ========== FOLDERS ==========


async def create_folder(
    client: EntityClient, folder_name: str, parent_id: Optional[str] = None
) -> Outcome[ApiEnvelope[Dict[str, Any]]]:
    body: Dict[str, Any] = {"folderName": folder_name}
    if parent_id is not None:
        body["parentId"] = parent_id
    return await client.post(body, "folders", data_type=Dict[str, Any])


async def get_folder_contents(
    client: EntityClient, folder_id: str, pagination: Optional[Mapping[str, Any]] = None
) -> Outcome[ApiEnvelope[DriveFileList]]:
    params: Dict[str, Any] = {"folderId": folder_id, "pageSize": DEFAULT_PAGE_SIZE}
    params.update(_pagination_dict(pagination))
    return await list_files(client, params)


# ========== SEARCH ==========


async def search_files(
    client: EntityClient,
    filters: Mapping[str, Any],
    pagination: Optional[Mapping[str, Any]] = None,
) -> Outcome[ApiEnvelope[DriveFileList]]:
    params: Dict[str, Any] = dict(filters)
    params["folderId"] = filters.get("folderId") or DEFAULT_FOLDER
    params["pageSize"] = DEFAULT_PAGE_SIZE
    params["orderBy"] = DEFAULT_ORDER
    params.update(_pagination_dict(pagination))
    return await client.get("files/search", params=params, data_type=DriveFileList)


async def get_files_by_mime_type(
    client: EntityClient, mime_type: str, pagination: Optional[Mapping[str, Any]] = None
) -> Outcome[ApiEnvelope[DriveFileList]]:
    return await search_files(client, {"mimeType": mime_type}, pagination)


async def get_recently_modified_files(
    client: EntityClient,
    days: int = 7,
    pagination: Optional[Mapping[str, Any]] = None,
    *,
    now: Optional[datetime] = None,
) -> Outcome[ApiEnvelope[DriveFileList]]:
    modified_after = (now or datetime.now(timezone.utc)) - timedelta(days=days)
    page: Dict[str, Any] = {"orderBy": "modifiedTime desc"}
    page.update(_pagination_dict(pagination))
    return await search_files(client, {"modifiedAfter": modified_after.isoformat()}, page)


# ========== BATCH ==========


async def upload_bulk_files(
    client: EntityClient, files: Sequence[FileSpec], *, parent_id: Optional[str] = None
) -> Outcome[ApiEnvelope[BulkUploadResult]]:
    return await client.bulk_upload(files, {"folderId": parent_id or None}, path="files/bulk")


async def bulk_delete_files(client: EntityClient, file_ids: Sequence[str]) -> Outcome[ApiEnvelope[Any]]:
    return await client.post({"fileIds": list(file_ids)}, "files/bulk-delete")


async def bulk_move_files(
    client: EntityClient, file_ids: Sequence[str], target_folder_id: str
) -> Outcome[ApiEnvelope[Any]]:
    return await client.post(
        {"fileIds": list(file_ids), "targetFolderId": target_folder_id}, "files/bulk-move"
    )


# ========== UTILITY ==========


async def download_drive_file(
    client: EntityClient, file_id: str, filename: str, *, save: Optional[SaveFn] = None
) -> Outcome[bytes]:
    return await client.download_file(filename, path=f"files/{file_id}/download", save=save)


async def get_shareable_link(client: EntityClient, file_id: str) -> Outcome[ApiEnvelope[ShareLink]]:
    return await client.post({}, f"files/{file_id}/share", data_type=ShareLink)


def files_fetcher(client: EntityClient, folder_id: Optional[str] = None):
    """Return a ``fetch(TokenParams)`` callable for a :class:`PaginationEngine`."""

    async def fetch(params: TokenParams) -> Outcome[ApiEnvelope[DriveFileList]]:
        query = params.to_query()
        if folder_id is not None:
            query.setdefault("folderId", folder_id)
        return await list_files(client, query)

    return fetch
