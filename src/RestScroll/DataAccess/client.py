# === NAVMAP v1 ===
# {
#   "module": "RestScroll.DataAccess.client",
#   "purpose": "Generic CRUD-shaped client over one REST resource (entity).",
#   "sections": [
#     {
#       "id": "build-url",
#       "name": "build_url",
#       "anchor": "function-build-url",
#       "kind": "function"
#     },
#     {
#       "id": "parse-envelope",
#       "name": "parse_envelope",
#       "anchor": "function-parse-envelope",
#       "kind": "function"
#     },
#     {
#       "id": "entityclient",
#       "name": "EntityClient",
#       "anchor": "class-entityclient",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Generic entity client.

Responsibilities
----------------
- Build URLs as ``base_url/entity/path`` with redundant separators trimmed.
- Expose list/get/create/update/patch/remove/search, file upload/download and
  bulk operations over one resource, each returning exactly one
  :class:`~RestScroll.DataAccess.types.Outcome`.
- Route GET/DELETE through :meth:`RequestExecutor.execute` (retried) and
  POST/PUT/PATCH through :meth:`RequestExecutor.execute_once` (never retried,
  since they may not be idempotent).
- Validate every 2xx body against :class:`ApiEnvelope` so shape mismatches
  surface as ``BAD_DATA``.

Resource-specific behaviour lives in plain functions that take an
:class:`EntityClient` (see :mod:`RestScroll.DataAccess.resources`).
"""

from __future__ import annotations

import logging
import mimetypes
import os
import tempfile
from pathlib import Path
from typing import (
    Any,
    Callable,
    Generic,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from pydantic import ValidationError

from .config.models import HttpClientConfig
from .errors import bad_data
from .retry import RequestExecutor
from .transport import DEFAULT_TIMEOUT_MS, HttpTransport, RawResponse
from .types import (
    ApiEnvelope,
    BulkUploadResult,
    Outcome,
    PaginationParams,
    clean_query,
    pagination_query,
)

LOGGER = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")

FileSpec = Union[Path, str, bytes, Tuple[str, Any], Tuple[str, Any, str]]
"""A path, raw bytes, or an httpx-style ``(filename, content[, content_type])`` tuple."""

SaveFn = Callable[[bytes, str], Any]


def build_url(base_url: str, *parts: Any) -> str:
    """Join URL parts with single separators.

    Examples:
        >>> build_url("https://api.example.org/", "/records/", "/1")
        'https://api.example.org/records/1'
    """

    segments = [base_url.rstrip("/")]
    for part in parts:
        if part is None:
            continue
        text = str(part).strip("/")
        if text:
            segments.append(text)
    return "/".join(segments)


def parse_envelope(raw: RawResponse, data_type: Any = Any) -> ApiEnvelope:
    """Decode ``raw`` as ``ApiEnvelope[data_type]``.

    Raises:
        ApiError: ``BAD_DATA`` when the body is not JSON or has the wrong shape
    """

    try:
        payload = raw.json()
    except ValueError as exc:
        raise bad_data(exc, status=raw.status, detail="response is not JSON") from exc
    try:
        return ApiEnvelope[data_type].model_validate(payload)
    except ValidationError as exc:
        raise bad_data(exc, status=raw.status, detail=f"{exc.error_count()} validation error(s)") from exc


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _form_fields(fields: Optional[Mapping[str, Any]]) -> dict:
    return {key: _form_value(value) for key, value in (fields or {}).items() if value is not None}


def _file_part(file: FileSpec) -> Tuple[Any, ...]:
    if isinstance(file, (str, Path)):
        path = Path(file)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return (path.name, path.read_bytes(), content_type)
    if isinstance(file, bytes):
        return ("file", file, "application/octet-stream")
    return tuple(file)


def save_to_directory(directory: Union[str, Path]) -> SaveFn:
    """Return a saver writing downloads into ``directory`` atomically."""

    target_dir = Path(directory).expanduser()

    def _save(content: bytes, filename: str) -> Path:
        target_dir.mkdir(parents=True, exist_ok=True)
        dest = target_dir / Path(filename).name
        fd, tmp_name = tempfile.mkstemp(dir=target_dir, prefix=".part-")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, dest)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        LOGGER.info("saved download %s (%d bytes)", dest, len(content))
        return dest

    return _save


class EntityClient(Generic[ItemT]):
    """
    CRUD-shaped client over one REST resource.

    **Usage**

        client = EntityClient(transport, "records", base_url="https://api.example.org")
        outcome = await client.list(PageParams(page=1, size=10, sort_by="datePublished"))
        if outcome.ok:
            records = outcome.value.data
    """

    def __init__(
        self,
        transport: HttpTransport,
        entity: str,
        *,
        base_url: str,
        item_type: Type[ItemT] = dict,  # type: ignore[assignment]
        executor: Optional[RequestExecutor] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        save: Optional[SaveFn] = None,
    ) -> None:
        self._transport = transport
        self.entity = entity
        self.base_url = base_url
        self.item_type = item_type
        self._executor = executor or RequestExecutor()
        self.timeout_ms = timeout_ms
        self._save = save or save_to_directory(Path.cwd() / "downloads")

    @classmethod
    def from_config(
        cls,
        transport: HttpTransport,
        entity: str,
        config: HttpClientConfig,
        *,
        item_type: Type[ItemT] = dict,  # type: ignore[assignment]
        sleep: Any = None,
    ) -> "EntityClient[ItemT]":
        executor = RequestExecutor(config.retry_attempts, config.retry_delay_ms, sleep=sleep)
        return cls(
            transport,
            entity,
            base_url=config.base_url,
            item_type=item_type,
            executor=executor,
            timeout_ms=config.timeout_ms,
            save=save_to_directory(config.download_dir),
        )

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    def build_url(self, path: Any = None) -> str:
        return build_url(self.base_url, self.entity, path)

    # ========== PATH-RELATIVE VERBS ==========

    async def get(
        self,
        path: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        data_type: Any = Any,
    ) -> Outcome[ApiEnvelope]:
        url = self.build_url(path)
        query = clean_query(params)

        async def request() -> ApiEnvelope:
            raw = await self._transport.send("GET", url, params=query, timeout_ms=self.timeout_ms)
            return parse_envelope(raw, data_type)

        return await self._executor.execute(request)

    async def delete(self, path: Any = None, *, data_type: Any = Any) -> Outcome[ApiEnvelope]:
        url = self.build_url(path)

        async def request() -> ApiEnvelope:
            raw = await self._transport.send("DELETE", url, timeout_ms=self.timeout_ms)
            return parse_envelope(raw, data_type)

        # DELETE is treated as idempotent and retried
        return await self._executor.execute(request)

    async def _send_once(
        self,
        method: str,
        path: Any,
        *,
        data_type: Any,
        **send_kwargs: Any,
    ) -> Outcome[ApiEnvelope]:
        url = self.build_url(path)

        async def request() -> ApiEnvelope:
            raw = await self._transport.send(method, url, timeout_ms=self.timeout_ms, **send_kwargs)
            return parse_envelope(raw, data_type)

        return await self._executor.execute_once(request)

    async def post(self, body: Any, path: Any = None, *, data_type: Any = Any) -> Outcome[ApiEnvelope]:
        return await self._send_once("POST", path, data_type=data_type, json_body=body)

    async def put(self, body: Any, path: Any = None, *, data_type: Any = Any) -> Outcome[ApiEnvelope]:
        return await self._send_once("PUT", path, data_type=data_type, json_body=body)

    async def patch_path(self, body: Any, path: Any = None, *, data_type: Any = Any) -> Outcome[ApiEnvelope]:
        return await self._send_once("PATCH", path, data_type=data_type, json_body=body)

    async def post_form(
        self,
        path: Any,
        *,
        files: Any,
        fields: Optional[Mapping[str, Any]] = None,
        data_type: Any = Any,
    ) -> Outcome[ApiEnvelope]:
        """Multipart POST; httpx sets the boundary Content-Type."""
        return await self._send_once(
            "POST", path, data_type=data_type, files=files, data=_form_fields(fields)
        )

    # ========== CRUD ==========

    async def list(
        self,
        pagination: Optional[PaginationParams] = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Outcome[ApiEnvelope[List[ItemT]]]:
        query = dict(params or {})
        query.update(pagination_query(pagination))
        return await self.get(None, params=query, data_type=List[self.item_type])

    async def get_by_id(self, item_id: Any) -> Outcome[ApiEnvelope[ItemT]]:
        return await self.get(item_id, data_type=self.item_type)

    async def create(self, data: Any) -> Outcome[ApiEnvelope[ItemT]]:
        return await self.post(data, data_type=self.item_type)

    async def update(self, item_id: Any, data: Any) -> Outcome[ApiEnvelope[ItemT]]:
        return await self.put(data, item_id, data_type=self.item_type)

    async def patch(self, item_id: Any, data: Any) -> Outcome[ApiEnvelope[ItemT]]:
        return await self.patch_path(data, item_id, data_type=self.item_type)

    async def remove(self, item_id: Any) -> Outcome[ApiEnvelope[Any]]:
        return await self.delete(item_id)

    async def search(
        self,
        filters: Mapping[str, Any],
        pagination: Optional[PaginationParams] = None,
    ) -> Outcome[ApiEnvelope[List[ItemT]]]:
        query = pagination_query(pagination)
        query.update(filters)
        return await self.get("search", params=query, data_type=List[self.item_type])

    # ========== FILES ==========

    async def upload_file(
        self,
        file: FileSpec,
        extra_fields: Optional[Mapping[str, Any]] = None,
        *,
        path: Any = "upload",
        data_type: Any = Any,
    ) -> Outcome[ApiEnvelope]:
        return await self.post_form(
            path, files={"file": _file_part(file)}, fields=extra_fields, data_type=data_type
        )

    async def download_file(
        self,
        filename: str,
        *,
        path: Any = "download",
        params: Optional[Mapping[str, Any]] = None,
        save: Optional[SaveFn] = None,
    ) -> Outcome[bytes]:
        """Fetch a binary body and hand it to the save collaborator."""

        url = self.build_url(path)
        query = clean_query(params)

        async def request() -> bytes:
            raw = await self._transport.send("GET", url, params=query, timeout_ms=self.timeout_ms)
            return raw.content

        outcome = await self._executor.execute(request)
        if outcome.ok:
            (save or self._save)(outcome.value, filename)
        return outcome

    # ========== BULK ==========

    async def bulk_update(self, updates: Sequence[Mapping[str, Any]]) -> Outcome[ApiEnvelope[List[ItemT]]]:
        return await self.post(list(updates), "bulk-update", data_type=List[self.item_type])

    async def bulk_delete(self, ids: Sequence[Any]) -> Outcome[ApiEnvelope[Any]]:
        return await self.post({"ids": list(ids)}, "bulk-delete")

    async def bulk_upload(
        self,
        files: Sequence[FileSpec],
        extra_fields: Optional[Mapping[str, Any]] = None,
        *,
        path: Any = "bulk",
    ) -> Outcome[ApiEnvelope[BulkUploadResult]]:
        parts = [("files", _file_part(file)) for file in files]
        return await self.post_form(path, files=parts, fields=extra_fields, data_type=BulkUploadResult)
