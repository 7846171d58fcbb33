"""Tests for the records and drive resource helpers."""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from RestScroll.DataAccess.pagination import PaginationEngine, ScrollPhase, TokenStrategy
from RestScroll.DataAccess.resources import drive, records
from RestScroll.DataAccess.types import PageParams, TokenParams


class TestRecords:
    def test_list_records_with_favorite_filter(self, api, make_client):
        api.reply_ok([]).reply_ok([])
        client = make_client("records")

        async def scenario():
            await records.list_records(client, PageParams(page=1, size=10, sort_by="datePublished"))
            await records.list_records(client, PageParams(page=2, size=10), is_favorite=False)

        asyncio.run(scenario())
        assert dict(api.requests[0].url.params) == {"page": "1", "size": "10", "sortBy": "datePublished"}
        assert dict(api.requests[1].url.params) == {"page": "2", "size": "10", "isFavorite": "false"}

    def test_list_records_keeps_filters(self, api, make_client):
        api.reply_ok([])
        client = make_client("records")

        asyncio.run(
            records.list_records(client, PageParams(page=1, size=5, filters={"mood": "calm"}), is_favorite=True)
        )

        assert dict(api.requests[0].url.params) == {
            "page": "1",
            "size": "5",
            "mood": "calm",
            "isFavorite": "true",
        }

    def test_favorite_records_defaults(self, api, make_client):
        api.reply_ok([])
        client = make_client("records")

        asyncio.run(records.list_favorite_records(client))

        assert dict(api.requests[0].url.params) == {
            "page": "1",
            "size": "10",
            "sortBy": "ASC",
            "isFavorite": "true",
        }

    def test_toggle_favorite_patches_current_value(self, api, make_client):
        api.reply_ok({"id": 3, "isFavorite": True})
        client = make_client("records")

        asyncio.run(records.toggle_favorite(client, {"id": 3, "title": "x", "isFavorite": True}))

        assert api.requests[0].method == "PATCH"
        assert api.requests[0].url.path == "/api/records/3"
        assert api.last_json() == {"isFavorite": True}

    def test_bulk_update_requires_ids(self, api, make_client):
        client = make_client("records")
        with pytest.raises(ValueError):
            asyncio.run(records.bulk_update_records(client, [{"title": "no id"}]))
        assert api.calls == 0


class TestDrive:
    def test_list_files_parses_file_list(self, api, make_client):
        api.reply_ok({"files": [{"id": "f1", "name": "a.png"}], "nextPageToken": "n2"})
        client = make_client("drive")

        outcome = asyncio.run(drive.list_files(client, TokenParams(page_size="10", order_by="name")))

        assert outcome.value.data.files[0]["id"] == "f1"
        assert outcome.value.data.nextPageToken == "n2"
        assert api.requests[0].url.path == "/api/drive/files"
        assert dict(api.requests[0].url.params) == {"pageSize": "10", "orderBy": "name"}

    def test_folder_contents_default_page_size(self, api, make_client):
        api.reply_ok({"files": []})
        client = make_client("drive")

        asyncio.run(drive.get_folder_contents(client, "folder-1"))

        assert dict(api.requests[0].url.params) == {"folderId": "folder-1", "pageSize": "10"}

    def test_search_defaults(self, api, make_client):
        api.reply_ok({"files": []})
        client = make_client("drive")

        asyncio.run(drive.get_files_by_mime_type(client, "application/pdf"))

        request = api.requests[0]
        assert request.url.path == "/api/drive/files/search"
        assert dict(request.url.params) == {
            "mimeType": "application/pdf",
            "folderId": "root",
            "pageSize": "10",
            "orderBy": "name",
        }

    def test_recently_modified(self, api, make_client):
        api.reply_ok({"files": []})
        client = make_client("drive")
        now = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)

        asyncio.run(drive.get_recently_modified_files(client, 3, now=now))

        params = api.requests[0].url.params
        assert params["modifiedAfter"] == "2024-05-07T12:00:00+00:00"
        assert params["orderBy"] == "modifiedTime desc"

    def test_file_operations(self, api, make_client):
        api.reply_ok({"id": "f1"}).reply_ok(None).reply_ok({"id": "d1"}).reply_ok({"link": "https://share/x"})
        client = make_client("drive")

        async def scenario():
            await drive.get_file_metadata(client, "f1")
            await drive.delete_file(client, "f1")
            await drive.create_folder(client, "Photos", parent_id="root")
            return await drive.get_shareable_link(client, "f1")

        link = asyncio.run(scenario())
        assert [(r.method, r.url.path) for r in api.requests] == [
            ("GET", "/api/drive/files/f1"),
            ("DELETE", "/api/drive/files/f1"),
            ("POST", "/api/drive/folders"),
            ("POST", "/api/drive/files/f1/share"),
        ]
        assert link.value.data.link == "https://share/x"

    def test_bulk_operations(self, api, make_client):
        api.reply_ok({"deletedFiles": ["a"]}).reply_ok({"movedFiles": ["a"]})
        client = make_client("drive")

        async def scenario():
            await drive.bulk_delete_files(client, ["a", "b"])
            first = api.last_json()
            await drive.bulk_move_files(client, ["a"], "folder-2")
            return first

        first = asyncio.run(scenario())
        assert first == {"fileIds": ["a", "b"]}
        assert api.last_json() == {"fileIds": ["a"], "targetFolderId": "folder-2"}
        assert api.requests[1].url.path == "/api/drive/files/bulk-move"

    def test_upload_drive_file_fields(self, api, make_client):
        api.reply_ok({"id": "new"})
        client = make_client("drive")

        asyncio.run(drive.upload_drive_file(client, ("a.txt", b"a"), parent_id="p1", name="renamed.txt"))

        body = api.requests[0].content
        assert api.requests[0].url.path == "/api/drive/files"
        assert b'name="parentId"' in body and b"p1" in body
        assert b'name="description"' not in body

    def test_upload_bulk_files(self, api, make_client):
        api.reply_ok({"successfulUploads": [], "failedUploads": [{"fileName": "a.txt", "error": "quota"}]})
        client = make_client("drive")

        outcome = asyncio.run(drive.upload_bulk_files(client, [("a.txt", b"a")], parent_id="p1"))

        assert api.requests[0].url.path == "/api/drive/files/bulk"
        assert b'name="folderId"' in api.requests[0].content
        assert outcome.value.data.failedUploads[0].error == "quota"

    def test_download_drive_file(self, api, make_client, tmp_path):
        api.reply_raw(httpx.Response(200, content=b"bytes"))
        client = make_client("drive")

        asyncio.run(drive.download_drive_file(client, "f9", "photo.jpg"))

        assert api.requests[0].url.path == "/api/drive/files/f9/download"
        assert (tmp_path / "downloads" / "photo.jpg").read_bytes() == b"bytes"

    def test_engine_over_drive_files(self, api, make_client):
        api.reply_ok({"files": [{"id": "a"}, {"id": "b"}], "nextPageToken": "t2"})
        api.reply_ok({"files": [{"id": "c"}]})
        client = make_client("drive")
        engine = PaginationEngine(drive.files_fetcher(client, "root"), TokenStrategy(page_size="2"))

        async def scenario():
            await engine.request_more()
            await engine.request_more()

        asyncio.run(scenario())
        assert [f["id"] for f in engine.state.items] == ["a", "b", "c"]
        assert engine.state.phase is ScrollPhase.COMPLETE
        assert api.requests[1].url.params["pageToken"] == "t2"
        assert api.requests[1].url.params["folderId"] == "root"
