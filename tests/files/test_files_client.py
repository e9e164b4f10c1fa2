#  Copyright © 2025 Bentley Systems, Incorporated
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#      http://www.apache.org/licenses/LICENSE-2.0
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.

import json
from typing import Any
from unittest import mock
from urllib.parse import parse_qs, urlparse

from parameterized import parameterized

from data import load_test_data, resolve_file
from filekit.common import FormFile, HTTPHeaderDict, RequestMethod
from filekit.common.exceptions import ClientValueError, NotFoundException, SerializationError
from filekit.common.interfaces import FormFields, Timeout
from filekit.common.test_tools import AbstractTestRequestHandler, MockResponse, TestWithConnector, utc_datetime
from filekit.common.utils import get_header_metadata
from filekit.files import (
    CreateFileRequest,
    DeletedFile,
    FileList,
    FileProcessingTimeout,
    FilePurpose,
    FileRecord,
    FilesClient,
    FileStatus,
)
from filekit.files.endpoints import FilesApi

_JSON_HEADERS = {"Content-Type": "application/json"}


def _json_response(filename: str) -> MockResponse:
    return MockResponse(status_code=200, content=json.dumps(load_test_data(filename)), headers=_JSON_HEADERS)


class InMemoryFilesHandler(AbstractTestRequestHandler):
    """Simulates the Files API with an in-memory store."""

    def __init__(self) -> None:
        self.files: dict[str, dict[str, Any]] = {}
        self.contents: dict[str, bytes] = {}

    async def request(
        self,
        method: RequestMethod,
        url: str,
        headers: HTTPHeaderDict | None = None,
        form: FormFields | None = None,
        request_timeout: Timeout = None,
    ) -> MockResponse:
        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        match method, parsed.path.removeprefix("/v1/").split("/"):
            case RequestMethod.POST, ["files"]:
                return self._create(dict(form))
            case RequestMethod.GET, ["files"]:
                return self._list(query.get("purpose", [None])[0])
            case RequestMethod.GET, ["files", file_id] if file_id in self.files:
                return MockResponse.json(200, self.files[file_id])
            case RequestMethod.DELETE, ["files", file_id] if file_id in self.files:
                del self.files[file_id]
                del self.contents[file_id]
                return MockResponse.json(200, {"id": file_id, "object": "file", "deleted": True})
            case RequestMethod.GET, ["files", file_id, "content"] if file_id in self.files:
                content = self.contents[file_id]
                return MockResponse(200, body=content, headers={"Content-Type": "application/octet-stream"})
            case _:
                return self.not_found()

    def _create(self, form: dict[str, Any]) -> MockResponse:
        file: FormFile = form["file"]
        file_id = f"file-{len(self.files) + 1:06d}"
        self.files[file_id] = {
            "id": file_id,
            "object": "file",
            "bytes": len(file.content),
            "created_at": 1700000000 + len(self.files),
            "filename": file.filename,
            "purpose": form["purpose"],
            "status": "processed",
        }
        self.contents[file_id] = file.content
        return MockResponse.json(200, self.files[file_id])

    def _list(self, purpose: str | None) -> MockResponse:
        data = [file for file in self.files.values() if purpose is None or file["purpose"] == purpose]
        return MockResponse.json(
            200,
            {
                "object": "list",
                "data": data,
                "first_id": data[0]["id"] if data else None,
                "last_id": data[-1]["id"] if data else None,
                "has_more": False,
            },
        )


class TestFilesClient(TestWithConnector):
    def setUp(self) -> None:
        TestWithConnector.setUp(self)
        self.files_client = FilesClient(connector=self.connector)
        self.setup_universal_headers(get_header_metadata(FilesApi.__module__))

    @property
    def jsonl_content(self) -> bytes:
        return resolve_file("test.jsonl").read_bytes()

    @property
    def expected_jsonl_record(self) -> FileRecord:
        return FileRecord(
            id="file-abc123",
            bytes=135,
            filename="test.jsonl",
            purpose="fine-tune",
            created_at=utc_datetime(2023, 11, 14, 22, 13, 20),
            status="processed",
        )

    async def test_create(self) -> None:
        request = CreateFileRequest(file=self.jsonl_content, filename="test.jsonl", purpose=FilePurpose.FINE_TUNE)
        self.transport.request.return_value = _json_response("file_test_jsonl.json")
        record = await self.files_client.create(request)

        self.assertEqual(self.expected_jsonl_record, record)
        self.assert_request_made(
            method=RequestMethod.POST,
            path="files",
            headers={"Accept": "application/json"},
            form=[
                ("purpose", "fine-tune"),
                ("file", FormFile(filename="test.jsonl", content=self.jsonl_content)),
            ],
        )

    async def test_create_text_with_content_type(self) -> None:
        request = CreateFileRequest(
            file="a,b\n1,2\n", filename="table.csv", purpose="user_data", content_type="text/csv"
        )
        self.transport.request.return_value = _json_response("file_uploaded.json")
        await self.files_client.create(request)
        self.assert_request_made(
            method=RequestMethod.POST,
            path="files",
            headers={"Accept": "application/json"},
            form=[
                ("purpose", "user_data"),
                ("file", FormFile(filename="table.csv", content=b"a,b\n1,2\n", content_type="text/csv")),
            ],
        )

    async def test_create_invalid_response(self) -> None:
        request = CreateFileRequest(file=b"{}", filename="test.jsonl", purpose="fine-tune")
        with self.transport.set_http_response(200, json.dumps({"id": "file-abc123"}), headers=_JSON_HEADERS):
            with self.assertRaises(SerializationError):
                await self.files_client.create(request)

    async def test_list_default_args(self) -> None:
        self.transport.request.return_value = _json_response("list_files_empty.json")
        page = await self.files_client.list()
        self.assertIsInstance(page, FileList)
        self.assertEqual([], page.items())
        self.assertFalse(page.has_more)
        self.assertIsNone(page.last_id)
        self.assert_request_made(method=RequestMethod.GET, path="files", headers={"Accept": "application/json"})

    async def test_list_with_query(self) -> None:
        self.transport.request.return_value = _json_response("list_files_1.json")
        page = await self.files_client.list({"purpose": "fine-tune", "limit": 10})

        self.assertEqual([self.expected_jsonl_record], page.items())
        self.assertEqual("file-abc123", page.first_id)
        self.assert_request_made(
            method=RequestMethod.GET,
            path="files?purpose=fine-tune&limit=10",
            headers={"Accept": "application/json"},
        )

    async def test_list_preserves_order(self) -> None:
        self.transport.request.return_value = _json_response("list_files_0.json")
        page = await self.files_client.list([("purpose", FilePurpose.BATCH)])

        self.assertEqual(["file-xyz789", "file-def456"], [file.id for file in page])
        self.assertEqual(2, len(page))
        self.assertTrue(page.has_more)
        self.assertEqual("file-def456", page.last_id)
        self.assertEqual(utc_datetime(2023, 11, 14, 19, 26, 40), page[1].created_at)
        self.assert_request_made(
            method=RequestMethod.GET, path="files?purpose=batch", headers={"Accept": "application/json"}
        )

    async def test_list_all(self) -> None:
        self.transport.request.side_effect = [_json_response("list_files_0.json"), _json_response("list_files_1.json")]
        files = await self.files_client.list_all({"order": "desc", "after": "ignored"}, limit_per_request=2)

        self.assertEqual(["file-xyz789", "file-def456", "file-abc123"], [file.id for file in files])
        self.transport.assert_n_requests_made(2)
        self.assert_any_request_made(
            method=RequestMethod.GET, path="files?order=desc&limit=2", headers={"Accept": "application/json"}
        )
        self.assert_request_made(
            method=RequestMethod.GET,
            path="files?order=desc&limit=2&after=file-def456",
            headers={"Accept": "application/json"},
        )

    async def test_list_all_without_last_id(self) -> None:
        first, second = load_test_data("list_files_0.json"), load_test_data("list_files_1.json")
        for page in (first, second):
            del page["first_id"], page["last_id"]
        self.transport.request.side_effect = [MockResponse.json(200, first), MockResponse.json(200, second)]

        files = await self.files_client.list_all(limit_per_request=2)

        self.assertEqual(["file-xyz789", "file-def456", "file-abc123"], [file.id for file in files])
        self.assert_request_made(
            method=RequestMethod.GET, path="files?limit=2&after=file-def456", headers={"Accept": "application/json"}
        )

    async def test_list_all_empty_page_with_more(self) -> None:
        empty = {**load_test_data("list_files_empty.json"), "has_more": True}
        self.transport.request.return_value = MockResponse.json(200, empty)
        with self.assertRaises(SerializationError):
            await self.files_client.list_all()
        self.transport.assert_n_requests_made(1)

    async def test_list_all_invalid_limit(self) -> None:
        with self.assertRaises(ClientValueError):
            await self.files_client.list_all(limit_per_request=0)
        self.transport.assert_no_requests()

    async def test_retrieve(self) -> None:
        self.transport.request.return_value = _json_response("file_uploaded.json")
        record = await self.files_client.retrieve("file-xyz789")

        expected = FileRecord(
            id="file-xyz789",
            bytes=2048,
            filename="batch_input.jsonl",
            purpose="batch",
            created_at=utc_datetime(2023, 11, 14, 22, 15),
            status=FileStatus.UPLOADED,
            expires_at=utc_datetime(2023, 12, 14, 22, 15),
        )
        self.assertEqual(expected, record)
        self.assertFalse(record.is_processed)
        self.assert_request_made(
            method=RequestMethod.GET, path="files/file-xyz789", headers={"Accept": "application/json"}
        )

    async def test_retrieve_escapes_id(self) -> None:
        self.transport.request.return_value = _json_response("file_uploaded.json")
        await self.files_client.retrieve("file/../x")
        self.assert_request_made(
            method=RequestMethod.GET, path="files/file%2F..%2Fx", headers={"Accept": "application/json"}
        )

    async def test_retrieve_not_found(self) -> None:
        with self.transport.set_http_response(
            404, json.dumps(load_test_data("error_not_found.json")), reason="Not Found", headers=_JSON_HEADERS
        ):
            with self.assertRaises(NotFoundException) as cm:
                await self.files_client.retrieve("file-missing")
        self.assertEqual("No such File object: file-missing", cm.exception.message)
        self.assertEqual("invalid_request_error", cm.exception.type_)
        self.assertEqual("id", cm.exception.param)

    async def test_delete(self) -> None:
        self.transport.request.return_value = _json_response("delete_file.json")
        result = await self.files_client.delete("file-abc123")
        self.assertEqual(DeletedFile(id="file-abc123", deleted=True), result)
        self.assert_request_made(
            method=RequestMethod.DELETE, path="files/file-abc123", headers={"Accept": "application/json"}
        )

    async def test_retrieve_content(self) -> None:
        with self.transport.set_http_response(
            200, self.jsonl_content, headers={"Content-Type": "application/octet-stream"}
        ):
            content = await self.files_client.retrieve_content("file-abc123")
        self.assertEqual(self.jsonl_content.decode("utf-8"), content)
        self.assert_request_made(method=RequestMethod.GET, path="files/file-abc123/content")

    async def test_retrieve_content_with_charset(self) -> None:
        with self.transport.set_http_response(
            200, "café\n".encode("latin-1"), headers={"Content-Type": "text/plain; charset=latin-1"}
        ):
            content = await self.files_client.retrieve_content("file-abc123")
        self.assertEqual("café\n", content)

    async def test_retrieve_content_with_quoted_charset(self) -> None:
        with self.transport.set_http_response(
            200, "naïve\n".encode("utf-16"), headers={"Content-Type": 'text/plain; charset="utf-16"'}
        ):
            content = await self.files_client.retrieve_content("file-abc123")
        self.assertEqual("naïve\n", content)

    async def test_retrieve_content_not_text(self) -> None:
        with self.transport.set_http_response(200, b"\x89PNG\r\n\x1a\n\xff\xd8"):
            with self.assertRaises(SerializationError):
                await self.files_client.retrieve_content("file-def456")

    async def test_retrieve_content_bytes(self) -> None:
        with self.transport.set_http_response(200, b"\x89PNG\r\n\x1a\n\xff\xd8"):
            content = await self.files_client.retrieve_content_bytes("file-def456")
        self.assertEqual(b"\x89PNG\r\n\x1a\n\xff\xd8", content)
        self.assert_request_made(method=RequestMethod.GET, path="files/file-def456/content")

    async def test_request_timeout(self) -> None:
        files_client = FilesClient(connector=self.connector, request_timeout=(5, 30))
        self.transport.request.return_value = _json_response("delete_file.json")
        await files_client.delete("file-abc123")
        self.assert_request_made(
            method=RequestMethod.DELETE,
            path="files/file-abc123",
            headers={"Accept": "application/json"},
            request_timeout=(5, 30),
        )

    @parameterized.expand(
        [
            ("retrieve",),
            ("delete",),
            ("retrieve_content",),
            ("retrieve_content_bytes",),
            ("wait_for_processing",),
        ]
    )
    async def test_empty_file_id(self, method_name: str) -> None:
        with self.assertRaises(ClientValueError):
            await getattr(self.files_client, method_name)("")
        self.transport.assert_no_requests()

    async def test_wait_for_processing(self) -> None:
        uploaded = load_test_data("file_uploaded.json")
        processed = {**uploaded, "status": "processed"}
        self.transport.request.side_effect = [
            MockResponse.json(200, uploaded),
            MockResponse.json(200, uploaded),
            MockResponse.json(200, processed),
        ]
        with mock.patch("asyncio.sleep", new_callable=mock.AsyncMock) as mock_sleep:
            record = await self.files_client.wait_for_processing("file-xyz789", poll_interval=2.5)

        self.assertEqual(FileStatus.PROCESSED, record.status)
        self.transport.assert_n_requests_made(3)
        self.assertEqual([mock.call(2.5), mock.call(2.5)], mock_sleep.await_args_list)

    async def test_wait_for_processing_error_status(self) -> None:
        failed = {**load_test_data("file_uploaded.json"), "status": "error", "status_details": "Invalid JSONL"}
        self.transport.request.return_value = MockResponse.json(200, failed)
        record = await self.files_client.wait_for_processing("file-xyz789")
        self.assertEqual("error", record.status)
        self.assertEqual("Invalid JSONL", record.status_details)

    async def test_wait_for_processing_timeout(self) -> None:
        self.transport.request.return_value = _json_response("file_uploaded.json")
        with self.assertRaises(FileProcessingTimeout) as cm:
            await self.files_client.wait_for_processing("file-xyz789", max_wait=0)
        self.assertEqual("file-xyz789", cm.exception.file_id)
        self.assertEqual("uploaded", cm.exception.status)
        self.transport.assert_n_requests_made(1)


class TestFilesLifecycle(TestWithConnector):
    """Exercise the file operations together against a simulated service."""

    def setUp(self) -> None:
        TestWithConnector.setUp(self)
        self.handler = InMemoryFilesHandler()
        self.transport.set_request_handler(self.handler)
        self.files_client = FilesClient(connector=self.connector)

    async def test_upload_list_download_delete(self) -> None:
        await self.files_client.create(CreateFileRequest(file=b"other", filename="other.txt", purpose="assistants"))
        request = CreateFileRequest.from_path(resolve_file("test.jsonl"), purpose=FilePurpose.FINE_TUNE)

        created = await self.files_client.create(request)
        self.assertEqual(135, created.bytes)
        self.assertEqual("test.jsonl", created.filename)
        self.assertEqual("fine-tune", created.purpose)

        retrieved = await self.files_client.retrieve(created.id)
        self.assertEqual(created, retrieved)

        page = await self.files_client.list({"purpose": "fine-tune"})
        self.assertEqual(created, page[-1])
        self.assertEqual(1, len(page))

        content = await self.files_client.retrieve_content(created.id)
        self.assertEqual(resolve_file("test.jsonl").read_text(encoding="utf-8"), content)

        deleted = await self.files_client.delete(created.id)
        self.assertEqual(DeletedFile(id=created.id, deleted=True), deleted)

        with self.assertRaises(NotFoundException):
            await self.files_client.retrieve(created.id)
        with self.assertRaises(NotFoundException):
            await self.files_client.delete(created.id)

    async def test_list_all_without_more_pages(self) -> None:
        for n in range(3):
            await self.files_client.create(CreateFileRequest(file=b"x" * n, filename=f"{n}.txt", purpose="batch"))
        files = await self.files_client.list_all()
        self.assertEqual([0, 1, 2], [file.bytes for file in files])
