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

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from filekit import logging
from filekit.common import APIConnector, get_charset
from filekit.common.exceptions import ClientValueError, SerializationError
from filekit.common.interfaces import Timeout

from .data import CreateFileRequest, DeletedFile, FileList, FileRecord
from .endpoints import FilesApi
from .endpoints.models import FileObject
from .exceptions import FileProcessingTimeout

logger = logging.getLogger("files.client")

__all__ = ["FilesClient"]

_Query = Mapping[str, Any] | Sequence[tuple[str, Any]]


def _timestamp(value: int | None) -> datetime | None:
    return None if value is None else datetime.fromtimestamp(value, timezone.utc)


def _record_from_model(model: FileObject) -> FileRecord:
    """Create a FileRecord instance from a generated FileObject model.

    :param model: The model to create the FileRecord instance from.

    :return: A FileRecord instance.
    """
    return FileRecord(
        id=model.id,
        bytes=model.bytes,
        filename=model.filename,
        purpose=model.purpose,
        created_at=_timestamp(model.created_at),
        status=model.status,
        status_details=model.status_details,
        expires_at=_timestamp(model.expires_at),
    )


def _require_id(file_id: str) -> str:
    if not isinstance(file_id, str) or not file_id:
        raise ClientValueError("file_id must be a non-empty string.")
    return file_id


def _query_pairs(query: _Query | None) -> list[tuple[str, Any]]:
    if query is None:
        return []
    elif isinstance(query, Mapping):
        return list(query.items())
    else:
        return list(query)


class FilesClient:
    """Client for uploading, listing, and retrieving files.

    The client holds a reference to a connector that is owned elsewhere, usually by a `filekit.Client`. Identifiers
    returned by the service are passed back verbatim.
    """

    def __init__(self, connector: APIConnector, request_timeout: Timeout = None) -> None:
        """
        :param connector: The connector object.
        :param request_timeout: Timeout setting applied to every request, either a total or a (connect, read) pair, in
            seconds.
        """
        self._connector = connector
        self._request_timeout = request_timeout
        self._api = FilesApi(connector=connector)

    async def create(self, request: CreateFileRequest) -> FileRecord:
        """Upload a file.

        :param request: The file content, filename, and purpose.

        :return: The uploaded file.

        :raises TransportError: If the request could not be sent.
        :raises APIError: If the API returns an error status code.
        :raises SerializationError: If the response is not a valid file object.
        """
        logger.debug(f"Uploading {request.filename} ({request.size} bytes) for {request.purpose}")
        model = await self._api.create_file(
            file=request.as_form_file(), purpose=str(request.purpose), request_timeout=self._request_timeout
        )
        return _record_from_model(model)

    async def list(self, query: _Query | None = None) -> FileList:
        """List one page of files.

        :param query: Filters passed as query parameters, e.g., `{"purpose": "fine-tune"}`.

        :return: A page of files, in the order returned by the service.
        """
        response = await self._api.list_files(query=_query_pairs(query), request_timeout=self._request_timeout)
        return FileList(
            items=[_record_from_model(model) for model in response.data],
            has_more=response.has_more,
            first_id=response.first_id,
            last_id=response.last_id,
        )

    async def list_all(self, query: _Query | None = None, limit_per_request: int = 100) -> list[FileRecord]:
        """List all files.

        This method calls the list endpoint repeatedly, passing the ID of the last file in each page as the `after`
        cursor, until the service reports that no more files are available. The cursor is the page's `last_id`, or the
        ID of its last file when the service does not report one.

        :param query: Filters passed as query parameters. `limit` and `after` are set by this method.
        :param limit_per_request: The maximum number of files to list in one request.

        :return: A list of all matching files.

        :raises SerializationError: If the service reports more files after an empty page.
        """
        if limit_per_request < 1:
            raise ClientValueError("limit_per_request must be greater than 0.")

        filters = [(key, value) for key, value in _query_pairs(query) if key not in ("limit", "after")]
        items: list[FileRecord] = []
        after: str | None = None
        while True:
            page = await self.list(query=[*filters, ("limit", limit_per_request), ("after", after)])
            items += page.items()
            if not page.has_more:
                return items
            if len(page) == 0:
                raise SerializationError(msg="The service reported more files, but returned an empty page")
            after = page.last_id or page[-1].id

    async def retrieve(self, file_id: str) -> FileRecord:
        """Get the metadata of a file.

        :param file_id: The ID of the file.

        :return: The file.

        :raises NotFoundException: If the file does not exist.
        """
        model = await self._api.retrieve_file(file_id=_require_id(file_id), request_timeout=self._request_timeout)
        return _record_from_model(model)

    async def delete(self, file_id: str) -> DeletedFile:
        """Delete a file.

        :param file_id: The ID of the file.

        :return: The deletion status reported by the service.
        """
        response = await self._api.delete_file(file_id=_require_id(file_id), request_timeout=self._request_timeout)
        return DeletedFile(id=response.id, deleted=response.deleted)

    async def retrieve_content_bytes(self, file_id: str) -> bytes:
        """Get the content of a file, unmodified.

        :param file_id: The ID of the file.

        :return: The file content.
        """
        response = await self._api.download_file(file_id=_require_id(file_id), request_timeout=self._request_timeout)
        return response.data

    async def retrieve_content(self, file_id: str) -> str:
        """Get the content of a file as text.

        The content is decoded with the charset declared by the response, or UTF-8 if there is none.

        :param file_id: The ID of the file.

        :return: The file content.

        :raises SerializationError: If the content cannot be decoded as text.
        """
        response = await self._api.download_file(file_id=_require_id(file_id), request_timeout=self._request_timeout)
        encoding = get_charset(response.getheader("Content-Type"))
        try:
            return response.data.decode(encoding)
        except (UnicodeDecodeError, LookupError) as e:
            raise SerializationError(msg=f"Could not decode the content of {file_id} as {encoding}", caused_by=e)

    async def wait_for_processing(
        self, file_id: str, poll_interval: float = 5.0, max_wait: float = 1800.0
    ) -> FileRecord:
        """Wait until the service has finished processing a file.

        :param file_id: The ID of the file.
        :param poll_interval: Seconds to wait between requests.
        :param max_wait: Maximum number of seconds to wait.

        :return: The file, with a status of `processed` or `error`.

        :raises FileProcessingTimeout: If the file is still being processed after `max_wait` seconds.
        """
        _require_id(file_id)
        if poll_interval <= 0:
            raise ClientValueError("poll_interval must be greater than 0.")

        loop = asyncio.get_running_loop()
        start = loop.time()
        while True:
            record = await self.retrieve(file_id)
            if record.is_processed:
                return record

            elapsed = loop.time() - start
            if elapsed >= max_wait:
                raise FileProcessingTimeout(file_id, record.status, elapsed)

            logger.debug(f"File {file_id} is '{record.status}', checking again in {poll_interval} seconds")
            await asyncio.sleep(min(poll_interval, max_wait - elapsed))
