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

from collections.abc import Mapping, Sequence
from typing import Any

from filekit.common import APIConnector, FormFile, HTTPResponse, RequestMethod
from filekit.common.interfaces import Timeout
from filekit.common.utils import get_header_metadata

from ..models import DeleteFileResponse, FileObject, ListFilesResponse

__all__ = ["FilesApi"]


class FilesApi:
    """API client for the Files endpoints.

    Every method maps to exactly one HTTP endpoint. Arguments are passed through to `APIConnector.call_api` without
    validation.

    :param connector: Client for communicating with the API.
    """

    def __init__(self, connector: APIConnector):
        self.connector = connector

    def _header_params(self, accept: str | None, additional_headers: Mapping[str, str] | None) -> dict[str, str]:
        header_params: dict[str, str] = {}
        if accept is not None:
            header_params["Accept"] = accept
        header_params.update(get_header_metadata(__name__))
        if additional_headers is not None:
            header_params.update(additional_headers)
        return header_params

    async def create_file(
        self,
        file: FormFile,
        purpose: str,
        additional_headers: Mapping[str, str] | None = None,
        request_timeout: Timeout = None,
    ) -> FileObject:
        """Upload a file

        POST /files

        :param file: The file part of the multipart request.
        :param purpose: The intended purpose of the uploaded file.
        :param additional_headers: Additional headers to send with the request.
        :param request_timeout: Timeout setting for this request. If one number is provided, it will be the total
            request timeout. It can also be a pair (tuple) of (connection, read) timeouts.

        :return: The uploaded file.
        """
        return await self.connector.call_api(
            method=RequestMethod.POST,
            resource_path="/files",
            header_params=self._header_params("application/json", additional_headers),
            form=[("purpose", purpose), ("file", file)],
            response_types_map={"200": FileObject, "201": FileObject},
            request_timeout=request_timeout,
        )

    async def list_files(
        self,
        query: Mapping[str, Any] | Sequence[tuple[str, Any]] | None = None,
        additional_headers: Mapping[str, str] | None = None,
        request_timeout: Timeout = None,
    ) -> ListFilesResponse:
        """List files

        GET /files

        :param query: Query parameters, e.g., `purpose`, `limit`, `order`, `after`. Parameters with a value of None are
            omitted.
        :param additional_headers: Additional headers to send with the request.
        :param request_timeout: Timeout setting for this request.

        :return: A page of files.
        """
        return await self.connector.call_api(
            method=RequestMethod.GET,
            resource_path="/files",
            query_params=query,
            header_params=self._header_params("application/json", additional_headers),
            response_types_map={"200": ListFilesResponse},
            request_timeout=request_timeout,
        )

    async def retrieve_file(
        self,
        file_id: str,
        additional_headers: Mapping[str, str] | None = None,
        request_timeout: Timeout = None,
    ) -> FileObject:
        """Retrieve a file

        GET /files/{file_id}

        :param file_id: The ID of the file.
        :param additional_headers: Additional headers to send with the request.
        :param request_timeout: Timeout setting for this request.

        :return: The file.
        """
        return await self.connector.call_api(
            method=RequestMethod.GET,
            resource_path="/files/{file_id}",
            path_params={"file_id": file_id},
            header_params=self._header_params("application/json", additional_headers),
            response_types_map={"200": FileObject},
            request_timeout=request_timeout,
        )

    async def delete_file(
        self,
        file_id: str,
        additional_headers: Mapping[str, str] | None = None,
        request_timeout: Timeout = None,
    ) -> DeleteFileResponse:
        """Delete a file

        DELETE /files/{file_id}

        :param file_id: The ID of the file.
        :param additional_headers: Additional headers to send with the request.
        :param request_timeout: Timeout setting for this request.

        :return: The deletion status.
        """
        return await self.connector.call_api(
            method=RequestMethod.DELETE,
            resource_path="/files/{file_id}",
            path_params={"file_id": file_id},
            header_params=self._header_params("application/json", additional_headers),
            response_types_map={"200": DeleteFileResponse},
            request_timeout=request_timeout,
        )

    async def download_file(
        self,
        file_id: str,
        additional_headers: Mapping[str, str] | None = None,
        request_timeout: Timeout = None,
    ) -> HTTPResponse:
        """Retrieve file content

        GET /files/{file_id}/content

        :param file_id: The ID of the file.
        :param additional_headers: Additional headers to send with the request.
        :param request_timeout: Timeout setting for this request.

        :return: The raw response. The body is the file content.
        """
        return await self.connector.call_api(
            method=RequestMethod.GET,
            resource_path="/files/{file_id}/content",
            path_params={"file_id": file_id},
            header_params=self._header_params(None, additional_headers),
            response_types_map={"200": HTTPResponse},
            request_timeout=request_timeout,
        )
