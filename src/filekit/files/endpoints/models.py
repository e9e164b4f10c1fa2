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

from pydantic import BaseModel, ConfigDict, StrictBool, StrictInt, StrictStr

__all__ = [
    "DeleteFileResponse",
    "FileObject",
    "ListFilesResponse",
]


class FileObject(BaseModel):
    model_config = ConfigDict(
        extra="allow",
    )

    id: StrictStr
    """The file identifier, which can be referenced in the API endpoints."""

    object: StrictStr = "file"
    """The object type, which is always `file`."""

    bytes: StrictInt
    """The size of the file, in bytes."""

    created_at: StrictInt
    """The Unix timestamp (in seconds) for when the file was created."""

    filename: StrictStr
    """The name of the file."""

    purpose: StrictStr
    """The intended purpose of the file."""

    status: StrictStr | None = None
    """The current status of the file: `uploaded`, `processed`, or `error`."""

    status_details: StrictStr | None = None
    """Details on why a file failed processing."""

    expires_at: StrictInt | None = None
    """The Unix timestamp (in seconds) for when the file will expire."""


class ListFilesResponse(BaseModel):
    model_config = ConfigDict(
        extra="allow",
    )

    object: StrictStr = "list"

    data: list[FileObject]
    """The files in the page, in server order."""

    first_id: StrictStr | None = None
    """The ID of the first file in the page."""

    last_id: StrictStr | None = None
    """The ID of the last file in the page."""

    has_more: StrictBool = False
    """Whether more files are available after this page."""


class DeleteFileResponse(BaseModel):
    model_config = ConfigDict(
        extra="allow",
    )

    id: StrictStr
    object: StrictStr = "file"
    deleted: StrictBool

