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

import enum
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import overload

from filekit.common import FormFile
from filekit.common.exceptions import ClientTypeError, ClientValueError, StorageFileNotFoundError

__all__ = [
    "CreateFileRequest",
    "DeletedFile",
    "FileList",
    "FilePurpose",
    "FileRecord",
    "FileStatus",
]


class FilePurpose(str, enum.Enum):
    """Known purposes for uploaded files.

    Any string is accepted where a purpose is expected, so purposes added by the service keep working.
    """

    ASSISTANTS = "assistants"
    ASSISTANTS_OUTPUT = "assistants_output"
    BATCH = "batch"
    BATCH_OUTPUT = "batch_output"
    FINE_TUNE = "fine-tune"
    FINE_TUNE_RESULTS = "fine-tune-results"
    VISION = "vision"
    USER_DATA = "user_data"

    def __str__(self) -> str:
        return self.value


class FileStatus(str, enum.Enum):
    """Processing status of an uploaded file."""

    UPLOADED = "uploaded"
    PROCESSED = "processed"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, kw_only=True)
class CreateFileRequest:
    """A file to upload."""

    file: bytes | str
    """The file content. Text is encoded as UTF-8."""

    filename: str
    """The filename reported to the service."""

    purpose: FilePurpose | str
    """The intended purpose of the file."""

    content_type: str = "application/octet-stream"
    """The media type of the file content."""

    def __post_init__(self) -> None:
        if not isinstance(self.file, (bytes, str)):
            raise ClientTypeError(
                f"File content must be bytes or str, not {type(self.file).__name__}.", valid_classes=(bytes, str)
            )
        if not self.filename:
            raise ClientValueError("A filename is required.")
        if not str(self.purpose):
            raise ClientValueError("A purpose is required.")

    @classmethod
    def from_path(
        cls, path: str | Path, purpose: FilePurpose | str, content_type: str = "application/octet-stream"
    ) -> CreateFileRequest:
        """Read a file from disk.

        :param path: The path to the file. The base name is used as the filename.
        :param purpose: The intended purpose of the file.
        :param content_type: The media type of the file content.

        :return: A new CreateFileRequest.

        :raise StorageFileNotFoundError: If the file does not exist.
        """
        path = Path(path)
        if not path.is_file():
            raise StorageFileNotFoundError(f"File not found: {path}")
        return cls(file=path.read_bytes(), filename=path.name, purpose=purpose, content_type=content_type)

    @property
    def size(self) -> int:
        """The size of the encoded content, in bytes."""
        return len(self.content)

    @property
    def content(self) -> bytes:
        """The content as it is sent to the service."""
        return self.file.encode("utf-8") if isinstance(self.file, str) else self.file

    def as_form_file(self) -> FormFile:
        return FormFile(filename=self.filename, content=self.content, content_type=self.content_type)


@dataclass(frozen=True, kw_only=True)
class FileRecord:
    """Metadata about an uploaded file."""

    id: str
    """The file identifier. Identifiers are opaque and should be used verbatim."""

    bytes: int
    """The size of the file, in bytes."""

    filename: str
    purpose: str
    created_at: datetime
    """When the file was created, in UTC."""

    status: str | None = None
    """The processing status. See `FileStatus` for known values."""

    status_details: str | None = None
    expires_at: datetime | None = None

    @property
    def is_processed(self) -> bool:
        """Whether the service has finished processing the file, successfully or not."""
        return self.status in (FileStatus.PROCESSED, FileStatus.ERROR)


@dataclass(frozen=True, kw_only=True)
class DeletedFile:
    id: str
    deleted: bool


class FileList(Sequence[FileRecord]):
    """A page of files from a list response.

    Items are kept in the order returned by the service.
    """

    def __init__(
        self,
        *,
        items: Sequence[FileRecord],
        has_more: bool = False,
        first_id: str | None = None,
        last_id: str | None = None,
    ) -> None:
        self._items = tuple(items)
        self._has_more = has_more
        self._first_id = first_id
        self._last_id = last_id

    @property
    def has_more(self) -> bool:
        """Whether more files are available after this page."""
        return self._has_more

    @property
    def first_id(self) -> str | None:
        return self._first_id

    @property
    def last_id(self) -> str | None:
        """The ID of the last file in the page, used as the cursor for the next page."""
        return self._last_id

    @property
    def size(self) -> int:
        """The number of items in the page."""
        return len(self._items)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self._items)

    def items(self) -> list[FileRecord]:
        """Get the items that are in the page.

        :returns: A list of items in the page.
        """
        return list(self._items)

    @overload
    def __getitem__(self, key: int) -> FileRecord: ...

    @overload
    def __getitem__(self, key: slice) -> list[FileRecord]: ...

    def __getitem__(self, key: int | slice) -> FileRecord | list[FileRecord]:
        """Get an item or items from the page.

        :param key: The index of the item to get, or a slice of items to get.

        :returns: The item or items from the page.
        """
        if isinstance(key, int):
            return self._items[key]
        elif isinstance(key, slice):
            return list(self._items[key])
        else:
            raise TypeError(f"Invalid key type: {type(key)}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(size={self.size}, has_more={self.has_more}, last_id={self.last_id!r})"
