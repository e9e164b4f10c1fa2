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

import copy
import enum
import re
from collections.abc import ItemsView, Iterator, KeysView, Mapping, MutableMapping, Sequence, ValuesView
from dataclasses import dataclass, field

__all__ = [
    "FormFile",
    "HTTPHeaderDict",
    "HTTPResponse",
    "RequestMethod",
    "get_charset",
]

_SENSITIVE_HEADERS = frozenset({"Authorization", "Proxy-Authorization", "Cookie", "Set-Cookie"})


class RequestMethod(str, enum.Enum):
    """HTTP request method."""

    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"

    def __str__(self) -> str:
        return self.value


class HTTPHeaderDict(MutableMapping[str, str]):
    """Case-insensitive mapping of HTTP headers.

    Keys are normalised to title case. Setting a header that is already present appends the new value to the existing
    one, separated by a comma (RFC 7230 section 3.2.2), except for `Set-Cookie` which is replaced.
    """

    def __init__(self, seq: Mapping[str, str] | Sequence[tuple[str, str]] | None = None, **kwargs: str) -> None:
        self.__values: dict[str, str] = {}
        self.update(seq, **kwargs)

    def update(self, seq: Mapping[str, str] | Sequence[tuple[str, str]] | None = None, **kwargs: str) -> None:
        if isinstance(seq, Mapping):
            self.__update_from_mapping(seq)
        elif isinstance(seq, Sequence):
            self.__update_from_sequence(seq)

        self.__update_from_mapping(kwargs)

    def __update_from_mapping(self, mapping: Mapping[str, str]) -> None:
        for key, value in mapping.items():
            self.__setitem__(key, value)

    def __update_from_sequence(self, seq: Sequence[tuple[str, str]]) -> None:
        for key, value in seq:
            self.__setitem__(key, value)

    def __setitem__(self, key: str, value: str) -> None:
        lookup = key.title()
        if lookup in self.__values and lookup != "Set-Cookie":
            self.__values[lookup] += "," + value
        else:
            self.__values[lookup] = value

    def replace(self, headers: Mapping[str, str]) -> None:
        """Set each header in `headers`, discarding any value that is already present."""
        for key, value in headers.items():
            self.__values[key.title()] = value

    def __delitem__(self, key: str) -> None:
        del self.__values[key.title()]

    def __getitem__(self, key: str) -> str:
        return self.__values[key.title()]

    def __len__(self) -> int:
        return len(self.__values)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __contains__(self, item: object) -> bool:
        return isinstance(item, str) and item.title() in self.__values

    def __repr__(self) -> str:
        repr_data = {key: "*****" if key in _SENSITIVE_HEADERS else value for key, value in self.items()}
        return f"{self.__class__.__name__}({repr_data!r})"

    def items(self) -> ItemsView[str, str]:
        return ItemsView(self)

    def keys(self) -> KeysView[str]:
        return KeysView(self.__values)

    def values(self) -> ValuesView[str]:
        return ValuesView(self.__values)

    def copy(self) -> HTTPHeaderDict:
        return copy.deepcopy(self)


@dataclass(frozen=True, kw_only=True)
class HTTPResponse:
    """A complete HTTP response, with the body read into memory."""

    status: int
    data: bytes
    reason: str | None = None
    headers: HTTPHeaderDict = field(default_factory=HTTPHeaderDict)

    def getheaders(self) -> HTTPHeaderDict:
        return self.headers.copy()

    def getheader(self, key: str, default: str | None = None) -> str | None:
        return self.headers.get(key, default)


_RE_CHARSET = re.compile(r"""charset\s*=\s*(?P<quote>["']?)(?P<charset>[\w.:+-]+)(?P=quote)""", re.IGNORECASE)


def get_charset(content_type: str | None, default: str = "utf-8") -> str:
    """Get the `charset` parameter of a `Content-Type` header value.

    Quoted values are accepted, e.g. `text/plain; charset="latin-1"`.

    :param content_type: The header value, or None if the header is missing.
    :param default: The charset to return if none is declared.

    :return: The declared charset, or the default.
    """
    if content_type is not None and (match := _RE_CHARSET.search(content_type)):
        return match.group("charset")
    return default


@dataclass(frozen=True, kw_only=True)
class FormFile:
    """A file part of a `multipart/form-data` request body."""

    filename: str
    """The filename reported in the part's `Content-Disposition` header."""

    content: bytes
    """The raw file content."""

    content_type: str = "application/octet-stream"
    """The media type of the part."""

    def __repr__(self) -> str:
        # File content may be large, so only report its size.
        return (
            f"{self.__class__.__name__}(filename={self.filename!r}, size={len(self.content)}, "
            f"content_type={self.content_type!r})"
        )
