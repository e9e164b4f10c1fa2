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

from collections.abc import Sequence
from types import TracebackType

from pure_interface import Interface

from .data import FormFile, HTTPHeaderDict, HTTPResponse, RequestMethod

__all__ = [
    "FormFields",
    "IAuthorizer",
    "ITransport",
    "Timeout",
]

FormFields = Sequence[tuple[str, str | FormFile]]
"""Fields of a `multipart/form-data` body, in order. `FormFile` values are sent as file parts."""

Timeout = int | float | tuple[int | float, int | float] | None
"""A total timeout, or a (connect, read) pair, in seconds."""


class ITransport(Interface):
    """Sends HTTP requests for the Files API.

    Transports are reentrant. Every `open` must be matched by a `close`, and the underlying connections are kept
    until the last handle is closed, so a caller can hold the transport open to reuse connections across requests.
    Implementations must be safe to share between concurrent tasks.
    """

    async def open(self) -> None:
        """Acquire a handle on the transport, creating the connection pool if there is none."""
        ...  # pragma: no cover

    async def close(self) -> None:
        """Release a handle on the transport. The connection pool is closed with the last handle."""
        ...  # pragma: no cover

    async def __aenter__(self) -> ITransport: ...

    async def __aexit__(
        self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: TracebackType | None
    ) -> None: ...

    async def request(
        self,
        method: RequestMethod,
        url: str,
        headers: HTTPHeaderDict | None = None,
        form: FormFields | None = None,
        request_timeout: Timeout = None,
    ) -> HTTPResponse:
        """Send one request and read the whole response.

        Redirects are returned to the caller, never followed. Error statuses are returned like any other response.

        :param method: HTTP request method.
        :param url: The absolute request URL, including the query string.
        :param headers: Request headers.
        :param form: Fields to send as a `multipart/form-data` body. Requests without a form have no body.
        :param request_timeout: Timeout for this request.

        :return: The response.

        :raise TransportError: If no response could be received.
        """
        ...  # pragma: no cover


class IAuthorizer(Interface):
    """Provides the credentials for each request."""

    async def get_default_headers(self) -> HTTPHeaderDict:
        """Get the headers that authorize a request."""
        ...  # pragma: no cover

    async def refresh_token(self) -> bool:
        """Try to renew the credentials after a request was rejected as unauthorized.

        :return: True if the request should be sent again with new headers.
        """
        ...  # pragma: no cover
