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
import unittest
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any
from unittest import mock
from urllib.parse import urljoin

from ..connector import APIConnector
from ..data import HTTPHeaderDict, HTTPResponse, RequestMethod
from ..interfaces import FormFields, IAuthorizer, ITransport, Timeout
from .consts import API_KEY, BASE_URL


class TestHTTPHeaderDict(HTTPHeaderDict):
    """HTTPHeaderDict that prints every value, so failed assertions show the authorization header."""

    __test__ = False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({dict(self.items())!r})"


class MockResponse(mock.Mock):
    """A canned HTTPResponse."""

    def __init__(
        self,
        status_code: int,
        reason: str | None = None,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        content: str = "",
    ):
        """
        :param status_code: HTTP status code.
        :param reason: Response reason.
        :param headers: Response headers.
        :param body: Raw response body. Takes precedence over content.
        :param content: Response body as text, encoded as UTF-8.
        """
        super().__init__(spec=HTTPResponse)
        self.status = status_code
        self.reason = reason
        self.headers = TestHTTPHeaderDict(headers)
        self.data = content.encode("utf-8") if body is None else body
        self.getheader = mock.Mock(side_effect=lambda name, default=None: self.headers.get(name, default))
        self.getheaders = mock.Mock(side_effect=lambda: self.headers.copy())

    @classmethod
    def json(cls, status_code: int, data: Any, reason: str | None = None) -> "MockResponse":
        """A response with a JSON body."""
        return cls(status_code, reason=reason, headers={"Content-Type": "application/json"}, content=json.dumps(data))


class AbstractTestRequestHandler(ABC):
    """Simulates a service behind a TestTransport. See `TestTransport.set_request_handler`."""

    @abstractmethod
    async def request(
        self,
        method: RequestMethod,
        url: str,
        headers: HTTPHeaderDict | None = None,
        form: FormFields | None = None,
        request_timeout: Timeout = None,
    ) -> MockResponse:
        """Handle one call to ITransport.request()."""
        ...  # pragma: no cover

    @staticmethod
    def not_found() -> MockResponse:
        return MockResponse.json(
            404,
            {"error": {"message": "No such File object", "type": "invalid_request_error", "param": "id", "code": None}},
            reason="Not Found",
        )


class TestTransport(mock.AsyncMock):
    """ITransport mock that answers every request with 503 until told otherwise."""

    open: mock.AsyncMock
    close: mock.AsyncMock
    request: mock.AsyncMock

    def __init__(self, *, base_url: str = BASE_URL) -> None:
        super().__init__(spec=ITransport)
        self._base_url = base_url
        self.request.return_value = MockResponse(status_code=503)

    def _expected_call(
        self,
        method: RequestMethod,
        path: str,
        headers: Mapping[str, str] | None,
        form: FormFields | None,
        request_timeout: Timeout,
    ) -> dict[str, Any]:
        return {
            "method": method,
            "url": urljoin(self._base_url, path.lstrip("/")),
            "headers": TestHTTPHeaderDict(headers or {}),
            "form": form,
            "request_timeout": request_timeout,
        }

    @contextmanager
    def set_http_response(
        self,
        status_code: int,
        content: str | bytes = "",
        reason: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Iterator[MockResponse]:
        """Answer requests with a different response inside the `with` block.

        :yields: The new response.
        """
        if isinstance(content, bytes):
            response = MockResponse(status_code, reason=reason, headers=headers, body=content)
        else:
            response = MockResponse(status_code, reason=reason, headers=headers, content=content)

        saved = self.request.return_value, self.request.side_effect
        self.request.return_value, self.request.side_effect = response, None
        try:
            yield response
        finally:
            self.request.return_value, self.request.side_effect = saved

    def set_request_handler(self, handler: AbstractTestRequestHandler) -> None:
        """Answer every request by calling the handler."""
        self.request.side_effect = handler.request

    def assert_request_made(
        self,
        method: RequestMethod,
        path: str = "",
        headers: Mapping[str, str] | None = None,
        form: FormFields | None = None,
        request_timeout: Timeout = None,
    ) -> None:
        """Assert that the last request was sent with these arguments.

        :param path: The request path relative to the base URL, including the query string.
        """
        self.request.assert_called_with(**self._expected_call(method, path, headers, form, request_timeout))

    def assert_any_request_made(
        self,
        method: RequestMethod,
        path: str = "",
        headers: Mapping[str, str] | None = None,
        form: FormFields | None = None,
        request_timeout: Timeout = None,
    ) -> None:
        """Assert that any request was sent with these arguments."""
        self.request.assert_any_call(**self._expected_call(method, path, headers, form, request_timeout))

    def assert_n_requests_made(self, n: int) -> None:
        assert self.request.await_count == n, f"Expected {n} requests, got {self.request.await_count}"

    def assert_no_requests(self) -> None:
        self.request.assert_not_called()


class TestAuthorizer(mock.AsyncMock):
    """IAuthorizer mock with a fixed API key, which can not be refreshed unless `set_next_api_key` is called."""

    def __init__(self) -> None:
        super().__init__(spec=IAuthorizer)
        self.default_headers = TestHTTPHeaderDict({"Authorization": f"Bearer {API_KEY}"})
        self.refresh_token.return_value = False
        self.get_default_headers.side_effect = lambda: self.default_headers.copy()

    def set_next_api_key(self, api_key: str) -> None:
        """Make the next refresh succeed, switching to a new API key."""

        def refresh_token() -> bool:
            self.default_headers = TestHTTPHeaderDict({"Authorization": f"Bearer {api_key}"})
            self.refresh_token.side_effect = None
            return True

        self.refresh_token.side_effect = refresh_token


class TestWithConnector(unittest.IsolatedAsyncioTestCase):
    """Base class for tests that call an API through a connector with a fake transport."""

    def setUp(self) -> None:
        self.transport = TestTransport()
        self.authorizer = TestAuthorizer()
        self.connector = APIConnector(BASE_URL, self.transport, self.authorizer)
        self.universal_headers = TestHTTPHeaderDict()

    def setup_universal_headers(self, headers: Mapping[str, str]) -> None:
        """Expect these headers in every request, in addition to the authorization headers."""
        self.universal_headers = TestHTTPHeaderDict(headers)

    def expected_headers(self, headers: Mapping[str, str] | None = None) -> TestHTTPHeaderDict:
        """Get the headers the connector should send, merged in the same order of precedence as the connector."""
        expected = TestHTTPHeaderDict(self.authorizer.default_headers)
        for source in (self.connector.additional_headers, self.universal_headers, headers or {}):
            expected.replace(source)
        return expected

    def assert_request_made(
        self,
        method: RequestMethod,
        path: str = "",
        headers: Mapping[str, str] | None = None,
        form: FormFields | None = None,
        request_timeout: Timeout = None,
    ) -> None:
        """Assert that the last request was sent with these arguments, and the expected default headers."""
        self.transport.assert_request_made(method, path, self.expected_headers(headers), form, request_timeout)

    def assert_any_request_made(
        self,
        method: RequestMethod,
        path: str = "",
        headers: Mapping[str, str] | None = None,
        form: FormFields | None = None,
        request_timeout: Timeout = None,
    ) -> None:
        """Assert that any request was sent with these arguments, and the expected default headers."""
        self.transport.assert_any_request_made(method, path, self.expected_headers(headers), form, request_timeout)
