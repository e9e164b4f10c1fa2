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
from types import TracebackType

import aiohttp
from aiohttp.typedefs import StrOrURL

from filekit.common import FormFile, HTTPHeaderDict, HTTPResponse, RequestMethod
from filekit.common.exceptions import RetryError, TransportError
from filekit.common.interfaces import FormFields, ITransport, Timeout
from filekit.common.utils import Backoff, RetryPolicy
from filekit.logging import getLogger

__all__ = ["AioTransport"]

logger = getLogger("aio.transport")

_RETRY_ON = (aiohttp.ClientError, asyncio.TimeoutError, TimeoutError)


def _client_timeout(request_timeout: Timeout) -> aiohttp.ClientTimeout | None:
    match request_timeout:
        case int() | float():
            return aiohttp.ClientTimeout(total=request_timeout)
        case (sock_connect, sock_read):
            return aiohttp.ClientTimeout(sock_connect=sock_connect, sock_read=sock_read)
        case _:
            return None


def _multipart_form(fields: FormFields) -> aiohttp.FormData:
    form = aiohttp.FormData(quote_fields=False)
    for name, value in fields:
        if isinstance(value, FormFile):
            form.add_field(name, value.content, filename=value.filename, content_type=value.content_type)
        else:
            form.add_field(name, value)
    return form


class AioTransport(ITransport):
    """Sends requests with a shared aiohttp session.

    The session is created when the first handle is opened and closed with the last one. Connection errors and
    timeouts are retried according to the retry policy. Responses are returned as they are, whatever their status.
    """

    def __init__(
        self,
        user_agent: str,
        max_attempts: int = 3,
        backoff: Backoff = Backoff(),
        max_connections: int = 16,
        verify_ssl: bool = True,
        proxy: StrOrURL | None = None,
        close_grace_period_ms: int = 250,
    ) -> None:
        """
        :param user_agent: The `User-Agent` header, unless a request sets its own.
        :param max_attempts: The number of attempts to make before raising a `TransportError`.
        :param backoff: The delay between attempts.
        :param max_connections: Maximum number of simultaneous connections.
        :param verify_ssl: Verify SSL certificates. Only disable this when testing against a local server.
        :param proxy: Proxy server to use for requests.
        :param close_grace_period_ms: Time to wait for SSL connections to shut down after the session is closed.
        """
        self.__user_agent = user_agent
        self.__retry = RetryPolicy(max_attempts=max_attempts, backoff=backoff)
        self.__max_connections = max_connections
        self.__verify_ssl = verify_ssl
        self.__proxy = proxy
        self.__close_grace_period_ms = close_grace_period_ms

        self.__session: aiohttp.ClientSession | None = None
        self.__handles = 0
        self.__mutex = asyncio.Lock()

    async def open(self) -> None:
        async with self.__mutex:
            if self.__session is None:
                logger.debug("Creating aiohttp session.")
                self.__session = aiohttp.ClientSession(
                    connector=aiohttp.TCPConnector(
                        ssl=None if self.__verify_ssl else False, limit=self.__max_connections
                    ),
                    skip_auto_headers=["Accept", "Accept-Encoding"],
                )
            self.__handles += 1
            logger.debug(f"Transport opened, {self.__handles} open handle(s).")

    async def close(self) -> None:
        async with self.__mutex:
            if self.__handles == 0:
                raise RuntimeError("The transport was closed more times than it was opened.")
            self.__handles -= 1
            logger.debug(f"Transport closed, {self.__handles} open handle(s).")
            if self.__handles > 0 or self.__session is None:
                return

            session, self.__session = self.__session, None
            logger.debug("Closing aiohttp session.")
            await session.close()
            if self.__close_grace_period_ms > 0:
                # https://docs.aiohttp.org/en/stable/client_advanced.html#graceful-shutdown
                await asyncio.sleep(self.__close_grace_period_ms / 1000)

    async def __aenter__(self) -> AioTransport:
        await self.open()
        return self

    async def __aexit__(
        self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: TracebackType | None
    ) -> None:
        await self.close()

    async def request(
        self,
        method: RequestMethod,
        url: str,
        headers: HTTPHeaderDict | None = None,
        form: FormFields | None = None,
        request_timeout: Timeout = None,
    ) -> HTTPResponse:
        session = self.__session
        if session is None:
            raise TransportError("The transport must be opened before sending requests.")

        headers = HTTPHeaderDict(headers or {})
        if "User-Agent" not in headers:
            headers["User-Agent"] = self.__user_agent
        if form is not None:
            # aiohttp sets the content type with the multipart boundary.
            headers.pop("Content-Type", None)

        options = {"allow_redirects": False, "proxy": self.__proxy}
        if (timeout := _client_timeout(request_timeout)) is not None:
            options["timeout"] = timeout

        async def send() -> HTTPResponse:
            # aiohttp consumes the form, so every attempt needs a new one.
            data = _multipart_form(form) if form is not None else None
            async with session.request(method=str(method), url=url, headers=headers, data=data, **options) as resp:
                return HTTPResponse(
                    status=resp.status,
                    data=await resp.read(),
                    reason=resp.reason,
                    headers=HTTPHeaderDict(resp.headers),
                )

        try:
            return await self.__retry.run(send, retry_on=_RETRY_ON, logger=logger)
        except RetryError as error:
            raise TransportError(f"Could not complete {method} request to {url}", caused_by=error) from error
