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

import json
from collections.abc import Mapping, Sequence
from enum import Enum
from types import TracebackType
from typing import Any, TypeVar
from urllib.parse import quote, urlencode

from pydantic import BaseModel, ValidationError

from filekit import logging

from .data import HTTPHeaderDict, HTTPResponse, RequestMethod, get_charset
from .exceptions import (
    APIError,
    CustomTypedError,
    GeneralizedTypedError,
    SerializationError,
    UnknownResponseError,
)
from .interfaces import FormFields, IAuthorizer, ITransport, Timeout

logger = logging.getLogger("connector")

__all__ = [
    "APIConnector",
    "NoAuth",
]

T = TypeVar("T")

_Query = Mapping[str, Any] | Sequence[tuple[str, Any]]


class _NoAuth(IAuthorizer):
    async def get_default_headers(self) -> HTTPHeaderDict:
        return HTTPHeaderDict()

    async def refresh_token(self) -> bool:
        return False


NoAuth = _NoAuth()
"""An authorizer that does not provide any authentication."""


def _query_value(value: Any) -> str:
    match value:
        case bool():
            return "true" if value else "false"
        case Enum():
            return str(value.value)
        case list() | tuple():
            return ",".join(_query_value(item) for item in value)
        case _:
            return str(value)


def _encode_query(params: _Query) -> str:
    """Encode query parameters in the given order. Parameters with a value of None are omitted."""
    pairs = params.items() if isinstance(params, Mapping) else params
    return urlencode([(str(key), _query_value(value)) for key, value in pairs if value is not None])


def _response_type(status: int, response_types_map: Mapping[str, type] | None) -> type:
    if response_types_map is not None and (mapped := response_types_map.get(str(status))) is not None:
        return mapped
    elif (generalized := GeneralizedTypedError.from_status_code(status)) is not None:
        return generalized
    elif 400 <= status <= 599:
        return APIError
    else:
        return UnknownResponseError


class APIConnector:
    """Sends requests to one API through an `ITransport`.

    The connector builds request URLs relative to the base URL, adds the authorization headers, and turns responses
    into models or typed errors. A request that is rejected with 401 is sent once more if the authorizer manages to
    refresh its credentials.
    """

    def __init__(
        self,
        base_url: str,
        transport: ITransport,
        authorizer: IAuthorizer = NoAuth,
        additional_headers: Mapping[str, str] | None = None,
    ) -> None:
        """
        :param base_url: The base URL of the API. Resource paths are appended to this URL.
        :param transport: The transport to send requests with.
        :param authorizer: The authorizer that provides credentials.
        :param additional_headers: Headers to send with every request.
        """
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._authorizer = authorizer
        self._additional_headers = HTTPHeaderDict(additional_headers or {})

    @property
    def base_url(self) -> str:
        return self._base_url + "/"

    @property
    def transport(self) -> ITransport:
        return self._transport

    @property
    def additional_headers(self) -> HTTPHeaderDict:
        """Headers that are sent with every request."""
        return self._additional_headers.copy()

    async def open(self) -> None:
        await self._transport.open()

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> APIConnector:
        await self.open()
        return self

    async def __aexit__(
        self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: TracebackType | None
    ) -> None:
        await self.close()

    def build_url(
        self, resource_path: str, path_params: Mapping[str, Any] | None = None, query_params: _Query | None = None
    ) -> str:
        """Get the absolute URL of a resource.

        :param resource_path: Path relative to the base URL, with `{name}` placeholders for path parameters.
        :param path_params: Values for the placeholders. Each value is percent-encoded as one path segment, so
            identifiers that contain `/` or `?` cannot change the route.
        :param query_params: Query parameters, as a mapping or a sequence of pairs.

        :return: The URL.
        """
        url = self._base_url + "/" + resource_path.lstrip("/")
        for key, value in (path_params or {}).items():
            url = url.replace(f"{{{key}}}", quote(str(value), safe=""))
        if query_params and (query := _encode_query(query_params)):
            url += "?" + query
        return url

    async def _headers(self, header_params: Mapping[str, Any] | None) -> HTTPHeaderDict:
        headers = await self._authorizer.get_default_headers()
        headers.replace(self._additional_headers)
        if header_params is not None:
            headers.replace({key: str(value) for key, value in header_params.items() if value is not None})
        return headers

    async def _send(
        self,
        method: RequestMethod,
        url: str,
        header_params: Mapping[str, Any] | None,
        form: FormFields | None,
        request_timeout: Timeout,
    ) -> HTTPResponse:
        logger.debug(f"Making {method} request to {url}")
        return await self._transport.request(
            method=method,
            url=url,
            headers=await self._headers(header_params),
            form=form,
            request_timeout=request_timeout,
        )

    async def call_api(
        self,
        method: RequestMethod,
        resource_path: str,
        path_params: Mapping[str, Any] | None = None,
        query_params: _Query | None = None,
        header_params: Mapping[str, Any] | None = None,
        form: FormFields | None = None,
        response_types_map: Mapping[str, type[T]] | None = None,
        request_timeout: Timeout = None,
    ) -> T:
        """Send a request and deserialize the response.

        The transport is held open for the duration of the call.

        :param method: HTTP request method.
        :param resource_path: Path relative to the base URL. See `build_url`.
        :param path_params: Values for the path placeholders.
        :param query_params: Query parameters.
        :param header_params: Request headers. These replace any authorization or additional header of the same name.
        :param form: Fields of a `multipart/form-data` body.
        :param response_types_map: Response types by status code, e.g. `{"200": FileObject}`. A pydantic model is
            validated from the JSON body, and `HTTPResponse` returns the response unchanged.
        :param request_timeout: Timeout for this request.

        :return: The deserialized response.

        :raise GeneralizedTypedError: If the status has a generalized error type, e.g. `NotFoundException` for 404.
        :raise CustomTypedError: For any other 4xx or 5xx status where the body carries an error object.
        :raise APIError: For any other 4xx or 5xx status.
        :raise UnknownResponseError: For any other status that is not in `response_types_map`.
        :raise SerializationError: If the body does not match the response type.
        :raise TransportError: If the transport could not complete the request.
        """
        url = self.build_url(resource_path, path_params, query_params)
        async with self:
            response = await self._send(method, url, header_params, form, request_timeout)
            if response.status == 401:
                if await self._authorizer.refresh_token():
                    logger.debug("Credentials refreshed, sending the request again.")
                    response = await self._send(method, url, header_params, form, request_timeout)
                else:
                    logger.debug("The request was not authorized and the credentials could not be refreshed.")

        return self._deserialize(response, _response_type(response.status, response_types_map))

    @staticmethod
    def _deserialize(response: HTTPResponse, response_type: type[T]) -> T:
        if issubclass(response_type, HTTPResponse):
            return response

        is_error = issubclass(response_type, APIError)
        encoding = get_charset(response.getheader("Content-Type"))
        try:
            content: Any = response.data.decode(encoding)
        except (UnicodeDecodeError, LookupError) as e:
            if not is_error:
                raise SerializationError(msg=f"Could not decode the response body as {encoding}", caused_by=e)
            content = response.data
        else:
            try:
                content = json.loads(content)
            except ValueError:
                pass  # Plain text body.

        if is_error:
            if response_type is APIError and CustomTypedError.provided_by(content):
                response_type = CustomTypedError.from_type_id(content["error"].get("type"))
            raise response_type(
                status=response.status, reason=response.reason, content=content, headers=response.headers
            )

        if not issubclass(response_type, BaseModel):
            raise SerializationError(msg=f"Unsupported response type {response_type!r}")
        try:
            return response_type.model_validate(content)
        except ValidationError as e:
            raise SerializationError(msg=f"Could not deserialize the response as {response_type.__name__}", caused_by=e)
