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
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from .data import HTTPHeaderDict

__all__ = [
    "APIError",
    "BadRequestException",
    "BaseTypedError",
    "ClientTypeError",
    "ClientValueError",
    "ConflictException",
    "CustomTypedError",
    "DefaultTypedError",
    "FilekitException",
    "FilekitExceptionGroup",
    "ForbiddenException",
    "GeneralizedTypedError",
    "InsufficientQuotaError",
    "InternalServerException",
    "InvalidRequestError",
    "NotFoundException",
    "RateLimitException",
    "RetryError",
    "SerializationError",
    "ServerError",
    "StorageFileNotFoundError",
    "TransportError",
    "UnauthorizedException",
    "UnknownResponseError",
    "UnprocessableEntityException",
]


class FilekitException(Exception):
    """The base exception class for all filekit exceptions."""


class FilekitExceptionGroup(FilekitException):
    """A group of unrelated exceptions, such as the errors from several attempts at one request."""

    def __init__(self, msg: str, excs: Sequence[Exception]) -> None:
        super().__init__(msg)
        self._msg = msg
        self._excs = tuple(excs)

    @property
    def message(self) -> str:
        return self._msg

    @property
    def exceptions(self) -> tuple[Exception, ...]:
        return self._excs

    def __str__(self) -> str:
        lines = [f"{self.message} ({len(self._excs)} sub-exception{'' if len(self._excs) == 1 else 's'})"]
        lines.extend(f"  [{i}] {type(exc).__name__}: {exc}" for i, exc in enumerate(self._excs, start=1))
        return "\n".join(lines)


class RetryError(FilekitExceptionGroup):
    """Exception group wrapping the errors from multiple retry attempts."""


class StorageFileNotFoundError(FileNotFoundError, FilekitException):
    """Raised when a local file is requested but doesn't exist."""


class _WrappedError(FilekitException):
    """Wrapper for standard exceptions that occur while sending requests or parsing responses."""

    def __init__(self, msg: str, caused_by: Exception | None = None):
        """
        :param msg: The exception message.
        :param caused_by: The original error.
        """
        self.caused_by = caused_by
        full_msg = msg
        if caused_by:
            full_msg = f"{msg}: {str(caused_by)}"
        super(_WrappedError, self).__init__(full_msg)


class TransportError(_WrappedError):
    """Wraps errors raised by the underlying HTTP transport (connection, DNS, and timeout failures)."""


class ClientTypeError(_WrappedError, TypeError):
    """Raised when an operation or function is applied to an object of inappropriate type."""

    def __init__(
        self,
        msg: str,
        caused_by: Exception | None = None,
        valid_classes: tuple[type, ...] | None = None,
    ):
        """
        :param msg: The exception message.
        :param caused_by: The original error.
        :param valid_classes: The classes that the current item should be an instance of.
        """
        super(ClientTypeError, self).__init__(msg, caused_by)
        self.valid_classes = valid_classes


class ClientValueError(_WrappedError, ValueError):
    """Raised when an operation or function receives an argument that has the right type but an inappropriate
    value.
    """


class SerializationError(ClientValueError):
    """Raised when a response body cannot be decoded into the expected type."""


class APIError(FilekitException):
    """Base class for all errors returned by the service."""

    def __init__(self, status: int, reason: str | None, content: object | None, headers: HTTPHeaderDict | None):
        """
        :param status: HTTP status code.
        :param reason: Reason.
        :param content: Deserialized content from the response.
        :param headers: Response headers
        """
        super().__init__(status, reason)
        self.status = status
        self.reason = reason
        self.content = content
        self.headers = headers

    def __str__(self) -> str:
        error_message = f"({self.status})"
        if reason := self.reason:
            error_message += f" {reason}"
        if content := self.content:
            error_message += f"\n{content}"
        return error_message


class UnknownResponseError(APIError):
    """The service sent an unknown response."""


def _error_object(content: object) -> dict[str, Any]:
    """Get the error object from an error response body, or an empty dict if there isn't one."""
    if isinstance(content, dict) and isinstance(error := content.get("error"), dict):
        return error
    return {}


class BaseTypedError(APIError):
    """Base class for service errors whose body carries an error object.

    The service describes errors with a body of the form::

        {"error": {"message": "...", "type": "...", "param": "...", "code": "..."}}

    Every member of the error object is optional.
    """

    @property
    def error(self) -> dict[str, Any]:
        """The error object from the response body."""
        return _error_object(self.content)

    @property
    def message(self) -> str | None:
        """A human-readable explanation of the problem."""
        if (message := self.error.get("message")) is not None:
            return str(message)
        return None

    @property
    def type_(self) -> str | None:
        """The error type reported by the service, e.g., 'invalid_request_error'."""
        if (type_ := self.error.get("type")) is not None:
            return str(type_)
        return None

    @property
    def param(self) -> str | None:
        """The request parameter that caused the error, if any."""
        if (param := self.error.get("param")) is not None:
            return str(param)
        return None

    @property
    def code(self) -> str | None:
        """A machine-readable error code, if any."""
        if (code := self.error.get("code")) is not None:
            return str(code)
        return None

    def __str__(self) -> str:
        error_message = f"Error: ({self.status})"
        if reason := self.reason:
            error_message += f" {reason}"
        if type_ := self.type_:
            error_message += f"\nType: {type_}"
        if code := self.code:
            error_message += f"\nCode: {code}"
        if param := self.param:
            error_message += f"\nParam: {param}"
        if message := self.message:
            error_message += f"\nMessage: {message}"
        return error_message


class CustomTypedError(BaseTypedError):
    """Base class for service errors that are identified by their error type.

    Concrete error types must subclass CustomTypedError and define the class attribute `TYPE_ID`, which is matched
    against the `type` member of the error object. The fallback type `DefaultTypedError` is used when the response
    has an error object and no concrete type matches.
    """

    __CONCRETE_TYPES: dict[str, type[CustomTypedError]] = {}

    TYPE_ID: ClassVar[str | None] = None

    @staticmethod
    def from_type_id(type_id: str | None) -> type[CustomTypedError]:
        """Get a concrete error type, based on the type ID.

        :param type_id: The type ID of the received error.

        :return: The concrete implementation of the requested type.
        """
        if type_id is None:
            return DefaultTypedError
        return CustomTypedError.__CONCRETE_TYPES.get(type_id, DefaultTypedError)

    @staticmethod
    def provided_by(content: object) -> bool:
        """Determine whether the content of an error response has an error object.

        :param content: The deserialized content of a 4xx or 5xx error response.

        :return: True if the content has an error object.
        """
        return bool(_error_object(content))

    @classmethod
    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        type_id = cls.TYPE_ID
        if type_id is None:
            return  # abstract class
        if not isinstance(type_id, str):
            raise ValueError(f"{cls} TYPE_ID must be a string.")
        if existing_cls := CustomTypedError.__CONCRETE_TYPES.get(type_id):
            raise ValueError(f"Duplicated TYPE_ID between {cls} and {existing_cls}")
        CustomTypedError.__CONCRETE_TYPES[type_id] = cls


class DefaultTypedError(CustomTypedError):
    """Fallback typed error, used when the error type is missing or unknown."""


class InvalidRequestError(CustomTypedError):
    """The request was malformed or referenced an invalid value."""

    TYPE_ID = "invalid_request_error"


class InsufficientQuotaError(CustomTypedError):
    """The account has exceeded its quota."""

    TYPE_ID = "insufficient_quota"


class ServerError(CustomTypedError):
    """The service failed while processing the request."""

    TYPE_ID = "server_error"


class GeneralizedTypedError(BaseTypedError):
    """Base class for errors that are generalized based on status code.

    Generalized error types must subclass GeneralizedTypedError and define the class attribute `STATUS_CODE`, which is
    used to map error responses to the corresponding generalization, regardless of the error type in the body.
    """

    __GENERALIZED_TYPES: dict[int, type[GeneralizedTypedError]] = {}

    STATUS_CODE: int

    @classmethod
    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        status_code = getattr(cls, "STATUS_CODE")
        GeneralizedTypedError.__GENERALIZED_TYPES[status_code] = cls

    @staticmethod
    def from_status_code(status_code: int) -> type[GeneralizedTypedError] | None:
        """Get a generalized error type, based on the status code.

        :param status_code: The status code of the error response.

        :return: The generalized implementation for the requested status code.
        """
        return GeneralizedTypedError.__GENERALIZED_TYPES.get(status_code, None)

    @property
    def message(self) -> str | None:
        """A human-readable explanation of the problem, falling back to the response reason."""
        return super().message or self.reason


class BadRequestException(GeneralizedTypedError):
    """The service cannot process the request due to a client error (400 - Bad Request)."""

    STATUS_CODE = 400


class UnauthorizedException(GeneralizedTypedError):
    """The client must authenticate to get a response (401 - Unauthorized)."""

    STATUS_CODE = 401


class ForbiddenException(GeneralizedTypedError):
    """The client does not have access rights to the content (403 - Forbidden)."""

    STATUS_CODE = 403


class NotFoundException(GeneralizedTypedError):
    """The service could not find the requested resource (404 - Not Found)."""

    STATUS_CODE = 404


class ConflictException(GeneralizedTypedError):
    """The request conflicts with the current state of the resource (409 - Conflict)."""

    STATUS_CODE = 409


class UnprocessableEntityException(GeneralizedTypedError):
    """The request was well-formed but could not be processed (422 - Unprocessable Entity)."""

    STATUS_CODE = 422


class RateLimitException(GeneralizedTypedError):
    """Too many requests have been sent in a given amount of time (429 - Too Many Requests)."""

    STATUS_CODE = 429


class InternalServerException(GeneralizedTypedError):
    """The service encountered an unexpected condition (500 - Internal Server Error)."""

    STATUS_CODE = 500
