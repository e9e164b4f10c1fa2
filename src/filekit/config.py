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

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import dotenv

from filekit import logging
from filekit.common.exceptions import ClientValueError
from filekit.common.utils import get_user_agent

__all__ = ["DEFAULT_BASE_URL", "ClientConfig"]

logger = logging.getLogger("config")

DEFAULT_BASE_URL = "https://api.openai.com/v1"

ENV_API_KEY = "FILEKIT_API_KEY"
ENV_BASE_URL = "FILEKIT_BASE_URL"
ENV_ORGANIZATION = "FILEKIT_ORGANIZATION"
ENV_PROJECT = "FILEKIT_PROJECT"


@dataclass(frozen=True, kw_only=True)
class ClientConfig:
    """Connection settings for a `filekit.Client`."""

    api_key: str = field(repr=False)
    """The API key used to authorize requests."""

    base_url: str = DEFAULT_BASE_URL
    """The base URL of the API. Resource paths such as `/files` are appended to it."""

    organization: str | None = None
    """Optional organization ID sent with every request."""

    project: str | None = None
    """Optional project ID sent with every request."""

    user_agent: str = field(default_factory=get_user_agent)
    """The value to provide in the `User-Agent` header."""

    max_attempts: int = 3
    """Number of attempts the transport makes when a connection fails."""

    verify_ssl: bool = True
    """Verify SSL certificates."""

    request_timeout: int | float | tuple[int | float, int | float] | None = None
    """Default timeout for every request, either a total or a (connect, read) pair, in seconds."""

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ClientValueError(f"An API key is required. Pass api_key or set {ENV_API_KEY}.")
        if not self.base_url:
            raise ClientValueError("base_url must not be empty.")
        if self.max_attempts < 1:
            raise ClientValueError("max_attempts must be greater than 0.")

    @classmethod
    def from_env(cls, env_file: str | Path | None = ".env", **overrides: Any) -> ClientConfig:
        """Load the configuration from the environment.

        Values are read from the `.env` file (if it exists), then from the process environment, then from the keyword
        overrides, each source taking precedence over the one before it.

        :param env_file: Path to a dotenv file, or None to skip reading one.
        :param overrides: Values for any `ClientConfig` field.

        :return: A new ClientConfig.

        :raise ClientValueError: If no API key is configured.
        """
        values: dict[str, str | None] = {}
        if env_file is not None and Path(env_file).is_file():
            logger.debug(f"Reading configuration from {env_file}")
            values.update(dotenv.dotenv_values(env_file, encoding="utf-8"))
        values.update(os.environ)

        settings: dict[str, Any] = {
            name: value
            for name, value in _from_mapping(values).items()
            if value  # Empty variables are treated as unset.
        }
        settings.update(overrides)
        settings.setdefault("api_key", "")  # Reported by __post_init__.
        return cls(**settings)


def _from_mapping(values: Mapping[str, str | None]) -> dict[str, str | None]:
    return {
        "api_key": values.get(ENV_API_KEY),
        "base_url": values.get(ENV_BASE_URL),
        "organization": values.get(ENV_ORGANIZATION),
        "project": values.get(ENV_PROJECT),
    }
