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

from pathlib import Path
from types import TracebackType
from typing import Any

from filekit import logging
from filekit.aio import AioTransport
from filekit.auth import ApiKeyAuthorizer
from filekit.common import APIConnector, ITransport
from filekit.config import ClientConfig
from filekit.files import FilesClient

__all__ = ["Client"]

logger = logging.getLogger("client")


class Client:
    """Entry point for the Files API.

    The client owns the transport and connector that are shared by every resource client it hands out. Use it as an
    async context manager to keep one HTTP session open across calls:

    ```python
    async with Client.from_env() as client:
        files = client.files()
        page = await files.list({"purpose": "fine-tune"})
    ```

    Without the context manager, a session is opened and closed around every request.
    """

    def __init__(self, config: ClientConfig, transport: ITransport | None = None) -> None:
        """
        :param config: Connection settings.
        :param transport: The transport to send requests with. By default, an `AioTransport` is created from the
            configuration.
        """
        if transport is None:
            transport = AioTransport(
                user_agent=config.user_agent,
                max_attempts=config.max_attempts,
                verify_ssl=config.verify_ssl,
            )
        self._config = config
        self._connector = APIConnector(
            base_url=config.base_url,
            transport=transport,
            authorizer=ApiKeyAuthorizer(config.api_key, organization=config.organization, project=config.project),
        )
        logger.debug(f"Client created for {self._connector.base_url}")

    @classmethod
    def from_env(cls, env_file: str | Path | None = ".env", **overrides: Any) -> Client:
        """Create a client configured from the environment. See `ClientConfig.from_env`."""
        return cls(ClientConfig.from_env(env_file, **overrides))

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def connector(self) -> APIConnector:
        """The connector shared by the resource clients."""
        return self._connector

    def files(self) -> FilesClient:
        """Get a client for the Files API."""
        return FilesClient(self._connector, request_timeout=self._config.request_timeout)

    async def open(self) -> None:
        await self._connector.open()

    async def close(self) -> None:
        await self._connector.close()

    async def __aenter__(self) -> Client:
        await self.open()
        return self

    async def __aexit__(
        self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: TracebackType | None
    ) -> None:
        await self.close()
