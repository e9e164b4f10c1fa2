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
import os
import unittest
from unittest import mock

from filekit import Client, ClientConfig, FilesClient
from filekit.aio import AioTransport
from filekit.common import RequestMethod
from filekit.common.test_tools import API_KEY, BASE_URL, ORGANIZATION, PROJECT, MockResponse, TestTransport
from filekit.common.utils import get_header_metadata
from filekit.files.endpoints import FilesApi


class TestClient(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.transport = TestTransport()
        self.config = ClientConfig(api_key=API_KEY, base_url=BASE_URL, organization=ORGANIZATION, project=PROJECT)
        self.client = Client(self.config, transport=self.transport)

    def test_default_transport(self) -> None:
        client = Client(ClientConfig(api_key=API_KEY))
        self.assertIsInstance(client.connector.transport, AioTransport)
        self.assertEqual("https://api.openai.com/v1/", client.connector.base_url)

    def test_files(self) -> None:
        files = self.client.files()
        self.assertIsInstance(files, FilesClient)
        self.assertIs(self.config, self.client.config)

    async def test_context_manager(self) -> None:
        async with self.client as client:
            self.assertIs(self.client, client)
            self.transport.open.assert_awaited_once()
            self.transport.close.assert_not_awaited()
        self.transport.close.assert_awaited_once()

    async def test_request_headers(self) -> None:
        self.transport.request.return_value = MockResponse(
            200, content=json.dumps({"id": "file-abc123", "object": "file", "deleted": True})
        )
        await self.client.files().delete("file-abc123")
        self.transport.assert_request_made(
            method=RequestMethod.DELETE,
            path="files/file-abc123",
            headers={
                "Authorization": f"Bearer {API_KEY}",
                "OpenAI-Organization": ORGANIZATION,
                "OpenAI-Project": PROJECT,
                "Accept": "application/json",
                **get_header_metadata(FilesApi.__module__),
            },
        )

    async def test_request_timeout_from_config(self) -> None:
        config = ClientConfig(api_key=API_KEY, base_url=BASE_URL, request_timeout=10)
        client = Client(config, transport=self.transport)
        self.transport.request.return_value = MockResponse(
            200, content=json.dumps({"id": "file-abc123", "object": "file", "deleted": True})
        )
        await client.files().delete("file-abc123")
        _, kwargs = self.transport.request.call_args
        self.assertEqual(10, kwargs["request_timeout"])

    def test_from_env(self) -> None:
        env = {"FILEKIT_API_KEY": "sk-env", "FILEKIT_BASE_URL": "http://localhost:9000/v1"}
        with mock.patch.dict(os.environ, env):
            client = Client.from_env(None, max_attempts=1)
        self.assertEqual("sk-env", client.config.api_key)
        self.assertEqual(1, client.config.max_attempts)
        self.assertEqual("http://localhost:9000/v1/", client.connector.base_url)
