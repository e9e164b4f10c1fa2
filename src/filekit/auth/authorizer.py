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

from filekit import logging
from filekit.common import HTTPHeaderDict, IAuthorizer
from filekit.common.exceptions import ClientValueError

__all__ = ["ApiKeyAuthorizer"]

logger = logging.getLogger("auth")

ORGANIZATION_HEADER = "OpenAI-Organization"
PROJECT_HEADER = "OpenAI-Project"


class ApiKeyAuthorizer(IAuthorizer):
    def __init__(self, api_key: str, organization: str | None = None, project: str | None = None) -> None:
        """An authorizer that sends a static API key as a bearer token.

        Organization and project headers are only sent when provided. API keys do not expire, so this authorizer never
        refreshes its credentials.

        :param api_key: The API key.
        :param organization: Optional organization ID to scope requests to.
        :param project: Optional project ID to scope requests to.
        """
        if not api_key:
            raise ClientValueError("An API key is required.")
        self._api_key = api_key
        self._organization = organization
        self._project = project

    async def refresh_token(self) -> bool:
        logger.debug("ApiKeyAuthorizer does not support refreshing credentials.")
        return False

    async def get_default_headers(self) -> HTTPHeaderDict:
        headers = HTTPHeaderDict({"Authorization": f"Bearer {self._api_key}"})
        if self._organization:
            headers[ORGANIZATION_HEADER] = self._organization
        if self._project:
            headers[PROJECT_HEADER] = self._project
        return headers
