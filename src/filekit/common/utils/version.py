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

import functools
from importlib import metadata
from typing import NamedTuple

__all__ = ["get_header_metadata", "get_package_details", "get_user_agent"]

DISTRIBUTION_NAME = "filekit"
_UNKNOWN_VERSION = "0.0.0+unknown"


class PackageDetails(NamedTuple):
    name: str
    version: str


@functools.cache
def get_package_details(candidate: str) -> PackageDetails:
    """Get package name and version given the module __name__.

    Parent modules are searched until an installed distribution is found. If none is found, the `filekit` distribution
    is reported with an unknown version (e.g., when running from a source checkout).

    :param candidate: The module __name__ to start searching from.

    :return: The package name and version.
    """
    while candidate:
        try:
            package_metadata = metadata.metadata(candidate)
        except metadata.PackageNotFoundError:
            candidate, *_ = candidate.rpartition(".")
        else:
            return PackageDetails(name=package_metadata["name"], version=package_metadata["version"])

    return PackageDetails(name=DISTRIBUTION_NAME, version=_UNKNOWN_VERSION)


@functools.cache
def get_header_metadata(candidate: str) -> dict[str, str]:
    """Get package name and version given the module __name__ for use in headers.

    :param candidate: The module __name__ to start searching from.

    :return: A dictionary containing the package name and version in a single entry.
    """
    package_details = get_package_details(candidate)
    return {package_details.name: package_details.version}


def get_user_agent(candidate: str = __name__) -> str:
    """Get the default `User-Agent` header value, e.g. 'filekit/1.0.0'."""
    package_details = get_package_details(candidate)
    return f"{package_details.name}/{package_details.version}"
