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

"""Logging helpers for the filekit package.

All loggers live below the `filekit` root logger, so applications can configure the whole SDK with
`logging.getLogger("filekit")`.
"""

from __future__ import annotations

import logging

__all__ = ["ROOT_LOGGER_NAME", "getLogger"]

ROOT_LOGGER_NAME = "filekit"

# Libraries should not configure output, leave that to the application.
logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def getLogger(name: str | None = None) -> logging.Logger:
    """Get a logger within the `filekit` namespace.

    :param name: The logger name, relative to the package root. Fully qualified module names (e.g., `__name__`) are
        accepted as-is.

    :return: The requested logger.
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    elif name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    else:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
