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

import os
import unittest
from datetime import datetime, timezone
from typing import TypeVar


def utc_datetime(year: int, month: int = 1, day: int = 1, hour: int = 0, minute: int = 0, second: int = 0) -> datetime:
    """Create a datetime object in UTC time."""
    return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)


_FT = TypeVar("_FT")


def long_test(test: _FT) -> _FT:
    """Decorator to mark a test as long-running.

    Long tests are skipped by default, and are run only if the `CI` environment variable is set.
    """
    return unittest.skipUnless("CI" in os.environ, "Make local testing faster")(test)
