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
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from ..exceptions import RetryError

__all__ = [
    "Backoff",
    "RetryPolicy",
]

T = TypeVar("T")


@dataclass(frozen=True, kw_only=True)
class Backoff:
    """Exponential delay between attempts, with random jitter."""

    initial_delay: float = 0.5
    """Seconds to wait after the first failed attempt. The delay doubles after each further failure."""

    max_delay: float = 8.0
    """Upper limit for a single delay, in seconds."""

    jitter: float = 0.5
    """Each delay is scaled by a random factor in [1 - jitter, 1 + jitter], before `max_delay` is applied."""

    def __post_init__(self) -> None:
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("Backoff delays must not be negative")
        if not 0.0 <= self.jitter <= 1.0:
            raise ValueError("jitter must be between 0 and 1")

    def delay(self, attempt: int) -> float:
        """Get the delay after a failed attempt.

        :param attempt: The number of the attempt that failed, counting from 1.
        """
        delay = self.initial_delay * 2 ** (attempt - 1)
        if self.jitter:
            delay *= random.uniform(1 - self.jitter, 1 + self.jitter)
        return min(delay, self.max_delay)


@dataclass(frozen=True, kw_only=True)
class RetryPolicy:
    """How many times an operation is attempted, and how long to wait in between.

    A policy holds no state, so one instance can be shared by concurrent requests.
    """

    max_attempts: int = 3
    backoff: Backoff = field(default_factory=Backoff)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be greater than 0")

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        retry_on: type[Exception] | tuple[type[Exception], ...],
        logger: logging.Logger,
    ) -> T:
        """Await `operation()` until it succeeds or the attempts are used up.

        Only errors matching `retry_on` are retried. Any other error propagates immediately.

        :param operation: Creates a new awaitable for each attempt.
        :param retry_on: The errors to retry.
        :param logger: Logger for failed attempts.

        :return: The result of the first successful attempt.

        :raise RetryError: With the error from every attempt, if all of them failed.
        """
        errors: list[Exception] = []
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except retry_on as error:
                errors.append(error)
                logger.debug(f"Attempt {attempt} of {self.max_attempts} failed: {error!r}")
            if attempt < self.max_attempts:
                delay = self.backoff.delay(attempt)
                logger.debug(f"Waiting {delay:.2f}s")
                await asyncio.sleep(delay)
        raise RetryError(f"Failed after {self.max_attempts} attempts", errors)
