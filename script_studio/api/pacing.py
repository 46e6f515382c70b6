"""Call pacing and retry policy for the Gemini API.

WHY: Free-tier Gemini keys hit per-minute limits quickly when several
generation steps run back to back (title -> thumbnails -> image prompts).
Scattering fixed sleeps between business calls made the pacing invisible
and untunable. This module owns it instead, so generation code only says
*what* to call.

HOW: CallPolicy is a frozen bundle of limits. PacedCaller.call() waits
until min_interval_s has passed since the previous call started, runs the
coroutine, and on a transient failure (see errors.is_transient) sleeps
with exponential backoff before trying again.

RULES:
- Backoff: backoff_initial_s, multiplied by backoff_factor per retry,
  capped at backoff_max_s
- Permanent errors (bad key, malformed payload) are re-raised immediately
- After max_attempts the last transient error is re-raised unchanged
- clock and sleep are injectable so tests never actually wait
- One PacedCaller serializes its calls with an asyncio.Lock; share one
  instance between steps that must be spaced apart
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from script_studio import config
from script_studio.api.errors import is_transient

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CallPolicy:
    """Pacing and retry limits for outbound API calls."""

    min_interval_s: float = 3.0
    max_attempts: int = 4
    backoff_initial_s: float = 2.0
    backoff_factor: float = 2.0
    backoff_max_s: float = 30.0

    def __post_init__(self) -> None:
        if self.min_interval_s < 0:
            raise ValueError("min_interval_s must be >= 0")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff_initial_s < 0 or self.backoff_max_s < 0:
            raise ValueError("backoff delays must be >= 0")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")

    @classmethod
    def from_env(cls) -> CallPolicy:
        """Build a policy from the values in script_studio.config."""
        return cls(
            min_interval_s=config.MIN_CALL_INTERVAL_S,
            max_attempts=config.MAX_CALL_ATTEMPTS,
            backoff_initial_s=config.BACKOFF_INITIAL_S,
            backoff_factor=config.BACKOFF_FACTOR,
            backoff_max_s=config.BACKOFF_MAX_S,
        )

    def backoff_delay(self, retry_number: int) -> float:
        """Delay before retry number N (1-based)."""
        delay = self.backoff_initial_s * (self.backoff_factor ** (retry_number - 1))
        return min(delay, self.backoff_max_s)


class PacedCaller:
    """Runs coroutine functions with minimum spacing and transient retries."""

    def __init__(
        self,
        policy: CallPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.policy = policy or CallPolicy()
        self._clock = clock
        self._sleep = sleep
        self._last_start: float | None = None
        self._lock: asyncio.Lock | None = None

    def _get_lock(self) -> asyncio.Lock:
        # Created lazily so the caller can be built outside a running loop.
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def _wait_for_slot(self) -> None:
        if self._last_start is not None:
            remaining = self.policy.min_interval_s - (self._clock() - self._last_start)
            if remaining > 0:
                logger.debug("Pacing: waiting %.2fs before next call", remaining)
                await self._sleep(remaining)
        self._last_start = self._clock()

    async def call(
        self,
        fn: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Await fn(*args, **kwargs) under the pacing and retry policy.

        Returns:
            Whatever fn returns.

        Raises:
            The last exception from fn if it is permanent or attempts run out.
        """
        async with self._get_lock():
            attempt = 1
            while True:
                await self._wait_for_slot()
                try:
                    return await fn(*args, **kwargs)
                except Exception as exc:
                    if not is_transient(exc) or attempt >= self.policy.max_attempts:
                        raise
                    delay = self.policy.backoff_delay(attempt)
                    logger.warning(
                        "Transient API error (attempt %d/%d), retrying in %.1fs: %s",
                        attempt, self.policy.max_attempts, delay, exc,
                    )
                    await self._sleep(delay)
                    attempt += 1
