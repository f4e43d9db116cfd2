"""Bounded retry with exponential backoff for transport calls."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ...errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Re-run a call on :class:`TransportError` up to ``retries`` more times.

    Query errors are never retried. ``retries=0`` means a single attempt.
    """

    def __init__(self, retries: int = 0, backoff_seconds: float = 0.5) -> None:
        if retries < 0:
            raise ValueError("retries must not be negative")
        self.retries = retries
        self.backoff_seconds = backoff_seconds

    async def run(self, call: Callable[[], Awaitable[T]], description: str = "") -> T:
        attempt = 0
        while True:
            try:
                return await call()
            except TransportError as e:
                if attempt >= self.retries:
                    raise
                delay = self.backoff_seconds * (2**attempt)
                attempt += 1
                logger.warning(
                    "%s failed (%s); retry %d/%d in %.2fs",
                    description or "Request", e, attempt, self.retries, delay,
                )
                await asyncio.sleep(delay)
