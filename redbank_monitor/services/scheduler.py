"""Block-height-gated scan scheduling."""
from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class ScanState(enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"


class ScanScheduler:
    """Start one scan per observed height advance, never two at once.

    Every tick polls the chain height, including while a scan is running.
    A tick that sees ``height > last_processed_height`` in IDLE records the
    height first and then launches the scan as a background task; heights
    seen while SCANNING are not queued. The scan's outcome never stops the
    scheduler: success or failure both return it to IDLE.

    State is only written from the tick handler and the scan task's
    ``finally`` block, both on the one event loop.
    """

    def __init__(
        self,
        get_height: Callable[[], Awaitable[int]],
        run_scan: Callable[[int], Awaitable[Any]],
        poll_interval_seconds: float = 1.0,
        scan_on_startup: bool = True,
    ) -> None:
        self._get_height = get_height
        self._run_scan = run_scan
        self.poll_interval_seconds = poll_interval_seconds
        self._state = ScanState.IDLE
        self._last_processed_height = 0
        self._needs_baseline = not scan_on_startup
        self._scan_task: asyncio.Task | None = None

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def last_processed_height(self) -> int:
        return self._last_processed_height

    @property
    def scan_task(self) -> asyncio.Task | None:
        return self._scan_task

    async def tick(self) -> bool:
        """Poll the height once; return True when a scan was started."""
        try:
            height = await self._get_height()
        except Exception as e:
            logger.error("Error fetching block height: %s", e)
            return False

        if self._needs_baseline:
            self._needs_baseline = False
            self._last_processed_height = height
            logger.info("Baseline height %d; waiting for the next block", height)
            return False

        if self._state is ScanState.SCANNING:
            logger.debug("Height %d observed while scanning", height)
            return False
        if height <= self._last_processed_height:
            return False

        logger.info("New block detected! Height: %d", height)
        self._last_processed_height = height
        self._state = ScanState.SCANNING
        self._scan_task = asyncio.create_task(self._scan(height))
        return True

    async def _scan(self, height: int) -> None:
        try:
            await self._run_scan(height)
        except Exception as e:
            logger.error("Scan at height %d failed: %s", height, e)
        finally:
            self._state = ScanState.IDLE

    async def wait_for_scan(self) -> None:
        """Wait until the in-flight scan, if any, has finished."""
        if self._scan_task is not None:
            await self._scan_task

    async def run_forever(self) -> None:
        """Poll on a fixed cadence until the process stops."""
        logger.info(
            "Starting block monitoring (polling every %.2fs)", self.poll_interval_seconds
        )
        while True:
            await self.tick()
            await asyncio.sleep(self.poll_interval_seconds)
