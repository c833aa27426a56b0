"""Agent rescan scheduler.

Rescans agents whose Signal Rank is older than the cache window on a
configurable schedule. Uses asyncio tasks, no external scheduler dependency.
"""

from __future__ import annotations

import asyncio
import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_HOURS = 24


class ScanScheduler:
    """Manages periodic rescans of stale agents."""

    def __init__(self):
        self._task: asyncio.Task | None = None
        self._running = False
        self._interval_seconds = int(os.environ.get(
            "REFRESH_INTERVAL_HOURS",
            str(DEFAULT_REFRESH_INTERVAL_HOURS),
        )) * 3600

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the background rescan loop."""
        if self._running:
            return
        if self._interval_seconds <= 0:
            logger.info("REFRESH_INTERVAL_HOURS is 0, scan scheduler disabled")
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Scan scheduler started (interval: %d hours)", self._interval_seconds // 3600)

    async def stop(self):
        """Stop the background rescan loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Scan scheduler stopped")

    async def _run_loop(self):
        """Sleep for one interval, then rescan stale agents, forever."""
        from .scanner import run_refresh

        while self._running:
            try:
                await asyncio.sleep(self._interval_seconds)
                if not self._running:
                    break
                await run_refresh()
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.error("Scheduled rescan failed: %s", exc, exc_info=True)
                await asyncio.sleep(60)
