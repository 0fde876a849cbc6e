"""
Periodic cleanup of expired quiz sessions
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SessionSweeper:
    """Background task deleting quiz sessions past their expiry"""

    def __init__(self, sweep_callback: Callable[[], int], interval_seconds: float = 600):
        self.sweep_callback = sweep_callback
        self.interval_seconds = interval_seconds
        self.is_running = False
        self.task = None

    async def start(self):
        """Start the sweeper"""
        if self.is_running:
            logger.warning("Session sweeper is already running")
            return

        self.is_running = True
        self.task = asyncio.create_task(self._sweep_loop())
        logger.info(f"Session sweeper started: interval={self.interval_seconds}s")

    async def stop(self):
        """Stop the sweeper"""
        if not self.is_running:
            return

        self.is_running = False
        if self.task:
            self.task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self.task
        logger.info("Session sweeper stopped")

    def sweep_once(self) -> int:
        """Run one sweep, returning how many sessions were deleted"""
        removed = self.sweep_callback()
        if removed:
            logger.info(f"Swept {removed} expired quiz sessions")
        return removed

    async def _sweep_loop(self):
        """Main sweeping loop"""
        while self.is_running:
            try:
                await asyncio.sleep(self.interval_seconds)
                if self.is_running:
                    self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in session sweeper: {e}", exc_info=True)
