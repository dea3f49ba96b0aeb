"""
Background sweeper that closes expired auctions on an interval
"""
import asyncio
import logging
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from bidhouse.core.config import get_settings
from bidhouse.services.lifecycle_service import LifecycleService

logger = logging.getLogger(__name__)


class AuctionSweeper:
    """Runs LifecycleService.close_expired_auctions periodically"""

    def __init__(self, session_factory: Callable[[], Session], interval_seconds: Optional[float] = None):
        self.session_factory = session_factory
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else get_settings().SWEEP_INTERVAL_SECONDS
        )
        self.running = False
        self.task = None
        self.sweeps_run = 0
        self.failures = 0

    async def start(self):
        """Start the background sweeper"""
        if self.running:
            logger.warning("Auction sweeper already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._run())
        logger.info(f"Auction sweeper started (interval: {self.interval_seconds}s)")

    async def stop(self):
        """Stop the background sweeper"""
        if not self.running:
            return

        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        logger.info("Auction sweeper stopped")

    def sweep_once(self) -> List[str]:
        """Run a single sweep in a fresh session"""
        db = self.session_factory()
        try:
            return LifecycleService.close_expired_auctions(db)
        finally:
            db.close()

    async def _run(self):
        """Main sweeper loop"""
        while self.running:
            try:
                # Store calls block; keep them off the event loop
                await asyncio.to_thread(self.sweep_once)
                self.sweeps_run += 1
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.failures += 1
                logger.exception(f"Auction sweep failed: {e}")

            try:
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                break
