"""Background expiry of called entries whose customer never showed up."""

import asyncio
import datetime
import logging
from typing import List, Optional
from tably.configs import CALL_TIMEOUT, SWEEP_INTERVAL
from tably.core.queue import QueueAPI
from tably.core.utils import utcnow

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Periodically cancels entries that were called more than `timeout`
    seconds ago.

    Runs as an asyncio task next to the request handlers and goes through
    `QueueAPI` like any other caller, so a concurrent admin action on the
    same entry simply wins or loses by write order.
    """

    def __init__(self, interval: int = SWEEP_INTERVAL, timeout: int = CALL_TIMEOUT,
                 session=None, clock=utcnow):
        self.interval = interval
        self.timeout = datetime.timedelta(seconds=timeout)
        self.queue = QueueAPI(session=session, clock=clock)
        self._owns_session = session is None
        self.clock = clock
        self._running = False
        self._task: Optional[asyncio.Task] = None

    def is_expired(self, entry, now: datetime.datetime) -> bool:
        return bool(entry.called_at) and now - entry.called_at > self.timeout

    def sweep(self, now: Optional[datetime.datetime] = None) -> List[int]:
        """Runs a single pass and returns the ids it cancelled."""
        now = now or self.clock()
        cancelled = []
        try:
            entries = self.queue.repository.list_called()
        except Exception as e:
            logger.error(f"Auto-cancellation scan failed: {e}")
            self.queue.repository.db.rollback()
            return cancelled

        for entry in entries:
            if not self.is_expired(entry, now):
                continue
            entry_id = entry.id
            try:
                logger.info(f"Auto-cancelling entry {entry_id} due to timeout")
                if self.queue.cancel(entry_id):
                    cancelled.append(entry_id)
            except Exception:
                logger.exception(f"Auto-cancellation of entry {entry_id} failed")
        return cancelled

    def _tick(self):
        """One sweep on a worker thread; the scoped session is released there too."""
        try:
            self.sweep()
        except Exception as e:
            logger.error(f"Auto-cancellation job error: {e}")
        finally:
            if self._owns_session:
                self.queue.repository.db.remove()

    async def run(self):
        self._running = True
        logger.info(f"Expiry sweeper started (every {self.interval}s, "
                    f"timeout {int(self.timeout.total_seconds())}s)")
        while self._running:
            await asyncio.to_thread(self._tick)
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Expiry sweeper stopped")
