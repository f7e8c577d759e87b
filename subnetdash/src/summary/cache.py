"""
Summary Cache

Holds the latest summary snapshot and refreshes it on a fixed interval.
The owner drives the lifecycle explicitly with start()/stop(); the clock
and sleep functions are injected so tests can run the loop without waiting.
"""

import time
import asyncio
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from subnetdash.core.setup import logger
from subnetdash.src.summary.config import SummaryConfig
from subnetdash.src.summary.models import SummaryTable


class CacheState(Enum):
    """Cache state machine."""
    EMPTY = "empty"
    WARMING = "warming"
    READY = "ready"
    REFRESHING = "refreshing"


Listener = Callable[[SummaryTable], None]


class SummaryCache:
    """Latest-snapshot cache with a background polling loop.

    A successful refresh replaces the snapshot wholesale. A failed refresh
    keeps the previous snapshot and records the error (stale-while-error).
    Results that arrive after stop() are discarded.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[SummaryTable]],
        interval_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._fetch = fetch
        self.interval_seconds = interval_seconds or SummaryConfig.POLL_SECONDS
        self._clock = clock
        self._sleep = sleep

        self._snapshot: Optional[SummaryTable] = None
        self._state = CacheState.EMPTY
        self._lock = asyncio.Lock()
        self._listeners: List[Listener] = []

        self.updated_at: Optional[float] = None
        self.last_error: Optional[Exception] = None
        self.refresh_count = 0
        self.failure_count = 0

        self._running = False
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def snapshot(self) -> Optional[SummaryTable]:
        """Last good snapshot, or None before the first successful refresh."""
        return self._snapshot

    @property
    def running(self) -> bool:
        return self._running

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with every new snapshot. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def refresh(self) -> bool:
        """Fetch once and swap in the new snapshot.

        Returns:
            True if a new snapshot was stored
        """
        async with self._lock:
            self._state = CacheState.REFRESHING if self._snapshot is not None else CacheState.WARMING
            try:
                table = await self._fetch()
            except asyncio.CancelledError:
                self._restore_state()
                raise
            except Exception as e:
                self.failure_count += 1
                self.last_error = e
                self._restore_state()
                if self._snapshot is not None:
                    logger.warning(f"Summary refresh failed, keeping snapshot from {self.updated_at}: {e}")
                else:
                    logger.error(f"Summary refresh failed with no snapshot available: {e}")
                return False

            if not self._running and self._refresh_task is not None:
                # stopped while the request was in flight
                logger.debug("Discarding summary fetched after stop()")
                self._restore_state()
                return False

            self._snapshot = table
            self._state = CacheState.READY
            self.updated_at = self._clock()
            self.last_error = None
            self.refresh_count += 1
            logger.debug(f"Summary refreshed: {len(table.rows)} rows at {self.updated_at}")

        for listener in list(self._listeners):
            try:
                listener(table)
            except Exception as e:
                logger.error(f"Summary listener failed: {e}", exc_info=True)
        return True

    async def start(self) -> None:
        """Refresh once, then keep refreshing every interval until stop()."""
        if self._running:
            return
        self._running = True
        logger.info(f"Starting summary polling every {self.interval_seconds:g}s")
        self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        """Stop the polling loop; in-flight results are discarded."""
        self._running = False
        if self._refresh_task:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
        logger.info("Summary polling stopped")

    async def _refresh_loop(self) -> None:
        """Background refresh loop: refresh, sleep, repeat."""
        while self._running:
            try:
                await self.refresh()
                await self._sleep(self.interval_seconds)
            except asyncio.CancelledError:
                logger.debug("Summary refresh task cancelled")
                break

    def _restore_state(self) -> None:
        self._state = CacheState.READY if self._snapshot is not None else CacheState.EMPTY
