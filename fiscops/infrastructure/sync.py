"""Debounced persistence of the record store"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from fiscops.domain.exceptions import StorageError
from fiscops.domain.models import SyncResult

logger = logging.getLogger(__name__)


class DebouncedSaver:
    """
    Collapse bursts of save requests into a single write.

    Each schedule() cancels the pending timer and starts a new one. When the
    timer expires the save callable runs and reads whatever state is current
    at that moment. Writes are serialized by a lock, so a save triggered while
    another is in flight waits for it instead of overlapping.
    """

    def __init__(self, save: Callable[[], Awaitable[SyncResult]], delay: float, backend: str = "local"):
        self._save = save
        self.delay = delay
        self.backend = backend
        self._pending: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self.last_result: Optional[SyncResult] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    def schedule(self) -> None:
        """Restart the debounce window (must be called from the event loop)"""
        self.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._fire_after_delay())

    def cancel(self) -> None:
        if self.pending:
            self._pending.cancel()
        self._pending = None

    async def flush(self) -> SyncResult:
        """Drop the timer and write now"""
        self.cancel()
        return await self._persist()

    async def _fire_after_delay(self) -> None:
        await asyncio.sleep(self.delay)
        # Past this point the write is no longer cancellable by schedule()
        self._pending = None
        await self._persist()

    async def _persist(self) -> SyncResult:
        async with self._lock:
            try:
                result = await self._save()
            except StorageError as e:
                logger.error(f"Save failed: {e}")
                result = SyncResult(ok=False, backend=self.backend, error=str(e))
            self.last_result = result
            return result
