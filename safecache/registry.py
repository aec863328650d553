"""
In-process deferred task registry.

asyncio-backed TaskRegistry for hosts that run the coordinator inside the
web process. One task per key; a key stays pending until its task starts
running, so a second schedule() for the same key is ignored.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from safecache.ports import FireCallback, TaskRegistry


logger = logging.getLogger(__name__)


class AsyncioTaskRegistry(TaskRegistry):
    """
    Deferred one-shot tasks on the running event loop.

    Must be used from the event loop thread; pending state is not shared
    across processes.
    """

    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}
        self._fire_at: Dict[str, datetime] = {}
        self._callback: Optional[FireCallback] = None

    def on_fire(self, callback: FireCallback) -> None:
        self._callback = callback

    def has_pending(self, key: str) -> bool:
        return key in self._tasks

    def pending_keys(self) -> List[str]:
        return list(self._tasks)

    def fire_at(self, key: str) -> Optional[datetime]:
        return self._fire_at.get(key)

    def schedule(self, key: str, delay: float, payload: Any) -> None:
        if self.has_pending(key):
            logger.debug(f"Task {key} already pending, not rescheduling")
            return

        self._fire_at[key] = datetime.now(timezone.utc) + timedelta(seconds=delay)
        self._tasks[key] = asyncio.get_running_loop().create_task(
            self._run(key, delay, payload), name=f"safecache:{key}"
        )
        logger.debug(f"Scheduled {key} in {delay}s")

    async def _run(self, key: str, delay: float, payload: Any) -> None:
        try:
            await asyncio.sleep(delay)
        finally:
            # Unschedule before running so the callback may reschedule the key
            self._tasks.pop(key, None)
            self._fire_at.pop(key, None)

        if self._callback is None:
            logger.warning(f"Task {key} fired with no callback registered")
            return

        try:
            await self._callback(payload)
        except Exception as e:
            logger.error(f"Deferred task {key} failed: {e}")

    async def shutdown(self) -> None:
        """Cancel every pending task."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} pending deferred tasks")
        self._tasks.clear()
        self._fire_at.clear()
