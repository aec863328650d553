"""
Delayed Purge Scheduler

Linkage landing triggers an immediate edge purge, but the origin's own
full-page cache purge for the same event can finish later. If the edge
refetches home/feed before that, it caches the stale pre-linkage render
again. A second, delayed purge of home + feed closes that window.

The delay is a heuristic margin, not a synchronization with the origin.
"""

import logging
from typing import Optional

from safecache.models import ItemId, PurgeOutcome
from safecache.ports import ContentStore, TaskRegistry
from safecache.purge import CloudflarePurger
from safecache.urls import PurgeUrlBuilder


logger = logging.getLogger(__name__)

DEFAULT_DELAYED_PURGE_SECONDS = 30


def delayed_purge_key(item_id: ItemId) -> str:
    return f"delayed_purge:{item_id}"


class DelayedPurgeScheduler:
    """At most one pending delayed purge per item."""

    def __init__(
        self,
        registry: TaskRegistry,
        store: ContentStore,
        url_builder: PurgeUrlBuilder,
        purger: CloudflarePurger,
        delay_seconds: int = DEFAULT_DELAYED_PURGE_SECONDS,
    ):
        self.registry = registry
        self.store = store
        self.url_builder = url_builder
        self.purger = purger
        self.delay_seconds = max(0, int(delay_seconds))
        registry.on_fire(self.run_delayed_purge)

    @property
    def enabled(self) -> bool:
        return self.delay_seconds > 0

    def schedule_delayed_purge(self, item_id: ItemId) -> bool:
        """
        Schedule the follow-up purge for an item.

        Returns:
            True if a new task was registered, False if disabled or one is
            already pending for this item.
        """
        if not self.enabled:
            return False

        key = delayed_purge_key(item_id)
        if self.registry.has_pending(key):
            return False

        self.registry.schedule(key, self.delay_seconds, item_id)
        logger.info(f"Delayed purge for item {item_id} scheduled in {self.delay_seconds}s")
        return True

    async def run_delayed_purge(self, item_id: Optional[ItemId]) -> PurgeOutcome:
        """Deferred task body: purge home + feed if the item is still published."""
        if item_id is None or item_id == "" or item_id == 0:
            return PurgeOutcome.SKIPPED

        item = self.store.get_item(item_id)
        if item is None or not item.is_published:
            logger.info(f"Delayed purge for item {item_id} skipped: no longer published")
            return PurgeOutcome.SKIPPED

        urls = self.url_builder.build_delayed_purge_urls(item)
        return await self.purger.purge(urls)
