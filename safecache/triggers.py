"""
Linkage Event Triggers

Host lifecycle events that can change what a cached page should show:
- META_ADDED / META_UPDATED: a Discourse linkage key was written
- STATUS_TRANSITION: a post moved into "publish"
- DELAYED_PURGE: a scheduled follow-up purge is due

On linkage arrival the permalink, home and feed are purged immediately and
a delayed home/feed purge is scheduled. The immediate purge always returns
before the delayed one is scheduled.
"""

import logging
from enum import Enum
from typing import Any, Optional

from safecache.config import CacheConfig, Credentials
from safecache.linkage import LinkagePolicy
from safecache.models import ContentItem, ItemId, PostStatus
from safecache.ports import ContentStore, LifecycleHooks
from safecache.purge import CloudflarePurger
from safecache.scheduler import DelayedPurgeScheduler
from safecache.urls import PurgeUrlBuilder


logger = logging.getLogger(__name__)


class CacheEvent(Enum):
    """Events that can trigger an edge purge."""
    META_ADDED = "meta_added"
    META_UPDATED = "meta_updated"
    STATUS_TRANSITION = "status_transition"
    DELAYED_PURGE = "delayed_purge"


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    return str(value).strip() == ""


class LinkageCacheCoordinator(LifecycleHooks):
    """
    Reacts to host events by purging the edge.

    No purge goes out without complete credentials, and no failure here
    ever reaches the caller's request.
    """

    def __init__(
        self,
        credentials: Credentials,
        store: ContentStore,
        policy: LinkagePolicy,
        url_builder: PurgeUrlBuilder,
        purger: CloudflarePurger,
        scheduler: DelayedPurgeScheduler,
    ):
        self.credentials = credentials
        self.store = store
        self.policy = policy
        self.url_builder = url_builder
        self.purger = purger
        self.scheduler = scheduler

    @classmethod
    def from_config(
        cls,
        config: CacheConfig,
        store: ContentStore,
        registry,
        purger: Optional[CloudflarePurger] = None,
        policy: Optional[LinkagePolicy] = None,
        url_builder: Optional[PurgeUrlBuilder] = None,
    ) -> "LinkageCacheCoordinator":
        """Wire the coordinator from configuration."""
        credentials = config.credentials
        policy = policy or LinkagePolicy(
            meta_keys=config.linkage_meta_keys,
            grace_minutes=config.linkage_grace_minutes,
            gated_content_types=config.gated_content_types,
        )
        url_builder = url_builder or PurgeUrlBuilder(store)
        purger = purger or CloudflarePurger(
            credentials,
            api_base=config.cloudflare_api_base,
            timeout=config.purge_timeout,
        )
        scheduler = DelayedPurgeScheduler(
            registry,
            store,
            url_builder,
            purger,
            delay_seconds=config.delayed_purge_seconds,
        )
        return cls(credentials, store, policy, url_builder, purger, scheduler)

    def config_warning(self) -> Optional[str]:
        """Operator-facing warning when purging is not configured."""
        if self.credentials.is_complete:
            return None
        return (
            "Missing Cloudflare credentials. Set CLOUDFLARE_ZONE_ID and "
            "CLOUDFLARE_API_TOKEN; edge purges are disabled."
        )

    def should_trigger(self, item_id: ItemId, key: str, value: Any) -> bool:
        """Only linkage keys with a value, on published items, with credentials."""
        if not self.credentials.is_complete:
            return False
        if _is_empty(value):
            return False
        if not self.policy.is_linkage_key(key):
            return False
        item = self.store.get_item(item_id)
        return item is not None and item.is_published

    async def on_metadata_written(self, item_id: ItemId, key: str, value: Any) -> bool:
        """Purge when a linkage key is added or updated on a published item."""
        if not self.should_trigger(item_id, key, value):
            return False

        item = self.store.get_item(item_id)
        logger.info(f"Linkage {key} landed on item {item_id}, purging edge")
        await self.purger.purge(self.url_builder.build_purge_urls(item))
        self.scheduler.schedule_delayed_purge(item_id)
        return True

    async def on_status_transition(
        self,
        new_status: PostStatus,
        old_status: PostStatus,
        item: Optional[ContentItem],
    ) -> bool:
        """
        Purge on publish if linkage is already present.

        The delayed purge is scheduled on every publish transition, to catch
        linkage that lands shortly after publish.
        """
        if PostStatus.parse(new_status) != PostStatus.PUBLISH or item is None:
            return False

        purged = False
        linked_key = self.policy.first_linked_key(item)
        if linked_key is not None and self.credentials.is_complete:
            logger.info(
                f"Item {item.item_id} published with linkage ({linked_key}), purging edge"
            )
            await self.purger.purge(self.url_builder.build_purge_urls(item))
            purged = True

        self.scheduler.schedule_delayed_purge(item.item_id)
        return purged

    async def on_delayed_purge(self, item_id: ItemId):
        return await self.scheduler.run_delayed_purge(item_id)

    async def handle_event(self, event: CacheEvent, **kwargs) -> Any:
        """Dispatch a host event by type."""
        logger.debug(f"Cache event: {event.value} {kwargs}")

        if event in (CacheEvent.META_ADDED, CacheEvent.META_UPDATED):
            return await self.on_metadata_written(
                kwargs["item_id"], kwargs["key"], kwargs.get("value")
            )
        elif event == CacheEvent.STATUS_TRANSITION:
            return await self.on_status_transition(
                kwargs["new_status"], kwargs.get("old_status"), kwargs.get("item")
            )
        elif event == CacheEvent.DELAYED_PURGE:
            return await self.on_delayed_purge(kwargs["item_id"])

        raise ValueError(f"Unhandled cache event: {event}")
