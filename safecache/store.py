"""
In-memory host mirror.

Keeps the latest item snapshots pushed by the host through the hook API so
the coordinator can look items up. Not persistent.
"""

import logging
from typing import Dict, Optional

from safecache.models import ContentItem, ItemId
from safecache.ports import ContentStore


logger = logging.getLogger(__name__)


class InMemoryContentStore(ContentStore):
    """ContentStore backed by a dict of snapshots."""

    def __init__(self, site_url: str, feed_url: Optional[str] = None):
        self._site_url = site_url if site_url.endswith("/") else site_url + "/"
        self._feed_url = feed_url or self._site_url + "feed/"
        self._items: Dict[str, ContentItem] = {}

    @staticmethod
    def _key(item_id: ItemId) -> str:
        return str(item_id)

    def get_item(self, item_id: ItemId) -> Optional[ContentItem]:
        return self._items.get(self._key(item_id))

    def upsert(self, item: ContentItem) -> ContentItem:
        self._items[self._key(item.item_id)] = item
        return item

    def set_meta(self, item_id: ItemId, key: str, value: str) -> Optional[ContentItem]:
        item = self.get_item(item_id)
        if item is None:
            return None
        item.meta[key] = value
        return item

    def delete(self, item_id: ItemId) -> bool:
        return self._items.pop(self._key(item_id), None) is not None

    def home_url(self) -> str:
        return self._site_url

    def feed_url(self) -> str:
        return self._feed_url
