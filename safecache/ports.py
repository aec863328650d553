"""
Host Ports

Interfaces between the cache coordinator and the content-management host.

- ContentStore: what the coordinator asks the host (item lookup, site URLs)
- TaskRegistry: the host's deferred-task mechanism (one pending task per key)
- LifecycleHooks: what the host calls when content changes
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional

from safecache.models import ContentItem, ItemId, PostStatus


FireCallback = Callable[[Any], Awaitable[Any]]


class ContentStore(ABC):
    """Read access to the host's content store."""

    @abstractmethod
    def get_item(self, item_id: ItemId) -> Optional[ContentItem]:
        """Return the current snapshot of an item, or None if it does not exist."""

    @abstractmethod
    def home_url(self) -> str:
        """Site root URL (with trailing slash)."""

    @abstractmethod
    def feed_url(self) -> str:
        """Syndication feed URL."""


class TaskRegistry(ABC):
    """
    Deferred one-shot tasks keyed by name.

    The registry is authoritative for the "one pending task per key" state;
    has_pending() must be consistent with schedule() for the same key.
    """

    @abstractmethod
    def has_pending(self, key: str) -> bool:
        """Whether a task for key is scheduled and has not fired yet."""

    @abstractmethod
    def schedule(self, key: str, delay: float, payload: Any) -> None:
        """Fire the registered callback with payload after delay seconds."""

    @abstractmethod
    def on_fire(self, callback: FireCallback) -> None:
        """Register the coroutine function invoked when a task fires."""

    @abstractmethod
    def pending_keys(self) -> List[str]:
        """Keys of all tasks not yet fired."""


class LifecycleHooks(ABC):
    """Notifications the host sends when content or linkage changes."""

    @abstractmethod
    async def on_metadata_written(self, item_id: ItemId, key: str, value: Any) -> bool:
        """A metadata key was added or updated on an item."""

    @abstractmethod
    async def on_status_transition(
        self,
        new_status: PostStatus,
        old_status: PostStatus,
        item: Optional[ContentItem],
    ) -> bool:
        """An item moved between publish states."""

    @abstractmethod
    async def on_delayed_purge(self, item_id: ItemId) -> Any:
        """A previously scheduled delayed purge is due."""
