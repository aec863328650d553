"""
Linkage Policy

Decides whether a content item already has its Discourse linkage and, if
not, whether responses for it must stay out of every cache.

Pure decision logic: no I/O, no side effects.
"""

from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from safecache.config import DEFAULT_LINKAGE_META_KEYS
from safecache.models import ContentItem


KeyTransform = Callable[[List[str]], Iterable[str]]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LinkagePolicy:
    """
    Linkage presence and pre-linkage gating.

    Usage:
        policy = LinkagePolicy(meta_keys=config.linkage_meta_keys,
                               grace_minutes=config.linkage_grace_minutes)
        if policy.should_gate_caching(item):
            ...
    """

    def __init__(
        self,
        meta_keys: Optional[Sequence[str]] = None,
        grace_minutes: int = 0,
        gated_content_types: Optional[Sequence[str]] = None,
        key_transform: Optional[KeyTransform] = None,
        clock: Clock = utc_now,
    ):
        keys = list(meta_keys) if meta_keys is not None else list(DEFAULT_LINKAGE_META_KEYS)
        if key_transform is not None:
            keys = list(key_transform(keys))

        # Ordered, de-duplicated, fixed for the lifetime of the policy
        seen = set()
        ordered = []
        for key in keys:
            if key and key not in seen:
                seen.add(key)
                ordered.append(key)

        self._meta_keys: Tuple[str, ...] = tuple(ordered)
        self.grace_minutes = max(0, int(grace_minutes))
        self.gated_content_types = frozenset(gated_content_types or ("post",))
        self._clock = clock

    @property
    def meta_keys(self) -> Tuple[str, ...]:
        return self._meta_keys

    def is_linkage_key(self, key: str) -> bool:
        return key in self._meta_keys

    def first_linked_key(self, item: ContentItem) -> Optional[str]:
        """First configured key (in order) holding a non-empty value."""
        for key in self._meta_keys:
            if item.get_meta(key):
                return key
        return None

    def is_linked(self, item: ContentItem) -> bool:
        return self.first_linked_key(item) is not None

    def minutes_since_publish(
        self,
        item: ContentItem,
        now: Optional[datetime] = None,
    ) -> Optional[int]:
        """Whole minutes since publish (floored), or None if publish time unknown."""
        if item.published_at is None:
            return None
        now = now or self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        elapsed = (now - item.published_at).total_seconds()
        return int(elapsed // 60)

    def should_gate_caching(
        self,
        item: ContentItem,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Whether responses for item must not be cached anywhere.

        True only for a published item of a gated content type that has no
        linkage yet and whose grace period (if any) has not run out.
        """
        if not item.is_published:
            return False
        if item.content_type not in self.gated_content_types:
            return False
        if self.is_linked(item):
            return False

        if self.grace_minutes > 0:
            minutes = self.minutes_since_publish(item, now)
            if minutes is not None and minutes >= self.grace_minutes:
                # Waited long enough; let caching resume without purging.
                return False

        return True
