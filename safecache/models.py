"""
Content Models

The slice of a content item the cache coordinator reads. Items are owned by
the content-management host; these are read-only snapshots.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Union


ItemId = Union[int, str]


class PostStatus(Enum):
    """Publish states reported by the host."""
    DRAFT = "draft"
    PENDING = "pending"
    FUTURE = "future"
    PRIVATE = "private"
    PUBLISH = "publish"
    TRASH = "trash"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Union["PostStatus", str, None]) -> "PostStatus":
        """Map a host status string onto the enum; unknown values become OTHER."""
        if isinstance(value, PostStatus):
            return value
        if not value:
            return cls.OTHER
        normalized = str(value).strip().lower()
        if normalized == "published":
            return cls.PUBLISH
        try:
            return cls(normalized)
        except ValueError:
            return cls.OTHER


class PurgeOutcome(Enum):
    """What happened to a purge request. Never raised, only reported."""
    SKIPPED = "skipped"                  # No credentials, no URLs, or nothing to do
    PURGED = "purged"                    # Edge accepted the purge (2xx)
    TRANSPORT_ERROR = "transport_error"  # Network failure / timeout
    REJECTED = "rejected"                # Non-2xx from the purge API


@dataclass
class ContentItem:
    """Read-only snapshot of a content item."""
    item_id: ItemId
    status: PostStatus = PostStatus.DRAFT
    published_at: Optional[datetime] = None
    meta: Dict[str, str] = field(default_factory=dict)
    permalink: Optional[str] = None
    content_type: str = "post"

    def __post_init__(self):
        self.status = PostStatus.parse(self.status)
        if self.published_at is not None and self.published_at.tzinfo is None:
            # Host timestamps without an offset are GMT
            self.published_at = self.published_at.replace(tzinfo=timezone.utc)

    @property
    def is_published(self) -> bool:
        return self.status == PostStatus.PUBLISH

    def get_meta(self, key: str) -> str:
        value = self.meta.get(key)
        if value is None:
            return ""
        return str(value).strip()
