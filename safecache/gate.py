"""
Pre-linkage Cache Gate

Until a published post has its Discourse linkage, its HTML shows the native
comment form. That render must not be stored by the browser, the edge or the
origin full-page cache, or it outlives the linkage.

The gate runs at the last point before output starts and fails open: if
anything goes wrong, the page is served with normal caching.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from starlette.responses import Response

from safecache.headers import nocache_headers
from safecache.linkage import LinkagePolicy
from safecache.models import ContentItem


logger = logging.getLogger(__name__)


class HeadersAlreadySentError(RuntimeError):
    """Response headers were modified after output started."""


@dataclass
class RenderContext:
    """The page render the gate is deciding on."""
    item: Optional[ContentItem]
    response: Response
    is_singular: bool = True
    headers_sent: bool = False
    # Origin full-page cache signal; the page cache must skip this response
    skip_page_cache: bool = False

    def set_header(self, name: str, value: str) -> None:
        if self.headers_sent:
            raise HeadersAlreadySentError(f"Cannot set {name}: output already started")
        self.response.headers[name] = value

    def remove_header(self, name: str) -> None:
        if self.headers_sent:
            raise HeadersAlreadySentError(f"Cannot remove {name}: output already started")
        if name in self.response.headers:
            del self.response.headers[name]


class CacheGate:
    """Withholds caching for published posts still waiting for linkage."""

    def __init__(self, policy: LinkagePolicy):
        self.policy = policy

    def should_gate(self, ctx: RenderContext, now: Optional[datetime] = None) -> bool:
        if not ctx.is_singular or ctx.item is None:
            return False
        return self.policy.should_gate_caching(ctx.item, now)

    def apply(self, ctx: RenderContext, now: Optional[datetime] = None) -> bool:
        """
        Gate the response if needed.

        Returns:
            True if the response was marked uncacheable.
        """
        try:
            if not self.should_gate(ctx, now):
                return False

            if not ctx.headers_sent:
                for name, value in nocache_headers().items():
                    ctx.set_header(name, value)
                ctx.remove_header("Last-Modified")
                ctx.remove_header("ETag")
            else:
                logger.warning(
                    f"Pre-linkage gate for item {ctx.item.item_id}: "
                    "output already started, cache headers not set"
                )

            ctx.skip_page_cache = True
            logger.debug(f"Pre-linkage no-cache for item {ctx.item.item_id}")
            return True

        except Exception:
            logger.exception("Pre-linkage gate failed; serving with normal caching")
            return False
