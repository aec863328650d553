"""
HTTP Cache Headers

Builds Cache-Control and related headers for the two policies this package
emits:

1. Pre-linkage pages: nothing may store them (browser, edge, origin)
2. Discourse bridge API: edge caches briefly, browsers always revalidate
"""

import logging
from typing import Dict, List, Optional

from starlette.responses import Response

from safecache.config import HTTP_CACHE_PRESETS


logger = logging.getLogger(__name__)

# Expires value used for "already expired" (matches common CMS no-cache output)
EXPIRED_DATE = "Wed, 11 Jan 1984 05:00:00 GMT"

# Cloudflare / APO hint that this response must bypass the edge
EDGE_CACHE_HINT = ("CF-Edge-Cache", "no-cache")

# nginx fastcgi/proxy cache honours X-Accel-Expires: 0 as "do not store"
ORIGIN_BYPASS_HEADER = ("X-Accel-Expires", "0")


class CacheHeadersBuilder:
    """
    Fluent builder for HTTP cache headers.

    Usage:
        headers = (CacheHeadersBuilder()
            .public()
            .s_maxage(60)
            .max_age(0)
            .stale_while_revalidate(30)
            .vary(["Accept-Encoding"])
            .build())
    """

    def __init__(self):
        self._visibility: Optional[str] = None
        self._max_age: Optional[int] = None
        self._s_maxage: Optional[int] = None
        self._swr: int = 0
        self._no_cache: bool = False
        self._no_store: bool = False
        self._must_revalidate: bool = False
        self._vary: List[str] = []
        self._extra: Dict[str, str] = {}

    def public(self) -> "CacheHeadersBuilder":
        """Mark response as cacheable by shared caches."""
        self._visibility = "public"
        return self

    def private(self) -> "CacheHeadersBuilder":
        """Mark response as not cacheable by shared caches."""
        self._visibility = "private"
        return self

    def max_age(self, seconds: int) -> "CacheHeadersBuilder":
        """Set max-age directive (browser freshness). 0 is emitted."""
        self._max_age = seconds
        return self

    def s_maxage(self, seconds: int) -> "CacheHeadersBuilder":
        """Set s-maxage directive (shared/edge freshness)."""
        self._s_maxage = seconds
        return self

    def stale_while_revalidate(self, seconds: int) -> "CacheHeadersBuilder":
        self._swr = seconds
        return self

    def no_cache(self) -> "CacheHeadersBuilder":
        """Require revalidation before serving."""
        self._no_cache = True
        return self

    def no_store(self) -> "CacheHeadersBuilder":
        """Disable all caching."""
        self._no_store = True
        return self

    def must_revalidate(self) -> "CacheHeadersBuilder":
        self._must_revalidate = True
        return self

    def vary(self, headers: List[str]) -> "CacheHeadersBuilder":
        self._vary.extend(headers)
        return self

    def expires(self, value: str) -> "CacheHeadersBuilder":
        self._extra["Expires"] = value
        return self

    def header(self, name: str, value: str) -> "CacheHeadersBuilder":
        """Add an arbitrary header (edge/origin hints)."""
        self._extra[name] = value
        return self

    def build(self) -> Dict[str, str]:
        """Build headers dictionary."""
        headers = {}

        directives = []
        if self._visibility:
            directives.append(self._visibility)
        if self._no_store:
            directives.append("no-store")
        if self._no_cache:
            directives.append("no-cache")
        if self._must_revalidate:
            directives.append("must-revalidate")
        if self._s_maxage is not None:
            directives.append(f"s-maxage={self._s_maxage}")
        if self._max_age is not None:
            directives.append(f"max-age={self._max_age}")
        if self._swr > 0:
            directives.append(f"stale-while-revalidate={self._swr}")

        if directives:
            headers["Cache-Control"] = ", ".join(directives)

        if self._vary:
            headers["Vary"] = ", ".join(self._vary)

        headers.update(self._extra)
        return headers

    def apply(self, response: Response) -> Response:
        """Apply headers to a starlette/FastAPI Response."""
        for key, value in self.build().items():
            response.headers[key] = value
        return response

    @classmethod
    def from_preset(cls, name: str) -> "CacheHeadersBuilder":
        """Start a builder from one of HTTP_CACHE_PRESETS."""
        preset = HTTP_CACHE_PRESETS[name]
        builder = cls()
        if "public" in preset:
            if preset["public"]:
                builder.public()
            else:
                builder.private()
        if preset.get("no_store"):
            builder.no_store()
        if preset.get("no_cache"):
            builder.no_cache()
        if preset.get("must_revalidate"):
            builder.must_revalidate()
        if "s_maxage" in preset:
            builder.s_maxage(preset["s_maxage"])
        if "max_age" in preset:
            builder.max_age(preset["max_age"])
        if preset.get("stale_while_revalidate"):
            builder.stale_while_revalidate(preset["stale_while_revalidate"])
        if preset.get("vary"):
            builder.vary(preset["vary"])
        return builder


def nocache_headers() -> Dict[str, str]:
    """Headers that keep a response out of browser, edge and origin caches."""
    return (
        CacheHeadersBuilder.from_preset("prelinkage")
        .expires(EXPIRED_DATE)
        .header("Pragma", "no-cache")
        .header(*EDGE_CACHE_HINT)
        .header(*ORIGIN_BYPASS_HEADER)
        .build()
    )


def edge_cache_headers(
    s_maxage: int = 60,
    stale_while_revalidate: int = 30,
) -> Dict[str, str]:
    """Short edge TTL, browsers revalidate on every use."""
    return (
        CacheHeadersBuilder.from_preset("api_edge")
        .s_maxage(s_maxage)
        .stale_while_revalidate(stale_while_revalidate)
        .build()
    )
