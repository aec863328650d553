"""
safecache: linkage-safe edge caching

Keeps single-post HTML out of every cache until its Discourse discussion
linkage exists, and purges the edge whenever that linkage lands:
- Layer 1: Browser cache (Cache-Control / Expires on gated pages)
- Layer 2: Edge cache (Cloudflare, purged by URL)
- Layer 3: Origin full-page cache (bypass header + request flag)

Key components:
- LinkagePolicy: is the item linked, and must its page be gated?
- PurgeUrlBuilder: permalink (both slash forms), home and feed URLs
- CloudflarePurger: fire-and-forget purge-by-URL
- DelayedPurgeScheduler: one follow-up home/feed purge per item
- LinkageCacheCoordinator: reacts to host metadata and status events
- CacheGate: no-cache directives for pre-linkage renders
- ApiCachePolicy: short edge TTL for anonymous Discourse API reads

Usage:
    coordinator = LinkageCacheCoordinator.from_config(
        get_cache_config(), store, AsyncioTaskRegistry()
    )
    await coordinator.on_metadata_written(post_id, "discourse_topic_id", "123")
"""

from safecache.config import CacheConfig, Credentials, get_cache_config
from safecache.models import ContentItem, PostStatus, PurgeOutcome
from safecache.ports import ContentStore, LifecycleHooks, TaskRegistry
from safecache.linkage import LinkagePolicy
from safecache.urls import PurgeUrlBuilder
from safecache.purge import CloudflarePurger
from safecache.registry import AsyncioTaskRegistry
from safecache.scheduler import DelayedPurgeScheduler
from safecache.triggers import CacheEvent, LinkageCacheCoordinator
from safecache.headers import CacheHeadersBuilder, edge_cache_headers, nocache_headers
from safecache.gate import CacheGate, HeadersAlreadySentError, RenderContext
from safecache.api_policy import ApiCachePolicy, ApiRequestInfo
from safecache.store import InMemoryContentStore

__all__ = [
    # Config
    "CacheConfig",
    "Credentials",
    "get_cache_config",
    # Models
    "ContentItem",
    "PostStatus",
    "PurgeOutcome",
    # Ports
    "ContentStore",
    "LifecycleHooks",
    "TaskRegistry",
    # Linkage + purge
    "LinkagePolicy",
    "PurgeUrlBuilder",
    "CloudflarePurger",
    "AsyncioTaskRegistry",
    "DelayedPurgeScheduler",
    "CacheEvent",
    "LinkageCacheCoordinator",
    # Headers
    "CacheHeadersBuilder",
    "edge_cache_headers",
    "nocache_headers",
    "CacheGate",
    "HeadersAlreadySentError",
    "RenderContext",
    "ApiCachePolicy",
    "ApiRequestInfo",
    # Host mirror
    "InMemoryContentStore",
]
