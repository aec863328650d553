"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
import pytest

from safecache.config import CacheConfig, Credentials
from safecache.linkage import LinkagePolicy
from safecache.models import ContentItem, PostStatus
from safecache.ports import TaskRegistry
from safecache.purge import CloudflarePurger
from safecache.scheduler import DelayedPurgeScheduler
from safecache.store import InMemoryContentStore
from safecache.triggers import LinkageCacheCoordinator
from safecache.urls import PurgeUrlBuilder


SITE_URL = "https://example.com/"
FEED_URL = "https://example.com/feed/"
PUBLISHED_AT = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Fakes
# ============================================================================

class FakeTaskRegistry(TaskRegistry):
    """Deferred tasks held in a dict; tests fire them by hand."""

    def __init__(self):
        self.scheduled: Dict[str, tuple] = {}
        self.schedule_calls = 0
        self.callback = None

    def has_pending(self, key: str) -> bool:
        return key in self.scheduled

    def schedule(self, key: str, delay: float, payload: Any) -> None:
        self.schedule_calls += 1
        if key in self.scheduled:
            return
        self.scheduled[key] = (delay, payload)

    def on_fire(self, callback) -> None:
        self.callback = callback

    def pending_keys(self) -> List[str]:
        return list(self.scheduled)

    async def fire(self, key: str):
        _, payload = self.scheduled.pop(key)
        return await self.callback(payload)


class RecordingPurgeApi:
    """httpx MockTransport handler standing in for the Cloudflare API."""

    def __init__(self, status_code: int = 200, error: Optional[Exception] = None):
        self.status_code = status_code
        self.error = error
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if 200 <= self.status_code < 300:
            return httpx.Response(self.status_code, json={"success": True, "errors": []})
        return httpx.Response(
            self.status_code,
            json={"success": False, "errors": [{"code": 10000, "message": "Authentication error"}]},
        )

    @property
    def purged_batches(self) -> List[List[str]]:
        return [json.loads(r.content)["files"] for r in self.requests]


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def credentials() -> Credentials:
    return Credentials(zone_id="zone123", api_token="token-abc")


@pytest.fixture
def purge_api() -> RecordingPurgeApi:
    return RecordingPurgeApi()


@pytest.fixture
def purger(credentials, purge_api) -> CloudflarePurger:
    client = httpx.AsyncClient(transport=httpx.MockTransport(purge_api))
    return CloudflarePurger(credentials, client=client)


@pytest.fixture
def store() -> InMemoryContentStore:
    return InMemoryContentStore(SITE_URL, FEED_URL)


@pytest.fixture
def registry() -> FakeTaskRegistry:
    return FakeTaskRegistry()


@pytest.fixture
def policy() -> LinkagePolicy:
    return LinkagePolicy(clock=lambda: PUBLISHED_AT + timedelta(minutes=5))


@pytest.fixture
def url_builder(store) -> PurgeUrlBuilder:
    return PurgeUrlBuilder(store)


@pytest.fixture
def scheduler(registry, store, url_builder, purger) -> DelayedPurgeScheduler:
    return DelayedPurgeScheduler(registry, store, url_builder, purger, delay_seconds=30)


@pytest.fixture
def coordinator(credentials, store, policy, url_builder, purger, scheduler) -> LinkageCacheCoordinator:
    return LinkageCacheCoordinator(credentials, store, policy, url_builder, purger, scheduler)


@pytest.fixture
def make_item():
    """Factory for content items."""
    def _make(
        item_id=42,
        status=PostStatus.PUBLISH,
        meta: Optional[Dict[str, str]] = None,
        permalink: Optional[str] = "https://example.com/2025/03/hello-world/",
        published_at: Optional[datetime] = PUBLISHED_AT,
        content_type: str = "post",
    ) -> ContentItem:
        return ContentItem(
            item_id=item_id,
            status=status,
            published_at=published_at,
            meta=dict(meta or {}),
            permalink=permalink,
            content_type=content_type,
        )
    return _make


@pytest.fixture
def published_item(store, make_item) -> ContentItem:
    """Published, unlinked post stored in the host mirror."""
    return store.upsert(make_item())


@pytest.fixture
def test_config() -> CacheConfig:
    return CacheConfig(
        cloudflare_zone_id="zone123",
        cloudflare_api_token="token-abc",
        delayed_purge_seconds=30,
        linkage_grace_minutes=0,
        site_url=SITE_URL,
        feed_url=FEED_URL,
    )


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
