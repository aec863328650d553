"""
Tests for cache configuration and HTTP cache headers.

These tests verify:
- Configuration defaults and environment overrides
- Credentials completeness
- Cache-Control header building
- The pre-linkage and edge header sets
"""

import pytest
from unittest.mock import patch

from safecache.config import (
    CacheConfig,
    Credentials,
    DEFAULT_LINKAGE_META_KEYS,
    get_cache_config,
)
from safecache.headers import (
    CacheHeadersBuilder,
    EXPIRED_DATE,
    edge_cache_headers,
    nocache_headers,
)


# =============================================================================
# CACHE CONFIG TESTS
# =============================================================================

class TestCacheConfig:
    """Test cache configuration."""

    @patch.dict("os.environ", {}, clear=True)
    def test_config_defaults(self):
        """Test default configuration values."""
        get_cache_config.cache_clear()
        config = get_cache_config()

        assert config.delayed_purge_seconds == 30
        assert config.linkage_grace_minutes == 0
        assert config.linkage_meta_keys == DEFAULT_LINKAGE_META_KEYS
        assert config.gated_content_types == ["post"]
        assert config.purge_timeout == 10.0
        assert config.api_cache_namespace == "wp-discourse"
        assert config.is_configured is False
        get_cache_config.cache_clear()

    @patch.dict("os.environ", {
        "CLOUDFLARE_ZONE_ID": " zone-from-env ",
        "CLOUDFLARE_API_TOKEN": "token-from-env",
        "DELAYED_PURGE_SECONDS": "45",
        "LINKAGE_GRACE_MINUTES": "10",
        "LINKAGE_META_KEYS": "discourse_topic_id, forum_thread_id",
    }, clear=True)
    def test_config_from_env(self):
        """Test configuration from environment variables."""
        get_cache_config.cache_clear()
        config = get_cache_config()

        assert config.credentials == Credentials("zone-from-env", "token-from-env")
        assert config.is_configured is True
        assert config.delayed_purge_seconds == 45
        assert config.linkage_grace_minutes == 10
        assert config.linkage_meta_keys == ["discourse_topic_id", "forum_thread_id"]
        get_cache_config.cache_clear()

    @patch.dict("os.environ", {"GATED_CONTENT_TYPES": "post, page"}, clear=True)
    def test_gated_content_types_from_env(self):
        get_cache_config.cache_clear()
        config = get_cache_config()

        assert config.gated_content_types == ["post", "page"]
        assert config.linkage_meta_keys == DEFAULT_LINKAGE_META_KEYS
        get_cache_config.cache_clear()

    @patch.dict("os.environ", {"LINKAGE_META_KEYS": " , ", "GATED_CONTENT_TYPES": ""}, clear=True)
    def test_blank_list_env_uses_defaults(self):
        config = CacheConfig()
        assert config.linkage_meta_keys == DEFAULT_LINKAGE_META_KEYS
        assert config.gated_content_types == ["post"]

    def test_list_fields_accept_lists(self):
        config = CacheConfig(linkage_meta_keys=["forum_thread_id"], gated_content_types=["page"])
        assert config.linkage_meta_keys == ["forum_thread_id"]
        assert config.gated_content_types == ["page"]

    @patch.dict("os.environ", {"DELAYED_PURGE_SECONDS": "-5", "LINKAGE_GRACE_MINUTES": "-1"}, clear=True)
    def test_negative_values_clamped(self):
        config = CacheConfig()
        assert config.delayed_purge_seconds == 0
        assert config.linkage_grace_minutes == 0

    def test_feed_url_defaults_from_site(self):
        config = CacheConfig(site_url="https://example.com", feed_url="")
        assert config.resolved_feed_url == "https://example.com/feed/"

    def test_config_is_cached(self):
        get_cache_config.cache_clear()
        assert get_cache_config() is get_cache_config()
        get_cache_config.cache_clear()


class TestCredentials:

    def test_complete(self):
        assert Credentials("zone", "token").is_complete is True

    @pytest.mark.parametrize("zone, token", [("", ""), ("zone", ""), ("", "token"), (None, "token")])
    def test_partial_is_absent(self, zone, token):
        assert Credentials.from_values(zone, token).is_complete is False

    def test_whitespace_trimmed(self):
        creds = Credentials.from_values("  zone ", " token\n")
        assert creds == Credentials("zone", "token")


# =============================================================================
# HTTP CACHE HEADERS TESTS
# =============================================================================

class TestCacheHeaders:
    """Test HTTP cache header utilities."""

    def test_headers_builder_basic(self):
        headers = CacheHeadersBuilder().public().max_age(300).build()
        assert headers["Cache-Control"] == "public, max-age=300"

    def test_max_age_zero_is_emitted(self):
        headers = CacheHeadersBuilder().max_age(0).build()
        assert headers["Cache-Control"] == "max-age=0"

    def test_directive_order(self):
        headers = (
            CacheHeadersBuilder()
            .stale_while_revalidate(30)
            .max_age(0)
            .s_maxage(60)
            .public()
            .build()
        )
        assert headers["Cache-Control"] == "public, s-maxage=60, max-age=0, stale-while-revalidate=30"

    def test_vary_and_extra_headers(self):
        headers = (
            CacheHeadersBuilder()
            .vary(["Accept-Encoding"])
            .header("CF-Edge-Cache", "no-cache")
            .build()
        )
        assert headers["Vary"] == "Accept-Encoding"
        assert headers["CF-Edge-Cache"] == "no-cache"
        assert "Cache-Control" not in headers

    def test_edge_cache_headers(self):
        assert edge_cache_headers() == {
            "Cache-Control": "public, s-maxage=60, max-age=0, stale-while-revalidate=30",
            "Vary": "Accept-Encoding",
        }

    def test_edge_cache_headers_custom_ttl(self):
        headers = edge_cache_headers(s_maxage=120, stale_while_revalidate=10)
        assert headers["Cache-Control"] == "public, s-maxage=120, max-age=0, stale-while-revalidate=10"

    def test_nocache_headers_cover_every_layer(self):
        headers = nocache_headers()

        cache_control = headers["Cache-Control"]
        for directive in ("no-store", "no-cache", "must-revalidate", "max-age=0", "private"):
            assert directive in cache_control
        assert "public" not in cache_control
        assert headers["Expires"] == EXPIRED_DATE
        assert headers["Pragma"] == "no-cache"
        assert headers["CF-Edge-Cache"] == "no-cache"
        assert headers["X-Accel-Expires"] == "0"

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            CacheHeadersBuilder.from_preset("nope")
