"""
Cache Configuration

Centralized configuration for the linkage-safe caching layer.
Read once per process from the environment and immutable afterwards.

Settings are sourced from environment variables:
- CLOUDFLARE_ZONE_ID / CLOUDFLARE_API_TOKEN: purge credentials
- DELAYED_PURGE_SECONDS: settle interval before the home/feed re-purge
- LINKAGE_GRACE_MINUTES: stop gating unlinked posts after this many minutes
- LINKAGE_META_KEYS: comma-separated metadata keys that denote linkage
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any, Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, NoDecode


DEFAULT_LINKAGE_META_KEYS = [
    "discourse_topic_id",
    "discourse_post_id",
    "discourse_permalink",
]


DEFAULT_GATED_CONTENT_TYPES = ["post"]


def parse_csv(raw: str, default: list[str]) -> list[str]:
    """Parse a comma-separated value, falling back to default when blank."""
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or list(default)


@dataclass(frozen=True)
class Credentials:
    """Cloudflare zone + API token. Partial configuration counts as absent."""

    zone_id: str = ""
    api_token: str = ""

    @classmethod
    def from_values(cls, zone_id: Optional[str], api_token: Optional[str]) -> "Credentials":
        return cls(
            zone_id=(zone_id or "").strip(),
            api_token=(api_token or "").strip(),
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.zone_id and self.api_token)


class CacheConfig(BaseSettings):
    """Cache coordination settings loaded from environment."""

    # Cloudflare purge API
    cloudflare_zone_id: str = ""
    cloudflare_api_token: str = ""
    cloudflare_api_base: str = "https://api.cloudflare.com/client/v4"
    purge_timeout: float = 10.0

    # Delayed re-purge of home + feed (0 disables)
    delayed_purge_seconds: int = 30

    # Linkage gating
    linkage_grace_minutes: int = 0  # 0 = gate until linkage arrives
    # NOTE: NoDecode keeps BaseSettings from JSON-parsing the comma-separated
    # env vars; _split_csv() parses them instead.
    linkage_meta_keys: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_LINKAGE_META_KEYS),
    )
    gated_content_types: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_GATED_CONTENT_TYPES),
    )

    # Edge caching of the Discourse bridge API
    api_cache_namespace: str = "wp-discourse"
    api_mount_prefix: str = "/wp-json"
    api_edge_ttl: int = 60
    api_stale_while_revalidate: int = 30

    # Host mirror
    site_url: str = "http://localhost/"
    feed_url: str = ""

    log_level: str = "INFO"

    class Config:
        env_prefix = ""
        extra = "ignore"

    @field_validator("linkage_meta_keys", "gated_content_types", mode="before")
    @classmethod
    def _split_csv(cls, value: Any, info: ValidationInfo) -> Any:
        if not isinstance(value, str):
            return value
        default = (
            DEFAULT_LINKAGE_META_KEYS
            if info.field_name == "linkage_meta_keys"
            else DEFAULT_GATED_CONTENT_TYPES
        )
        return parse_csv(value, default)

    @field_validator("delayed_purge_seconds", "linkage_grace_minutes", mode="after")
    @classmethod
    def _clamp_non_negative(cls, value: int) -> int:
        return max(0, value)

    @property
    def credentials(self) -> Credentials:
        return Credentials.from_values(self.cloudflare_zone_id, self.cloudflare_api_token)

    @property
    def is_configured(self) -> bool:
        """Check if purging is possible."""
        return self.credentials.is_complete

    @property
    def resolved_feed_url(self) -> str:
        if self.feed_url:
            return self.feed_url
        return self.site_url.rstrip("/") + "/feed/"


@lru_cache()
def get_cache_config() -> CacheConfig:
    """Get cached cache configuration."""
    return CacheConfig()


# HTTP Cache-Control presets
HTTP_CACHE_PRESETS = {
    "api_edge": {
        # Discourse bridge API: edge keeps it briefly, browsers always revalidate
        "s_maxage": 60,
        "max_age": 0,
        "stale_while_revalidate": 30,
        "public": True,
        "vary": ["Accept-Encoding"],
    },
    "prelinkage": {
        # Single post still waiting for its Discourse topic
        "max_age": 0,
        "no_store": True,
        "no_cache": True,
        "must_revalidate": True,
        "public": False,
    },
}
