"""
Cloudflare Purge Client

Purge-by-URL against the Cloudflare zone API.

Purges are fire-and-forget: failures are logged and reported as a
PurgeOutcome, never raised and never retried. Purging the same URL twice is
harmless, so callers may purge redundantly.
"""

import logging
from typing import Iterable, Optional

import httpx

from safecache.config import Credentials
from safecache.models import PurgeOutcome
from safecache.urls import unique_urls


logger = logging.getLogger(__name__)

CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"


class CloudflarePurger:
    """
    Purges edge cache entries by URL.

    One batched POST per call:
        POST {api_base}/zones/{zone_id}/purge_cache
        {"files": [url, ...]}
    """

    def __init__(
        self,
        credentials: Credentials,
        api_base: str = CLOUDFLARE_API_BASE,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.credentials = credentials
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def is_enabled(self) -> bool:
        return self.credentials.is_complete

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/zones/{self.credentials.zone_id}/purge_cache"

    async def purge(self, urls: Iterable[str]) -> PurgeOutcome:
        """Purge the given URLs from the edge."""
        files = unique_urls(urls)
        if not self.is_enabled or not files:
            logger.debug(f"CDN purge skipped (configured={self.is_enabled}, urls={len(files)})")
            return PurgeOutcome.SKIPPED

        try:
            response = await self._post({"files": files})
        except Exception as e:
            logger.error(f"CDN purge transport error: {e!r}")
            return PurgeOutcome.TRANSPORT_ERROR

        if response.status_code < 200 or response.status_code >= 300:
            logger.error(f"CDN purge rejected: HTTP {response.status_code}. Response: {response.text}")
            return PurgeOutcome.REJECTED

        logger.debug(f"CDN purged {len(files)} URLs: {files}")
        return PurgeOutcome.PURGED

    async def _post(self, body: dict) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self.credentials.api_token}",
            "Content-Type": "application/json",
        }
        if self._client is not None:
            return await self._client.post(
                self.endpoint, headers=headers, json=body, timeout=self.timeout
            )

        async with httpx.AsyncClient() as client:
            return await client.post(
                self.endpoint, headers=headers, json=body, timeout=self.timeout
            )
