"""
Cache Middleware

Starlette middleware that applies the pre-linkage gate to page renders and
the edge cache policy to the Discourse bridge API.
"""

import logging
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from safecache.api_policy import ApiCachePolicy, ApiRequestInfo
from safecache.gate import CacheGate, RenderContext
from safecache.ports import ContentStore


logger = logging.getLogger(__name__)


class PreLinkageGateMiddleware(BaseHTTPMiddleware):
    """
    Runs the cache gate on page responses before they are sent.

    Page routes mark the render by setting on request.state:
        queried_item     ContentItem being rendered (or queried_item_id + store)
        is_singular      False for archives/listings (default True when an
                         item is set)
    """

    def __init__(self, app: ASGIApp, gate: CacheGate, store: Optional[ContentStore] = None):
        super().__init__(app)
        self.gate = gate
        self.store = store

    def _queried_item(self, request: Request):
        item = getattr(request.state, "queried_item", None)
        if item is None and self.store is not None:
            item_id = getattr(request.state, "queried_item_id", None)
            if item_id is not None:
                item = self.store.get_item(item_id)
        return item

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        try:
            item = self._queried_item(request)
        except Exception:
            logger.exception("Could not resolve queried item; skipping gate")
            return response

        if item is None:
            return response

        ctx = RenderContext(
            item=item,
            response=response,
            is_singular=getattr(request.state, "is_singular", True),
        )
        self.gate.apply(ctx)
        request.state.skip_page_cache = ctx.skip_page_cache
        return response


class ApiEdgeCacheMiddleware(BaseHTTPMiddleware):
    """Adds edge cache headers to anonymous, successful API reads."""

    def __init__(self, app: ASGIApp, policy: ApiCachePolicy, mount_prefix: str = "/wp-json"):
        super().__init__(app)
        self.policy = policy
        self.mount_prefix = mount_prefix.rstrip("/")

    def _route(self, path: str) -> str:
        if self.mount_prefix and (
            path == self.mount_prefix or path.startswith(self.mount_prefix + "/")
        ):
            return path[len(self.mount_prefix):] or "/"
        return path

    @staticmethod
    def _logged_in(request: Request) -> bool:
        user = request.scope.get("user")
        if user is not None and getattr(user, "is_authenticated", False):
            return True
        return bool(getattr(request.state, "user", None))

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        info = ApiRequestInfo(
            route=self._route(request.url.path),
            method=request.method,
            headers=dict(request.headers),
            logged_in=self._logged_in(request),
        )
        return self.policy.apply(info, response)
