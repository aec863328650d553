"""
Discourse API Edge Cache Policy

Lets the edge cache anonymous, read-only responses of the Discourse bridge
API for a short time while browsers revalidate on every use.

Personalized requests (logged-in user, Authorization, nonce or Cookie
header) are never marked cacheable.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from starlette.responses import Response

from safecache.headers import edge_cache_headers


logger = logging.getLogger(__name__)

SAFE_METHODS = frozenset({"GET", "HEAD"})
PERSONALIZATION_HEADERS = ("authorization", "x-wp-nonce", "cookie")


@dataclass
class ApiRequestInfo:
    """What the policy needs to know about an API request."""
    route: str
    method: str = "GET"
    namespace: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    logged_in: bool = False

    def get_header(self, name: str) -> str:
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value or ""
        return ""


class ApiCachePolicy:
    """Cache-Control for one API namespace."""

    def __init__(
        self,
        namespace: str = "wp-discourse",
        edge_ttl: int = 60,
        stale_while_revalidate: int = 30,
    ):
        self.namespace = namespace.strip("/")
        self.edge_ttl = edge_ttl
        self.stale_while_revalidate = stale_while_revalidate
        self._route_pattern = re.compile(rf"^/{re.escape(self.namespace)}(?:/|$)")

    def matches_route(self, request: ApiRequestInfo) -> bool:
        if request.namespace == self.namespace:
            return True
        return bool(request.route) and bool(self._route_pattern.match(request.route))

    def is_personalized(self, request: ApiRequestInfo) -> bool:
        if request.logged_in:
            return True
        return any(request.get_header(name) for name in PERSONALIZATION_HEADERS)

    def is_cacheable(self, request: ApiRequestInfo, status: int) -> bool:
        if not self.matches_route(request):
            return False

        method = (request.method or "GET").upper()
        if method not in SAFE_METHODS:
            return False

        if self.is_personalized(request):
            return False

        return 200 <= status < 400

    def headers(self) -> Dict[str, str]:
        return edge_cache_headers(self.edge_ttl, self.stale_while_revalidate)

    def apply(self, request: ApiRequestInfo, response: Response) -> Response:
        """Attach edge cache headers if cacheable; otherwise pass through."""
        if not self.is_cacheable(request, response.status_code):
            return response

        for key, value in self.headers().items():
            response.headers[key] = value
        return response
