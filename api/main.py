"""Main FastAPI application module."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from api.hooks import router as hooks_router
from safecache.api_policy import ApiCachePolicy
from safecache.config import CacheConfig, get_cache_config
from safecache.gate import CacheGate
from safecache.middleware import ApiEdgeCacheMiddleware, PreLinkageGateMiddleware
from safecache.ports import TaskRegistry
from safecache.purge import CloudflarePurger
from safecache.registry import AsyncioTaskRegistry
from safecache.store import InMemoryContentStore
from safecache.triggers import LinkageCacheCoordinator


logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    config: Optional[CacheConfig] = None,
    store: Optional[InMemoryContentStore] = None,
    registry: Optional[TaskRegistry] = None,
    purger: Optional[CloudflarePurger] = None,
) -> FastAPI:
    """Build the application with its cache coordinator wired in."""
    config = config or get_cache_config()
    store = store or InMemoryContentStore(config.site_url, config.resolved_feed_url)
    registry = registry or AsyncioTaskRegistry()

    coordinator = LinkageCacheCoordinator.from_config(
        config, store, registry, purger=purger
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        warning = coordinator.config_warning()
        if warning:
            logger.warning(warning)
        yield
        if isinstance(registry, AsyncioTaskRegistry):
            await registry.shutdown()

    app = FastAPI(
        title="safecache",
        description="Linkage-safe edge cache coordination",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.store = store
    app.state.registry = registry
    app.state.coordinator = coordinator

    # Added last = outermost; the gate sees the page response first
    app.add_middleware(
        PreLinkageGateMiddleware,
        gate=CacheGate(coordinator.policy),
        store=store,
    )
    app.add_middleware(
        ApiEdgeCacheMiddleware,
        policy=ApiCachePolicy(
            namespace=config.api_cache_namespace,
            edge_ttl=config.api_edge_ttl,
            stale_while_revalidate=config.api_stale_while_revalidate,
        ),
        mount_prefix=config.api_mount_prefix,
    )

    app.include_router(hooks_router)
    return app


def main() -> None:
    import uvicorn

    config = get_cache_config()
    configure_logging(config.log_level)
    uvicorn.run(create_app(config), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
