"""
Host Hook API

Endpoints the content-management host calls when content changes, plus a
status endpoint for operators.

Endpoints:
- Item snapshot sync
- Linkage metadata written
- Publish status transitions
- Deferred purge execution (for hosts with their own cron)
- Configuration status
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from safecache.models import ContentItem, PostStatus
from safecache.scheduler import delayed_purge_key
from safecache.store import InMemoryContentStore
from safecache.triggers import LinkageCacheCoordinator


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cache", tags=["Cache Coordination"])


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_coordinator(request: Request) -> LinkageCacheCoordinator:
    return request.app.state.coordinator


def get_store(request: Request) -> InMemoryContentStore:
    return request.app.state.store


# =============================================================================
# REQUEST / RESPONSE MODELS
# =============================================================================

class ItemPayload(BaseModel):
    """Item snapshot as sent by the host."""
    item_id: Union[int, str]
    status: str = "draft"
    published_at: Optional[datetime] = None
    meta: Dict[str, str] = Field(default_factory=dict)
    permalink: Optional[str] = None
    content_type: str = "post"

    def to_item(self) -> ContentItem:
        return ContentItem(
            item_id=self.item_id,
            status=PostStatus.parse(self.status),
            published_at=self.published_at,
            meta=dict(self.meta),
            permalink=self.permalink,
            content_type=self.content_type,
        )


class MetaWrittenPayload(BaseModel):
    item_id: Union[int, str]
    key: str
    value: Optional[str] = None


class StatusTransitionPayload(BaseModel):
    new_status: str
    old_status: str = ""
    item: ItemPayload


class HookResponse(BaseModel):
    """Whether the hook fired a purge or scheduled anything."""
    triggered: bool
    delayed_purge_pending: bool


class DelayedPurgeResponse(BaseModel):
    outcome: str


class CacheStatusResponse(BaseModel):
    configured: bool
    warning: Optional[str] = None
    delayed_purge_seconds: int
    linkage_grace_minutes: int
    linkage_meta_keys: List[str]
    pending_delayed_purges: List[str]
    timestamp: datetime = Field(default_factory=datetime.utcnow)


def _pending(coordinator: LinkageCacheCoordinator, item_id) -> bool:
    return coordinator.scheduler.registry.has_pending(delayed_purge_key(item_id))


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.put("/items/{item_id}", response_model=ItemPayload)
def upsert_item(
    item_id: str,
    payload: ItemPayload,
    store: InMemoryContentStore = Depends(get_store),
):
    """Store the host's current snapshot of an item."""
    if str(payload.item_id) != item_id:
        raise HTTPException(status_code=400, detail="item_id in path and body differ")
    store.upsert(payload.to_item())
    return payload


@router.post("/hooks/meta", response_model=HookResponse)
async def metadata_written(
    payload: MetaWrittenPayload,
    coordinator: LinkageCacheCoordinator = Depends(get_coordinator),
    store: InMemoryContentStore = Depends(get_store),
):
    """
    A metadata key was added or updated.

    The value is recorded on the mirrored item before the trigger runs, so
    later gate decisions see the linkage.
    """
    if store.set_meta(payload.item_id, payload.key, payload.value or "") is None:
        raise HTTPException(status_code=404, detail=f"Unknown item {payload.item_id}")

    triggered = await coordinator.on_metadata_written(
        payload.item_id, payload.key, payload.value
    )
    return HookResponse(
        triggered=triggered,
        delayed_purge_pending=_pending(coordinator, payload.item_id),
    )


@router.post("/hooks/status", response_model=HookResponse)
async def status_transition(
    payload: StatusTransitionPayload,
    coordinator: LinkageCacheCoordinator = Depends(get_coordinator),
    store: InMemoryContentStore = Depends(get_store),
):
    """A post changed publish status."""
    item = store.upsert(payload.item.to_item())
    triggered = await coordinator.on_status_transition(
        PostStatus.parse(payload.new_status),
        PostStatus.parse(payload.old_status),
        item,
    )
    return HookResponse(
        triggered=triggered,
        delayed_purge_pending=_pending(coordinator, item.item_id),
    )


@router.post("/hooks/delayed-purge/{item_id}", response_model=DelayedPurgeResponse)
async def run_delayed_purge(
    item_id: str,
    coordinator: LinkageCacheCoordinator = Depends(get_coordinator),
):
    """Execute a delayed purge now (for hosts running their own scheduler)."""
    outcome = await coordinator.on_delayed_purge(item_id)
    return DelayedPurgeResponse(outcome=outcome.value)


@router.get("/status", response_model=CacheStatusResponse)
def cache_status(coordinator: LinkageCacheCoordinator = Depends(get_coordinator)):
    """Configuration status; warns when purge credentials are missing."""
    return CacheStatusResponse(
        configured=coordinator.credentials.is_complete,
        warning=coordinator.config_warning(),
        delayed_purge_seconds=coordinator.scheduler.delay_seconds,
        linkage_grace_minutes=coordinator.policy.grace_minutes,
        linkage_meta_keys=list(coordinator.policy.meta_keys),
        pending_delayed_purges=coordinator.scheduler.registry.pending_keys(),
    )
