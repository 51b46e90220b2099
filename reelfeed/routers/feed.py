"""
Feed API Router

Query box, scroll signals and per-post actions for the rendering layer.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import get_settings
from ..core.exceptions import InvalidQueryError
from ..core.logging import get_logger
from ..models.feed import (
    FeedSnapshot,
    QueryRequest,
    ScrollRequest,
    ScrollUpdate,
    PostOverlay,
    SharePayload,
    SourceSelection,
)
from ..models.playback import PlaybackCapabilities
from ..services.feed_session import FeedSession, get_feed_session
from ..services.formatting import post_overlay, share_payload
from ..services.playback import source_url, strategy_for_post

logger = get_logger(__name__)
settings = get_settings()

# Rate limiter
limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("", response_model=FeedSnapshot)
async def get_feed(session: FeedSession = Depends(get_feed_session)):
    """Current feed state: posts, cursor, active slide, error, mute."""
    return session.snapshot()


@router.post("/query", response_model=FeedSnapshot)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def submit_query(
    request: Request,
    body: QueryRequest,
    session: FeedSession = Depends(get_feed_session),
):
    """
    Open a channel ("name" or "r/name") or run a search ("two words").

    Resets the feed and waits for the first page. Fetch failures are
    reported in the snapshot's ``error`` field, not as an HTTP error.
    """
    if not await session.submit_query(body.query):
        logger.info("blank_query_rejected")
        raise InvalidQueryError(body.query)
    return session.snapshot()


@router.post("/scroll", response_model=ScrollUpdate)
async def scroll(body: ScrollRequest, session: FeedSession = Depends(get_feed_session)):
    """Scroll signal; may schedule the next page in the background."""
    return await session.on_scroll(body.offset, body.extent)


@router.post("/retry", response_model=FeedSnapshot)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def retry(request: Request, session: FeedSession = Depends(get_feed_session)):
    """Retry after a failed fetch."""
    await session.retry()
    return session.snapshot()


@router.post("/reset", response_model=FeedSnapshot)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def reset(request: Request, session: FeedSession = Depends(get_feed_session)):
    """Back to the default channel."""
    await session.return_to_default()
    return session.snapshot()


@router.get("/posts/{post_id}/source", response_model=SourceSelection)
async def get_source(
    post_id: str,
    native_adaptive: bool = Query(False, description="Element can decode HLS natively"),
    prefers_native: bool = Query(False, description="Platform favors native handling"),
    session: FeedSession = Depends(get_feed_session),
):
    """Source strategy the caller's platform should use for a post."""
    post = session.get_post(post_id)
    capabilities = PlaybackCapabilities(
        native_adaptive=native_adaptive,
        prefers_native=prefers_native,
    )
    strategy = strategy_for_post(post, capabilities)
    return SourceSelection(post_id=post_id, strategy=strategy, url=source_url(post, strategy))


@router.get("/posts/{post_id}/overlay", response_model=PostOverlay)
async def get_overlay(post_id: str, session: FeedSession = Depends(get_feed_session)):
    """Overlay text for a slide with compact counters."""
    return post_overlay(session.get_post(post_id))


@router.get("/posts/{post_id}/share", response_model=SharePayload)
async def get_share(post_id: str, session: FeedSession = Depends(get_feed_session)):
    """Share sheet payload for a post."""
    return share_payload(session.get_post(post_id))


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "reelfeed",
        "timestamp": datetime.utcnow().isoformat()
    }
