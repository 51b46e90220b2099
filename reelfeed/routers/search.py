"""
Search API Router

Channel-name suggestions for the query box.
"""

from fastapi import APIRouter, Depends, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import get_settings
from ..core.logging import get_logger
from ..models.feed import SuggestionResponse
from ..services.feed_session import FeedSession, get_feed_session

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/search", tags=["search"])
limiter = Limiter(key_func=get_remote_address)


@router.get("/suggest", response_model=SuggestionResponse)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def suggest(
    request: Request,
    q: str = Query(..., description="Partial channel name"),
    session: FeedSession = Depends(get_feed_session),
):
    """
    Suggest channel names for a partial query.

    Debouncing is the caller's job here; inputs shorter than two
    characters and relay failures both return an empty list.
    """
    logger.debug("suggest_request", query=q)
    names = await session.suggester.suggest(q)
    return SuggestionResponse(query=q, names=names)
