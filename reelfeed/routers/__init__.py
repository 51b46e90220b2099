"""API Routers."""

from .feed import router as feed_router
from .search import router as search_router
from .playback import router as playback_router

__all__ = [
    "feed_router",
    "search_router",
    "playback_router",
]
