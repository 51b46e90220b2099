"""Services for feed fetching and slide playback."""

from .proxy_registry import ProxyEndpoint, ResponseShape, PROXY_ENDPOINTS, SUGGEST_ENDPOINTS
from .content_fetcher import ContentFetcher, normalize_query
from .merger import merge_posts
from .feed_cursor import FeedCursor
from .slide_tracker import ActiveSlideTracker
from .mute import SharedMute
from .playback import (
    PlaybackController,
    PlaybackElement,
    AdaptiveSession,
    AdaptiveSessionFactory,
    choose_strategy,
)
from .autocomplete import AutocompleteSuggester
from .feed_session import FeedSession, get_feed_session

__all__ = [
    "ProxyEndpoint",
    "ResponseShape",
    "PROXY_ENDPOINTS",
    "SUGGEST_ENDPOINTS",
    "ContentFetcher",
    "normalize_query",
    "merge_posts",
    "FeedCursor",
    "ActiveSlideTracker",
    "SharedMute",
    "PlaybackController",
    "PlaybackElement",
    "AdaptiveSession",
    "AdaptiveSessionFactory",
    "choose_strategy",
    "AutocompleteSuggester",
    "FeedSession",
    "get_feed_session",
]
