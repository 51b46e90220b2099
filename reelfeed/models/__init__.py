"""Pydantic models for the reelfeed client."""

from .post import Post, VideoSource
from .feed import (
    QueryMode,
    NormalizedQuery,
    FetchBatch,
    FeedErrorInfo,
    FeedSnapshot,
    ScrollUpdate,
)
from .playback import (
    PlaybackState,
    SourceStrategy,
    AdaptiveFault,
    AdaptiveFaultKind,
    PlaybackCapabilities,
    PlaybackSession,
)

__all__ = [
    "Post",
    "VideoSource",
    "QueryMode",
    "NormalizedQuery",
    "FetchBatch",
    "FeedErrorInfo",
    "FeedSnapshot",
    "ScrollUpdate",
    "PlaybackState",
    "SourceStrategy",
    "AdaptiveFault",
    "AdaptiveFaultKind",
    "PlaybackCapabilities",
    "PlaybackSession",
]
