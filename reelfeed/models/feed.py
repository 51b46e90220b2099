"""
Feed Models

Query, batch, snapshot and API request/response structures for the feed.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, computed_field

from .post import Post
from .playback import SourceStrategy


class QueryMode(str, Enum):
    """How a query term is resolved upstream."""
    CHANNEL = "channel"
    SEARCH = "search"


class NormalizedQuery(BaseModel):
    """Query term after trimming and channel-marker stripping."""
    term: str
    mode: QueryMode

    model_config = ConfigDict(frozen=True)


class FetchBatch(BaseModel):
    """Accepted posts from one page plus the upstream continuation token."""
    posts: List[Post] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(None, alias="nextPageToken")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def exhausted(self) -> bool:
        return self.next_page_token is None


class FeedErrorInfo(BaseModel):
    """User-visible feed failure."""
    kind: str = Field(..., description="blocked or generic")
    message: str
    diagnostic: str = ""


class FeedSnapshot(BaseModel):
    """Read-only view of a viewer's feed state."""
    query_term: str = Field(alias="queryTerm")
    posts: List[Post] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(None, alias="nextPageToken")
    exhausted: bool = False
    loading: bool = False
    active_index: int = Field(default=0, alias="activeIndex")
    error: Optional[FeedErrorInfo] = None
    muted: bool = True
    generation: int = 0

    model_config = ConfigDict(populate_by_name=True)

    @computed_field(alias="isEmpty")
    @property
    def is_empty(self) -> bool:
        """Nothing loaded and nothing in flight (the "No videos found" state)."""
        return not self.loading and not self.posts


class ScrollUpdate(BaseModel):
    """Result of feeding one scroll signal to the slide tracker."""
    active_index: int = Field(alias="activeIndex")
    index_changed: bool = Field(alias="indexChanged")
    should_paginate: bool = Field(alias="shouldPaginate")

    model_config = ConfigDict(populate_by_name=True)


class QueryRequest(BaseModel):
    """Body of a query submission."""
    query: str


class ScrollRequest(BaseModel):
    """Scroll signal from the rendering layer."""
    offset: float = Field(..., ge=0)
    extent: float = Field(..., gt=0, description="Viewport height; one slide")


class SourceSelection(BaseModel):
    """Chosen playback strategy for one post on the caller's platform."""
    post_id: str = Field(alias="postId")
    strategy: Optional[SourceStrategy] = None
    url: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class SharePayload(BaseModel):
    """Data handed to the platform share sheet or clipboard."""
    title: str
    url: str


class SuggestionResponse(BaseModel):
    """Channel name suggestions for a partial query."""
    query: str
    names: List[str] = Field(default_factory=list)


class PostOverlay(BaseModel):
    """Text shown over a slide: title, channel, author and compact counters."""
    post_id: str = Field(alias="postId")
    title: str
    channel_label: str = Field(alias="channelLabel")
    author: str
    upvotes: str = Field(description="Compact label, e.g. 12.5k")
    comments: str
    external_url: str = Field(alias="externalUrl")

    model_config = ConfigDict(populate_by_name=True)
