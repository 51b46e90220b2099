"""
Post Models

Video post as accepted from the upstream listing, with the source URLs
needed by the playback controller.
"""

import html
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from ..config import get_settings


class VideoSource(BaseModel):
    """Playable sources for one post. At least one is set on accepted posts."""
    manifest_url: Optional[str] = Field(None, alias="manifestUrl", description="Adaptive (HLS) manifest")
    progressive_url: Optional[str] = Field(None, alias="progressiveUrl", description="Direct file URL")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def has_manifest(self) -> bool:
        return bool(self.manifest_url)

    @property
    def has_progressive(self) -> bool:
        return bool(self.progressive_url)


class Post(BaseModel):
    """
    A video post in the feed.

    Keyed by ``id``; the merger keeps the list unique on it.
    """
    id: str = Field(..., description="Upstream post ID")
    title: str = Field(default="", description="Raw title, may contain HTML entities")
    author: str = Field(default="")
    channel_label: str = Field(default="", alias="channelLabel", description="Prefixed channel name")
    upvote_count: int = Field(default=0, alias="upvoteCount")
    comment_count: int = Field(default=0, alias="commentCount")
    permalink: str = Field(default="")
    video_source: VideoSource = Field(..., alias="videoSource")
    poster_image_url: Optional[str] = Field(None, alias="posterImageUrl")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def display_title(self) -> str:
        """Title with HTML entities decoded."""
        return html.unescape(self.title)

    @property
    def external_url(self) -> str:
        """Permalink on the public site."""
        return f"{get_settings().public_site_url.rstrip('/')}{self.permalink}"
