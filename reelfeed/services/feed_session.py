"""
Feed Session

Composition root for one viewer: feed cursor, slide tracker, shared mute,
autocomplete and the playback controllers of mounted slides.
"""

import asyncio
from typing import Dict, Optional

from ..config import Settings, get_settings
from ..core.exceptions import NotFoundError
from ..core.logging import get_logger
from ..models.feed import FeedSnapshot, ScrollUpdate
from ..models.playback import PlaybackCapabilities
from ..models.post import Post
from .autocomplete import AutocompleteSuggester
from .content_fetcher import ContentFetcher, normalize_query
from .feed_cursor import FeedCursor
from .mute import SharedMute
from .playback import AdaptiveSessionFactory, PlaybackController, PlaybackElement
from .slide_tracker import ActiveSlideTracker

logger = get_logger(__name__)


class FeedSession:
    """
    Wires the scroll -> active slide -> playback path and the query box.

    Flow:
    1. submit_query resets the cursor, tracker and mounted slides
    2. on_scroll updates the active index and may schedule the next page
    3. the controller at the active index plays, all others pause
    """

    def __init__(
        self,
        fetcher: Optional[ContentFetcher] = None,
        settings: Optional[Settings] = None,
        shared_mute: Optional[SharedMute] = None,
    ):
        self.settings = settings or get_settings()
        self.fetcher = fetcher or ContentFetcher(settings=self.settings)
        self.cursor = FeedCursor(self.fetcher)
        self.tracker = ActiveSlideTracker(threshold=self.settings.pagination_threshold)
        self.shared_mute = shared_mute or SharedMute()
        self.suggester = AutocompleteSuggester(self.fetcher, settings=self.settings)
        self.controllers: Dict[str, PlaybackController] = {}
        self.pagination_task: Optional[asyncio.Task] = None

    # =========================================================================
    # Query box
    # =========================================================================

    async def start(self):
        """Initial load of the default channel."""
        await self._load(self.settings.default_channel)

    async def submit_query(self, text: str) -> bool:
        """
        Search or open a channel. Blank input is ignored.

        Raises:
            InvalidQueryError: only a channel marker was given; feed state is untouched
        """
        if not text or not text.strip():
            return False
        await self._load(text)
        return True

    async def return_to_default(self):
        """The empty state's "return to trending" action."""
        await self._load(self.settings.default_channel)

    async def retry(self) -> bool:
        return await self.cursor.retry()

    async def _load(self, term: str):
        # Rejects marker-only terms like "r/" before any state is torn down
        normalize_query(term)
        for post_id in list(self.controllers):
            self.unmount_slide(post_id)
        self.tracker.reset()
        self.suggester.cancel()
        logger.info("feed_query_submitted", term=term.strip())
        await self.cursor.set_query(term)

    # =========================================================================
    # Scrolling
    # =========================================================================

    async def on_scroll(self, offset: float, extent: float) -> ScrollUpdate:
        update = self.tracker.update(
            offset,
            extent,
            loaded_count=len(self.cursor.posts),
            has_token=self.cursor.has_more,
            fetch_in_flight=self.cursor.loading,
        )
        if update.should_paginate:
            task = self.cursor.request_more()
            if task is not None:
                logger.info("pagination_triggered", active_index=update.active_index)
                self.pagination_task = task
        if update.index_changed:
            await self._sync_active()
        return update

    # =========================================================================
    # Slides
    # =========================================================================

    def get_post(self, post_id: str) -> Post:
        for post in self.cursor.posts:
            if post.id == post_id:
                return post
        raise NotFoundError("Post", post_id)

    def index_of(self, post_id: str) -> int:
        for index, post in enumerate(self.cursor.posts):
            if post.id == post_id:
                return index
        raise NotFoundError("Post", post_id)

    async def mount_slide(
        self,
        post_id: str,
        element: PlaybackElement,
        capabilities: Optional[PlaybackCapabilities] = None,
        adaptive_factory: Optional[AdaptiveSessionFactory] = None,
    ) -> PlaybackController:
        """Create and mount the controller for a rendered slide."""
        post = self.get_post(post_id)
        self.unmount_slide(post_id)

        controller = PlaybackController(
            post,
            element,
            self.shared_mute,
            capabilities=capabilities,
            adaptive_factory=adaptive_factory,
        )
        controller.active = self.index_of(post_id) == self.tracker.active_index
        self.controllers[post_id] = controller
        await controller.mount()
        return controller

    def unmount_slide(self, post_id: str):
        controller = self.controllers.pop(post_id, None)
        if controller is not None:
            controller.unmount()

    async def _sync_active(self):
        for post_id, controller in list(self.controllers.items()):
            is_active = self.index_of(post_id) == self.tracker.active_index
            if is_active != controller.active:
                await controller.set_active(is_active)

    # =========================================================================
    # Mute
    # =========================================================================

    def toggle_mute(self) -> bool:
        return self.shared_mute.toggle()

    # =========================================================================
    # Views
    # =========================================================================

    def snapshot(self) -> FeedSnapshot:
        return FeedSnapshot(
            query_term=self.cursor.query_term,
            posts=list(self.cursor.posts),
            next_page_token=self.cursor.next_page_token,
            exhausted=self.cursor.exhausted,
            loading=self.cursor.loading,
            active_index=self.tracker.active_index,
            error=self.cursor.error,
            muted=self.shared_mute.value,
            generation=self.cursor.generation,
        )


# Singleton instance
_feed_session: Optional[FeedSession] = None


def get_feed_session() -> FeedSession:
    """Get singleton feed session."""
    global _feed_session
    if _feed_session is None:
        _feed_session = FeedSession()
    return _feed_session
