"""
Feed Cursor

Owns the accumulated feed for one query term and runs page fetches.

Every fetch is tagged with the generation it started in. Changing the query
bumps the generation, so a response for an abandoned query is dropped
instead of being merged into the new feed.
"""

import asyncio
from typing import List, Optional

from ..core.exceptions import FeedFetchError
from ..core.logging import get_logger, log_context
from ..models.feed import FeedErrorInfo, FetchBatch
from ..models.post import Post
from .content_fetcher import ContentFetcher, normalize_query
from .merger import merge_posts

logger = get_logger(__name__)


class FeedCursor:
    """
    Query term, continuation token, accumulated posts and exhaustion flag.

    State is only mutated by ``_complete`` (fetch results) and ``_reset``
    (query change). At most one fetch per generation is in flight; extra
    page requests while one is outstanding are dropped.
    """

    def __init__(self, fetcher: ContentFetcher):
        self.fetcher = fetcher
        self.query_term: str = ""
        self.next_page_token: Optional[str] = None
        self.posts: List[Post] = []
        self.exhausted = False
        self.error: Optional[FeedErrorInfo] = None
        self.generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def loading(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def has_more(self) -> bool:
        return self.next_page_token is not None and not self.exhausted

    # =========================================================================
    # Public operations
    # =========================================================================

    async def set_query(self, term: str):
        """
        Switch to a new query term and load its first page.

        Raises:
            InvalidQueryError: term is empty after normalization
        """
        normalize_query(term)
        self._reset(term.strip())
        task = self._start(reset=True)
        await task

    async def load_more(self) -> bool:
        """Fetch the next page. Returns False if the request was not admitted."""
        task = self.request_more()
        if task is None:
            return False
        await task
        return True

    def request_more(self) -> Optional[asyncio.Task]:
        """Schedule the next page fetch without waiting for it."""
        if self.loading:
            logger.debug("pagination_dropped_in_flight", generation=self.generation)
            return None
        if not self.has_more:
            return None
        return self._start(reset=False)

    async def retry(self) -> bool:
        """Re-run after a failure: first page if nothing loaded, else continue."""
        if self.loading or not self.query_term:
            return False
        if not self.posts:
            await self._start(reset=True)
        elif self.next_page_token is not None:
            await self._start(reset=False)
        else:
            return False
        return True

    # =========================================================================
    # Internals
    # =========================================================================

    def _reset(self, term: str):
        self.generation += 1
        self.query_term = term
        self.next_page_token = None
        self.posts = []
        self.exhausted = False
        self.error = None
        logger.info("feed_reset", term=term, generation=self.generation)

    def _start(self, reset: bool) -> asyncio.Task:
        self._task = asyncio.create_task(
            self._run(self.generation, self.query_term, reset, self.next_page_token)
        )
        return self._task

    async def _run(self, generation: int, term: str, reset: bool, after: Optional[str]):
        with log_context(generation=generation, term=term):
            try:
                batch = await self.fetcher.fetch_page(term, reset=reset, after=after)
            except FeedFetchError as e:
                if generation != self.generation:
                    logger.info("stale_feed_error_discarded", current=self.generation)
                    return
                self.error = FeedErrorInfo(kind=e.kind, message=e.message, diagnostic=e.diagnostic)
                logger.warning("feed_fetch_failed", kind=e.kind, diagnostic=e.diagnostic)
                return

            if generation != self.generation:
                logger.info("stale_feed_result_discarded", current=self.generation)
                return
            self._complete(batch, reset)

    def _complete(self, batch: FetchBatch, reset: bool):
        before = len(self.posts)
        self.posts = merge_posts(self.posts, batch.posts, reset=reset)
        self.next_page_token = batch.next_page_token
        self.exhausted = batch.exhausted
        self.error = None
        logger.info(
            "feed_page_applied",
            term=self.query_term,
            added=len(self.posts) - before if not reset else len(self.posts),
            total=len(self.posts),
            exhausted=self.exhausted,
        )
