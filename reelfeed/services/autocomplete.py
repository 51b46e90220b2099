"""
Autocomplete Suggester

Debounced channel-name suggestions for the query box. Uses the same relay
chain as the feed, against a smaller set of relays, and never surfaces
errors: a failed lookup just leaves the list empty.
"""

import asyncio
from typing import Any, List, Optional, Sequence
from urllib.parse import quote

from ..config import Settings, get_settings
from ..core.exceptions import FeedFetchError
from ..core.logging import get_logger
from .content_fetcher import ContentFetcher
from .proxy_registry import SUGGEST_ENDPOINTS, ProxyEndpoint

logger = get_logger(__name__)


def has_names(payload: Any) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("names"), list)


class AutocompleteSuggester:
    """
    Only the most recently armed timer may fire; arming a new one cancels
    the previous handle first.
    """

    def __init__(
        self,
        fetcher: ContentFetcher,
        settings: Optional[Settings] = None,
        endpoints: Sequence[ProxyEndpoint] = SUGGEST_ENDPOINTS,
    ):
        self.settings = settings or get_settings()
        self.fetcher = fetcher
        self.endpoints = tuple(endpoints)
        self.delay = self.settings.suggest_debounce_ms / 1000
        self.suggestions: List[str] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._latest = ""

    def build_url(self, text: str) -> str:
        base = self.settings.upstream_base_url.rstrip("/")
        return f"{base}/api/search_reddit_names.json?query={quote(text, safe='')}"

    def on_input(self, text: str):
        """Input changed: cancel any armed timer and arm a new one if long enough."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        text = text.strip()
        self._latest = text
        if len(text) < self.settings.suggest_min_length:
            self.suggestions = []
            return

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._fire, text)

    def cancel(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @property
    def pending(self) -> Optional[asyncio.Task]:
        """Lookup started by the last timer, if any."""
        return self._task

    def _fire(self, text: str):
        self._timer = None
        self._task = asyncio.create_task(self._apply(text))

    async def _apply(self, text: str):
        names = await self.suggest(text)
        if text != self._latest:
            logger.debug("stale_suggestions_discarded", query=text)
            return
        self.suggestions = names

    async def suggest(self, text: str) -> List[str]:
        """One-shot lookup. Returns [] on any relay failure."""
        text = text.strip()
        if len(text) < self.settings.suggest_min_length:
            return []
        try:
            payload = await self.fetcher.fetch_json(
                self.build_url(text),
                endpoints=self.endpoints,
                validate=has_names,
            )
        except FeedFetchError as e:
            logger.info("suggestions_unavailable", query=text, diagnostic=e.diagnostic)
            return []

        return [name for name in payload["names"] if isinstance(name, str)]
