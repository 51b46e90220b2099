"""
Content Fetcher

Runs one logical fetch against the upstream listing API through the proxy
chain. Relays are tried one at a time in priority order; the first one
whose body survives validation wins.

Per attempt:
1. Transport error, timeout or non-2xx status -> NetworkFault
2. Markup page instead of data -> UpstreamBlocked
3. Body that does not parse -> MalformedResponse
4. Wrapped relays: unwrap the inner field and repeat checks 2-3
5. Payload without the expected container -> MalformedResponse
"""

import asyncio
import json
import re
import time
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from ..config import Settings, get_settings
from ..core.exceptions import (
    FeedFetchError,
    FetchAttemptError,
    InvalidQueryError,
    MalformedResponse,
    NetworkFault,
    UpstreamBlocked,
)
from ..core.logging import get_logger
from ..models.feed import FetchBatch, NormalizedQuery, QueryMode
from ..models.post import Post, VideoSource
from .proxy_registry import PROXY_ENDPOINTS, ProxyEndpoint, ResponseShape

logger = get_logger(__name__)

CHANNEL_MARKER = re.compile(r"^/?r/", re.IGNORECASE)
MARKUP_SIGNATURE = re.compile(r"^\s*<(!doctype|html)", re.IGNORECASE)

PayloadValidator = Callable[[Any], bool]


# =========================================================================
# Query handling
# =========================================================================

def normalize_query(term: str) -> NormalizedQuery:
    """
    Trim the term and strip a leading channel marker ("r/" or "/r/").

    Whitespace inside the remaining term selects full-text search,
    otherwise the term names a channel.
    """
    cleaned = CHANNEL_MARKER.sub("", (term or "").strip()).strip()
    if not cleaned:
        raise InvalidQueryError(term)

    mode = QueryMode.SEARCH if any(ch.isspace() for ch in cleaned) else QueryMode.CHANNEL
    return NormalizedQuery(term=cleaned, mode=mode)


def build_listing_url(
    query: NormalizedQuery,
    base_url: str,
    limit: int,
    after: Optional[str] = None
) -> str:
    """Upstream URL for one page of a channel listing or a search."""
    base = base_url.rstrip("/")
    if query.mode == QueryMode.SEARCH:
        url = f"{base}/search.json?q={quote(query.term, safe='')}&limit={limit}"
    else:
        url = f"{base}/r/{quote(query.term, safe='')}/hot.json?limit={limit}"

    if after:
        url += f"&after={quote(after, safe='')}"
    return url


# =========================================================================
# Payload validation
# =========================================================================

def has_listing(payload: Any) -> bool:
    """True if the payload carries the paginated ``data.children`` list."""
    data = payload.get("data") if isinstance(payload, dict) else None
    return isinstance(data, dict) and isinstance(data.get("children"), list)


def is_blocking_markup(body: str) -> bool:
    """Relays serve an HTML challenge/error page when the upstream blocks them."""
    return bool(MARKUP_SIGNATURE.match(body))


def _parse_body(endpoint: ProxyEndpoint, body: str) -> Any:
    if is_blocking_markup(body):
        raise UpstreamBlocked(endpoint.label, "received markup instead of JSON")
    try:
        return json.loads(body)
    except ValueError as e:
        raise MalformedResponse(endpoint.label, f"invalid JSON: {e}") from e


# =========================================================================
# Post filtering
# =========================================================================

def is_excluded_origin(url: str, excluded_origins: Sequence[str]) -> bool:
    lowered = (url or "").lower()
    return any(origin.lower() in lowered for origin in excluded_origins)


def _poster_url(raw: Dict[str, Any]) -> Optional[str]:
    try:
        url = raw["preview"]["images"][0]["source"]["url"]
    except (KeyError, IndexError, TypeError):
        return None
    return url.replace("&amp;", "&") if isinstance(url, str) else None


def parse_post(raw: Dict[str, Any], excluded_origins: Sequence[str]) -> Optional[Post]:
    """
    Convert one upstream entry to a Post, or None if it is not acceptable.

    Acceptable means: flagged as video, carries an embedded video with a
    manifest or progressive URL, and does not link to an excluded platform.
    """
    if not raw.get("is_video"):
        return None

    embedded = (raw.get("media") or {}).get("reddit_video")
    if not isinstance(embedded, dict):
        return None

    manifest_url = embedded.get("hls_url")
    progressive_url = embedded.get("fallback_url")
    if not (manifest_url or progressive_url):
        return None

    if is_excluded_origin(raw.get("url", ""), excluded_origins):
        return None

    if not raw.get("id"):
        return None

    return Post(
        id=str(raw["id"]),
        title=raw.get("title") or "",
        author=raw.get("author") or "",
        channel_label=raw.get("subreddit_name_prefixed") or "",
        upvote_count=int(raw.get("ups") or 0),
        comment_count=int(raw.get("num_comments") or 0),
        permalink=raw.get("permalink") or "",
        video_source=VideoSource(
            manifest_url=manifest_url,
            progressive_url=progressive_url,
        ),
        poster_image_url=_poster_url(raw),
    )


def extract_posts(payload: Dict[str, Any], excluded_origins: Sequence[str]) -> List[Post]:
    """Accepted posts from a listing payload, in upstream order."""
    posts = []
    for child in payload["data"]["children"]:
        raw = child.get("data") if isinstance(child, dict) else None
        if not isinstance(raw, dict):
            continue
        post = parse_post(raw, excluded_origins)
        if post is not None:
            posts.append(post)
    return posts


# =========================================================================
# Fetcher
# =========================================================================

class ContentFetcher:
    """
    Fetches feed pages through the relay chain.

    Attempts are strictly sequential: the upstream rate-limits, and the
    registry order expresses preference.
    """

    def __init__(
        self,
        endpoints: Sequence[ProxyEndpoint] = PROXY_ENDPOINTS,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.endpoints = tuple(endpoints)
        self.timeout = self.settings.fetch_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self.timeout,
            headers={"User-Agent": self.settings.user_agent},
            follow_redirects=True,
        )

    async def fetch_page(
        self,
        term: str,
        reset: bool = True,
        after: Optional[str] = None
    ) -> FetchBatch:
        """
        Fetch one page of accepted posts for a query term.

        Args:
            term: Raw query term (channel name, "r/name" or free text)
            reset: First page of a new query; ``after`` is ignored
            after: Continuation token from the previous page

        Raises:
            InvalidQueryError: term is empty after normalization
            FeedFetchError: every relay failed
        """
        query = normalize_query(term)
        target = build_listing_url(
            query,
            self.settings.upstream_base_url,
            self.settings.page_size,
            after=None if reset else after,
        )

        payload = await self.fetch_json(target)

        posts = extract_posts(payload, self.settings.excluded_origins)
        next_token = payload["data"].get("after") or None

        logger.info(
            "feed_page_fetched",
            term=query.term,
            mode=query.mode.value,
            raw=len(payload["data"]["children"]),
            accepted=len(posts),
            has_more=next_token is not None,
        )
        return FetchBatch(posts=posts, next_page_token=next_token)

    async def fetch_json(
        self,
        target_url: str,
        endpoints: Optional[Sequence[ProxyEndpoint]] = None,
        validate: PayloadValidator = has_listing,
    ) -> Any:
        """
        Walk the relay chain for ``target_url`` and return the first valid payload.

        Raises:
            FeedFetchError: classified aggregate of every attempt's failure
        """
        chain = self.endpoints if endpoints is None else tuple(endpoints)
        failures: List[FetchAttemptError] = []

        async with self._client() as client:
            for endpoint in chain:
                started = time.monotonic()
                try:
                    payload = await self._attempt(client, endpoint, target_url, validate)
                except FetchAttemptError as e:
                    logger.warning(
                        "proxy_attempt_failed",
                        proxy=endpoint.label,
                        kind=e.kind,
                        error=e.detail,
                    )
                    failures.append(e)
                    continue

                logger.debug(
                    "proxy_attempt_succeeded",
                    proxy=endpoint.label,
                    elapsed_ms=int((time.monotonic() - started) * 1000),
                )
                return payload

        error = FeedFetchError.from_failures(failures)
        logger.error(
            "proxy_chain_exhausted",
            attempts=len(failures),
            kind=error.kind,
            diagnostic=error.diagnostic,
        )
        raise error

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        endpoint: ProxyEndpoint,
        target_url: str,
        validate: PayloadValidator,
    ) -> Any:
        try:
            response = await asyncio.wait_for(
                client.get(endpoint.build_url(target_url)),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise NetworkFault(endpoint.label, f"timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise NetworkFault(endpoint.label, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise NetworkFault(endpoint.label, f"HTTP {response.status_code}")

        payload = _parse_body(endpoint, response.text)

        if endpoint.response_shape == ResponseShape.WRAPPED:
            inner = payload.get(endpoint.inner_field) if isinstance(payload, dict) else None
            if not isinstance(inner, str):
                raise MalformedResponse(endpoint.label, f"missing '{endpoint.inner_field}' field")
            payload = _parse_body(endpoint, inner)

        if not validate(payload):
            raise MalformedResponse(endpoint.label, "unexpected response shape")

        return payload
