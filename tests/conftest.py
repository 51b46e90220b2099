"""
Pytest Fixtures

Relay simulation, upstream payload builders and playback fakes.
"""

import inspect
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from reelfeed.config import Settings
from reelfeed.core.exceptions import AutoplayRejected
from reelfeed.models.post import Post, VideoSource
from reelfeed.services.content_fetcher import ContentFetcher
from reelfeed.services.playback import AdaptiveSession, AdaptiveSessionFactory, PlaybackElement


# =========================================================================
# Upstream payloads
# =========================================================================

def video_entry(post_id: str, **overrides) -> Dict[str, Any]:
    """One upstream post carrying an embedded video."""
    entry = {
        "id": post_id,
        "title": f"Clip {post_id} &amp; friends",
        "author": "someone",
        "subreddit_name_prefixed": "r/TikTokCringe",
        "ups": 1234,
        "num_comments": 56,
        "permalink": f"/r/TikTokCringe/comments/{post_id}/clip/",
        "url": f"https://v.redd.it/{post_id}",
        "is_video": True,
        "media": {
            "reddit_video": {
                "hls_url": f"https://v.redd.it/{post_id}/HLSPlaylist.m3u8",
                "fallback_url": f"https://v.redd.it/{post_id}/DASH_720.mp4",
            }
        },
        "preview": {
            "images": [{"source": {"url": f"https://preview.redd.it/{post_id}.jpg?a=1&amp;b=2"}}]
        },
    }
    entry.update(overrides)
    return entry


def listing(entries: List[Dict[str, Any]], after: Optional[str] = None) -> Dict[str, Any]:
    """Paginated listing envelope."""
    return {
        "kind": "Listing",
        "data": {
            "children": [{"kind": "t3", "data": e} for e in entries],
            "after": after,
        },
    }


def make_post(post_id: str, title: str = "", manifest: bool = True, progressive: bool = True) -> Post:
    return Post(
        id=post_id,
        title=title or f"Post {post_id}",
        author="someone",
        channel_label="r/test",
        permalink=f"/r/test/comments/{post_id}/",
        video_source=VideoSource(
            manifest_url=f"https://v.example/{post_id}.m3u8" if manifest else None,
            progressive_url=f"https://v.example/{post_id}.mp4" if progressive else None,
        ),
    )


# =========================================================================
# Relay simulation
# =========================================================================

def relay_label(request: httpx.Request) -> str:
    """Which registry entry a request was sent through."""
    host = request.url.host
    if host == "corsproxy.io":
        return "corsproxy"
    if host == "api.codetabs.com":
        return "codetabs"
    if request.url.path.endswith("/raw"):
        return "allorigins-raw"
    return "allorigins-get"


@pytest.fixture
def settings():
    return Settings(
        environment="test",
        fetch_timeout_seconds=0.2,
        suggest_debounce_ms=30,
        page_size=10,
        autoload_on_startup=False,
    )


@pytest.fixture
def make_fetcher(settings):
    """
    Build a ContentFetcher whose relays are answered by ``routes``.

    ``routes`` maps relay label -> handler(request) returning an
    httpx.Response (sync or async). Unrouted relays answer 502.
    Returns (fetcher, calls) where ``calls`` records relay labels in order.
    """
    def _make(routes: Dict[str, Callable]):
        calls: List[str] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            label = relay_label(request)
            calls.append(label)
            route = routes.get(label)
            if route is None:
                return httpx.Response(502, text="bad gateway")
            response = route(request)
            if inspect.isawaitable(response):
                response = await response
            return response

        fetcher = ContentFetcher(settings=settings, transport=httpx.MockTransport(handler))
        return fetcher, calls

    return _make


# =========================================================================
# Playback fakes
# =========================================================================

class FakeElement(PlaybackElement):
    """Media element double that records calls."""

    def __init__(self, native_hls: bool = False, reject_autoplay: bool = False, allow_unmute: bool = True):
        self._muted = False
        self.native_hls = native_hls
        self.reject_autoplay = reject_autoplay
        self.allow_unmute = allow_unmute
        self.sources: List[str] = []
        self.play_calls = 0
        self.muted_at_play: List[bool] = []
        self.paused = True
        self.position = 0.0

    @property
    def muted(self) -> bool:
        return self._muted

    @muted.setter
    def muted(self, value: bool):
        if not value and not self.allow_unmute:
            return
        self._muted = value

    def can_play_native_manifest(self) -> bool:
        return self.native_hls

    def set_source(self, url: str) -> None:
        self.sources.append(url)

    async def play(self) -> None:
        self.play_calls += 1
        self.muted_at_play.append(self._muted)
        if self.reject_autoplay:
            raise AutoplayRejected("NotAllowedError")
        self.paused = False

    def pause(self) -> None:
        self.paused = True


class FakeAdaptiveSession(AdaptiveSession):
    def __init__(self, on_fault):
        self.on_fault = on_fault
        self.loaded: Optional[str] = None
        self.attached_to = None
        self.start_load_calls = 0
        self.recover_calls = 0
        self.destroyed = False

    def load_source(self, manifest_url: str) -> None:
        self.loaded = manifest_url

    def attach(self, element) -> None:
        self.attached_to = element

    def start_load(self) -> None:
        self.start_load_calls += 1

    def recover_decoder(self) -> None:
        self.recover_calls += 1

    def destroy(self) -> None:
        self.destroyed = True


class FakeAdaptiveFactory(AdaptiveSessionFactory):
    def __init__(self, supported: bool = True):
        self.supported = supported
        self.created: List[FakeAdaptiveSession] = []

    def is_supported(self) -> bool:
        return self.supported

    def create(self, on_fault) -> FakeAdaptiveSession:
        session = FakeAdaptiveSession(on_fault)
        self.created.append(session)
        return session


@pytest.fixture
def element():
    return FakeElement()


@pytest.fixture
def adaptive_factory():
    return FakeAdaptiveFactory()
