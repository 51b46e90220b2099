"""
Tests for the Feed Session: query box, scroll-driven pagination and active slide playback.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import FakeAdaptiveFactory, FakeElement, make_post
from reelfeed.core.exceptions import InvalidQueryError, NotFoundError
from reelfeed.models.feed import FetchBatch
from reelfeed.models.playback import PlaybackState
from reelfeed.services.content_fetcher import ContentFetcher
from reelfeed.services.feed_session import FeedSession

SLIDE = 800


def batch(*post_ids, after=None):
    return FetchBatch(posts=[make_post(i) for i in post_ids], next_page_token=after)


@pytest.fixture
def fetcher():
    mock = MagicMock(spec=ContentFetcher)
    mock.fetch_page = AsyncMock(return_value=batch("p0", "p1", "p2", after="t3_p2"))
    mock.fetch_json = AsyncMock(return_value={"names": []})
    return mock


@pytest.fixture
def session(fetcher, settings):
    return FeedSession(fetcher=fetcher, settings=settings)


@pytest.mark.asyncio
async def test_start_loads_default_channel(session, fetcher, settings):
    await session.start()

    fetcher.fetch_page.assert_awaited_once_with(settings.default_channel, reset=True, after=None)
    assert session.snapshot().query_term == settings.default_channel


@pytest.mark.asyncio
async def test_blank_submission_ignored(session, fetcher):
    assert await session.submit_query("   ") is False
    fetcher.fetch_page.assert_not_awaited()


@pytest.mark.asyncio
async def test_submission_resets_tracker(session):
    await session.submit_query("aww")
    await session.on_scroll(2 * SLIDE, SLIDE)

    await session.submit_query("funny cats")

    assert session.tracker.active_index == 0
    assert session.cursor.query_term == "funny cats"


@pytest.mark.asyncio
async def test_pagination_fires_once_while_in_flight(session, fetcher):
    gate = asyncio.Event()

    async def fetch_page(term, reset=True, after=None):
        if reset:
            return batch("p0", "p1", "p2", after="t3_p2")
        await gate.wait()
        return batch("p3", "p4")

    fetcher.fetch_page.side_effect = fetch_page
    await session.submit_query("aww")

    first = await session.on_scroll(1 * SLIDE, SLIDE)
    await asyncio.sleep(0)
    second = await session.on_scroll(2 * SLIDE, SLIDE)
    third = await session.on_scroll(2 * SLIDE + 10, SLIDE)

    assert first.should_paginate is True
    assert second.should_paginate is False
    assert third.should_paginate is False

    gate.set()
    await session.pagination_task

    assert fetcher.fetch_page.await_count == 2
    assert [p.id for p in session.cursor.posts] == ["p0", "p1", "p2", "p3", "p4"]
    assert session.cursor.exhausted is True


@pytest.mark.asyncio
async def test_active_slide_plays_and_others_pause(session):
    await session.submit_query("aww")
    factory = FakeAdaptiveFactory()
    first_el, second_el = FakeElement(), FakeElement()

    first = await session.mount_slide("p0", first_el, adaptive_factory=factory)
    second = await session.mount_slide("p1", second_el, adaptive_factory=factory)

    assert first.state == PlaybackState.PLAYING
    assert second.state == PlaybackState.ATTACHING

    update = await session.on_scroll(SLIDE, SLIDE)

    assert update.index_changed is True
    assert first.state == PlaybackState.PAUSED
    assert second.state == PlaybackState.PLAYING


@pytest.mark.asyncio
async def test_remount_replaces_controller(session):
    await session.submit_query("aww")
    factory = FakeAdaptiveFactory()

    await session.mount_slide("p0", FakeElement(), adaptive_factory=factory)
    await session.mount_slide("p0", FakeElement(), adaptive_factory=factory)

    assert factory.created[0].destroyed is True
    assert len(session.controllers) == 1


@pytest.mark.asyncio
async def test_new_query_unmounts_slides(session):
    await session.submit_query("aww")
    factory = FakeAdaptiveFactory()
    await session.mount_slide("p0", FakeElement(), adaptive_factory=factory)

    await session.return_to_default()

    assert session.controllers == {}
    assert factory.created[0].destroyed is True


@pytest.mark.asyncio
async def test_unknown_post(session):
    await session.submit_query("aww")
    with pytest.raises(NotFoundError):
        session.get_post("missing")


@pytest.mark.asyncio
async def test_mute_toggle_reaches_mounted_slides(session):
    await session.submit_query("aww")
    element = FakeElement()
    await session.mount_slide("p0", element, adaptive_factory=FakeAdaptiveFactory())

    assert session.toggle_mute() is False
    assert element.muted is False
    assert session.snapshot().muted is False


@pytest.mark.asyncio
async def test_snapshot_empty_state(session, fetcher):
    fetcher.fetch_page.return_value = batch()
    await session.submit_query("nothinghere")

    snapshot = session.snapshot()

    assert snapshot.is_empty is True
    assert snapshot.exhausted is True
    assert snapshot.error is None


@pytest.mark.asyncio
async def test_marker_only_query_leaves_feed_untouched(session, fetcher):
    await session.submit_query("aww")
    await session.on_scroll(2 * SLIDE, SLIDE)
    element = FakeElement()
    controller = await session.mount_slide("p2", element, adaptive_factory=FakeAdaptiveFactory())

    for marker in ("r/", "/r/"):
        with pytest.raises(InvalidQueryError):
            await session.submit_query(marker)

    assert session.tracker.active_index == 2
    assert session.controllers == {"p2": controller}
    assert controller.state == PlaybackState.PLAYING
    assert session.cursor.query_term == "aww"
    assert [p.id for p in session.cursor.posts] == ["p0", "p1", "p2"]


@pytest.mark.asyncio
async def test_new_query_silences_playing_slide(session):
    await session.submit_query("aww")
    element = FakeElement()
    controller = await session.mount_slide("p0", element, adaptive_factory=FakeAdaptiveFactory())
    assert controller.state == PlaybackState.PLAYING

    await session.submit_query("funny cats")

    assert element.paused is True
    assert controller.state == PlaybackState.PAUSED
