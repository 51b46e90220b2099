"""
Tests for the Active Slide Tracker
"""

from reelfeed.services.slide_tracker import ActiveSlideTracker


def test_index_from_offset():
    tracker = ActiveSlideTracker()

    assert tracker.update(0, 800, 10, True, False).active_index == 0
    assert tracker.update(1604, 800, 10, True, False).active_index == 2


def test_change_reported_only_on_new_index():
    tracker = ActiveSlideTracker()

    first = tracker.update(810, 800, 10, True, False)
    second = tracker.update(790, 800, 10, True, False)

    assert first.index_changed is True
    assert second.index_changed is False
    assert second.active_index == 1


def test_half_slide_rounds_up():
    tracker = ActiveSlideTracker()
    assert tracker.update(400, 800, 10, True, False).active_index == 1


def test_paginates_within_two_of_end():
    tracker = ActiveSlideTracker(threshold=2)

    assert tracker.update(6 * 800, 800, 10, True, False).should_paginate is False
    assert tracker.update(7 * 800, 800, 10, True, False).should_paginate is False
    assert tracker.update(8 * 800, 800, 10, True, False).should_paginate is True


def test_no_pagination_without_token_or_while_in_flight():
    tracker = ActiveSlideTracker()

    assert tracker.update(9 * 800, 800, 10, False, False).should_paginate is False
    assert tracker.update(9 * 800, 800, 10, True, True).should_paginate is False
    assert tracker.update(0, 800, 0, True, False).should_paginate is False


def test_zero_extent_keeps_index():
    tracker = ActiveSlideTracker()
    tracker.update(1600, 800, 10, True, False)

    update = tracker.update(1600, 0, 10, True, False)

    assert update.active_index == 2
    assert update.index_changed is False


def test_reset():
    tracker = ActiveSlideTracker()
    tracker.update(2400, 800, 10, True, False)
    tracker.reset()
    assert tracker.active_index == 0
