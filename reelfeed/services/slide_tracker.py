"""
Active Slide Tracker

Maps the feed's scroll offset to the active slide and decides when the
next page should be requested.
"""

import math

from ..core.logging import get_logger
from ..models.feed import ScrollUpdate

logger = get_logger(__name__)


class ActiveSlideTracker:
    """
    One slide occupies exactly one viewport height.

    Pagination is admitted only when the active slide is within
    ``threshold`` of the end, a continuation token exists, and no fetch is
    in flight. Triggers during a fetch are dropped, never queued.
    """

    def __init__(self, threshold: int = 2):
        self.threshold = threshold
        self.active_index = 0

    def reset(self):
        """Back to the first slide (query changed)."""
        self.active_index = 0

    @staticmethod
    def index_for(offset: float, extent: float) -> int:
        # Half rounds up, matching the rendering layer
        return int(math.floor(offset / extent + 0.5))

    def should_paginate(self, loaded_count: int, has_token: bool, fetch_in_flight: bool) -> bool:
        if loaded_count <= 0 or not has_token or fetch_in_flight:
            return False
        return loaded_count - self.active_index <= self.threshold

    def update(
        self,
        offset: float,
        extent: float,
        loaded_count: int,
        has_token: bool,
        fetch_in_flight: bool,
    ) -> ScrollUpdate:
        """Process one scroll signal."""
        changed = False
        if extent > 0:
            index = max(0, self.index_for(offset, extent))
            if index != self.active_index:
                logger.debug("active_slide_changed", previous=self.active_index, current=index)
                self.active_index = index
                changed = True

        paginate = self.should_paginate(loaded_count, has_token, fetch_in_flight)
        return ScrollUpdate(
            active_index=self.active_index,
            index_changed=changed,
            should_paginate=paginate,
        )
