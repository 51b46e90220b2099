"""
Shared Mute Preference

Process-wide mute flag read by every playback controller. Only two call
sites write it: the explicit toggle action and the post-autoplay
restoration step in the playback controller.
"""

from typing import Callable, List

from ..core.logging import get_logger

logger = get_logger(__name__)

MuteListener = Callable[[bool], None]


class SharedMute:
    """Observable mute preference. Starts muted."""

    def __init__(self, muted: bool = True):
        self._muted = muted
        self._listeners: List[MuteListener] = []

    @property
    def value(self) -> bool:
        return self._muted

    def subscribe(self, listener: MuteListener) -> Callable[[], None]:
        """Register a listener; returns the unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def toggle(self) -> bool:
        """User mute toggle. Returns the new value."""
        self._set(not self._muted, source="toggle")
        return self._muted

    def sync_from_playback(self, effective_muted: bool):
        """
        Record the mute state the platform actually allowed after autoplay.

        Called when restoring the preference onto an element did not stick
        (the platform kept audio off).
        """
        self._set(effective_muted, source="autoplay_restore")

    def _set(self, muted: bool, source: str):
        if muted == self._muted:
            return
        self._muted = muted
        logger.info("shared_mute_changed", muted=muted, source=source)
        for listener in list(self._listeners):
            listener(muted)
