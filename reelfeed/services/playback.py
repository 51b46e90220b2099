"""
Playback Controller

Per-slide playback: picks a source strategy for the platform, drives the
element through an explicit state machine, and recovers from streaming
faults.

States:
    idle -> attaching -> {playing, paused, errored}

errored is terminal for a mount; only unmount + mount starts over.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from ..core.exceptions import AutoplayRejected, PlaybackStateError
from ..core.logging import get_logger
from ..models.playback import (
    AdaptiveFault,
    AdaptiveFaultKind,
    PlaybackCapabilities,
    PlaybackSession,
    PlaybackState,
    SourceStrategy,
)
from ..models.post import Post
from .mute import SharedMute

logger = get_logger(__name__)


# =========================================================================
# Collaborator interfaces (implemented by the rendering layer)
# =========================================================================

class PlaybackElement(ABC):
    """Media element capable of progressive and possibly native HLS playback."""

    @property
    @abstractmethod
    def muted(self) -> bool:
        ...

    @muted.setter
    @abstractmethod
    def muted(self, value: bool):
        ...

    @abstractmethod
    def can_play_native_manifest(self) -> bool:
        """Capability probe for native adaptive-manifest decoding."""

    @abstractmethod
    def set_source(self, url: str) -> None:
        ...

    @abstractmethod
    async def play(self) -> None:
        """
        Start playback.

        Raises:
            AutoplayRejected: the platform refused programmatic playback
        """

    @abstractmethod
    def pause(self) -> None:
        ...


class AdaptiveSession(ABC):
    """A software adaptive-streaming session bound to one element."""

    @abstractmethod
    def load_source(self, manifest_url: str) -> None:
        ...

    @abstractmethod
    def attach(self, element: PlaybackElement) -> None:
        ...

    @abstractmethod
    def start_load(self) -> None:
        """Reload the current segment window."""

    @abstractmethod
    def recover_decoder(self) -> None:
        """Reset the media pipeline in place."""

    @abstractmethod
    def destroy(self) -> None:
        """Release buffers, workers and pending requests."""


class AdaptiveSessionFactory(ABC):
    """Creates software adaptive sessions when the platform supports them."""

    @abstractmethod
    def is_supported(self) -> bool:
        ...

    @abstractmethod
    def create(self, on_fault: Callable[[AdaptiveFault], None]) -> AdaptiveSession:
        ...


# =========================================================================
# Decision tables
# =========================================================================

_NATIVE = SourceStrategy.NATIVE_MANIFEST
_PROGRESSIVE = SourceStrategy.PROGRESSIVE
_SOFTWARE = SourceStrategy.SOFTWARE_ADAPTIVE

# (native_adaptive, prefers_native, has_progressive, has_manifest) -> strategy
STRATEGY_TABLE: Dict[Tuple[bool, bool, bool, bool], Optional[SourceStrategy]] = {
    (False, False, False, False): None,
    (False, False, False, True): _SOFTWARE,
    (False, False, True, False): _PROGRESSIVE,
    (False, False, True, True): _SOFTWARE,
    (False, True, False, False): None,
    (False, True, False, True): None,
    (False, True, True, False): _PROGRESSIVE,
    (False, True, True, True): _PROGRESSIVE,
    (True, False, False, False): None,
    (True, False, False, True): _SOFTWARE,
    (True, False, True, False): _PROGRESSIVE,
    (True, False, True, True): _SOFTWARE,
    (True, True, False, False): None,
    (True, True, False, True): _NATIVE,
    (True, True, True, False): _PROGRESSIVE,
    (True, True, True, True): _NATIVE,
}

TRANSITIONS: Dict[PlaybackState, FrozenSet[PlaybackState]] = {
    PlaybackState.IDLE: frozenset({PlaybackState.ATTACHING, PlaybackState.ERRORED}),
    PlaybackState.ATTACHING: frozenset({
        PlaybackState.PLAYING, PlaybackState.PAUSED, PlaybackState.ERRORED,
    }),
    PlaybackState.PLAYING: frozenset({PlaybackState.PAUSED, PlaybackState.ERRORED}),
    PlaybackState.PAUSED: frozenset({PlaybackState.PLAYING, PlaybackState.ERRORED}),
    PlaybackState.ERRORED: frozenset(),
}


def choose_strategy(
    native_adaptive: bool,
    prefers_native: bool,
    has_progressive: bool,
    has_manifest: bool,
) -> Optional[SourceStrategy]:
    """Pick the source strategy; None when nothing is playable."""
    key = (bool(native_adaptive), bool(prefers_native), bool(has_progressive), bool(has_manifest))
    return STRATEGY_TABLE[key]


def strategy_for_post(
    post: Post,
    capabilities: PlaybackCapabilities,
    software_available: bool = True,
) -> Optional[SourceStrategy]:
    """Strategy for a post, folding a missing software engine into "prefers native"."""
    return choose_strategy(
        capabilities.native_adaptive,
        capabilities.prefers_native or not software_available,
        post.video_source.has_progressive,
        post.video_source.has_manifest,
    )


def source_url(post: Post, strategy: Optional[SourceStrategy]) -> Optional[str]:
    """URL the chosen strategy loads."""
    if strategy is None:
        return None
    if strategy == SourceStrategy.PROGRESSIVE:
        return post.video_source.progressive_url
    return post.video_source.manifest_url


# =========================================================================
# Controller
# =========================================================================

class PlaybackController:
    """
    Playback for one rendered slide.

    Holds at most one software adaptive session at a time. Faults stay
    inside this controller; nothing here touches the feed or other slides.
    """

    def __init__(
        self,
        post: Post,
        element: PlaybackElement,
        shared_mute: SharedMute,
        capabilities: Optional[PlaybackCapabilities] = None,
        adaptive_factory: Optional[AdaptiveSessionFactory] = None,
    ):
        self.post = post
        self.element = element
        self.shared_mute = shared_mute
        self.capabilities = capabilities or PlaybackCapabilities(
            native_adaptive=element.can_play_native_manifest()
        )
        self.adaptive_factory = adaptive_factory
        self.session = PlaybackSession()
        self.active = False

        self._adaptive: Optional[AdaptiveSession] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._mounted = False
        self._log = logger.bind(post_id=post.id)

    @property
    def state(self) -> PlaybackState:
        return self.session.state

    @property
    def has_adaptive_session(self) -> bool:
        return self._adaptive is not None

    # =====================================================================
    # Lifecycle
    # =====================================================================

    async def mount(self):
        """Attach a fresh session; starts playback if already active."""
        if self._mounted:
            return
        self._mounted = True
        self.session = PlaybackSession(local_muted=self.element.muted)
        self._unsubscribe = self.shared_mute.subscribe(self._on_shared_mute)
        self._attach()
        if self.active and self.state != PlaybackState.ERRORED:
            await self._start_playback()

    def unmount(self):
        """Stop the element, release the streaming session and stop listening for mute changes."""
        if self.state in (PlaybackState.ATTACHING, PlaybackState.PLAYING, PlaybackState.PAUSED):
            self.element.pause()
            self._transition(PlaybackState.PAUSED)
        self._teardown_adaptive()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._mounted = False
        self.active = False
        self._log.debug("playback_unmounted")

    async def change_source(self, post: Post):
        """Re-attach for a new post under a fresh session."""
        if self.state == PlaybackState.ERRORED:
            self._log.info("source_change_ignored_errored")
            return
        self._teardown_adaptive()
        self.post = post
        self._log = logger.bind(post_id=post.id)
        self.session = PlaybackSession(local_muted=self.element.muted)
        self._attach()
        if self.active and self.state != PlaybackState.ERRORED:
            await self._start_playback()

    def select_strategy(self) -> Optional[SourceStrategy]:
        software = self.adaptive_factory is not None and self.adaptive_factory.is_supported()
        return strategy_for_post(self.post, self.capabilities, software_available=software)

    def _attach(self):
        self._transition(PlaybackState.ATTACHING)
        strategy = self.select_strategy()
        self.session.chosen_strategy = strategy
        source = self.post.video_source

        if strategy is None:
            self._fail("no playable source")
            return

        if strategy == SourceStrategy.SOFTWARE_ADAPTIVE:
            self._teardown_adaptive()
            adaptive = self.adaptive_factory.create(on_fault=self.handle_adaptive_fault)
            adaptive.load_source(source.manifest_url)
            adaptive.attach(self.element)
            self._adaptive = adaptive
        else:
            self.element.set_source(source_url(self.post, strategy))

        self._log.debug("playback_attached", strategy=strategy.value)

    def _teardown_adaptive(self):
        if self._adaptive is not None:
            self._adaptive.destroy()
            self._adaptive = None

    # =====================================================================
    # Active / inactive and manual control
    # =====================================================================

    async def set_active(self, active: bool):
        """Active slides play (muted first for autoplay), inactive ones pause."""
        self.active = active
        if self.state in (PlaybackState.IDLE, PlaybackState.ERRORED):
            return

        if active:
            await self._start_playback()
        else:
            # Position is kept so scrolling back resumes where it left off
            self.element.pause()
            self._transition(PlaybackState.PAUSED)

    async def _start_playback(self):
        # Autoplay policies only admit silent programmatic playback
        self._set_element_muted(True)
        try:
            await self.element.play()
        except AutoplayRejected as e:
            self._log.info("autoplay_rejected", reason=e.message)
            if self.state != PlaybackState.ERRORED:
                self._transition(PlaybackState.PAUSED)
            return

        if self.state == PlaybackState.ERRORED:
            return
        if not self.active:
            # Deactivated while the play request was pending
            self.element.pause()
            self._transition(PlaybackState.PAUSED)
            return

        self._transition(PlaybackState.PLAYING)
        self._restore_mute()

    async def toggle_play(self):
        """Tap: playing <-> paused, regardless of the active flag."""
        if self.state in (PlaybackState.IDLE, PlaybackState.ERRORED):
            return

        if self.state == PlaybackState.PLAYING:
            self.element.pause()
            self._transition(PlaybackState.PAUSED)
            return

        try:
            await self.element.play()
        except AutoplayRejected as e:
            self._log.info("manual_play_rejected", reason=e.message)
            if self.state == PlaybackState.ATTACHING:
                self._transition(PlaybackState.PAUSED)
            return

        if self.state == PlaybackState.ERRORED:
            return
        self._transition(PlaybackState.PLAYING)
        self._restore_mute()

    def _restore_mute(self):
        preferred = self.shared_mute.value
        self._set_element_muted(preferred)
        if self.element.muted != preferred:
            self.shared_mute.sync_from_playback(self.element.muted)

    def _on_shared_mute(self, muted: bool):
        if self.state != PlaybackState.ERRORED:
            self._set_element_muted(muted)

    def _set_element_muted(self, muted: bool):
        self.element.muted = muted
        self.session.local_muted = self.element.muted

    # =====================================================================
    # Faults
    # =====================================================================

    def handle_adaptive_fault(self, fault: AdaptiveFault):
        """Error callback for the software adaptive session."""
        if self.state == PlaybackState.ERRORED:
            return

        if not fault.fatal:
            self._log.debug("adaptive_fault_ignored", kind=fault.kind.value, details=fault.details)
            return

        if self._adaptive is None:
            self._fail(fault.details or "adaptive fault without session")
            return

        if fault.kind == AdaptiveFaultKind.NETWORK:
            self._log.warning("adaptive_network_fault_reloading", details=fault.details)
            self._adaptive.start_load()
        elif fault.kind == AdaptiveFaultKind.MEDIA:
            self._log.warning("adaptive_media_fault_recovering", details=fault.details)
            self._adaptive.recover_decoder()
        else:
            self._fail(fault.details or "fatal streaming error")

    def handle_element_error(self, message: str = "media decode error"):
        """Error event from the element itself; not recoverable in place."""
        if self.state == PlaybackState.ERRORED:
            return
        self._fail(message)

    def _fail(self, reason: str):
        self._teardown_adaptive()
        self.session.last_error = reason
        self._transition(PlaybackState.ERRORED)
        self._log.error("playback_errored", reason=reason)

    def _transition(self, target: PlaybackState):
        current = self.session.state
        if target == current:
            return
        if target not in TRANSITIONS[current]:
            raise PlaybackStateError(current.value, target.value)
        self.session.state = target
