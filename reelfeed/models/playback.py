"""
Playback Models

State, strategy and fault types for the per-slide playback controller.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class PlaybackState(str, Enum):
    """Per-mount playback states. ERRORED is terminal."""
    IDLE = "idle"
    ATTACHING = "attaching"
    PLAYING = "playing"
    PAUSED = "paused"
    ERRORED = "errored"


class SourceStrategy(str, Enum):
    """How the element gets its media."""
    NATIVE_MANIFEST = "native_manifest"
    PROGRESSIVE = "progressive"
    SOFTWARE_ADAPTIVE = "software_adaptive"


class AdaptiveFaultKind(str, Enum):
    """Fault classes reported by a software-adaptive session."""
    NETWORK = "network"
    MEDIA = "media"
    OTHER = "other"


class AdaptiveFault(BaseModel):
    """Error event emitted by a software-adaptive session."""
    kind: AdaptiveFaultKind
    fatal: bool = False
    details: str = ""


class PlaybackCapabilities(BaseModel):
    """
    Capability probes reported by the platform.

    ``prefers_native`` is also set when no software-adaptive engine is
    available, so the decision table only ever sees these two flags.
    """
    native_adaptive: bool = Field(default=False, alias="nativeAdaptive")
    prefers_native: bool = Field(default=False, alias="prefersNative")

    model_config = ConfigDict(populate_by_name=True)


class PlaybackSession(BaseModel):
    """Per-mount playback bookkeeping, recreated on remount or source change."""
    state: PlaybackState = PlaybackState.IDLE
    chosen_strategy: Optional[SourceStrategy] = Field(None, alias="chosenStrategy")
    local_muted: bool = Field(default=True, alias="localMuted")
    last_error: Optional[str] = Field(None, alias="lastError")

    model_config = ConfigDict(populate_by_name=True)
