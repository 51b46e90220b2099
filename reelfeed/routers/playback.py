"""
Playback API Router

Shared mute preference.
"""

from fastapi import APIRouter, Depends

from ..services.feed_session import FeedSession, get_feed_session

router = APIRouter(prefix="/playback", tags=["playback"])


@router.get("/mute")
async def get_mute(session: FeedSession = Depends(get_feed_session)):
    return {"muted": session.shared_mute.value}


@router.post("/mute/toggle")
async def toggle_mute(session: FeedSession = Depends(get_feed_session)):
    """Flip the mute preference shared by every slide."""
    muted = session.toggle_mute()
    return {"muted": muted}
