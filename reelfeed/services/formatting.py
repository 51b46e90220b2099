"""Display helpers for slide overlays and outbound actions."""

from ..models.feed import PostOverlay, SharePayload
from ..models.post import Post


def format_count(num: int) -> str:
    """Compact counter label: 950, 12.5k, 1.2M."""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}k"
    return str(num)


def post_overlay(post: Post) -> PostOverlay:
    """Overlay text for one slide, counters already compacted."""
    return PostOverlay(
        post_id=post.id,
        title=post.display_title,
        channel_label=post.channel_label,
        author=post.author,
        upvotes=format_count(post.upvote_count),
        comments=format_count(post.comment_count),
        external_url=post.external_url,
    )


def share_payload(post: Post) -> SharePayload:
    """Title and link for the share sheet / clipboard fallback."""
    return SharePayload(title=post.display_title, url=post.external_url)
