"""
Merge Service

Folds a freshly fetched batch into the accumulated feed list.
"""

from typing import Dict, List, Sequence

from ..models.post import Post


def merge_posts(existing: Sequence[Post], batch: Sequence[Post], reset: bool = False) -> List[Post]:
    """
    Merge ``batch`` into ``existing`` keyed by post ID.

    A repeated ID keeps the slot where it was first seen but takes the
    newer content, so slides never jump while metadata stays fresh.
    With ``reset`` the existing list is discarded.
    """
    merged: Dict[str, Post] = {}
    for post in (batch if reset else [*existing, *batch]):
        # dict assignment to an existing key keeps insertion position
        merged[post.id] = post
    return list(merged.values())
