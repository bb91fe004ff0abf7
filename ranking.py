"""
Video listing filters and ordering.

rank_videos() is a pure transform over a snapshot of videos already fetched
from the store; it is cheap enough to run on every search keystroke.
"""

from typing import Iterable, List, Optional

from schemas import FilterState, Video

RIBBON_ORDER = {"gold": 1, "silver": 2, "bronze": 3}
UNRANKED_RIBBON = 4


def _ribbon_rank(video: Video) -> int:
    return RIBBON_ORDER.get(video.ribbon_color, UNRANKED_RIBBON)


def _requested_order(video: Video, sort_by: str) -> tuple:
    if sort_by == "newest":
        return (-video.created_at.timestamp(),)
    if sort_by == "oldest":
        return (video.created_at.timestamp(),)
    if sort_by == "highestRated":
        return (-video.rating,)
    if sort_by == "lowestRated":
        return (video.rating,)
    return ()


def _sort_key(video: Video, sort_by: str) -> tuple:
    # Sponsored and unsponsored videos never compare past the second slot,
    # so the third slot may differ in shape between the two groups.
    if video.is_sponsored:
        tail = (_ribbon_rank(video), -video.rating)
    else:
        tail = _requested_order(video, sort_by)
    return (not video.is_pinned, not video.is_sponsored, tail)


def matches_search(video: Video, query: str) -> bool:
    query = query.lower()
    if query in video.title.lower():
        return True
    return any(query in tag.lower() for tag in video.sub_tags)


def matches_filters(video: Video, filters: FilterState) -> bool:
    if filters.main_tag and video.main_tag != filters.main_tag:
        return False
    if filters.sub_tag and filters.sub_tag not in video.sub_tags:
        return False
    if filters.rating and video.rating < filters.rating:
        return False
    return True


def rank_videos(
    videos: Iterable[Video],
    filters: Optional[FilterState] = None,
    search_query: str = "",
    is_admin: bool = False,
) -> List[Video]:
    """
    Filter and order videos for display.

    - Non-admin viewers never see videos with is_public=False.
    - search_query matches title or any sub tag, case-insensitively.
    - Pinned first, then sponsored (gold, silver, bronze, other; rating
      descending within a tier), then everything else by filters.sort_by.
    """
    filters = filters or FilterState()
    selected = [
        video
        for video in videos
        if (is_admin or video.is_public)
        and (not search_query or matches_search(video, search_query))
        and matches_filters(video, filters)
    ]
    return sorted(selected, key=lambda video: _sort_key(video, filters.sort_by))


def available_sub_tags(videos: Iterable[Video], main_tag: Optional[str] = None) -> List[str]:
    """Distinct sub tags, in first-seen order, of videos under main_tag."""
    tags: List[str] = []
    for video in videos:
        if main_tag and video.main_tag != main_tag:
            continue
        for tag in video.sub_tags:
            if tag not in tags:
                tags.append(tag)
    return tags
