"""YouTube URL helpers shared by request validation and the server validators."""

import re
from typing import Optional

# Must stay identical to the pattern used by the web client.
YOUTUBE_URL_PATTERN = re.compile(
    r"(?:youtu\.be/|youtube\.com/(?:embed/|v/|watch\?v=|watch\?.+&v=))([^&?]+)"
)


def is_valid_youtube_url(url: Optional[str]) -> bool:
    if not url:
        return False
    return YOUTUBE_URL_PATTERN.search(url) is not None


def get_youtube_id(url: Optional[str]) -> str:
    """Extract the video id from any supported YouTube URL form, or ''."""
    match = YOUTUBE_URL_PATTERN.search(url or "")
    return match.group(1) if match else ""


def get_thumbnail_url(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg"


def get_embed_url(video_id: str) -> str:
    return f"https://www.youtube.com/embed/{video_id}?autoplay=1"
