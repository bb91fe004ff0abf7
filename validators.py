"""
Post-write integrity checks for the "videos" collection.

The policy is independent of how document events are delivered: each handler
receives the document state(s) and returns an action for the caller to apply.

- A newly created video with an invalid YouTube URL is deleted.
- An update that changes youtubeUrl to an invalid value is reverted to the
  pre-update field values.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from logging_utils import log_event
from youtube import is_valid_youtube_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Keep:
    pass


@dataclass(frozen=True)
class Delete:
    pass


@dataclass(frozen=True)
class RevertTo:
    state: Dict[str, Any] = field(default_factory=dict)


Action = Union[Keep, Delete, RevertTo]


def on_video_created(video_id: str, data: Optional[Dict[str, Any]]) -> Action:
    url = (data or {}).get("youtubeUrl")
    log_event(logger, logging.INFO, "validator.create.check", video_id=video_id)

    if not is_valid_youtube_url(url):
        log_event(logger, logging.WARNING, "validator.create.invalid_url", video_id=video_id, youtube_url=url)
        return Delete()

    log_event(logger, logging.INFO, "validator.create.valid", video_id=video_id)
    return Keep()


def on_video_updated(
    video_id: str,
    before: Optional[Dict[str, Any]],
    after: Optional[Dict[str, Any]],
) -> Action:
    before = before or {}
    after = after or {}
    if after.get("youtubeUrl") == before.get("youtubeUrl"):
        return Keep()

    log_event(logger, logging.INFO, "validator.update.check", video_id=video_id)
    url = after.get("youtubeUrl")
    if not is_valid_youtube_url(url):
        log_event(logger, logging.WARNING, "validator.update.invalid_url", video_id=video_id, youtube_url=url)
        return RevertTo({k: v for k, v in before.items() if k != "_id"})

    log_event(logger, logging.INFO, "validator.update.valid", video_id=video_id)
    return Keep()
