"""Inbox / archived partition of feedback records."""

from dataclasses import dataclass
from typing import Iterable, List

from schemas import Feedback


@dataclass(frozen=True)
class FeedbackView:
    feedbacks: List[Feedback]
    unread_count: int


def unread_count(feedbacks: Iterable[Feedback]) -> int:
    return sum(1 for f in feedbacks if not f.is_read and not f.is_archived)


def filter_feedbacks(feedbacks: Iterable[Feedback], include_archived: bool = False) -> List[Feedback]:
    """Keep the records whose is_archived equals include_archived.

    Input order (createdAt descending, as returned by the store) is preserved.
    """
    return [f for f in feedbacks if f.is_archived == include_archived]


def build_feedback_view(feedbacks: Iterable[Feedback], include_archived: bool = False) -> FeedbackView:
    feedbacks = list(feedbacks)
    return FeedbackView(
        feedbacks=filter_feedbacks(feedbacks, include_archived),
        unread_count=unread_count(feedbacks),
    )
