"""
Database Schemas

MongoDB collection schemas defined as Pydantic models.
These schemas validate incoming writes and normalize documents read back
from the store.

Collections:
- videos    -> Video / VideoCreate / VideoUpdate
- feedbacks -> Feedback / FeedbackCreate
- tags      -> declared, currently unused

Stored documents and API payloads use camelCase field names
(youtubeUrl, mainTag, createdAt, ...); Python attributes are snake_case.
"""

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from youtube import get_embed_url, get_thumbnail_url, get_youtube_id, is_valid_youtube_url

MainTag = Literal["Tourist", "Resident"]
RibbonColor = Literal["gold", "silver", "bronze"]
SortBy = Literal["newest", "oldest", "highestRated", "lowestRated"]

SUB_TAG_CATALOG: Dict[str, List[str]] = {
    "Tourist": ["Restaurant", "Beach", "Hotel", "Activities", "Shopping"],
    "Resident": ["Supermarket", "Healthcare", "Services", "Community", "Education"],
}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value) -> datetime:
    """Documents read back from MongoDB carry naive UTC datetimes."""
    if not isinstance(value, datetime):
        return _utcnow()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _unique(tags: List[str]) -> List[str]:
    seen: List[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def _check_youtube_url(url: str) -> str:
    url = url.strip()
    if not is_valid_youtube_url(url):
        raise ValueError("not a valid YouTube URL")
    return url


class Location(CamelModel):
    name: str = Field(..., description="Place name")
    address: str = Field("", description="Formatted address")
    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lng: float = Field(..., ge=-180, le=180, description="Longitude")


def _read_location(value) -> Optional[Location]:
    """Stored locations are not trusted; a malformed one reads as no location."""
    if not value:
        return None
    try:
        return Location.model_validate(value)
    except ValidationError:
        return None


# --------------------------------------------------------------------------- #
# Videos
# --------------------------------------------------------------------------- #


class VideoCreate(CamelModel):
    """
    Videos collection schema (writes)
    Collection name: "videos"
    """
    youtube_url: str = Field(..., description="YouTube watch/short/embed URL")
    title: str = Field(..., description="Video title")
    main_tag: MainTag = Field(..., description="Audience category")
    sub_tags: List[str] = Field(default_factory=list, description="Unique sub tags")
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    is_sponsored: bool = Field(False, description="Whether the listing is sponsored")
    ribbon_color: Optional[RibbonColor] = Field(None, description="Sponsor ribbon tier")
    is_pinned: bool = Field(False, description="Force to the top of listings")
    is_public: bool = Field(True, description="Visible to non-admin viewers")
    location: Optional[Location] = None

    @field_validator("ribbon_color", mode="before")
    @classmethod
    def blank_ribbon_is_none(cls, v):
        return v or None

    @field_validator("youtube_url")
    @classmethod
    def check_youtube_url(cls, v):
        return _check_youtube_url(v)

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return _require_text(v)

    @field_validator("sub_tags")
    @classmethod
    def dedupe_sub_tags(cls, v):
        return _unique(v)


NON_NULLABLE_UPDATE_FIELDS = (
    "youtube_url",
    "title",
    "main_tag",
    "sub_tags",
    "rating",
    "is_sponsored",
    "is_pinned",
    "is_public",
)


class VideoUpdate(CamelModel):
    """Partial update; only the fields that were sent are written."""
    youtube_url: Optional[str] = None
    title: Optional[str] = None
    main_tag: Optional[MainTag] = None
    sub_tags: Optional[List[str]] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    is_sponsored: Optional[bool] = None
    ribbon_color: Optional[RibbonColor] = None
    is_pinned: Optional[bool] = None
    is_public: Optional[bool] = None
    location: Optional[Location] = None

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data):
        # ribbonColor and location may be cleared; everything else is required once sent.
        if isinstance(data, dict):
            for name in NON_NULLABLE_UPDATE_FIELDS:
                for key in (name, to_camel(name)):
                    if key in data and data[key] is None:
                        raise ValueError(f"{to_camel(name)} cannot be null")
        return data

    @field_validator("ribbon_color", mode="before")
    @classmethod
    def blank_ribbon_is_none(cls, v):
        return v or None

    @field_validator("youtube_url")
    @classmethod
    def check_youtube_url(cls, v):
        return None if v is None else _check_youtube_url(v)

    @field_validator("title")
    @classmethod
    def check_title(cls, v):
        return None if v is None else _require_text(v)

    @field_validator("sub_tags")
    @classmethod
    def dedupe_sub_tags(cls, v):
        return None if v is None else _unique(v)


class VisibilityUpdate(CamelModel):
    is_public: bool


class Video(CamelModel):
    """Video as read back from the store, with read-time defaults applied."""
    id: str
    youtube_url: str = ""
    title: str = ""
    main_tag: str = ""
    sub_tags: List[str] = Field(default_factory=list)
    rating: int = 0
    is_sponsored: bool = False
    ribbon_color: str = ""
    is_pinned: bool = False
    is_public: bool = True
    location: Optional[Location] = None
    created_at: datetime = Field(default_factory=_utcnow)

    @computed_field(alias="youtubeId")
    @property
    def youtube_id(self) -> str:
        return get_youtube_id(self.youtube_url)

    @computed_field(alias="thumbnailUrl")
    @property
    def thumbnail_url(self) -> str:
        return get_thumbnail_url(self.youtube_id)

    @computed_field(alias="embedUrl")
    @property
    def embed_url(self) -> str:
        return get_embed_url(self.youtube_id)

    @classmethod
    def from_document(cls, doc: dict) -> "Video":
        try:
            rating = int(doc.get("rating") or 0)
        except (TypeError, ValueError):
            rating = 0
        return cls(
            id=str(doc["_id"]) if "_id" in doc else str(doc.get("id", "")),
            youtube_url=doc.get("youtubeUrl") or "",
            title=doc.get("title") or "",
            main_tag=doc.get("mainTag") or "",
            sub_tags=list(doc.get("subTags") or []),
            rating=rating,
            is_sponsored=bool(doc.get("isSponsored", False)),
            ribbon_color=doc.get("ribbonColor") or "",
            is_pinned=bool(doc.get("isPinned", False)),
            is_public=bool(doc["isPublic"]) if doc.get("isPublic") is not None else True,
            location=_read_location(doc.get("location")),
            created_at=_as_utc(doc.get("createdAt")),
        )


# --------------------------------------------------------------------------- #
# Feedback
# --------------------------------------------------------------------------- #


class FeedbackCreate(CamelModel):
    """
    Feedbacks collection schema (writes)
    Collection name: "feedbacks"
    The author's email and name come from the signed-in viewer.
    """
    video_title: str = Field(..., description="Free-text reference to a video")
    comment: str = Field(..., description="Feedback body")

    @field_validator("video_title", "comment")
    @classmethod
    def check_text(cls, v):
        return _require_text(v)


class Feedback(CamelModel):
    id: str
    user_email: str = ""
    user_name: str = ""
    video_title: str = ""
    comment: str = ""
    is_read: bool = False
    is_archived: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_document(cls, doc: dict) -> "Feedback":
        return cls(
            id=str(doc["_id"]) if "_id" in doc else str(doc.get("id", "")),
            user_email=doc.get("userEmail") or "",
            user_name=doc.get("userName") or "",
            video_title=doc.get("videoTitle") or "",
            comment=doc.get("comment") or "",
            is_read=bool(doc.get("isRead") or False),
            is_archived=bool(doc.get("isArchived") or False),
            created_at=_as_utc(doc.get("createdAt")),
        )


class FeedbackList(CamelModel):
    feedbacks: List[Feedback]
    unread_count: int


# --------------------------------------------------------------------------- #
# Listing filters
# --------------------------------------------------------------------------- #


class FilterState(CamelModel):
    main_tag: Optional[MainTag] = None
    sub_tag: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    sort_by: SortBy = "newest"
