import logging
import os
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from bson.errors import InvalidId
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

import database
from auth import Viewer, get_viewer, require_admin, require_member
from config import get_settings
from database import COLLECTIONS, create_document, get_document, get_documents, update_document
from errors import AppError, handle_store_error
from feedback_view import build_feedback_view
from logging_utils import configure_logging
from preferences import Preferences, load_preferences, save_preferences, toggle_dark_mode
from ranking import available_sub_tags, rank_videos
from schemas import (
    SUB_TAG_CATALOG,
    Feedback,
    FeedbackCreate,
    FeedbackList,
    FilterState,
    MainTag,
    SortBy,
    Video,
    VideoCreate,
    VideoUpdate,
    VisibilityUpdate,
)

logger = logging.getLogger(__name__)

VIDEOS = COLLECTIONS["VIDEOS"]
FEEDBACKS = COLLECTIONS["FEEDBACKS"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    app.state.preferences = load_preferences(settings.preferences_path)
    logger.info("Directory API starting (environment=%s)", settings.environment)
    yield


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.exception_handler(PyMongoError)
@app.exception_handler(InvalidId)
async def store_error_handler(request: Request, exc: Exception):
    error = handle_store_error(exc)
    return JSONResponse(status_code=error.status_code, content={"error": error.to_dict()})


@app.get("/")
def read_root():
    return {"message": "Video directory backend running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        db = database.db
        if db is not None:
            response["database"] = "✅ Available"
            response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
            response["database_name"] = db.name if hasattr(db, 'name') else "❌ Unknown"
            response["connection_status"] = "Connected"
            try:
                collections = db.list_collection_names()
                response["collections"] = collections[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
        else:
            response["database"] = "⚠️  Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:50]}"
    return response


# --------------------------------------------------------------------------- #
# Videos
# --------------------------------------------------------------------------- #


def _load_videos(viewer: Viewer) -> List[Video]:
    filter_dict = {} if viewer.is_admin else {"isPublic": {"$ne": False}}
    return [Video.from_document(d) for d in get_documents(VIDEOS, filter_dict=filter_dict)]


def _read_video(video_id: str) -> Video:
    doc = get_document(VIDEOS, video_id)
    if not doc:
        raise AppError("not-found", f"Video {video_id} not found")
    return Video.from_document(doc)


@app.get("/api/videos", response_model=List[Video])
def list_videos(
    q: Optional[str] = None,
    main_tag: Optional[MainTag] = Query(None, alias="mainTag"),
    sub_tag: Optional[str] = Query(None, alias="subTag"),
    rating: Optional[int] = Query(None, ge=1, le=5),
    sort_by: SortBy = Query("newest", alias="sortBy"),
    viewer: Viewer = Depends(get_viewer),
):
    """List videos for the viewer: search, facet filters, then ranking."""
    filters = FilterState(main_tag=main_tag, sub_tag=sub_tag, rating=rating, sort_by=sort_by)
    return rank_videos(_load_videos(viewer), filters, q or "", is_admin=viewer.is_admin)


@app.get("/api/videos/sub-tags", response_model=List[str])
def list_sub_tags(
    main_tag: Optional[MainTag] = Query(None, alias="mainTag"),
    viewer: Viewer = Depends(get_viewer),
):
    return available_sub_tags(_load_videos(viewer), main_tag)


@app.get("/api/tags", response_model=Dict[str, List[str]])
def list_tag_catalog():
    return SUB_TAG_CATALOG


@app.get("/api/videos/{video_id}", response_model=Video)
def get_video(video_id: str, viewer: Viewer = Depends(get_viewer)):
    video = _read_video(video_id)
    if not video.is_public and not viewer.is_admin:
        raise AppError("not-found", f"Video {video_id} not found")
    return video


@app.post("/api/videos", response_model=Video, status_code=201)
def create_video(payload: VideoCreate, viewer: Viewer = Depends(require_admin)):
    video_id = create_document(VIDEOS, payload)
    logger.info("Video %s created by admin", video_id)
    return _read_video(video_id)


@app.patch("/api/videos/{video_id}", response_model=Video)
def update_video(video_id: str, payload: VideoUpdate, viewer: Viewer = Depends(require_admin)):
    fields = payload.model_dump(by_alias=True, exclude_unset=True)
    if fields and not update_document(VIDEOS, video_id, fields):
        raise AppError("not-found", f"Video {video_id} not found")
    return _read_video(video_id)


@app.patch("/api/videos/{video_id}/visibility", response_model=Video)
def set_video_visibility(video_id: str, payload: VisibilityUpdate, viewer: Viewer = Depends(require_admin)):
    if not update_document(VIDEOS, video_id, {"isPublic": payload.is_public}):
        raise AppError("not-found", f"Video {video_id} not found")
    return _read_video(video_id)


# --------------------------------------------------------------------------- #
# Feedback
# --------------------------------------------------------------------------- #


@app.post("/api/feedbacks", response_model=Feedback, status_code=201)
def submit_feedback(payload: FeedbackCreate, viewer: Viewer = Depends(require_member)):
    doc = payload.model_dump(by_alias=True)
    doc.update({
        "userEmail": viewer.email,
        "userName": viewer.name or "",
        "isRead": False,
        "isArchived": False,
    })
    feedback_id = create_document(FEEDBACKS, doc)
    return Feedback.from_document(get_document(FEEDBACKS, feedback_id))


@app.get("/api/feedbacks", response_model=FeedbackList)
def list_feedbacks(archived: bool = False, viewer: Viewer = Depends(require_admin)):
    """Inbox (archived=false) or archived feedback, plus the inbox unread count."""
    feedbacks = [Feedback.from_document(d) for d in get_documents(FEEDBACKS)]
    view = build_feedback_view(feedbacks, include_archived=archived)
    return FeedbackList(feedbacks=view.feedbacks, unread_count=view.unread_count)


def _set_feedback_flag(feedback_id: str, fields: dict) -> None:
    if not update_document(FEEDBACKS, feedback_id, fields):
        raise AppError("not-found", f"Feedback {feedback_id} not found")


@app.post("/api/feedbacks/{feedback_id}/read", status_code=204)
def mark_feedback_read(feedback_id: str, viewer: Viewer = Depends(require_admin)):
    _set_feedback_flag(feedback_id, {"isRead": True})


@app.post("/api/feedbacks/{feedback_id}/archive", status_code=204)
def archive_feedback(feedback_id: str, viewer: Viewer = Depends(require_admin)):
    _set_feedback_flag(feedback_id, {"isArchived": True})


@app.post("/api/feedbacks/{feedback_id}/unarchive", status_code=204)
def unarchive_feedback(feedback_id: str, viewer: Viewer = Depends(require_admin)):
    _set_feedback_flag(feedback_id, {"isArchived": False})


# --------------------------------------------------------------------------- #
# Preferences
# --------------------------------------------------------------------------- #


@app.get("/api/preferences", response_model=Preferences)
def get_preferences(request: Request):
    return request.app.state.preferences


@app.put("/api/preferences", response_model=Preferences)
def put_preferences(prefs: Preferences, request: Request, viewer: Viewer = Depends(require_admin)):
    save_preferences(prefs, get_settings().preferences_path)
    request.app.state.preferences = prefs
    return prefs


@app.post("/api/preferences/dark-mode", response_model=Preferences)
def toggle_preferences_dark_mode(request: Request, viewer: Viewer = Depends(require_admin)):
    prefs = toggle_dark_mode(request.app.state.preferences)
    save_preferences(prefs, get_settings().preferences_path)
    request.app.state.preferences = prefs
    return prefs


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
