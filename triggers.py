"""
Trigger worker for the "videos" collection.

Consumes the MongoDB change stream, runs the validators for every created or
updated video and applies the resulting delete/revert. Handlers run on a
bounded thread pool; failed writes are logged and not retried.

Update reverts need pre-images, which must be enabled on the collection:
    db.runCommand({collMod: "videos", changeStreamPreAndPostImages: {enabled: true}})
"""

import logging
import signal
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from types import FrameType
from typing import Any, Dict, Literal, Optional

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

import database
from config import get_settings
from errors import AppError
from logging_utils import configure_logging, log_event
from validators import Action, Delete, Keep, RevertTo, on_video_created, on_video_updated

logger = logging.getLogger(__name__)

EventKind = Literal["created", "updated"]


@dataclass(frozen=True)
class VideoEvent:
    kind: EventKind
    document_key: Any
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None

    @property
    def video_id(self) -> str:
        return str(self.document_key)


def event_from_change(change: Dict[str, Any]) -> Optional[VideoEvent]:
    """Translate a change stream document; returns None for ignored operations."""
    operation = change.get("operationType")
    document_key = (change.get("documentKey") or {}).get("_id")
    if document_key is None:
        return None
    if operation == "insert":
        return VideoEvent("created", document_key, after=change.get("fullDocument"))
    if operation in ("update", "replace"):
        return VideoEvent(
            "updated",
            document_key,
            before=change.get("fullDocumentBeforeChange"),
            after=change.get("fullDocument"),
        )
    return None


def apply_action(collection: Collection, event: VideoEvent, action: Action) -> None:
    try:
        if isinstance(action, Delete):
            collection.delete_one({"_id": event.document_key})
            log_event(logger, logging.INFO, "validator.deleted", video_id=event.video_id)
        elif isinstance(action, RevertTo):
            collection.update_one({"_id": event.document_key}, {"$set": action.state})
            log_event(logger, logging.INFO, "validator.reverted", video_id=event.video_id)
    except Exception as exc:
        log_event(
            logger,
            logging.ERROR,
            "validator.write_failed",
            video_id=event.video_id,
            action=type(action).__name__,
            error=str(exc),
        )


def decide(event: VideoEvent) -> Action:
    if event.kind == "created":
        return on_video_created(event.video_id, event.after)
    if event.after is None:
        # Document is gone already; nothing left to validate.
        return Keep()
    if event.before is None:
        log_event(logger, logging.WARNING, "validator.update.no_pre_image", video_id=event.video_id)
        return Keep()
    return on_video_updated(event.video_id, event.before, event.after)


def dispatch(collection: Collection, event: VideoEvent) -> Action:
    action = decide(event)
    apply_action(collection, event, action)
    return action


class TriggerWorker:
    """Watches a collection and fans change events out to a bounded pool."""

    def __init__(self, collection: Collection, max_instances: int = 10, poll_ms: int = 1000) -> None:
        self.collection = collection
        self.max_instances = max_instances
        self.poll_ms = poll_ms
        self._stop_event = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        # Last processed position; a later run() resumes from here.
        self.resume_token: Optional[Dict[str, Any]] = None

    def submit(self, change: Dict[str, Any]) -> None:
        event = event_from_change(change)
        if event is None:
            return
        if self._executor is None:
            raise RuntimeError("Trigger worker is not running")
        self._executor.submit(dispatch, self.collection, event)

    def run(self) -> None:
        self._stop_event.clear()
        self._executor = ThreadPoolExecutor(max_workers=self.max_instances, thread_name_prefix="video-validator")
        log_event(logger, logging.INFO, "triggers.started", collection=self.collection.name, max_instances=self.max_instances)
        try:
            with self.collection.watch(
                full_document="updateLookup",
                full_document_before_change="whenAvailable",
                max_await_time_ms=self.poll_ms,
                resume_after=self.resume_token,
            ) as stream:
                while not self._stop_event.is_set() and stream.alive:
                    change = stream.try_next()
                    if change is not None:
                        self.submit(change)
                    if stream.resume_token is not None:
                        self.resume_token = stream.resume_token
        except PyMongoError as exc:
            log_event(
                logger,
                logging.ERROR,
                "triggers.stream_failed",
                error=str(exc),
                resume_token=self.resume_token,
            )
            raise
        finally:
            self._executor.shutdown(wait=True)
            self._executor = None
            log_event(logger, logging.INFO, "triggers.stopped")

    def stop(self) -> None:
        self._stop_event.set()

    def install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        signal.signal(signal.SIGTERM, self._handle_signal)
        signal.signal(signal.SIGINT, self._handle_signal)

    def _handle_signal(self, signum: int, frame: Optional[FrameType]) -> None:
        log_event(logger, logging.WARNING, "triggers.signal_received", signal=signum)
        self.stop()


def run() -> None:
    settings = get_settings()
    configure_logging(settings)
    if database.db is None:
        raise AppError("unavailable", "DATABASE_URL is not configured")

    worker = TriggerWorker(
        database.db[database.COLLECTIONS["VIDEOS"]],
        max_instances=settings.validator_max_instances,
    )
    worker.install_signal_handlers()
    worker.run()


if __name__ == "__main__":
    run()
