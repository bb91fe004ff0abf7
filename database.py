"""
Database Helpers

Thin pymongo wrappers shared by the API and the trigger worker.
`db` is None when DATABASE_URL is not configured.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient

from config import get_settings
from errors import AppError

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "FEEDBACKS": "feedbacks",
    "VIDEOS": "videos",
    "TAGS": "tags",
}

_settings = get_settings()

client: Optional[MongoClient] = MongoClient(_settings.database_url) if _settings.database_url else None
db = client[_settings.database_name] if client is not None else None


def _collection(collection_name: str):
    if db is None:
        raise AppError("unavailable", "Database not available. Check DATABASE_URL and DATABASE_NAME.")
    return db[collection_name]


def to_object_id(document_id: str) -> ObjectId:
    try:
        return ObjectId(document_id)
    except (InvalidId, TypeError):
        raise AppError("invalid-argument", f"Invalid document id: {document_id!r}")


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document stamped with createdAt and return its id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True)
    else:
        data_dict = dict(data)
    data_dict["createdAt"] = datetime.now(timezone.utc)

    result = _collection(collection_name).insert_one(data_dict)
    logger.debug("Created %s/%s", collection_name, result.inserted_id)
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[Tuple[str, int]] = ("createdAt", -1),
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = _collection(collection_name).find(filter_dict or {})
    if sort:
        cursor = cursor.sort(*sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def get_document(collection_name: str, document_id: str) -> Optional[Dict[str, Any]]:
    return _collection(collection_name).find_one({"_id": to_object_id(document_id)})


def update_document(collection_name: str, document_id: str, fields: Dict[str, Any]) -> bool:
    """Set the given fields; returns False when no document matched."""
    result = _collection(collection_name).update_one(
        {"_id": to_object_id(document_id)},
        {"$set": fields},
    )
    return result.matched_count > 0

