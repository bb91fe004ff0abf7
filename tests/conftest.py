from copy import deepcopy
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

import database
from config import get_settings
from schemas import Feedback, Video

ADMIN_TOKEN = "test-admin-token"
ADMIN_HEADERS = {"X-Admin-Token": ADMIN_TOKEN}
MEMBER_HEADERS = {"X-User-Email": "ana@example.com", "X-User-Name": "Ana"}

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _matches(doc, filter_dict):
    for key, cond in filter_dict.items():
        value = doc.get(key)
        if isinstance(cond, dict) and "$ne" in cond:
            if value == cond["$ne"]:
                return False
        elif value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    def sort(self, key, direction=1):
        self.docs.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return self

    def limit(self, n):
        self.docs = self.docs[:n]
        return self

    def __iter__(self):
        return iter(self.docs)


class FakeCollection:
    """In-memory stand-in for the subset of pymongo.Collection we use."""

    def __init__(self, name):
        self.name = name
        self.docs = {}

    def insert_one(self, doc):
        doc = deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        self.docs[doc["_id"]] = doc
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, filter_dict=None):
        return FakeCursor([deepcopy(d) for d in self.docs.values() if _matches(d, filter_dict or {})])

    def find_one(self, filter_dict):
        for doc in self.docs.values():
            if _matches(doc, filter_dict):
                return deepcopy(doc)
        return None

    def update_one(self, filter_dict, update):
        for doc in self.docs.values():
            if _matches(doc, filter_dict):
                doc.update(deepcopy(update["$set"]))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    def delete_one(self, filter_dict):
        for key, doc in list(self.docs.items()):
            if _matches(doc, filter_dict):
                del self.docs[key]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    name = "directory_test"

    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection(name))

    def list_collection_names(self):
        return list(self.collections)


@pytest.fixture
def fake_db(monkeypatch):
    fake = FakeDatabase()
    monkeypatch.setattr(database, "db", fake)
    return fake


@pytest.fixture
def client(fake_db, monkeypatch, tmp_path):
    from main import app

    monkeypatch.setenv("ADMIN_TOKEN", ADMIN_TOKEN)
    monkeypatch.setenv("PREFERENCES_PATH", str(tmp_path / "preferences.json"))
    get_settings.cache_clear()
    with TestClient(app) as test_client:
        yield test_client
    get_settings.cache_clear()


@pytest.fixture
def make_video():
    counter = iter(range(1, 10_000))

    def _make(**overrides):
        n = next(counter)
        fields = {
            "id": f"v{n}",
            "youtube_url": f"https://youtu.be/clip{n}",
            "title": f"Video {n}",
            "main_tag": "Tourist",
            "sub_tags": [],
            "rating": 3,
            "created_at": BASE_TIME + timedelta(days=n),
        }
        fields.update(overrides)
        return Video(**fields)

    return _make


@pytest.fixture
def make_feedback():
    counter = iter(range(1, 10_000))

    def _make(**overrides):
        n = next(counter)
        fields = {
            "id": f"f{n}",
            "user_email": "ana@example.com",
            "user_name": "Ana",
            "video_title": f"Video {n}",
            "comment": "Great place",
            "created_at": BASE_TIME - timedelta(days=n),
        }
        fields.update(overrides)
        return Feedback(**fields)

    return _make
