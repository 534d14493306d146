"""
Storage layer for the 52 Projects API

State is kept as named slots in a single MongoDB collection ("storage"). Each
slot document holds the whole JSON value for its key and is replaced wholesale
on every write; there is no partial update and no version check, so the last
writer to a slot wins.
"""
import logging
import os
import re
from datetime import datetime, timezone
from typing import Any, List

from pymongo import MongoClient

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "fiftytwo_projects")

SLOT_COLLECTION = "storage"

# Slot names
SESSION_SLOT = "user"
PROJECTS_SLOT_PREFIX = "projects_"
POSTS_SLOT = "posts"
CONNECTIONS_SLOT = "connections"
CONNECTION_REQUESTS_SLOT = "connectionRequests"

_client = None
db = None

if DATABASE_URL:
    try:
        _client = MongoClient(DATABASE_URL)
        db = _client[DATABASE_NAME]
    except Exception as e:
        logger.error("Could not connect to database: %s", str(e)[:80])
        db = None


def _slots():
    if db is None:
        raise RuntimeError("Database not available")
    return db[SLOT_COLLECTION]


def get_slot(key: str, default: Any = None) -> Any:
    doc = _slots().find_one({"_id": key})
    if not doc:
        return default
    return doc.get("value", default)


def set_slot(key: str, value: Any) -> None:
    _slots().replace_one(
        {"_id": key},
        {"_id": key, "value": value, "updated_at": datetime.now(timezone.utc)},
        upsert=True,
    )


def remove_slot(key: str) -> None:
    _slots().delete_one({"_id": key})


def list_slot_keys(prefix: str = "") -> List[str]:
    query = {"_id": {"$regex": f"^{re.escape(prefix)}"}} if prefix else {}
    return [doc["_id"] for doc in _slots().find(query, {"_id": 1})]


def projects_slot(identity_id: str) -> str:
    return f"{PROJECTS_SLOT_PREFIX}{identity_id}"
