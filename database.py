"""
MongoDB access for the marketplace.

`db` is None when DATABASE_URL / DATABASE_NAME are not set; routes get the
handle through the `get_db` dependency so tests can swap in another database.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import MongoClient

from config import DATABASE_URL, DATABASE_NAME

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None
db = None

if DATABASE_URL and DATABASE_NAME:
    _client = MongoClient(DATABASE_URL)
    db = _client[DATABASE_NAME]
else:
    logger.warning("DATABASE_URL or DATABASE_NAME not set, database disabled")


def get_db():
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


def _encode(value: Any) -> Any:
    # Mongo has no native Decimal, prices are stored as floats
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


def to_document(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    return _encode(dict(data))


def create_document(database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    doc = to_document(data)
    doc.pop("id", None)
    now = datetime.now(timezone.utc)
    doc.setdefault("created_at", now)
    doc["updated_at"] = now
    res = database[collection_name].insert_one(doc)
    return str(res.inserted_id)


def get_documents(database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None, limit: Optional[int] = None) -> List[dict]:
    cursor = database[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def serialize(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    doc = dict(doc)
    if doc.get("_id") is not None:
        doc["id"] = str(doc.pop("_id"))
    return doc


def object_id(id_str: str) -> Optional[ObjectId]:
    if not ObjectId.is_valid(id_str):
        return None
    return ObjectId(id_str)
