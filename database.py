"""
MongoDB access for the shop backend.

``db`` is None when DATABASE_URL / DATABASE_NAME are not set; helpers raise
DatabaseUnavailableError in that case.
"""
import logging
import os
from datetime import datetime, timezone
from typing import List, Optional, Union

from bson.objectid import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient

from errors import DatabaseUnavailableError

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

client = MongoClient(DATABASE_URL) if DATABASE_URL else None
db = client[DATABASE_NAME] if client is not None and DATABASE_NAME else None


def _require_db():
    if db is None:
        raise DatabaseUnavailableError("DATABASE_URL and DATABASE_NAME must be set")
    return db


def serialize_doc(doc):
    """Make a Mongo document JSON friendly: ObjectId -> str, _id -> id, datetimes -> ISO."""
    if isinstance(doc, list):
        return [serialize_doc(v) for v in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, datetime):
        return doc.isoformat()
    if not isinstance(doc, dict):
        return doc
    doc = {k: serialize_doc(v) for k, v in doc.items()}
    if "_id" in doc:
        doc["id"] = doc.pop("_id")
    return doc


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    payload = data.model_dump(exclude_none=True) if isinstance(data, BaseModel) else dict(data)
    for key in ("user_id", "product_id", "seller_id", "order_id"):
        if isinstance(payload.get(key), str) and ObjectId.is_valid(payload[key]):
            payload[key] = ObjectId(payload[key])
    now = datetime.now(timezone.utc)
    payload["created_at"] = now
    payload["updated_at"] = now
    result = _require_db()[collection_name].insert_one(payload)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None) -> List[dict]:
    return [serialize_doc(doc) for doc in _require_db()[collection_name].find(filter_dict or {})]


def count_documents(collection_name: str, filter_dict: Optional[dict] = None) -> int:
    return _require_db()[collection_name].count_documents(filter_dict or {})


def find_cart_entry(user_id: str, product_id: str) -> Optional[dict]:
    doc = _require_db()["cart"].find_one({
        "$and": [
            {"product_id": {"$eq": ObjectId(product_id)}},
            {"user_id": {"$eq": ObjectId(user_id)}},
        ]
    })
    return serialize_doc(doc) if doc else None


def get_cart_line_items(user_id: str) -> List[dict]:
    """Cart rows for a user, each with ``product`` set to its joined product or None."""
    pipeline = [
        {"$match": {"user_id": {"$eq": ObjectId(user_id)}}},
        {
            "$lookup": {
                "from": "product",
                "localField": "product_id",
                "foreignField": "_id",
                "as": "products",
            }
        },
    ]
    items = []
    for doc in _require_db()["cart"].aggregate(pipeline):
        doc = serialize_doc(doc)
        joined = doc.pop("products", [])
        doc["product"] = joined[0] if joined else None
        items.append(doc)
    logger.debug("Loaded %d cart line items for user %s", len(items), user_id)
    return items


def delete_documents(collection_name: str, ids: List[str]) -> int:
    if not ids:
        return 0
    result = _require_db()[collection_name].delete_many({"_id": {"$in": [ObjectId(i) for i in ids]}})
    return result.deleted_count
