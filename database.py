"""
MongoDB access for the Storefront API.

`db` is the process-wide database handle (None when DATABASE_URL is not set).
Services never import it directly; they receive a handle through their
constructor so tests can hand them an isolated database.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

import config

logger = logging.getLogger(__name__)


def connect(url: Optional[str] = None, name: Optional[str] = None) -> Optional[Database]:
    url = url or config.DATABASE_URL
    if not url:
        logger.warning("DATABASE_URL is not set; running without a database")
        return None
    client = MongoClient(url)
    return client[name or config.DATABASE_NAME]


db = connect()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]], database: Optional[Database] = None) -> str:
    """Insert a document stamped with created_at/updated_at and return its id as a string."""
    database = database if database is not None else db
    if database is None:
        raise RuntimeError("Database not configured")
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    now = utcnow()
    doc.setdefault("created_at", now)
    doc["updated_at"] = now
    result = database[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None, limit: Optional[int] = None, database: Optional[Database] = None) -> List[Dict[str, Any]]:
    database = database if database is not None else db
    if database is None:
        raise RuntimeError("Database not configured")
    cursor = database[collection_name].find(filter_dict or {}).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def ensure_indexes(database: Database) -> None:
    database["order"].create_index([("order_number", ASCENDING)], unique=True)
    database["order"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    database["cart"].create_index([("user_id", ASCENDING)], unique=True)
    database["review"].create_index([("product_id", ASCENDING), ("user_id", ASCENDING)], unique=True)
    database["product"].create_index([("slug", ASCENDING)], unique=True)
    database["product"].create_index([("sku", ASCENDING)], unique=True)
    database["product"].create_index([("category", ASCENDING)])
