"""
MongoDB access helpers

The app opens one Database at startup and hands it to routes through a
FastAPI dependency, so tests can swap in an in-memory client.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar, Union

from bson import ObjectId
from fastapi import Request
from pydantic import BaseModel
from pymongo import MongoClient

from config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Database:
    def __init__(self, client, name: str, use_transactions: bool = False):
        self.client = client
        self.name = name
        self.use_transactions = use_transactions
        self._db = client[name]

    def __getitem__(self, collection: str):
        return self._db[collection]

    def list_collection_names(self) -> List[str]:
        return self._db.list_collection_names()

    def run_in_transaction(self, callback: Callable[[Any], T]) -> T:
        """Run ``callback(session)`` so its writes commit together.

        With transactions disabled the callback gets ``None`` and each
        write stands alone; only use that against a standalone server.
        """
        if not self.use_transactions:
            return callback(None)
        with self.client.start_session() as session:
            return session.with_transaction(callback)

    def close(self):
        self.client.close()


def connect(settings: Settings) -> Database:
    client = MongoClient(settings.database_url, timeoutMS=settings.database_timeout_ms)
    logger.info("Connecting to MongoDB database %s (transactions=%s)",
                settings.database_name, settings.use_transactions)
    return Database(client, settings.database_name, use_transactions=settings.use_transactions)


def get_db(request: Request) -> Database:
    return request.app.state.db


def parse_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def create_document(db: Database, collection: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    doc.setdefault("createdAt", datetime.now(timezone.utc))
    result = db[collection].insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    db: Database,
    collection: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[Tuple[str, int]]] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return [serialize_doc(d) for d in cursor]


def serialize_doc(doc: Optional[Dict[str, Any]]):
    if not doc:
        return doc
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    for k, v in list(doc.items()):
        if isinstance(v, datetime):
            doc[k] = v.isoformat()
        elif isinstance(v, ObjectId):
            doc[k] = str(v)
    return doc
