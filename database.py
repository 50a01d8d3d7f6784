"""
MongoDB access layer

Thin CRUD helpers over per-entity collections. Nothing here validates
payloads; callers hand in already validated data. Driver errors
(``PyMongoError``) are left to propagate to the HTTP boundary.
"""
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple, Union

import structlog
from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument
from pymongo.database import Database

from errors import NotFoundError
from schemas import to_document

logger = structlog.get_logger(__name__)


def connect(settings) -> Database:
    client = MongoClient(settings.database_url)
    return client[settings.database_name]


def ensure_indexes(db: Database):
    db["user"].create_index("username", unique=True)


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return doc
    doc = dict(doc)
    if doc.get("_id"):
        doc["id"] = str(doc.pop("_id"))
    # convert datetimes to isoformat
    for k, v in list(doc.items()):
        if isinstance(v, datetime):
            doc[k] = v.isoformat()
    return doc


def _lookup_id(collection_name: str, doc_id: str) -> ObjectId:
    # a malformed id cannot match any stored document
    if not ObjectId.is_valid(doc_id):
        raise NotFoundError(collection_name)
    return ObjectId(doc_id)


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> dict:
    """Insert a document, stamping it with creation and update times.

    Returns the stored document as served to clients (``id`` instead of ``_id``).
    """
    if isinstance(data, BaseModel):
        data_dict = to_document(data)
    else:
        data_dict = dict(data)
    now = datetime.now(timezone.utc)
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = db[collection_name].insert_one(data_dict)
    data_dict["_id"] = result.inserted_id
    logger.info("document_created", collection=collection_name, id=str(result.inserted_id))
    return serialize_doc(data_dict)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[dict] = None,
    sort: Optional[Sequence[Tuple[str, int]]] = None,
    limit: Optional[int] = None,
) -> List[dict]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(list(sort))
    if limit:
        cursor = cursor.limit(limit)
    return [serialize_doc(doc) for doc in cursor]


def get_document(db: Database, collection_name: str, doc_id: str) -> dict:
    doc = db[collection_name].find_one({"_id": _lookup_id(collection_name, doc_id)})
    if not doc:
        raise NotFoundError(collection_name)
    return serialize_doc(doc)


def update_document(db: Database, collection_name: str, doc_id: str, changes: dict) -> dict:
    """Merge ``changes`` into the stored document; untouched fields keep their values."""
    data = dict(changes)
    data["updated_at"] = datetime.now(timezone.utc)
    doc = db[collection_name].find_one_and_update(
        {"_id": _lookup_id(collection_name, doc_id)},
        {"$set": data},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise NotFoundError(collection_name)
    return serialize_doc(doc)


def delete_document(db: Database, collection_name: str, doc_id: str) -> None:
    res = db[collection_name].delete_one({"_id": _lookup_id(collection_name, doc_id)})
    if res.deleted_count == 0:
        raise NotFoundError(collection_name)
    logger.info("document_deleted", collection=collection_name, id=doc_id)
