"""Document store adapter over a Motor database.

Wraps the handful of primitives the services need (create, get, update,
delete, equality query and live subscription) and keeps MongoDB specifics
such as ``ObjectId`` conversion and cursor handling out of the business
logic. It owns no business rules.
"""
import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument

logger = logging.getLogger(__name__)


def _to_object_id(document_id: str) -> ObjectId:
    try:
        return ObjectId(document_id)
    except (InvalidId, TypeError):
        raise ValueError("Invalid document ID format")


def _normalize(value: Any) -> Any:
    """Convert a raw BSON value into what the models expect.

    ObjectIds become strings and naive datetimes are treated as UTC.
    """
    if isinstance(value, dict):
        return {key: _normalize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_normalize(item) for item in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DocumentStore:
    """Thin async adapter over the goal, user and reflection collections."""

    def __init__(self, db):
        """Initialize store with database connection."""
        self.db = db

    async def create(self, collection: str, document: dict) -> str:
        """Insert a document and return its generated ID."""
        result = await self.db[collection].insert_one(dict(document))
        return str(result.inserted_id)

    async def get(self, collection: str, document_id: str) -> Optional[dict]:
        """Fetch a document by ID, or None if it does not exist."""
        doc = await self.db[collection].find_one({"_id": _to_object_id(document_id)})
        return _normalize(doc) if doc else None

    async def find_one(self, collection: str, filters: dict) -> Optional[dict]:
        """Fetch the first document matching equality filters."""
        doc = await self.db[collection].find_one(filters)
        return _normalize(doc) if doc else None

    async def update(
        self,
        collection: str,
        document_id: str,
        fields: dict,
    ) -> Optional[dict]:
        """
        Set the given top-level fields on a document.

        Only the named fields are written; fields written concurrently by
        other requests are left alone.

        Returns:
            The updated document, or None if it does not exist
        """
        doc = await self.db[collection].find_one_and_update(
            {"_id": _to_object_id(document_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        return _normalize(doc) if doc else None

    async def modify(
        self,
        collection: str,
        document_id: str,
        operations: dict,
        match: Optional[dict] = None,
    ) -> Optional[dict]:
        """
        Apply update operators (``$set``, ``$push``) to a document in one step.

        ``match`` adds conditions to the ID lookup, typically an
        ``$elemMatch`` that selects the array element a positional ``$``
        path writes to. Entries appended by other requests are never
        overwritten.

        Returns:
            The updated document, or None if nothing matched
        """
        filters = {"_id": _to_object_id(document_id), **(match or {})}
        result = await self.db[collection].update_one(filters, operations)
        if result.matched_count == 0:
            return None
        return await self.get(collection, document_id)

    async def delete(self, collection: str, document_id: str) -> bool:
        """Delete a document. Returns True if something was removed."""
        result = await self.db[collection].delete_one({"_id": _to_object_id(document_id)})
        return result.deleted_count > 0

    async def query(
        self,
        collection: str,
        filters: dict,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[dict]:
        """Return every document matching equality filters."""
        cursor = self.db[collection].find(filters)
        if order_by:
            cursor = cursor.sort(order_by, DESCENDING if descending else ASCENDING)
        docs = await cursor.to_list(length=None)
        return [_normalize(doc) for doc in docs]

    async def distinct(self, collection: str, field: str, filters: dict) -> list:
        """Return the distinct values of a field among matching documents."""
        return await self.db[collection].distinct(field, filters)

    async def subscribe(
        self,
        collection: str,
        filters: dict,
        order_by: Optional[str] = None,
        descending: bool = False,
        pipeline: Optional[list[dict]] = None,
    ) -> AsyncIterator[list[dict]]:
        """
        Yield the query result now and again after every matching change.

        Requires a MongoDB deployment with change streams (replica set or
        Atlas). ``pipeline`` narrows which change events trigger a re-query.
        Every snapshot is a full re-query, so deletes and updates to
        documents that stop matching the filters are reflected too.
        """
        async with self.db[collection].watch(
            pipeline, full_document="updateLookup"
        ) as stream:
            yield await self.query(collection, filters, order_by, descending)
            async for change in stream:
                logger.debug(
                    "Change on %s: %s", collection, change.get("operationType")
                )
                yield await self.query(collection, filters, order_by, descending)
