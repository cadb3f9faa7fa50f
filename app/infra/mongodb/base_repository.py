"""
Base Repository Pattern

Base class for all MongoDB repositories.
Provides common CRUD operations scoped by owner and keyed by a string
domain id (e.g. template_id) rather than the Mongo ObjectId.
"""
import uuid
import logging
from typing import Optional, List, Dict, Any, TypeVar, Generic
from datetime import datetime
from pymongo.collection import Collection

from app.infra.mongodb.connection import get_collection

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=Dict[str, Any])


class BaseRepository(Generic[T]):
    """
    Base repository with common CRUD operations.

    Subclasses set collection_name, id_field and id_prefix.
    """

    collection_name: str = None  # Override in subclass
    id_field: str = "id"
    id_prefix: str = "doc"

    def __init__(self):
        if not self.collection_name:
            raise ValueError(f"collection_name must be set in {self.__class__.__name__}")

    @property
    def collection(self) -> Collection:
        """Get the MongoDB collection."""
        return get_collection(self.collection_name)

    def new_id(self) -> str:
        return f"{self.id_prefix}_{uuid.uuid4().hex[:12]}"

    @staticmethod
    def _clean(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if doc is not None:
            doc.pop("_id", None)
        return doc

    @staticmethod
    def _owner_query(owner_id: str, query: Dict[str, Any] = None) -> Dict[str, Any]:
        scoped = dict(query or {})
        scoped["owner_id"] = owner_id
        return scoped

    def insert_one(self, document: Dict[str, Any]) -> str:
        """
        Insert a single document, assigning its domain id and timestamps.

        Args:
            document: Document to insert

        Returns:
            Domain id of the inserted document
        """
        now = datetime.utcnow()
        document.setdefault(self.id_field, self.new_id())
        document.setdefault("created_at", now)
        document.setdefault("updated_at", now)
        self.collection.insert_one(document)
        document.pop("_id", None)
        return document[self.id_field]

    def find_by_id(self, doc_id: str, owner_id: str = None) -> Optional[Dict[str, Any]]:
        """
        Find document by domain id, optionally restricted to an owner.

        Lookup errors are logged and reported as not found.
        """
        query = {self.id_field: doc_id}
        if owner_id is not None:
            query["owner_id"] = owner_id
        try:
            return self._clean(self.collection.find_one(query))
        except Exception as e:
            logger.error(f"Error finding {self.collection_name} document by id: {e}")
            return None

    def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Find a single document matching query."""
        return self._clean(self.collection.find_one(query))

    def find_many(
        self,
        query: Dict[str, Any] = None,
        skip: int = 0,
        limit: int = 50,
        sort: List[tuple] = None
    ) -> List[Dict[str, Any]]:
        """
        Find multiple documents.

        Args:
            query: MongoDB query dict
            skip: Number of documents to skip
            limit: Maximum documents to return (0 means no limit)
            sort: List of (field, direction) tuples

        Returns:
            List of documents
        """
        cursor = self.collection.find(query or {})

        if sort:
            cursor = cursor.sort(sort)

        cursor = cursor.skip(skip).limit(limit)
        return [self._clean(doc) for doc in cursor]

    def update_one(
        self,
        query: Dict[str, Any],
        update: Dict[str, Any],
        upsert: bool = False
    ) -> bool:
        """
        Update a single document.

        Args:
            query: Query to find document
            update: Update operations, or plain fields to $set
            upsert: Create if not exists

        Returns:
            True if a document matched (or was upserted)
        """
        if not any(key.startswith("$") for key in update):
            update = {"$set": update}

        update.setdefault("$set", {})["updated_at"] = datetime.utcnow()

        result = self.collection.update_one(query, update, upsert=upsert)
        return result.matched_count > 0 or result.upserted_id is not None

    def delete_one(self, query: Dict[str, Any]) -> bool:
        """Delete a single document. Returns True if one was deleted."""
        result = self.collection.delete_one(query)
        return result.deleted_count > 0

    def count(self, query: Dict[str, Any] = None) -> int:
        """Count documents matching query."""
        return self.collection.count_documents(query or {})

    def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Run aggregation pipeline."""
        return list(self.collection.aggregate(pipeline))
