"""
Conversation Repository - Generated replies and the messages that prompted them.
"""
import logging
from typing import Optional, List, Dict, Any
from datetime import datetime
from pymongo import DESCENDING

from app.infra.mongodb.base_repository import BaseRepository
from app.infra.mongodb.repositories.template_repo import text_query

logger = logging.getLogger(__name__)


class ConversationRepository(BaseRepository[Dict[str, Any]]):

    collection_name = "conversations"
    id_field = "conversation_id"
    id_prefix = "conv"

    SEARCH_FIELDS = ["client_message", "bot_response"]

    def create(
        self,
        owner_id: str,
        client_message: str,
        bot_response: str,
        message_type: str,
        screenshot_url: Optional[str] = None
    ) -> Dict[str, Any]:
        doc = {
            "owner_id": owner_id,
            "client_message": client_message,
            "bot_response": bot_response,
            "message_type": message_type,
            "screenshot_url": screenshot_url,
        }
        self.insert_one(doc)
        return doc

    def recent(self, owner_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Most recent conversations, newest first."""
        return self.find_many(
            {"owner_id": owner_id},
            limit=limit,
            sort=[("created_at", DESCENDING)]
        )

    def search(
        self,
        owner_id: str,
        query: Optional[str] = None,
        message_type: Optional[str] = None,
        since: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[Dict[str, Any]]:
        filters: Dict[str, Any] = {"owner_id": owner_id}
        if message_type:
            filters["message_type"] = message_type
        if since:
            filters["created_at"] = {"$gte": since}
        filters.update(text_query(query, self.SEARCH_FIELDS))
        return self.find_many(filters, skip=skip, limit=limit, sort=[("created_at", DESCENDING)])

    def list_all_by_owner(self, owner_id: str) -> List[Dict[str, Any]]:
        return self.find_many({"owner_id": owner_id}, limit=0, sort=[("created_at", DESCENDING)])

    def count_by_owner(self, owner_id: str) -> int:
        return self.count({"owner_id": owner_id})

    def count_by_message_type(self, owner_id: str) -> Dict[str, int]:
        """{message_type: count}, most frequent first."""
        pipeline = [
            {"$match": {"owner_id": owner_id}},
            {"$group": {"_id": "$message_type", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}}
        ]
        return {r["_id"] or "unknown": r["count"] for r in self.aggregate(pipeline)}

    def count_by_day(self, owner_id: str, since: datetime) -> List[Dict[str, Any]]:
        """Daily conversation counts since a date, oldest day first."""
        pipeline = [
            {"$match": {"owner_id": owner_id, "created_at": {"$gte": since}}},
            {"$group": {
                "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$created_at"}},
                "count": {"$sum": 1}
            }},
            {"$sort": {"_id": 1}}
        ]
        return [{"date": r["_id"], "count": r["count"]} for r in self.aggregate(pipeline)]


_conversation_repo: Optional[ConversationRepository] = None


def get_conversation_repo() -> ConversationRepository:
    """Get singleton ConversationRepository."""
    global _conversation_repo
    if _conversation_repo is None:
        _conversation_repo = ConversationRepository()
    return _conversation_repo
