"""
Refined Response Repository - Human-edited replies kept as style exemplars.

Records are immutable after creation; deletion is explicit only.
"""
import logging
from typing import Optional, List, Dict, Any
from pymongo import DESCENDING

from app.infra.mongodb.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class RefinedResponseRepository(BaseRepository[Dict[str, Any]]):

    collection_name = "refined_responses"
    id_field = "response_id"
    id_prefix = "ref"

    def create(
        self,
        owner_id: str,
        original_client_message: str,
        original_response: str,
        refined_response: str,
        message_type: Optional[str] = None,
        similarity_keywords: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        doc = {
            "owner_id": owner_id,
            "original_client_message": original_client_message,
            "original_response": original_response,
            "refined_response": refined_response,
            "message_type": message_type,
            "similarity_keywords": similarity_keywords or [],
        }
        self.insert_one(doc)
        logger.info(f"Saved refined response {doc['response_id']} for {owner_id}")
        return doc

    def list_by_owner(self, owner_id: str, skip: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
        """Newest first."""
        return self.find_many(
            {"owner_id": owner_id},
            skip=skip,
            limit=limit,
            sort=[("created_at", DESCENDING)]
        )

    def list_all_by_owner(self, owner_id: str) -> List[Dict[str, Any]]:
        return self.find_many({"owner_id": owner_id}, limit=0, sort=[("created_at", DESCENDING)])

    def delete(self, owner_id: str, response_id: str) -> bool:
        return self.delete_one({"response_id": response_id, "owner_id": owner_id})

    def count_by_owner(self, owner_id: str) -> int:
        return self.count({"owner_id": owner_id})


_refined_response_repo: Optional[RefinedResponseRepository] = None


def get_refined_response_repo() -> RefinedResponseRepository:
    """Get singleton RefinedResponseRepository."""
    global _refined_response_repo
    if _refined_response_repo is None:
        _refined_response_repo = RefinedResponseRepository()
    return _refined_response_repo
