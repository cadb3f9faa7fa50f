"""
Refined Response Service

Stores human-edited replies and retrieves the ones most similar to a new
client message so they can steer the tone of generated replies.
"""
import logging
from typing import Optional, List, Dict, Any

from app.config import settings
from app.utils.similarity import SimilarityResult, rank_similar_responses
from app.utils.text_analysis import extract_keywords

logger = logging.getLogger(__name__)


class RefinedResponseService:

    def __init__(self, refined_repo=None):
        if refined_repo is None:
            from app.infra.mongodb.repositories import get_refined_response_repo
            refined_repo = get_refined_response_repo()
        self.refined_repo = refined_repo

    def save_refined_response(
        self,
        owner_id: str,
        original_client_message: str,
        original_response: str,
        refined_response: str,
        message_type: Optional[str] = None
    ) -> Dict[str, Any]:
        """Persist a refined response; similarity keywords come from the client message."""
        return self.refined_repo.create(
            owner_id,
            original_client_message=original_client_message,
            original_response=original_response,
            refined_response=refined_response,
            message_type=message_type,
            similarity_keywords=extract_keywords(original_client_message),
        )

    def list_refined(self, owner_id: str, skip: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
        return self.refined_repo.list_by_owner(owner_id, skip=skip, limit=limit)

    def delete_refined(self, owner_id: str, response_id: str) -> bool:
        return self.refined_repo.delete(owner_id, response_id)

    def find_similar(
        self,
        owner_id: str,
        client_message: str,
        message_type: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[SimilarityResult]:
        """
        Most similar refined responses for a client message.

        Every row the owner has is scored. Store errors yield [] so reply
        generation can continue without exemplars.
        """
        limit = settings.SIMILAR_RESPONSES_LIMIT if limit is None else limit
        try:
            records = self.refined_repo.list_all_by_owner(owner_id)
        except Exception as e:
            logger.error(f"[RefinedResponseService] Similarity lookup failed for {owner_id}: {e}")
            return []

        results = rank_similar_responses(records, client_message, message_type, limit)
        logger.info(f"[RefinedResponseService] {len(results)} similar responses from {len(records)} candidates")
        return results


_refined_response_service: Optional[RefinedResponseService] = None


def get_refined_response_service() -> RefinedResponseService:
    """Get or create the RefinedResponseService singleton"""
    global _refined_response_service
    if _refined_response_service is None:
        _refined_response_service = RefinedResponseService()
    return _refined_response_service
