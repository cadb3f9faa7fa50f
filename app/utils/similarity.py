"""
Refined Response Similarity

Lightweight lexical overlap between a new client message and stored
client messages that led to a hand-refined response:

    similarity = type_bonus + overlap / max(len(new), len(stored)) * 0.7

type_bonus is 0.3 when the message types match. The result never exceeds
1.0; it is clamped anyway so float drift cannot leak past the bound.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


TYPE_MATCH_BONUS = 0.3
OVERLAP_WEIGHT = 0.7
SCORE_PRECISION = 4


@dataclass
class SimilarityResult:
    """A stored refined response and its similarity to the new message."""
    id: Optional[str]
    original_client_message: str
    refined_response: str
    similarity_score: float
    message_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "original_client_message": self.original_client_message,
            "refined_response": self.refined_response,
            "similarity_score": self.similarity_score,
            "message_type": self.message_type,
        }


def tokenize_words(text: Optional[str]) -> List[str]:
    """Lower-cased whitespace-delimited words."""
    return (text or "").lower().split()


def similarity_score(
    client_message: str,
    stored_message: str,
    message_type: Optional[str] = None,
    stored_message_type: Optional[str] = None
) -> float:
    """
    Score a stored client message against a new one.

    Every word of the new message (duplicates included) that appears as a
    whole word in the stored message counts towards the overlap.
    """
    bonus = 0.0
    if message_type is not None and message_type == stored_message_type:
        bonus = TYPE_MATCH_BONUS

    new_words = tokenize_words(client_message)
    stored_words = tokenize_words(stored_message)
    stored_vocabulary = set(stored_words)

    overlap = sum(1 for word in new_words if word in stored_vocabulary)
    denominator = max(len(new_words), len(stored_words), 1)

    score = bonus + (overlap / denominator) * OVERLAP_WEIGHT
    return round(min(score, 1.0), SCORE_PRECISION)


def _recency_key(record: Dict[str, Any]) -> datetime:
    created_at = record.get("created_at")
    return created_at if isinstance(created_at, datetime) else datetime.min


def rank_similar_responses(
    records: List[Dict[str, Any]],
    client_message: str,
    message_type: Optional[str] = None,
    limit: int = 3
) -> List[SimilarityResult]:
    """
    Rank refined response records by similarity to a client message.

    Records are ordered most-recent-first before a stable sort on score, so
    equal scores keep newer responses ahead of older ones.
    """
    if limit <= 0 or not records:
        return []

    newest_first = sorted(records, key=_recency_key, reverse=True)
    results = [
        SimilarityResult(
            id=record.get("response_id"),
            original_client_message=record.get("original_client_message", ""),
            refined_response=record.get("refined_response", ""),
            similarity_score=similarity_score(
                client_message,
                record.get("original_client_message", ""),
                message_type,
                record.get("message_type"),
            ),
            message_type=record.get("message_type"),
        )
        for record in newest_first
    ]
    results.sort(key=lambda result: result.similarity_score, reverse=True)
    return results[:limit]
