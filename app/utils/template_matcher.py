"""
Template Match Scoring

Scores how well a saved template fits an incoming client message:

    final = keyword_ratio * 0.6 + context_bonus * 0.4
    final *= 1 + (success_rating - 3) * 0.1     (when rated)
    final = min(final, 1.0)

keyword_ratio only checks template keywords against the message (asymmetric).
"""
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


KEYWORD_WEIGHT = 0.6
CONTEXT_WEIGHT = 0.4
MESSAGE_TYPE_BONUS = 0.2
CLIENT_TYPE_BONUS = 0.1
NEUTRAL_RATING = 3
RATING_STEP = 0.1
SCORE_PRECISION = 4


@dataclass
class ScoredMatch:
    """A template with its relevance score for one request."""
    template: Dict[str, Any]
    score: float

    @property
    def template_id(self) -> Optional[str]:
        return self.template.get("template_id")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template_id": self.template_id,
            "title": self.template.get("title"),
            "category": self.template.get("category"),
            "score": self.score,
        }


def keyword_overlap_ratio(keywords: Optional[List[str]], client_message: str) -> float:
    """Share of template keywords found as case-insensitive substrings of the message."""
    if not keywords:
        return 0.0
    message_lower = (client_message or "").lower()
    matches = sum(1 for keyword in keywords if str(keyword).lower() in message_lower)
    return matches / len(keywords)


def context_bonus(template: Dict[str, Any], context: Optional[Dict[str, Any]]) -> float:
    """Additive bonus for declared message type / client type (max 0.3)."""
    if not context:
        return 0.0

    bonus = 0.0
    message_type = context.get("message_type")
    if message_type is not None and message_type == template.get("category"):
        bonus += MESSAGE_TYPE_BONUS
    client_type = context.get("client_type")
    if client_type is not None and client_type == template.get("client_type"):
        bonus += CLIENT_TYPE_BONUS
    return bonus


def score_template(
    template: Optional[Dict[str, Any]],
    client_message: str,
    context: Optional[Dict[str, Any]] = None
) -> float:
    """
    Compute the match score of a template for a client message.

    Args:
        template: Template record (None when it could not be found)
        client_message: Incoming client message
        context: Optional {"message_type": ..., "client_type": ...}

    Returns:
        Score capped at 1.0; 0.0 for a missing template
    """
    if not template:
        return 0.0

    ratio = keyword_overlap_ratio(template.get("matching_keywords"), client_message)
    final = ratio * KEYWORD_WEIGHT + context_bonus(template, context) * CONTEXT_WEIGHT

    success_rating = template.get("success_rating")
    if success_rating is not None:
        final *= 1 + (float(success_rating) - NEUTRAL_RATING) * RATING_STEP

    return round(min(final, 1.0), SCORE_PRECISION)


def rank_templates(
    templates: List[Dict[str, Any]],
    client_message: str,
    context: Optional[Dict[str, Any]] = None,
    candidate_limit: int = 5,
    min_score: float = 0.3,
    top_n: int = 3
) -> List[ScoredMatch]:
    """
    Score candidate templates and keep the best matches.

    Only the first `candidate_limit` templates are scored (callers pass them
    most-used first). A template whose scoring fails counts as 0 so the rest
    of the batch still ranks.

    Returns:
        Matches scoring strictly above `min_score`, best first, at most `top_n`
    """
    candidates = templates[:candidate_limit] if candidate_limit else list(templates)
    scored: List[ScoredMatch] = []

    for template in candidates:
        try:
            score = score_template(template, client_message, context)
        except Exception as e:
            logger.warning(f"[TemplateMatcher] Scoring failed for {template.get('template_id') if isinstance(template, dict) else template}: {e}")
            score = 0.0
        scored.append(ScoredMatch(template=template, score=score))

    best = [match for match in scored if match.score > min_score]
    best.sort(key=lambda match: match.score, reverse=True)
    return best[:top_n]
