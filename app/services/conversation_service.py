"""
Conversation Service

Conversation history search, analytics and data export.
"""
import logging
from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)


DATE_RANGES = ("today", "week", "month", "all")
RANGE_DAYS = {"week": 7, "month": 30}


def range_start(date_range: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Lower bound for a named date range (UTC).

    Raises:
        ValueError: Unknown range name
    """
    if date_range not in DATE_RANGES:
        raise ValueError(f"Invalid date range '{date_range}'. Must be one of: {', '.join(DATE_RANGES)}")
    now = now or datetime.utcnow()
    if date_range == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if date_range == "all":
        return None
    return now - timedelta(days=RANGE_DAYS[date_range])


class ConversationService:

    def __init__(self, conversation_repo=None, template_repo=None, refined_repo=None):
        if conversation_repo is None or template_repo is None or refined_repo is None:
            from app.infra.mongodb.repositories import (
                get_conversation_repo,
                get_template_repo,
                get_refined_response_repo,
            )
            conversation_repo = conversation_repo or get_conversation_repo()
            template_repo = template_repo or get_template_repo()
            refined_repo = refined_repo or get_refined_response_repo()
        self.conversation_repo = conversation_repo
        self.template_repo = template_repo
        self.refined_repo = refined_repo

    def search(
        self,
        owner_id: str,
        query: Optional[str] = None,
        message_type: Optional[str] = None,
        date_range: str = "all",
        skip: int = 0,
        limit: int = 50
    ) -> List[Dict[str, Any]]:
        """Search conversations by text, message type and date range (newest first)."""
        return self.conversation_repo.search(
            owner_id,
            query=query,
            message_type=message_type,
            since=range_start(date_range),
            skip=skip,
            limit=limit,
        )

    def analytics(self, owner_id: str, days: int = 30) -> Dict[str, Any]:
        """
        Usage analytics for the owner's dashboard.

        Returns:
            Totals, per message type counts, daily activity for the last
            `days` days, most used templates and the refined response count
        """
        since = datetime.utcnow() - timedelta(days=days)
        most_used = [
            {
                "template_id": t.get("template_id"),
                "title": t.get("title"),
                "category": t.get("category"),
                "usage_count": t.get("usage_count", 0),
            }
            for t in self.template_repo.most_used(owner_id, limit=5)
        ]

        summary = {
            "total_conversations": self.conversation_repo.count_by_owner(owner_id),
            "by_message_type": self.conversation_repo.count_by_message_type(owner_id),
            "daily_activity": self.conversation_repo.count_by_day(owner_id, since),
            "most_used_templates": most_used,
            "total_templates": self.template_repo.count_by_owner(owner_id),
            "refined_responses": self.refined_repo.count_by_owner(owner_id),
            "period_days": days,
        }
        logger.info(f"[ConversationService] Analytics for {owner_id}: {summary['total_conversations']} conversations")
        return summary

    def export(self, owner_id: str) -> Dict[str, Any]:
        """JSON export bundle of everything the owner has stored."""
        conversations = self.conversation_repo.list_all_by_owner(owner_id)
        templates = self.template_repo.list_by_usage(owner_id)
        refined = self.refined_repo.list_all_by_owner(owner_id)

        logger.info(f"[ConversationService] Export for {owner_id}: "
                    f"{len(conversations)} conversations, {len(templates)} templates, {len(refined)} refined")
        return {
            "exported_at": datetime.utcnow().isoformat(),
            "owner_id": owner_id,
            "counts": {
                "conversations": len(conversations),
                "templates": len(templates),
                "refined_responses": len(refined),
            },
            "conversations": conversations,
            "templates": templates,
            "refined_responses": refined,
        }


_conversation_service: Optional[ConversationService] = None


def get_conversation_service() -> ConversationService:
    """Get or create the ConversationService singleton"""
    global _conversation_service
    if _conversation_service is None:
        _conversation_service = ConversationService()
    return _conversation_service
