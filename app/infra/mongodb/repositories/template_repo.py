"""
Template Repositories - Message templates and their supporting collections.

Collections:
- message_templates: Owner's reusable reply templates
- curated_templates: Global read-only starter library
- template_usage_events: Usage telemetry (one row per use)
"""
import re
import logging
from typing import Optional, List, Dict, Any
from datetime import datetime
from pymongo import DESCENDING

from app.infra.mongodb.base_repository import BaseRepository
from app.domain.constants import CURATED_TEMPLATES

logger = logging.getLogger(__name__)


SORT_FIELDS = {
    "usage": [("usage_count", DESCENDING), ("created_at", DESCENDING)],
    "recent": [("created_at", DESCENDING)],
    "last_used": [("last_used_at", DESCENDING)],
}


def text_query(query: Optional[str], fields: List[str]) -> Dict[str, Any]:
    """Case-insensitive literal match of `query` in any of `fields`."""
    if not query or not query.strip():
        return {}
    pattern = {"$regex": re.escape(query.strip()), "$options": "i"}
    return {"$or": [{field: pattern} for field in fields]}


class TemplateRepository(BaseRepository[Dict[str, Any]]):
    """Repository for owner message templates."""

    collection_name = "message_templates"
    id_field = "template_id"
    id_prefix = "tpl"

    SEARCH_FIELDS = ["title", "body", "matching_keywords", "industry_tags"]

    def create(self, owner_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a template.

        Args:
            owner_id: Owning user
            data: Template fields (title, body, category, ...)

        Returns:
            The stored document
        """
        doc = {
            "owner_id": owner_id,
            "title": data["title"],
            "body": data["body"],
            "category": data.get("category"),
            "tone_style": data.get("tone_style"),
            "project_complexity": data.get("project_complexity"),
            "client_type": data.get("client_type"),
            "industry_tags": data.get("industry_tags", []),
            "matching_keywords": data.get("matching_keywords", []),
            "template_variables": data.get("template_variables", []),
            "success_rating": data.get("success_rating"),
            "is_ai_generated": data.get("is_ai_generated", False),
            "usage_count": 0,
            "last_used_at": None,
        }
        self.insert_one(doc)
        logger.info(f"Created template: {doc['template_id']} ({doc['title']}) for {owner_id}")
        return doc

    def get(self, owner_id: str, template_id: str) -> Optional[Dict[str, Any]]:
        return self.find_by_id(template_id, owner_id=owner_id)

    def list_by_owner(
        self,
        owner_id: str,
        category: Optional[str] = None,
        tone_style: Optional[str] = None,
        project_complexity: Optional[str] = None,
        query: Optional[str] = None,
        sort_by: str = "usage",
        skip: int = 0,
        limit: int = 100
    ) -> List[Dict[str, Any]]:
        """List an owner's templates with optional filters."""
        filters: Dict[str, Any] = {}
        if category:
            filters["category"] = category
        if tone_style:
            filters["tone_style"] = tone_style
        if project_complexity:
            filters["project_complexity"] = project_complexity
        filters.update(text_query(query, self.SEARCH_FIELDS))

        return self.find_many(
            self._owner_query(owner_id, filters),
            skip=skip,
            limit=limit,
            sort=SORT_FIELDS.get(sort_by, SORT_FIELDS["usage"])
        )

    def list_by_usage(self, owner_id: str, limit: int = 0) -> List[Dict[str, Any]]:
        """All of an owner's templates, most used first (0 = no limit)."""
        return self.find_many(
            self._owner_query(owner_id),
            limit=limit,
            sort=SORT_FIELDS["usage"]
        )

    def update(self, owner_id: str, template_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update template fields. Returns the updated document or None if not found."""
        if not self.update_one({"template_id": template_id, "owner_id": owner_id}, dict(updates)):
            return None
        return self.get(owner_id, template_id)

    def delete(self, owner_id: str, template_id: str) -> bool:
        return self.delete_one({"template_id": template_id, "owner_id": owner_id})

    def increment_usage(self, owner_id: str, template_id: str) -> bool:
        """Atomically bump usage_count and stamp last_used_at."""
        return self.update_one(
            {"template_id": template_id, "owner_id": owner_id},
            {"$inc": {"usage_count": 1}, "$set": {"last_used_at": datetime.utcnow()}}
        )

    def count_by_owner(self, owner_id: str) -> int:
        return self.count({"owner_id": owner_id})

    def most_used(self, owner_id: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Top templates by usage count (only those used at least once)."""
        return self.find_many(
            {"owner_id": owner_id, "usage_count": {"$gt": 0}},
            limit=limit,
            sort=SORT_FIELDS["usage"]
        )


class CuratedTemplateRepository(BaseRepository[Dict[str, Any]]):
    """Global starter library. Not owner scoped."""

    collection_name = "curated_templates"
    id_field = "curated_id"
    id_prefix = "cur"

    SEARCH_FIELDS = ["title", "body", "usage_description", "industry_tags"]

    def seed_defaults(self) -> int:
        """Insert the built-in library when the collection is empty."""
        if self.count() > 0:
            return 0
        for item in CURATED_TEMPLATES:
            self.insert_one({**item, "is_active": True})
        logger.info(f"Seeded {len(CURATED_TEMPLATES)} curated templates")
        return len(CURATED_TEMPLATES)

    def list_active(
        self,
        category: Optional[str] = None,
        industry: Optional[str] = None,
        query: Optional[str] = None,
        limit: int = 100
    ) -> List[Dict[str, Any]]:
        filters: Dict[str, Any] = {"is_active": True}
        if category:
            filters["category"] = category
        if industry:
            filters["industry_tags"] = industry
        filters.update(text_query(query, self.SEARCH_FIELDS))
        return self.find_many(filters, limit=limit, sort=[("category", 1), ("title", 1)])

    def get(self, curated_id: str) -> Optional[Dict[str, Any]]:
        return self.find_by_id(curated_id)


class TemplateUsageRepository(BaseRepository[Dict[str, Any]]):
    """Append-only template usage telemetry."""

    collection_name = "template_usage_events"
    id_field = "event_id"
    id_prefix = "use"

    def record(self, owner_id: str, template_id: str, client_message_context: Optional[str] = None) -> str:
        return self.insert_one({
            "owner_id": owner_id,
            "template_id": template_id,
            "used_at": datetime.utcnow(),
            "client_message_context": client_message_context,
        })


# Singleton instances
_template_repo: Optional[TemplateRepository] = None
_curated_repo: Optional[CuratedTemplateRepository] = None
_usage_repo: Optional[TemplateUsageRepository] = None


def get_template_repo() -> TemplateRepository:
    """Get singleton TemplateRepository."""
    global _template_repo
    if _template_repo is None:
        _template_repo = TemplateRepository()
    return _template_repo


def get_curated_template_repo() -> CuratedTemplateRepository:
    """Get singleton CuratedTemplateRepository."""
    global _curated_repo
    if _curated_repo is None:
        _curated_repo = CuratedTemplateRepository()
    return _curated_repo


def get_template_usage_repo() -> TemplateUsageRepository:
    """Get singleton TemplateUsageRepository."""
    global _usage_repo
    if _usage_repo is None:
        _usage_repo = TemplateUsageRepository()
    return _usage_repo
