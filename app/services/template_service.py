"""
Template Service

Business logic for message templates, including:
- Create / update / delete / list with analyzer-filled metadata
- Usage tracking with telemetry
- Match scoring of templates against a client message
- Curated starter library (list and copy to personal)
"""
import logging
from typing import Optional, List, Dict, Any

from app.config import settings
from app.utils.text_analysis import (
    analyze_template_content,
    extract_template_variables,
    format_content,
    normalize_terms,
    render_template_variables,
)
from app.utils.template_matcher import ScoredMatch, rank_templates

logger = logging.getLogger(__name__)


METADATA_FIELDS = ("category", "tone_style", "project_complexity", "client_type")


class TemplateService:
    """
    Service for template management.

    Repositories are injected so tests can run against in-memory doubles.
    """

    def __init__(self, template_repo=None, curated_repo=None, usage_repo=None):
        if template_repo is None or curated_repo is None or usage_repo is None:
            from app.infra.mongodb.repositories import (
                get_template_repo,
                get_curated_template_repo,
                get_template_usage_repo,
            )
            template_repo = template_repo or get_template_repo()
            curated_repo = curated_repo or get_curated_template_repo()
            usage_repo = usage_repo or get_template_usage_repo()
        self.template_repo = template_repo
        self.curated_repo = curated_repo
        self.usage_repo = usage_repo

    # ===================== ANALYSIS =====================

    def analyze(self, text: str) -> Dict[str, Any]:
        """Analyzer passthrough used by the UI to auto-fill template metadata."""
        formatted = format_content(text)
        analysis = analyze_template_content(formatted)
        return {
            **analysis.to_dict(),
            "formatted_content": formatted,
            "template_variables": extract_template_variables(formatted),
        }

    def prepare_template_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Normalise a new template: format the body, fill missing metadata
        from the analyzer, normalise keywords and tags.
        """
        prepared = dict(data)
        prepared["body"] = format_content(prepared.get("body", ""))
        analysis = analyze_template_content(prepared["body"])

        inferred = {
            "category": analysis.category,
            "tone_style": analysis.tone,
            "project_complexity": analysis.complexity,
            "client_type": analysis.client_type,
        }
        for field_name in METADATA_FIELDS:
            if not prepared.get(field_name):
                prepared[field_name] = inferred[field_name]

        prepared["matching_keywords"] = normalize_terms(prepared.get("matching_keywords")) or analysis.keywords
        prepared["industry_tags"] = normalize_terms(prepared.get("industry_tags"))
        prepared["template_variables"] = extract_template_variables(prepared["body"])
        return prepared

    # ===================== CRUD =====================

    def create_template(self, owner_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.template_repo.create(owner_id, self.prepare_template_data(data))

    def get_template(self, owner_id: str, template_id: str) -> Optional[Dict[str, Any]]:
        return self.template_repo.get(owner_id, template_id)

    def list_templates(
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
        return self.template_repo.list_by_owner(
            owner_id,
            category=category,
            tone_style=tone_style,
            project_complexity=project_complexity,
            query=query,
            sort_by=sort_by,
            skip=skip,
            limit=limit,
        )

    def update_template(self, owner_id: str, template_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Apply a partial update. None values are ignored.

        Returns:
            Updated template, or None if it does not exist for this owner
        """
        changes = {k: v for k, v in updates.items() if v is not None}
        if "body" in changes:
            changes["body"] = format_content(changes["body"])
            changes["template_variables"] = extract_template_variables(changes["body"])
        for list_field in ("matching_keywords", "industry_tags"):
            if list_field in changes:
                changes[list_field] = normalize_terms(changes[list_field])

        if not changes:
            return self.template_repo.get(owner_id, template_id)
        return self.template_repo.update(owner_id, template_id, changes)

    def delete_template(self, owner_id: str, template_id: str) -> bool:
        deleted = self.template_repo.delete(owner_id, template_id)
        if deleted:
            logger.info(f"[TemplateService] Deleted template {template_id} for {owner_id}")
        return deleted

    # ===================== USAGE =====================

    def track_usage(self, owner_id: str, template_id: str, client_message_context: Optional[str] = None) -> bool:
        """
        Increment usage_count, stamp last_used_at and append a usage event.

        Returns:
            False when the template does not exist for this owner
        """
        if not self.template_repo.increment_usage(owner_id, template_id):
            return False
        self.usage_repo.record(owner_id, template_id, client_message_context)
        logger.info(f"[TemplateService] Tracked usage of {template_id}")
        return True

    def use_template(
        self,
        owner_id: str,
        template_id: str,
        variables: Optional[Dict[str, str]] = None,
        client_message_context: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Track a use and return the template with its variables rendered."""
        if not self.track_usage(owner_id, template_id, client_message_context):
            return None
        template = self.template_repo.get(owner_id, template_id)
        if template is None:
            return None
        return {
            "template": template,
            "rendered_body": render_template_variables(template.get("body", ""), variables),
        }

    # ===================== MATCHING =====================

    def score_templates(
        self,
        owner_id: str,
        client_message: str,
        message_type: Optional[str] = None,
        client_type: Optional[str] = None,
        templates: Optional[List[Dict[str, Any]]] = None
    ) -> List[ScoredMatch]:
        """
        Rank the owner's templates for a client message.

        Args:
            templates: Pre-fetched templates (most used first); fetched when omitted
        """
        if templates is None:
            templates = self.template_repo.list_by_usage(owner_id)
        context = {"message_type": message_type, "client_type": client_type}
        return rank_templates(
            templates,
            client_message,
            context,
            candidate_limit=settings.MATCH_CANDIDATE_LIMIT,
            min_score=settings.MATCH_MIN_SCORE,
            top_n=settings.MATCH_TOP_N,
        )

    # ===================== CURATED LIBRARY =====================

    def list_curated(
        self,
        category: Optional[str] = None,
        industry: Optional[str] = None,
        query: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return self.curated_repo.list_active(category=category, industry=industry, query=query)

    def copy_curated_template(self, owner_id: str, curated_id: str) -> Optional[Dict[str, Any]]:
        """Copy a curated template into the owner's collection."""
        curated = self.curated_repo.get(curated_id)
        if curated is None or not curated.get("is_active", True):
            return None

        data = {
            "title": curated["title"],
            "body": curated["body"],
            "category": curated.get("category"),
            "tone_style": curated.get("tone_style"),
            "project_complexity": curated.get("project_complexity"),
            "client_type": curated.get("client_type"),
            "industry_tags": curated.get("industry_tags", []),
            "matching_keywords": curated.get("matching_keywords", []),
            "is_ai_generated": False,
        }
        template = self.create_template(owner_id, data)
        logger.info(f"[TemplateService] Copied curated {curated_id} -> {template['template_id']}")
        return template


_template_service: Optional[TemplateService] = None


def get_template_service() -> TemplateService:
    """Get or create the TemplateService singleton"""
    global _template_service
    if _template_service is None:
        _template_service = TemplateService()
    return _template_service
