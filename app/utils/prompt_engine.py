"""
Prompt Engine for Client Reply Generation

Handles:
- System role and marketplace context
- User context (profile, template count, recent conversation patterns)
- Refined response examples (style exemplars)
- Best matching template excerpts
- Guidelines and the verbatim client message

Output is deterministic for identical inputs.
"""

import logging
from typing import Dict, List, Any, Optional

from app.domain.constants import (
    SYSTEM_ROLE,
    MARKETPLACE_CONTEXT,
    REPLY_GUIDELINES,
    EXEMPLAR_MESSAGE_CHARS,
    EXEMPLAR_RESPONSE_CHARS,
    TEMPLATE_EXCERPT_CHARS,
)
from app.utils.similarity import SimilarityResult
from app.utils.template_matcher import ScoredMatch

logger = logging.getLogger(__name__)


NO_EXEMPLARS_NOTE = "No similar refined responses available - generate based on general guidelines."
SCREENSHOT_NOTE = (
    "NOTE: The client has shared a screenshot - acknowledge this and reference it "
    "appropriately in your response."
)
RECENT_PATTERN_LIMIT = 3


def truncate(text: Optional[str], limit: int) -> str:
    """Cut text to `limit` characters, marking the cut with '...'."""
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class PromptEngine:
    """
    Prompt builder for client reply generation.

    Sections, in order:
    - System role + marketplace context
    - User context
    - Message type
    - Refined response examples
    - Matched templates
    - Guidelines (guideline 7 depends on exemplar availability)
    - Screenshot note
    - Client message
    """

    def build_reply_prompt(
        self,
        client_message: str,
        message_type: str,
        profile: Optional[Dict[str, Any]] = None,
        template_count: int = 0,
        recent_conversations: Optional[List[Dict[str, Any]]] = None,
        similar_responses: Optional[List[SimilarityResult]] = None,
        template_matches: Optional[List[ScoredMatch]] = None,
        screenshot_url: Optional[str] = None
    ) -> str:
        """
        Build the full reply-generation prompt.

        Args:
            client_message: Verbatim message from the client
            message_type: Message type label chosen by the user
            profile: Profile record (marketplace_username used when set)
            template_count: Number of saved templates the user has
            recent_conversations: Most recent conversations, newest first
            similar_responses: Refined response exemplars (0-2 expected)
            template_matches: Ranked template matches
            screenshot_url: Screenshot attached by the client, if any

        Returns:
            Prompt text
        """
        similar_responses = similar_responses or []
        has_exemplars = len(similar_responses) > 0

        sections = [
            self._build_system_section(),
            self._build_user_context_section(profile, template_count, recent_conversations or []),
            f"MESSAGE TYPE: {message_type}",
            self._build_exemplar_section(similar_responses),
            self._build_importance_note(has_exemplars),
        ]

        templates_section = self._build_templates_section(template_matches or [])
        if templates_section:
            sections.append(templates_section)

        sections.append(self._build_guidelines_section(has_exemplars))

        if screenshot_url:
            sections.append(SCREENSHOT_NOTE)

        sections.append(f'Generate a professional response to this client message: "{client_message}"')

        prompt = "\n\n".join(sections)
        logger.debug(f"[PromptEngine] Built prompt ({len(prompt)} chars, exemplars={len(similar_responses)})")
        return prompt

    def _build_system_section(self) -> str:
        context_lines = "\n".join(f"- {line}" for line in MARKETPLACE_CONTEXT)
        return f"{SYSTEM_ROLE}\n\nMARKETPLACE CONTEXT:\n{context_lines}"

    def _build_user_context_section(
        self,
        profile: Optional[Dict[str, Any]],
        template_count: int,
        recent_conversations: List[Dict[str, Any]]
    ) -> str:
        username = (profile or {}).get("marketplace_username") or "Not set"
        recent_types = [
            str(conv.get("message_type"))
            for conv in recent_conversations[:RECENT_PATTERN_LIMIT]
            if conv.get("message_type")
        ]
        return (
            "USER CONTEXT:\n"
            f"- Marketplace Username: {username}\n"
            f"- User has {template_count} saved templates\n"
            f"- Recent conversation patterns: {', '.join(recent_types)}"
        )

    def _build_exemplar_section(self, similar_responses: List[SimilarityResult]) -> str:
        header = "REFINED RESPONSE EXAMPLES (Learn from these successful refined responses):"
        if not similar_responses:
            return f"{header}\n{NO_EXEMPLARS_NOTE}"

        examples = []
        for idx, resp in enumerate(similar_responses, 1):
            percent = round(resp.similarity_score * 100)
            examples.append(
                f"Example {idx} (Similarity: {percent}%):\n"
                f"Client Query: \"{truncate(resp.original_client_message, EXEMPLAR_MESSAGE_CHARS)}\"\n"
                f"Refined Response: \"{truncate(resp.refined_response, EXEMPLAR_RESPONSE_CHARS)}\""
            )
        return header + "\n" + "\n\n".join(examples)

    def _build_importance_note(self, has_exemplars: bool) -> str:
        if has_exemplars:
            return (
                "IMPORTANT: Use the refined response examples above as your primary style and "
                "formatting reference. These represent the user's preferred communication style "
                "for similar situations. Match their tone, structure, and approach."
            )
        return "IMPORTANT: Generate a response following standard professional guidelines."

    def _build_templates_section(self, template_matches: List[ScoredMatch]) -> str:
        if not template_matches:
            return ""

        lines = ["RELEVANT SAVED TEMPLATES (adapt, do not copy verbatim):"]
        for idx, match in enumerate(template_matches, 1):
            template = match.template
            lines.append(
                f"Template {idx}: {template.get('title', 'Untitled')} "
                f"[{template.get('category', 'custom')}, match {round(match.score * 100)}%]\n"
                f"{truncate(template.get('body', ''), TEMPLATE_EXCERPT_CHARS)}"
            )
        return "\n\n".join(lines)

    def _build_guidelines_section(self, has_exemplars: bool) -> str:
        lines = [f"{idx}. {rule}" for idx, rule in enumerate(REPLY_GUIDELINES, 1)]
        if has_exemplars:
            lines.append(
                f"{len(lines) + 1}. PRIORITY: Match the style and formatting patterns from the "
                "refined response examples above"
            )
        else:
            lines.append(f"{len(lines) + 1}. Follow standard professional communication practices")
        return "GUIDELINES:\n" + "\n".join(lines)
