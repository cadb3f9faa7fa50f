"""
Reply Service

Business logic for reply generation, including:
- Parallel retrieval of templates, recent conversations, profile and
  similar refined responses
- Template match scoring
- Prompt building and AI generation
- Conversation persistence and background usage tracking
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, List, Dict, Any, Callable
from dataclasses import dataclass, field

from app.config import settings
from app.domain.constants import DEFAULT_MESSAGE_TYPE, FALLBACK_REPLY
from app.utils.prompt_engine import PromptEngine
from app.utils.similarity import SimilarityResult
from app.utils.template_matcher import ScoredMatch

logger = logging.getLogger(__name__)


@dataclass
class ReplyRequest:
    """Input parameters for reply generation."""
    owner_id: str
    client_message: str
    message_type: str = DEFAULT_MESSAGE_TYPE
    client_type: Optional[str] = None
    screenshot_url: Optional[str] = None


@dataclass
class ReplyResult:
    """Result of reply generation."""
    success: bool
    response: str = ""
    conversation_id: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None


@dataclass
class ReplyContext:
    """Snapshot of the owner's data fetched for one request."""
    templates: List[Dict[str, Any]] = field(default_factory=list)
    recent_conversations: List[Dict[str, Any]] = field(default_factory=list)
    profile: Optional[Dict[str, Any]] = None
    similar_responses: List[SimilarityResult] = field(default_factory=list)


# Shared executor for fire-and-forget work (usage increments)
_background_executor: Optional[ThreadPoolExecutor] = None


def get_background_executor() -> ThreadPoolExecutor:
    global _background_executor
    if _background_executor is None:
        _background_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="reply-bg")
    return _background_executor


def shutdown_background_executor() -> None:
    """Wait for pending background work and release the executor."""
    global _background_executor
    if _background_executor is not None:
        _background_executor.shutdown(wait=True)
        _background_executor = None


class ReplyService:
    """
    Service for client reply generation.

    Orchestrates:
    - TemplateService for template scoring and usage tracking
    - RefinedResponseService for style exemplars
    - PromptEngine for building prompts
    - OpenAI for text generation
    """

    FETCH_WORKERS = 4

    def __init__(
        self,
        template_service=None,
        refined_response_service=None,
        conversation_repo=None,
        profile_repo=None,
        openai_service=None,
        prompt_engine: Optional[PromptEngine] = None,
        background_executor: Optional[ThreadPoolExecutor] = None
    ):
        """
        Initialize with dependencies.

        Args:
            template_service: Template listing, scoring and usage tracking
            refined_response_service: Similar refined response lookup
            conversation_repo: Conversation persistence
            profile_repo: Profile lookup
            openai_service: Text generation client (created lazily when omitted)
            prompt_engine: Engine for building prompts
            background_executor: Executor for usage increments
        """
        if template_service is None:
            from app.services.template_service import get_template_service
            template_service = get_template_service()
        if refined_response_service is None:
            from app.services.refined_response_service import get_refined_response_service
            refined_response_service = get_refined_response_service()
        if conversation_repo is None or profile_repo is None:
            from app.infra.mongodb.repositories import get_conversation_repo, get_profile_repo
            conversation_repo = conversation_repo or get_conversation_repo()
            profile_repo = profile_repo or get_profile_repo()

        self.template_service = template_service
        self.refined_response_service = refined_response_service
        self.conversation_repo = conversation_repo
        self.profile_repo = profile_repo
        self._openai_service = openai_service
        self.prompt_engine = prompt_engine or PromptEngine()
        self._background_executor = background_executor

    @property
    def openai_service(self):
        if self._openai_service is None:
            from app.utils.openai_service import get_openai_service
            self._openai_service = get_openai_service()
        return self._openai_service

    @property
    def background_executor(self) -> ThreadPoolExecutor:
        return self._background_executor or get_background_executor()

    def generate_reply(self, request: ReplyRequest) -> ReplyResult:
        """
        Generate a reply to a client message.

        Steps:
        1. Fetch templates, recent conversations, profile, similar responses (parallel)
        2. Score candidate templates
        3. Build prompt
        4. Generate reply with AI (fallback text on failure)
        5. Persist conversation and track usage of the best template

        Args:
            request: ReplyRequest with the client message and options

        Returns:
            ReplyResult with the generated reply and context summary
        """
        logger.info(f"[ReplyService] Generating reply for {request.owner_id} ({request.message_type})")

        # Step 1: Fetch everything the prompt needs
        snapshot = self._fetch_context(request)
        logger.info(f"[ReplyService] Found {len(snapshot.similar_responses)} similar refined responses for context")

        # Step 2: Score templates
        matches = self._score_templates(request, snapshot.templates)

        # Step 3: Build prompt
        prompt = self.prompt_engine.build_reply_prompt(
            client_message=request.client_message,
            message_type=request.message_type,
            profile=snapshot.profile,
            template_count=len(snapshot.templates),
            recent_conversations=snapshot.recent_conversations,
            similar_responses=snapshot.similar_responses,
            template_matches=matches,
            screenshot_url=request.screenshot_url,
        )
        context = self._build_context_summary(snapshot, matches)

        # Step 4: Generate
        try:
            context["prompt_tokens"] = self.openai_service.count_tokens(prompt)
            reply = self.openai_service.generate_text(
                prompt,
                temperature=settings.GENERATION_TEMPERATURE,
                max_tokens=settings.GENERATION_MAX_TOKENS,
            )
        except Exception as e:
            logger.error(f"[ReplyService] Generation failed: {e}", exc_info=True)
            return ReplyResult(
                success=False,
                response=FALLBACK_REPLY,
                context=context,
                error_message=str(e),
            )

        # Step 5: Persist and track
        conversation_id = self._save_conversation(request, reply)
        if matches:
            self._track_usage_in_background(request.owner_id, matches[0], request.client_message)

        logger.info(f"[ReplyService] Reply generated ({len(reply)} chars, {len(matches)} matched templates)")
        return ReplyResult(
            success=True,
            response=reply,
            conversation_id=conversation_id,
            context=context,
        )

    # ===================== STEPS =====================

    def _fetch_context(self, request: ReplyRequest) -> ReplyContext:
        """Run the four independent reads in parallel and join them."""
        owner_id = request.owner_id
        with ThreadPoolExecutor(max_workers=self.FETCH_WORKERS, thread_name_prefix="reply-fetch") as pool:
            templates = pool.submit(self.template_service.template_repo.list_by_usage, owner_id)
            conversations = pool.submit(
                self.conversation_repo.recent, owner_id, settings.RECENT_CONVERSATIONS_LIMIT
            )
            profile = pool.submit(self.profile_repo.get_by_user_id, owner_id)
            similar = pool.submit(
                self.refined_response_service.find_similar,
                owner_id,
                request.client_message,
                request.message_type,
                settings.SIMILAR_RESPONSES_LIMIT,
            )

            return ReplyContext(
                templates=self._result_or_default(templates, [], "templates"),
                recent_conversations=self._result_or_default(conversations, [], "recent conversations"),
                profile=self._result_or_default(profile, None, "profile"),
                similar_responses=self._result_or_default(similar, [], "similar refined responses"),
            )

    @staticmethod
    def _result_or_default(future: Future, default: Any, label: str) -> Any:
        try:
            result = future.result()
            return default if result is None else result
        except Exception as e:
            logger.warning(f"[ReplyService] Could not fetch {label}: {e}")
            return default

    def _score_templates(self, request: ReplyRequest, templates: List[Dict[str, Any]]) -> List[ScoredMatch]:
        try:
            return self.template_service.score_templates(
                request.owner_id,
                request.client_message,
                message_type=request.message_type,
                client_type=request.client_type,
                templates=templates,
            )
        except Exception as e:
            logger.warning(f"[ReplyService] Template scoring failed: {e}")
            return []

    def _build_context_summary(self, snapshot: ReplyContext, matches: List[ScoredMatch]) -> Dict[str, Any]:
        return {
            "templates_used": len(snapshot.templates),
            "conversation_history": len(snapshot.recent_conversations),
            "similar_refined_responses": len(snapshot.similar_responses),
            "refined_responses_influenced": len(snapshot.similar_responses) > 0,
            "matched_templates": [match.to_dict() for match in matches],
        }

    def _save_conversation(self, request: ReplyRequest, reply: str) -> Optional[str]:
        try:
            conversation = self.conversation_repo.create(
                request.owner_id,
                client_message=request.client_message,
                bot_response=reply,
                message_type=request.message_type,
                screenshot_url=request.screenshot_url,
            )
            return conversation.get("conversation_id")
        except Exception as e:
            logger.error(f"[ReplyService] Failed to save conversation: {e}")
            return None

    def _track_usage_in_background(self, owner_id: str, match: ScoredMatch, client_message: str) -> Optional[Future]:
        """Submit the usage increment; the reply never waits on it."""
        template_id = match.template_id
        if not template_id:
            return None

        try:
            future = self.background_executor.submit(
                self.template_service.track_usage, owner_id, template_id, client_message[:200]
            )
        except RuntimeError as e:
            logger.warning(f"[ReplyService] Could not schedule usage tracking for {template_id}: {e}")
            return None

        future.add_done_callback(_usage_callback(template_id))
        return future


def _usage_callback(template_id: str) -> Callable[[Future], None]:
    def _log_outcome(future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.warning(f"[ReplyService] Usage tracking failed for {template_id}: {error}")
        elif not future.result():
            logger.warning(f"[ReplyService] Usage tracking skipped, template {template_id} not found")
    return _log_outcome


_reply_service: Optional[ReplyService] = None


def get_reply_service() -> ReplyService:
    """Get or create the ReplyService singleton"""
    global _reply_service
    if _reply_service is None:
        _reply_service = ReplyService()
    return _reply_service
