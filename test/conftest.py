"""
Shared fixtures: in-memory repository doubles and a stub generation client.

The doubles mirror the method signatures of the MongoDB repositories so the
services run unchanged against them.
"""
import itertools
import sys
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.domain.constants import CURATED_TEMPLATES, UploadStatus
from app.services.template_service import TemplateService
from app.services.template_import_service import TemplateImportService
from app.services.refined_response_service import RefinedResponseService
from app.services.conversation_service import ConversationService
from app.services.reply_service import ReplyService


OWNER_ID = "usr_owner000001"
OTHER_OWNER_ID = "usr_other000002"


class InMemoryRepo:
    """Minimal document store keyed by a domain id field."""

    id_field = "id"
    id_prefix = "doc"

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}
        self._tick = itertools.count()
        self.fail = False

    def _check(self):
        if self.fail:
            raise ConnectionError("store unavailable")

    def _now(self) -> datetime:
        # Strictly increasing timestamps keep insertion order observable
        return datetime.utcnow() + timedelta(microseconds=next(self._tick))

    def _insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        self._check()
        doc.setdefault(self.id_field, f"{self.id_prefix}_{uuid.uuid4().hex[:12]}")
        now = self._now()
        doc.setdefault("created_at", now)
        doc.setdefault("updated_at", now)
        self.docs[doc[self.id_field]] = doc
        return doc

    def _owned(self, owner_id: str) -> List[Dict[str, Any]]:
        self._check()
        return [d for d in self.docs.values() if d.get("owner_id") == owner_id]

    @staticmethod
    def _newest_first(docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return sorted(docs, key=lambda d: d["created_at"], reverse=True)

    @staticmethod
    def _window(docs: List[Dict[str, Any]], skip: int, limit: int) -> List[Dict[str, Any]]:
        docs = docs[skip:]
        return docs[:limit] if limit else docs


def _contains(value: Any, needle: str) -> bool:
    if isinstance(value, list):
        return any(needle in str(v).lower() for v in value)
    return needle in str(value or "").lower()


class FakeTemplateRepo(InMemoryRepo):
    id_field = "template_id"
    id_prefix = "tpl"

    def create(self, owner_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        doc = {
            "owner_id": owner_id,
            "usage_count": 0,
            "last_used_at": None,
            "success_rating": None,
            "is_ai_generated": False,
            **data,
        }
        return dict(self._insert(doc))

    def get(self, owner_id: str, template_id: str) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(template_id)
        if doc and doc["owner_id"] == owner_id:
            return dict(doc)
        return None

    def list_by_owner(self, owner_id, category=None, tone_style=None, project_complexity=None,
                      query=None, sort_by="usage", skip=0, limit=100):
        docs = self._owned(owner_id)
        if category:
            docs = [d for d in docs if d.get("category") == category]
        if tone_style:
            docs = [d for d in docs if d.get("tone_style") == tone_style]
        if project_complexity:
            docs = [d for d in docs if d.get("project_complexity") == project_complexity]
        if query:
            needle = query.lower()
            docs = [d for d in docs if any(_contains(d.get(f), needle)
                                           for f in ("title", "body", "matching_keywords", "industry_tags"))]
        if sort_by == "recent":
            docs = self._newest_first(docs)
        else:
            docs = self._usage_order(docs)
        return [dict(d) for d in self._window(docs, skip, limit)]

    def _usage_order(self, docs):
        return sorted(docs, key=lambda d: (d.get("usage_count", 0), d["created_at"]), reverse=True)

    def list_by_usage(self, owner_id: str, limit: int = 0):
        return [dict(d) for d in self._window(self._usage_order(self._owned(owner_id)), 0, limit)]

    def update(self, owner_id, template_id, updates):
        doc = self.docs.get(template_id)
        if not doc or doc["owner_id"] != owner_id:
            return None
        doc.update(updates)
        doc["updated_at"] = self._now()
        return dict(doc)

    def delete(self, owner_id, template_id) -> bool:
        doc = self.docs.get(template_id)
        if not doc or doc["owner_id"] != owner_id:
            return False
        del self.docs[template_id]
        return True

    def increment_usage(self, owner_id, template_id) -> bool:
        self._check()
        doc = self.docs.get(template_id)
        if not doc or doc["owner_id"] != owner_id:
            return False
        doc["usage_count"] = doc.get("usage_count", 0) + 1
        doc["last_used_at"] = self._now()
        return True

    def count_by_owner(self, owner_id) -> int:
        return len(self._owned(owner_id))

    def most_used(self, owner_id, limit=5):
        used = [d for d in self._usage_order(self._owned(owner_id)) if d.get("usage_count", 0) > 0]
        return [dict(d) for d in used[:limit]]


class FakeCuratedRepo(InMemoryRepo):
    id_field = "curated_id"
    id_prefix = "cur"

    def seed_defaults(self) -> int:
        if self.docs:
            return 0
        for item in CURATED_TEMPLATES:
            self._insert({**item, "is_active": True})
        return len(CURATED_TEMPLATES)

    def list_active(self, category=None, industry=None, query=None, limit=100):
        docs = [d for d in self.docs.values() if d.get("is_active")]
        if category:
            docs = [d for d in docs if d.get("category") == category]
        if industry:
            docs = [d for d in docs if industry in d.get("industry_tags", [])]
        if query:
            needle = query.lower()
            docs = [d for d in docs if any(_contains(d.get(f), needle)
                                           for f in ("title", "body", "usage_description", "industry_tags"))]
        return [dict(d) for d in docs[:limit]]

    def get(self, curated_id):
        doc = self.docs.get(curated_id)
        return dict(doc) if doc else None


class FakeUsageRepo(InMemoryRepo):
    id_field = "event_id"
    id_prefix = "use"

    def record(self, owner_id, template_id, client_message_context=None) -> str:
        doc = self._insert({
            "owner_id": owner_id,
            "template_id": template_id,
            "used_at": self._now(),
            "client_message_context": client_message_context,
        })
        return doc["event_id"]


class FakeSessionRepo(InMemoryRepo):
    id_field = "session_id"
    id_prefix = "upl"

    def start(self, owner_id, original_filename, total_templates=0) -> str:
        doc = self._insert({
            "owner_id": owner_id,
            "original_filename": original_filename,
            "total_templates": total_templates,
            "processed_templates": 0,
            "failed_templates": 0,
            "status": UploadStatus.PROCESSING.value,
            "error_log": [],
            "completed_at": None,
        })
        return doc["session_id"]

    def complete(self, session_id, total, processed, failed, error_log, status=UploadStatus.COMPLETED.value) -> bool:
        doc = self.docs[session_id]
        doc.update({
            "total_templates": total,
            "processed_templates": processed,
            "failed_templates": failed,
            "error_log": error_log,
            "status": status,
            "completed_at": self._now(),
        })
        return True

    def list_recent(self, owner_id, limit=10):
        return [dict(d) for d in self._newest_first(self._owned(owner_id))[:limit]]


class FakeRefinedRepo(InMemoryRepo):
    id_field = "response_id"
    id_prefix = "ref"

    def create(self, owner_id, original_client_message, original_response, refined_response,
               message_type=None, similarity_keywords=None, created_at=None):
        doc = {
            "owner_id": owner_id,
            "original_client_message": original_client_message,
            "original_response": original_response,
            "refined_response": refined_response,
            "message_type": message_type,
            "similarity_keywords": similarity_keywords or [],
        }
        if created_at is not None:
            doc["created_at"] = created_at
        return dict(self._insert(doc))

    def list_by_owner(self, owner_id, skip=0, limit=50):
        return [dict(d) for d in self._window(self._newest_first(self._owned(owner_id)), skip, limit)]

    def list_all_by_owner(self, owner_id):
        return self.list_by_owner(owner_id, limit=0)

    def delete(self, owner_id, response_id) -> bool:
        doc = self.docs.get(response_id)
        if not doc or doc["owner_id"] != owner_id:
            return False
        del self.docs[response_id]
        return True

    def count_by_owner(self, owner_id) -> int:
        return len(self._owned(owner_id))


class FakeConversationRepo(InMemoryRepo):
    id_field = "conversation_id"
    id_prefix = "conv"

    def create(self, owner_id, client_message, bot_response, message_type, screenshot_url=None, created_at=None):
        doc = {
            "owner_id": owner_id,
            "client_message": client_message,
            "bot_response": bot_response,
            "message_type": message_type,
            "screenshot_url": screenshot_url,
        }
        if created_at is not None:
            doc["created_at"] = created_at
        return dict(self._insert(doc))

    def recent(self, owner_id, limit=10):
        return [dict(d) for d in self._newest_first(self._owned(owner_id))[:limit]]

    def search(self, owner_id, query=None, message_type=None, since=None, skip=0, limit=50):
        docs = self._owned(owner_id)
        if message_type:
            docs = [d for d in docs if d.get("message_type") == message_type]
        if since:
            docs = [d for d in docs if d["created_at"] >= since]
        if query:
            needle = query.lower()
            docs = [d for d in docs if _contains(d.get("client_message"), needle)
                    or _contains(d.get("bot_response"), needle)]
        return [dict(d) for d in self._window(self._newest_first(docs), skip, limit)]

    def list_all_by_owner(self, owner_id):
        return [dict(d) for d in self._newest_first(self._owned(owner_id))]

    def count_by_owner(self, owner_id) -> int:
        return len(self._owned(owner_id))

    def count_by_message_type(self, owner_id):
        counts: Dict[str, int] = {}
        for doc in self._owned(owner_id):
            key = doc.get("message_type") or "unknown"
            counts[key] = counts.get(key, 0) + 1
        return dict(sorted(counts.items(), key=lambda item: item[1], reverse=True))

    def count_by_day(self, owner_id, since):
        counts: Dict[str, int] = {}
        for doc in self._owned(owner_id):
            if doc["created_at"] >= since:
                day = doc["created_at"].strftime("%Y-%m-%d")
                counts[day] = counts.get(day, 0) + 1
        return [{"date": day, "count": counts[day]} for day in sorted(counts)]


class FakeProfileRepo(InMemoryRepo):
    id_field = "user_id"
    id_prefix = "usr"

    def add(self, user_id, display_name="Test User", marketplace_username=None):
        return self._insert({
            "user_id": user_id,
            "display_name": display_name,
            "marketplace_username": marketplace_username,
        })

    def get_by_user_id(self, user_id):
        self._check()
        doc = self.docs.get(user_id)
        return dict(doc) if doc else None

    def update_profile(self, user_id, updates):
        doc = self.docs.get(user_id)
        if not doc:
            return None
        doc.update({k: v for k, v in updates.items() if k in ("display_name", "marketplace_username")})
        return dict(doc)


class StubOpenAIService:
    """Records prompts; returns a canned reply or raises."""

    def __init__(self, reply: str = "Thanks for reaching out! I can deliver this by Friday.", error: Exception = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    def count_tokens(self, text: str) -> int:
        return len(text.split())

    def generate_text(self, prompt, system_message=None, temperature=0.7, max_tokens=1000):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


# ===================== FIXTURES =====================

@pytest.fixture
def template_repo():
    return FakeTemplateRepo()


@pytest.fixture
def curated_repo():
    repo = FakeCuratedRepo()
    repo.seed_defaults()
    return repo


@pytest.fixture
def usage_repo():
    return FakeUsageRepo()


@pytest.fixture
def session_repo():
    return FakeSessionRepo()


@pytest.fixture
def refined_repo():
    return FakeRefinedRepo()


@pytest.fixture
def conversation_repo():
    return FakeConversationRepo()


@pytest.fixture
def profile_repo():
    repo = FakeProfileRepo()
    repo.add(OWNER_ID, display_name="Sam Designer", marketplace_username="samdesigns")
    return repo


@pytest.fixture
def openai_stub():
    return StubOpenAIService()


@pytest.fixture
def template_service(template_repo, curated_repo, usage_repo):
    return TemplateService(template_repo=template_repo, curated_repo=curated_repo, usage_repo=usage_repo)


@pytest.fixture
def import_service(template_service, session_repo):
    return TemplateImportService(template_service=template_service, session_repo=session_repo, batch_size=5)


@pytest.fixture
def refined_service(refined_repo):
    return RefinedResponseService(refined_repo=refined_repo)


@pytest.fixture
def conversation_service(conversation_repo, template_repo, refined_repo):
    return ConversationService(
        conversation_repo=conversation_repo,
        template_repo=template_repo,
        refined_repo=refined_repo,
    )


@pytest.fixture
def background_executor():
    executor = ThreadPoolExecutor(max_workers=1)
    yield executor
    executor.shutdown(wait=True)


@pytest.fixture
def reply_service(template_service, refined_service, conversation_repo, profile_repo, openai_stub, background_executor):
    return ReplyService(
        template_service=template_service,
        refined_response_service=refined_service,
        conversation_repo=conversation_repo,
        profile_repo=profile_repo,
        openai_service=openai_stub,
        background_executor=background_executor,
    )
