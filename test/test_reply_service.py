"""
Test suite for reply generation

Covers:
1. Success: prompt context, conversation persisted, usage tracked in background
2. Generation failure: fallback reply, nothing persisted
3. Degraded retrieval: failed reads fall back to empty context
4. Exemplar cap and owner isolation
"""
import logging

from app.domain.constants import FALLBACK_REPLY
from app.services.reply_service import ReplyRequest
from app.utils.prompt_engine import NO_EXEMPLARS_NOTE
from conftest import OWNER_ID, OTHER_OWNER_ID


CLIENT_MESSAGE = "Are the final files ready for delivery?"


def make_request(**overrides):
    return ReplyRequest(owner_id=OWNER_ID, client_message=CLIENT_MESSAGE, message_type="delivery", **overrides)


def add_delivery_template(template_service, owner_id=OWNER_ID):
    return template_service.create_template(owner_id, {
        "title": "Delivery Notice",
        "body": "Hi {{client_name}}, the final files are delivered.",
        "matching_keywords": ["delivery", "files", "final"],
    })


# ===================== SUCCESS =====================

def test_successful_reply_persists_conversation(reply_service, conversation_repo, openai_stub):
    result = reply_service.generate_reply(make_request(screenshot_url="https://example.com/s.png"))

    assert result.success is True
    assert result.response == openai_stub.reply
    assert result.error_message is None

    stored = conversation_repo.docs[result.conversation_id]
    assert stored["owner_id"] == OWNER_ID
    assert stored["client_message"] == CLIENT_MESSAGE
    assert stored["bot_response"] == openai_stub.reply
    assert stored["message_type"] == "delivery"
    assert stored["screenshot_url"] == "https://example.com/s.png"


def test_prompt_uses_profile_and_client_message(reply_service, openai_stub):
    reply_service.generate_reply(make_request())
    prompt = openai_stub.prompts[0]
    assert "- Marketplace Username: samdesigns" in prompt
    assert f'"{CLIENT_MESSAGE}"' in prompt
    assert NO_EXEMPLARS_NOTE in prompt


def test_best_template_usage_tracked_in_background(reply_service, template_service, template_repo,
                                                   usage_repo, background_executor):
    template = add_delivery_template(template_service)

    result = reply_service.generate_reply(make_request())
    background_executor.shutdown(wait=True)

    assert result.context["templates_used"] == 1
    assert result.context["matched_templates"][0]["template_id"] == template["template_id"]
    assert template_repo.get(OWNER_ID, template["template_id"])["usage_count"] == 1
    event = next(iter(usage_repo.docs.values()))
    assert event["client_message_context"] == CLIENT_MESSAGE


def test_no_usage_tracked_without_matches(reply_service, usage_repo, background_executor):
    result = reply_service.generate_reply(make_request())
    background_executor.shutdown(wait=True)
    assert result.context["matched_templates"] == []
    assert usage_repo.docs == {}


def test_similar_refined_responses_are_capped(reply_service, refined_repo, openai_stub):
    for i in range(3):
        refined_repo.create(OWNER_ID, f"are the final files ready {i}", "draft", f"refined {i}", "delivery")
    refined_repo.create(OTHER_OWNER_ID, CLIENT_MESSAGE, "draft", "someone else's reply", "delivery")

    result = reply_service.generate_reply(make_request())

    assert result.context["similar_refined_responses"] == 2
    assert result.context["refined_responses_influenced"] is True
    prompt = openai_stub.prompts[0]
    assert "Example 2 (Similarity:" in prompt
    assert "Example 3" not in prompt
    assert "someone else's reply" not in prompt


def test_context_summary_counts_history(reply_service, conversation_repo):
    conversation_repo.create(OWNER_ID, "hi", "hello", "follow_up")
    conversation_repo.create(OTHER_OWNER_ID, "hi", "hello", "follow_up")
    result = reply_service.generate_reply(make_request())
    assert result.context["conversation_history"] == 1
    assert result.context["prompt_tokens"] > 0


# ===================== FAILURE =====================

def test_generation_failure_returns_fallback(reply_service, openai_stub, conversation_repo, template_service,
                                             usage_repo, background_executor):
    add_delivery_template(template_service)
    openai_stub.error = RuntimeError("model unavailable")

    result = reply_service.generate_reply(make_request())
    background_executor.shutdown(wait=True)

    assert result.success is False
    assert result.response == FALLBACK_REPLY
    assert result.error_message == "model unavailable"
    assert result.conversation_id is None
    assert conversation_repo.docs == {}
    assert usage_repo.docs == {}


def test_failed_reads_degrade_to_empty_context(reply_service, profile_repo, refined_repo, openai_stub):
    profile_repo.fail = True
    refined_repo.fail = True

    result = reply_service.generate_reply(make_request())

    assert result.success is True
    assert result.context["similar_refined_responses"] == 0
    assert "- Marketplace Username: Not set" in openai_stub.prompts[0]


def test_conversation_store_outage_still_returns_reply(reply_service, conversation_repo, openai_stub):
    conversation_repo.fail = True
    result = reply_service.generate_reply(make_request())
    assert result.success is True
    assert result.response == openai_stub.reply
    assert result.conversation_id is None
    assert result.context["conversation_history"] == 0


def test_usage_tracking_failure_does_not_fail_reply(reply_service, template_service, template_repo,
                                                     conversation_repo, background_executor,
                                                     monkeypatch, caplog):
    template = add_delivery_template(template_service)

    def broken_increment(owner_id, template_id):
        raise ConnectionError("write timeout")

    monkeypatch.setattr(template_repo, "increment_usage", broken_increment)
    caplog.set_level(logging.WARNING, logger="app.services.reply_service")

    result = reply_service.generate_reply(make_request())
    background_executor.shutdown(wait=True)

    assert result.success is True
    assert result.conversation_id in conversation_repo.docs
    assert template_repo.get(OWNER_ID, template["template_id"])["usage_count"] == 0
    assert f"Usage tracking failed for {template['template_id']}: write timeout" in caplog.text
