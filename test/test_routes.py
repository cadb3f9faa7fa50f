"""
API tests with FastAPI's TestClient

Services are swapped for in-memory versions through dependency overrides;
the client is used without the lifespan context so no database is touched.
"""
import json

import pytest
from fastapi.testclient import TestClient

from main import app
from app.middleware.auth import get_master_key, verify_user
from app.infra.mongodb.repositories.profile_repo import get_profile_repo
from app.services.conversation_service import get_conversation_service
from app.services.refined_response_service import get_refined_response_service
from app.services.reply_service import get_reply_service
from app.services.template_import_service import get_template_import_service
from app.services.template_service import get_template_service
from conftest import OWNER_ID


USER = {"role": "user", "name": "Sam Designer", "user_id": OWNER_ID, "owner_id": OWNER_ID}


@pytest.fixture
def client(template_service, import_service, refined_service, conversation_service, reply_service, profile_repo):
    app.dependency_overrides = {
        verify_user: lambda: USER,
        get_template_service: lambda: template_service,
        get_template_import_service: lambda: import_service,
        get_refined_response_service: lambda: refined_service,
        get_conversation_service: lambda: conversation_service,
        get_reply_service: lambda: reply_service,
        get_profile_repo: lambda: profile_repo,
    }
    yield TestClient(app)
    app.dependency_overrides = {}


# ===================== AUTH =====================

def test_root_is_public():
    response = TestClient(app).get("/")
    assert response.status_code == 200
    assert "service" in response.json()


def test_missing_api_key_is_rejected():
    response = TestClient(app).get("/api/templates")
    assert response.status_code == 401


def test_super_admin_key_cannot_read_user_data():
    response = TestClient(app).get("/api/templates", headers={"X-API-Key": get_master_key()})
    assert response.status_code == 403


# ===================== REPLIES =====================

def test_generate_reply(client, conversation_repo):
    response = client.post("/api/replies/generate", json={
        "client_message": "Are the final files ready?",
        "message_type": "delivery",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["conversation_id"] in conversation_repo.docs
    assert body["context"]["refined_responses_influenced"] is False


def test_generate_reply_failure_returns_fallback(client, openai_stub):
    openai_stub.error = RuntimeError("model unavailable")
    response = client.post("/api/replies/generate", json={"client_message": "Hello?"})
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "model unavailable"
    assert body["fallback"].startswith("Thank you for your message!")


def test_generate_reply_rejects_blank_message(client):
    response = client.post("/api/replies/generate", json={"client_message": "   "})
    assert response.status_code == 422


# ===================== TEMPLATES =====================

def test_template_crud(client):
    created = client.post("/api/templates", json={
        "title": "Delivery Notice",
        "body": "The final files are delivered.",
        "matching_keywords": "Delivery, files",
    })
    assert created.status_code == 201
    template_id = created.json()["template_id"]
    assert created.json()["matching_keywords"] == ["delivery", "files"]
    assert created.json()["category"] == "delivery"

    assert client.get(f"/api/templates/{template_id}").json()["title"] == "Delivery Notice"

    updated = client.put(f"/api/templates/{template_id}", json={"title": "Files Delivered"})
    assert updated.json()["title"] == "Files Delivered"

    listed = client.get("/api/templates", params={"q": "files"}).json()
    assert listed["count"] == 1

    assert client.delete(f"/api/templates/{template_id}").status_code == 200
    assert client.get(f"/api/templates/{template_id}").status_code == 404


def test_create_template_rejects_unknown_category(client):
    response = client.post("/api/templates", json={"title": "T", "body": "B", "category": "spam"})
    assert response.status_code == 422


def test_use_template_renders_variables(client, template_service):
    template = template_service.create_template(OWNER_ID, {"title": "Hi", "body": "Hi {{client_name}}"})
    response = client.post(f"/api/templates/{template['template_id']}/use",
                           json={"variables": {"client_name": "Ana"}})
    assert response.status_code == 200
    assert response.json()["rendered_body"] == "Hi Ana"


def test_match_templates(client, template_service):
    template_service.create_template(OWNER_ID, {"title": "Delivery", "body": "Files delivered.",
                                                "matching_keywords": ["files", "delivery"]})
    response = client.post("/api/templates/match", json={"client_message": "When is delivery of the files?"})
    assert response.json()["count"] == 1
    assert response.json()["matches"][0]["score"] == pytest.approx(0.6)


def test_analyze(client):
    response = client.post("/api/templates/analyze", json={"content": "welcome aboard !"})
    assert response.json()["category"] == "client_onboarding"
    assert response.json()["formatted_content"] == "Welcome aboard!"


def test_upload_templates(client):
    content = b'title,content\nWelcome,"Thanks for choosing me."\n,"No title here"\n'
    response = client.post("/api/templates/upload", files={"file": ("templates.csv", content, "text/csv")})
    assert response.status_code == 200
    body = response.json()
    assert (body["total"], body["processed"], body["failed"]) == (2, 1, 1)
    assert body["errors"] == ["Row 2: missing title"]

    sessions = client.get("/api/templates/upload/sessions").json()
    assert sessions["sessions"][0]["session_id"] == body["session_id"]


def test_upload_unsupported_file_is_bad_request(client):
    response = client.post("/api/templates/upload", files={"file": ("templates.pdf", b"%PDF", "application/pdf")})
    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["detail"]


def test_upload_sample(client):
    response = client.get("/api/templates/upload/sample")
    assert response.status_code == 200
    assert response.text.startswith("title,content")


def test_curated_copy(client, curated_repo):
    curated_id = next(iter(curated_repo.docs))
    response = client.post(f"/api/templates/curated/{curated_id}/copy")
    assert response.status_code == 201
    assert response.json()["owner_id"] == OWNER_ID
    assert client.post("/api/templates/curated/cur_missing/copy").status_code == 404


# ===================== REFINED RESPONSES =====================

def test_refined_response_flow(client):
    saved = client.post("/api/refined-responses", json={
        "original_client_message": "urgent delivery update",
        "original_response": "ok",
        "refined_response": "Files arrive tonight.",
        "message_type": "delivery",
    })
    assert saved.status_code == 201

    similar = client.post("/api/refined-responses/similar", json={
        "client_message": "urgent delivery needed",
        "message_type": "delivery",
    }).json()
    assert similar["count"] == 1
    assert similar["results"][0]["similarity_score"] == pytest.approx(0.7667, abs=1e-4)

    response_id = saved.json()["response_id"]
    assert client.delete(f"/api/refined-responses/{response_id}").status_code == 200
    assert client.delete(f"/api/refined-responses/{response_id}").status_code == 404


# ===================== CONVERSATIONS =====================

def test_conversation_search_and_invalid_range(client, conversation_repo):
    conversation_repo.create(OWNER_ID, "Logo files?", "Sending now.", "delivery")
    assert client.get("/api/conversations", params={"q": "logo"}).json()["count"] == 1
    assert client.get("/api/conversations", params={"date_range": "forever"}).status_code == 400


def test_analytics_and_export(client, conversation_repo):
    conversation_repo.create(OWNER_ID, "Logo files?", "Sending now.", "delivery")

    analytics = client.get("/api/conversations/analytics").json()
    assert analytics["total_conversations"] == 1

    export = client.get("/api/conversations/export")
    assert export.status_code == 200
    assert "attachment" in export.headers["content-disposition"]
    bundle = json.loads(export.content)
    assert bundle["counts"]["conversations"] == 1


# ===================== PROFILE =====================

def test_profile_get_and_update(client):
    assert client.get("/api/profile").json()["profile"]["marketplace_username"] == "samdesigns"
    updated = client.put("/api/profile", json={"marketplace_username": "  sam_new  "})
    assert updated.json()["profile"]["marketplace_username"] == "sam_new"
