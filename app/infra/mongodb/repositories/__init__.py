"""
MongoDB Repositories - Domain-specific data access.

Repository Pattern Implementation:
- TemplateRepository, CuratedTemplateRepository, TemplateUsageRepository - Templates
- UploadSessionRepository - Bulk import summaries
- RefinedResponseRepository - Human-edited reply exemplars
- ConversationRepository - Generated reply history
- ProfileRepository - Identity and API keys
"""

# Template repositories
from app.infra.mongodb.repositories.template_repo import (
    TemplateRepository,
    CuratedTemplateRepository,
    TemplateUsageRepository,
    get_template_repo,
    get_curated_template_repo,
    get_template_usage_repo,
)

# Bulk import sessions
from app.infra.mongodb.repositories.upload_session_repo import (
    UploadSessionRepository,
    get_upload_session_repo,
)

# Refined responses
from app.infra.mongodb.repositories.refined_response_repo import (
    RefinedResponseRepository,
    get_refined_response_repo,
)

# Conversations
from app.infra.mongodb.repositories.conversation_repo import (
    ConversationRepository,
    get_conversation_repo,
)

# Profiles
from app.infra.mongodb.repositories.profile_repo import (
    ProfileRepository,
    get_profile_repo,
    hash_key,
)

__all__ = [
    # Templates
    "TemplateRepository",
    "CuratedTemplateRepository",
    "TemplateUsageRepository",
    "get_template_repo",
    "get_curated_template_repo",
    "get_template_usage_repo",
    # Upload sessions
    "UploadSessionRepository",
    "get_upload_session_repo",
    # Refined responses
    "RefinedResponseRepository",
    "get_refined_response_repo",
    # Conversations
    "ConversationRepository",
    "get_conversation_repo",
    # Profiles
    "ProfileRepository",
    "get_profile_repo",
    "hash_key",
]
