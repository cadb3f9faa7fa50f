"""
Application Services - Business Logic Layer

Services contain business logic extracted from route handlers,
coordinating repositories and external services.
"""

from app.services.template_service import TemplateService, get_template_service
from app.services.template_import_service import (
    TemplateImportService,
    ImportResult,
    get_template_import_service,
)
from app.services.refined_response_service import RefinedResponseService, get_refined_response_service
from app.services.reply_service import ReplyService, ReplyRequest, ReplyResult, get_reply_service
from app.services.conversation_service import ConversationService, get_conversation_service

__all__ = [
    "TemplateService",
    "get_template_service",
    "TemplateImportService",
    "ImportResult",
    "get_template_import_service",
    "RefinedResponseService",
    "get_refined_response_service",
    "ReplyService",
    "ReplyRequest",
    "ReplyResult",
    "get_reply_service",
    "ConversationService",
    "get_conversation_service",
]
