"""
Routes package - exports all API routers
"""
from app.routes.replies import router as replies_router
from app.routes.templates import router as templates_router
from app.routes.refined_responses import router as refined_responses_router
from app.routes.conversations import router as conversations_router
from app.routes.profile import router as profile_router

__all__ = [
    "replies_router",
    "templates_router",
    "refined_responses_router",
    "conversations_router",
    "profile_router",
]
