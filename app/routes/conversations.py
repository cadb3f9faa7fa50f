"""
Conversation Routes

History search, dashboard analytics and JSON data export.
"""

import logging
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from typing import Optional

from app.middleware.auth import verify_user
from app.services.conversation_service import ConversationService, get_conversation_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


@router.get("")
async def search_conversations(
    q: Optional[str] = Query(None, max_length=200, description="Text in client message or response"),
    message_type: Optional[str] = None,
    date_range: str = Query("all", description="today | week | month | all"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    user: dict = Depends(verify_user),
    service: ConversationService = Depends(get_conversation_service)
):
    try:
        conversations = service.search(
            user["owner_id"],
            query=q,
            message_type=message_type,
            date_range=date_range,
            skip=skip,
            limit=limit,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"conversations": conversations, "count": len(conversations)}


@router.get("/analytics")
async def conversation_analytics(
    days: int = Query(30, ge=1, le=365),
    user: dict = Depends(verify_user),
    service: ConversationService = Depends(get_conversation_service)
):
    try:
        return service.analytics(user["owner_id"], days=days)
    except Exception as e:
        logger.error(f"[ConversationAPI] Analytics failed: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/export")
async def export_data(
    user: dict = Depends(verify_user),
    service: ConversationService = Depends(get_conversation_service)
):
    """Download conversations, templates and refined responses as JSON."""
    try:
        bundle = service.export(user["owner_id"])
    except Exception as e:
        logger.error(f"[ConversationAPI] Export failed: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    filename = f"reply-assistant-export-{datetime.utcnow().strftime('%Y-%m-%d')}.json"
    return JSONResponse(
        content=jsonable_encoder(bundle),
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
