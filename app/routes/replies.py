"""
Reply Generation Routes

Single endpoint for context-aware reply generation based on:
- The client's message and its declared type
- The user's saved templates (match scored)
- Similar refined responses (style exemplars)
- Recent conversation patterns and profile

On generation failure the endpoint answers 500 with a fallback reply the
user can still send.
"""

import logging
from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator

from app.domain.constants import DEFAULT_MESSAGE_TYPE
from app.middleware.auth import verify_user
from app.services.reply_service import ReplyService, ReplyRequest, get_reply_service

logger = logging.getLogger(__name__)

# Initialize router
router = APIRouter(prefix="/api/replies", tags=["replies"])


# ===================== REQUEST/RESPONSE MODELS =====================

class GenerateReplyRequest(BaseModel):
    """Request to generate a reply to a client message"""
    client_message: str = Field(..., min_length=1, max_length=10000, description="Message received from the client")
    message_type: str = Field(DEFAULT_MESSAGE_TYPE, description="Kind of reply needed (e.g. custom_offer, revision_handling)")
    client_type: Optional[str] = Field(None, description="Client type used for template matching")
    screenshot_url: Optional[str] = Field(None, description="Screenshot shared by the client")

    @field_validator("client_message")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("client_message cannot be blank")
        return v


class GenerateReplyResponse(BaseModel):
    """Generated reply with the context that shaped it"""
    success: bool
    response: str
    conversation_id: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)


# ===================== ENDPOINTS =====================

@router.post("/generate", response_model=GenerateReplyResponse)
async def generate_reply(
    request: GenerateReplyRequest,
    user: dict = Depends(verify_user),
    reply_service: ReplyService = Depends(get_reply_service)
):
    """
    Generate a reply to a client message.

    **Request Example:**
    ```json
    {
        "client_message": "Can you deliver the logo revisions by Friday?",
        "message_type": "revision_handling",
        "client_type": "startup"
    }
    ```

    **Response Example:**
    ```json
    {
        "success": true,
        "response": "Hi! Absolutely, I'll have the revisions ready...",
        "conversation_id": "conv_1a2b3c4d5e6f",
        "context": {
            "templates_used": 12,
            "conversation_history": 10,
            "similar_refined_responses": 2,
            "refined_responses_influenced": true,
            "matched_templates": [{"template_id": "tpl_...", "score": 0.62}]
        }
    }
    ```
    """
    try:
        logger.info(f"[ReplyAPI] Generating reply for {user['owner_id']} ({request.message_type})")

        result = reply_service.generate_reply(ReplyRequest(
            owner_id=user["owner_id"],
            client_message=request.client_message,
            message_type=request.message_type,
            client_type=request.client_type,
            screenshot_url=request.screenshot_url,
        ))

        if not result.success:
            return JSONResponse(
                status_code=500,
                content={"error": result.error_message or "Failed to generate response", "fallback": result.response},
            )

        return GenerateReplyResponse(
            success=True,
            response=result.response,
            conversation_id=result.conversation_id,
            context=result.context,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[ReplyAPI] Error generating reply: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to generate reply: {str(e)}")
