"""
Refined Response Routes

Human-edited replies saved as style exemplars, and similarity lookup.
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Optional
from pydantic import BaseModel, Field

from app.middleware.auth import verify_user
from app.models.template_schema import RefinedResponseCreateRequest
from app.services.refined_response_service import RefinedResponseService, get_refined_response_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/refined-responses", tags=["refined-responses"])


class SimilarRequest(BaseModel):
    """Client message to find similar refined responses for"""
    client_message: str = Field(..., min_length=1, max_length=10000)
    message_type: Optional[str] = None
    limit: int = Field(3, ge=1, le=20)


@router.get("")
async def list_refined_responses(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    user: dict = Depends(verify_user),
    service: RefinedResponseService = Depends(get_refined_response_service)
):
    responses = service.list_refined(user["owner_id"], skip=skip, limit=limit)
    return {"responses": responses, "count": len(responses)}


@router.post("", status_code=201)
async def save_refined_response(
    request: RefinedResponseCreateRequest,
    user: dict = Depends(verify_user),
    service: RefinedResponseService = Depends(get_refined_response_service)
):
    """Save a reply the user edited before sending."""
    try:
        return service.save_refined_response(
            user["owner_id"],
            original_client_message=request.original_client_message,
            original_response=request.original_response,
            refined_response=request.refined_response,
            message_type=request.message_type,
        )
    except Exception as e:
        logger.error(f"[RefinedAPI] Error saving refined response: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/similar")
async def find_similar_responses(
    request: SimilarRequest,
    user: dict = Depends(verify_user),
    service: RefinedResponseService = Depends(get_refined_response_service)
):
    results = service.find_similar(
        user["owner_id"],
        request.client_message,
        message_type=request.message_type,
        limit=request.limit,
    )
    return {"results": [r.to_dict() for r in results], "count": len(results)}


@router.delete("/{response_id}")
async def delete_refined_response(
    response_id: str,
    user: dict = Depends(verify_user),
    service: RefinedResponseService = Depends(get_refined_response_service)
):
    if not service.delete_refined(user["owner_id"], response_id):
        raise HTTPException(status_code=404, detail=f"Refined response {response_id} not found")
    return {"success": True, "response_id": response_id}
