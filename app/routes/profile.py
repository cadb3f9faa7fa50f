"""
Profile Management Routes

The caller's own profile (display name, marketplace username) and API key
rotation. Super admins register new users and receive their key once.
"""
import logging
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any

from app.middleware.auth import verify_user, verify_super_admin
from app.models.template_schema import ProfileUpdateRequest
from app.infra.mongodb.repositories.profile_repo import ProfileRepository, get_profile_repo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/profile", tags=["profile"])


# ===================== REQUEST MODELS =====================

class RegisterUserRequest(BaseModel):
    """Register a new user (super admin only)"""
    display_name: str = Field(..., min_length=1, max_length=100)
    marketplace_username: Optional[str] = Field(None, max_length=100)


class ProfileResponse(BaseModel):
    """Single profile response"""
    success: bool
    profile: Dict[str, Any]


# ===================== ENDPOINTS =====================

@router.get("", response_model=ProfileResponse)
async def get_profile(
    user: dict = Depends(verify_user),
    repo: ProfileRepository = Depends(get_profile_repo)
):
    profile = repo.get_by_user_id(user["owner_id"])
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileResponse(success=True, profile=profile)


@router.put("", response_model=ProfileResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    user: dict = Depends(verify_user),
    repo: ProfileRepository = Depends(get_profile_repo)
):
    updates = request.model_dump(exclude_unset=True)
    profile = repo.update_profile(user["owner_id"], updates)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    logger.info(f"[ProfileAPI] Updated profile {user['owner_id']}: {list(updates.keys())}")
    return ProfileResponse(success=True, profile=profile)


@router.post("/api-key")
async def regenerate_api_key(
    user: dict = Depends(verify_user),
    repo: ProfileRepository = Depends(get_profile_repo)
):
    """Rotate the caller's API key. The new key is shown only in this response."""
    api_key = repo.regenerate_api_key(user["owner_id"])
    if api_key is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return {"success": True, "api_key": api_key}


@router.post("/users", status_code=201)
async def register_user(
    request: RegisterUserRequest,
    _: dict = Depends(verify_super_admin),
    repo: ProfileRepository = Depends(get_profile_repo)
):
    """Create a profile and issue its API key (returned once, stored hashed)."""
    try:
        return repo.create(request.display_name, request.marketplace_username)
    except Exception as e:
        logger.error(f"[ProfileAPI] Error registering user: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
