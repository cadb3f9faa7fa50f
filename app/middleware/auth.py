"""
API Key Auth Middleware

Roles:
- super_admin: Platform admin (env var ADMIN_API_KEY), may issue user keys
- user: Profile owner identified by their API key

All user requests return a context with owner_id for query scoping.
"""
from typing import Optional
from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader
from app.config import settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_master_key() -> str:
    return settings.ADMIN_API_KEY or "dev-key"


async def verify_key(api_key: Optional[str] = Security(api_key_header)) -> dict:
    """
    Verify API key and return caller context.

    Returns dict with: role, name, user_id, owner_id
    """
    if not api_key:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "API key required")

    # Super Admin check (platform-wide)
    if api_key == get_master_key():
        return {
            "role": "super_admin",
            "name": "Super Admin",
            "user_id": None,
            "owner_id": None,  # Super admin has no data scope
        }

    from app.infra.mongodb.repositories import get_profile_repo
    profile = get_profile_repo().get_by_api_key(api_key)

    if profile:
        return {
            "role": "user",
            "name": profile.get("display_name", "User"),
            "user_id": profile.get("user_id"),
            "owner_id": profile.get("user_id"),
        }

    raise HTTPException(status.HTTP_403_FORBIDDEN, "Invalid API key")


async def verify_super_admin(api_key: Optional[str] = Security(api_key_header)) -> dict:
    """Only platform super admin (master key from .env)."""
    if not api_key or api_key != get_master_key():
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Super Admin access required")
    return {"role": "super_admin", "name": "Super Admin", "user_id": None, "owner_id": None}


async def verify_user(api_key: Optional[str] = Security(api_key_header)) -> dict:
    """A profile owner; data routes need an owner scope."""
    result = await verify_key(api_key)
    if not result.get("owner_id"):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "User API key required")
    return result
