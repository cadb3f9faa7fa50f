"""
Profile Repository - Identity summary used in prompts and API-key lookup.

Only a SHA-256 hash of each API key is stored; the raw key is returned
once at issuance.
"""
import hashlib
import logging
import uuid
from typing import Optional, Dict, Any
from datetime import datetime

from app.infra.mongodb.base_repository import BaseRepository

logger = logging.getLogger(__name__)


EDITABLE_FIELDS = ("display_name", "marketplace_username")


def hash_key(key: str) -> str:
    """Hash API key for secure storage."""
    return hashlib.sha256(key.encode()).hexdigest()


def new_api_key() -> str:
    return f"rak_{uuid.uuid4().hex}"  # rak = reply assistant key


class ProfileRepository(BaseRepository[Dict[str, Any]]):

    collection_name = "profiles"
    id_field = "user_id"
    id_prefix = "usr"

    @staticmethod
    def public(profile: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Profile without secrets."""
        if profile is None:
            return None
        return {k: v for k, v in profile.items() if k != "api_key_hash"}

    def create(self, display_name: str, marketplace_username: Optional[str] = None) -> Dict[str, Any]:
        """Create a profile with a fresh API key (returned in clear only here)."""
        api_key = new_api_key()
        doc = {
            "display_name": display_name.strip(),
            "marketplace_username": (marketplace_username or "").strip() or None,
            "api_key_hash": hash_key(api_key),
            "api_key_prefix": api_key[:8],
            "is_active": True,
        }
        self.insert_one(doc)
        logger.info(f"Created profile: {doc['user_id']} ({doc['display_name']})")
        return {**self.public(doc), "api_key": api_key}

    def get_by_user_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.public(self.find_by_id(user_id))

    def get_by_api_key(self, api_key: str) -> Optional[Dict[str, Any]]:
        """Authenticate by API key."""
        profile = self.find_one({"api_key_hash": hash_key(api_key), "is_active": True})
        return self.public(profile)

    def update_profile(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update editable fields; unknown keys are ignored."""
        changes = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS}
        if changes and not self.update_one({"user_id": user_id}, changes):
            return None
        return self.get_by_user_id(user_id)

    def regenerate_api_key(self, user_id: str) -> Optional[str]:
        """Generate new API key for user."""
        api_key = new_api_key()
        updated = self.update_one(
            {"user_id": user_id},
            {
                "api_key_hash": hash_key(api_key),
                "api_key_prefix": api_key[:8],
                "key_regenerated_at": datetime.utcnow(),
            }
        )
        return api_key if updated else None


_profile_repo: Optional[ProfileRepository] = None


def get_profile_repo() -> ProfileRepository:
    """Get singleton ProfileRepository."""
    global _profile_repo
    if _profile_repo is None:
        _profile_repo = ProfileRepository()
    return _profile_repo
