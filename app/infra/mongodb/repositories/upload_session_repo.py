"""
Upload Session Repository - Summaries of bulk template imports.
"""
import logging
from typing import Optional, List, Dict, Any
from datetime import datetime
from pymongo import DESCENDING

from app.infra.mongodb.base_repository import BaseRepository
from app.domain.constants import UploadStatus

logger = logging.getLogger(__name__)


class UploadSessionRepository(BaseRepository[Dict[str, Any]]):
    """One row per uploaded file."""

    collection_name = "template_upload_sessions"
    id_field = "session_id"
    id_prefix = "upl"

    def start(self, owner_id: str, original_filename: str, total_templates: int = 0) -> str:
        """Open a session in `processing` state. Returns session_id."""
        return self.insert_one({
            "owner_id": owner_id,
            "original_filename": original_filename,
            "total_templates": total_templates,
            "processed_templates": 0,
            "failed_templates": 0,
            "status": UploadStatus.PROCESSING.value,
            "error_log": [],
            "completed_at": None,
        })

    def complete(
        self,
        session_id: str,
        total: int,
        processed: int,
        failed: int,
        error_log: List[str],
        status: str = UploadStatus.COMPLETED.value
    ) -> bool:
        return self.update_one(
            {"session_id": session_id},
            {
                "total_templates": total,
                "processed_templates": processed,
                "failed_templates": failed,
                "error_log": error_log,
                "status": status,
                "completed_at": datetime.utcnow(),
            }
        )

    def list_recent(self, owner_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        return self.find_many(
            {"owner_id": owner_id},
            limit=limit,
            sort=[("created_at", DESCENDING)]
        )


_upload_session_repo: Optional[UploadSessionRepository] = None


def get_upload_session_repo() -> UploadSessionRepository:
    """Get singleton UploadSessionRepository."""
    global _upload_session_repo
    if _upload_session_repo is None:
        _upload_session_repo = UploadSessionRepository()
    return _upload_session_repo
