"""
Template Import Service

Bulk import of templates from CSV / JSON / TXT files:
1. Parse the file (per-row errors collected, whole-file errors raised)
2. Open an upload session
3. Insert templates in small batches, collecting per-item failures
4. Complete the session with totals and the error log

Imports are best-effort: rows inserted before a failure stay inserted.
"""
import logging
from typing import Optional, List, Dict, Any, Union
from dataclasses import dataclass, field

from app.config import settings
from app.domain.constants import SAMPLE_TEMPLATES_CSV, UploadStatus
from app.utils.template_parser import TemplateImportError, ParsedTemplate, parse_file

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Result of a bulk template import."""
    success: bool
    session_id: Optional[str] = None
    total: int = 0
    processed: int = 0
    failed: int = 0
    status: str = UploadStatus.COMPLETED.value
    errors: List[str] = field(default_factory=list)
    template_ids: List[str] = field(default_factory=list)
    error_message: Optional[str] = None


def batched(items: List[Any], size: int) -> List[List[Any]]:
    size = max(size, 1)
    return [items[i:i + size] for i in range(0, len(items), size)]


class TemplateImportService:
    """
    Service for importing template files.

    Usage:
        service = TemplateImportService(template_service, session_repo)
        result = service.import_file(owner_id, "templates.csv", raw_bytes)
    """

    def __init__(self, template_service=None, session_repo=None, batch_size: Optional[int] = None):
        if template_service is None:
            from app.services.template_service import get_template_service
            template_service = get_template_service()
        if session_repo is None:
            from app.infra.mongodb.repositories import get_upload_session_repo
            session_repo = get_upload_session_repo()
        self.template_service = template_service
        self.session_repo = session_repo
        self.batch_size = batch_size or settings.IMPORT_BATCH_SIZE

    def validate_upload(self, filename: str, content: Union[bytes, str]) -> None:
        """Reject oversized or empty files before parsing."""
        size = len(content.encode("utf-8") if isinstance(content, str) else content)
        if size == 0:
            raise TemplateImportError("Uploaded file is empty")
        max_bytes = settings.MAX_FILE_SIZE_MB * 1024 * 1024
        if size > max_bytes:
            raise TemplateImportError(f"File too large. Maximum size is {settings.MAX_FILE_SIZE_MB}MB")

    def import_file(self, owner_id: str, filename: str, content: Union[bytes, str]) -> ImportResult:
        """
        Import templates from an uploaded file.

        Args:
            owner_id: Owner of the new templates
            filename: Original file name (extension selects the parser)
            content: Raw file content

        Returns:
            ImportResult with session summary

        Raises:
            TemplateImportError: The file as a whole cannot be imported
        """
        self.validate_upload(filename, content)
        parsed = parse_file(filename, content)

        logger.info(f"[TemplateImport] {filename}: {parsed.total} rows for {owner_id}")
        session_id = self.session_repo.start(owner_id, filename, parsed.total)

        errors: List[str] = list(parsed.errors)
        template_ids: List[str] = []

        for batch in batched(parsed.templates, self.batch_size):
            for template in batch:
                template_id = self._insert(owner_id, template, errors)
                if template_id:
                    template_ids.append(template_id)

        processed = len(template_ids)
        failed = parsed.total - processed
        self.session_repo.complete(
            session_id,
            total=parsed.total,
            processed=processed,
            failed=failed,
            error_log=errors,
            status=UploadStatus.COMPLETED.value,
        )

        logger.info(f"[TemplateImport] Session {session_id}: {processed} imported, {failed} failed")
        return ImportResult(
            success=processed > 0,
            session_id=session_id,
            total=parsed.total,
            processed=processed,
            failed=failed,
            status=UploadStatus.COMPLETED.value,
            errors=errors,
            template_ids=template_ids,
            error_message=None if processed > 0 else "No templates were imported",
        )

    def _insert(self, owner_id: str, template: ParsedTemplate, errors: List[str]) -> Optional[str]:
        try:
            created = self.template_service.create_template(owner_id, template.to_dict())
            return created["template_id"]
        except Exception as e:
            logger.warning(f"[TemplateImport] Failed to insert '{template.title}': {e}")
            errors.append(f'Template "{template.title}": {e}')
            return None

    def sample_csv(self) -> str:
        return SAMPLE_TEMPLATES_CSV

    def list_sessions(self, owner_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        return self.session_repo.list_recent(owner_id, limit=limit)


_import_service: Optional[TemplateImportService] = None


def get_template_import_service() -> TemplateImportService:
    """Get or create the TemplateImportService singleton"""
    global _import_service
    if _import_service is None:
        _import_service = TemplateImportService()
    return _import_service
