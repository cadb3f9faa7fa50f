"""
Template Routes

Endpoints:
- Analyze text (auto-fill metadata) and score templates for a message
- Template CRUD with filters and usage tracking
- Bulk upload (CSV / JSON / TXT), sample file and upload history
- Curated starter library and copy-to-personal
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, File, Query, UploadFile
from fastapi.responses import Response
from typing import Optional, List
from pydantic import BaseModel, Field

from app.middleware.auth import verify_user
from app.models.template_schema import (
    TemplateCreateRequest,
    TemplateUpdateRequest,
    TemplateUseRequest,
)
from app.services.template_service import TemplateService, get_template_service
from app.services.template_import_service import TemplateImportService, get_template_import_service
from app.utils.template_parser import TemplateImportError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/templates", tags=["templates"])


# ===================== REQUEST/RESPONSE MODELS =====================

class AnalyzeRequest(BaseModel):
    """Text to analyze"""
    content: str = Field(..., max_length=10000)


class MatchRequest(BaseModel):
    """Client message to score templates against"""
    client_message: str = Field(..., min_length=1, max_length=10000)
    message_type: Optional[str] = None
    client_type: Optional[str] = None


class UploadResponse(BaseModel):
    """Summary of a bulk upload"""
    success: bool
    session_id: Optional[str] = None
    total: int
    processed: int
    failed: int
    status: str
    errors: List[str] = Field(default_factory=list)
    template_ids: List[str] = Field(default_factory=list)


# ===================== ANALYSIS & MATCHING =====================

@router.post("/analyze")
async def analyze_content(
    request: AnalyzeRequest,
    user: dict = Depends(verify_user),
    template_service: TemplateService = Depends(get_template_service)
):
    """Detect keywords, category, tone, complexity and client type; return formatted text."""
    return template_service.analyze(request.content)


@router.post("/match")
async def match_templates(
    request: MatchRequest,
    user: dict = Depends(verify_user),
    template_service: TemplateService = Depends(get_template_service)
):
    """Rank the user's templates for a client message."""
    try:
        matches = template_service.score_templates(
            user["owner_id"],
            request.client_message,
            message_type=request.message_type,
            client_type=request.client_type,
        )
        return {"matches": [match.to_dict() for match in matches], "count": len(matches)}
    except Exception as e:
        logger.error(f"[TemplateAPI] Error matching templates: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


# ===================== BULK UPLOAD =====================

@router.post("/upload", response_model=UploadResponse)
async def upload_templates(
    file: UploadFile = File(...),
    user: dict = Depends(verify_user),
    import_service: TemplateImportService = Depends(get_template_import_service)
):
    """
    Import templates from a CSV, JSON or TXT file.

    Row-level problems are reported in `errors`; a file that cannot be
    parsed at all is rejected with 400.
    """
    try:
        content = await file.read()
        result = import_service.import_file(user["owner_id"], file.filename or "", content)
        return UploadResponse(
            success=result.success,
            session_id=result.session_id,
            total=result.total,
            processed=result.processed,
            failed=result.failed,
            status=result.status,
            errors=result.errors,
            template_ids=result.template_ids,
        )
    except TemplateImportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"[TemplateAPI] Upload failed: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Upload failed: {str(e)}")


@router.get("/upload/sample")
async def download_sample(
    user: dict = Depends(verify_user),
    import_service: TemplateImportService = Depends(get_template_import_service)
):
    """Sample CSV showing the expected columns."""
    return Response(
        content=import_service.sample_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=template_sample.csv"},
    )


@router.get("/upload/sessions")
async def list_upload_sessions(
    limit: int = Query(10, ge=1, le=100),
    user: dict = Depends(verify_user),
    import_service: TemplateImportService = Depends(get_template_import_service)
):
    sessions = import_service.list_sessions(user["owner_id"], limit=limit)
    return {"sessions": sessions, "count": len(sessions)}


# ===================== CURATED LIBRARY =====================

@router.get("/curated")
async def list_curated_templates(
    category: Optional[str] = None,
    industry: Optional[str] = None,
    q: Optional[str] = Query(None, max_length=200),
    user: dict = Depends(verify_user),
    template_service: TemplateService = Depends(get_template_service)
):
    templates = template_service.list_curated(category=category, industry=industry, query=q)
    return {"templates": templates, "count": len(templates)}


@router.post("/curated/{curated_id}/copy", status_code=201)
async def copy_curated_template(
    curated_id: str,
    user: dict = Depends(verify_user),
    template_service: TemplateService = Depends(get_template_service)
):
    template = template_service.copy_curated_template(user["owner_id"], curated_id)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Curated template {curated_id} not found")
    return template


# ===================== CRUD =====================

@router.get("")
async def list_templates(
    category: Optional[str] = None,
    tone_style: Optional[str] = None,
    project_complexity: Optional[str] = None,
    q: Optional[str] = Query(None, max_length=200),
    sort_by: str = Query("usage", pattern="^(usage|recent|last_used)$"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    user: dict = Depends(verify_user),
    template_service: TemplateService = Depends(get_template_service)
):
    templates = template_service.list_templates(
        user["owner_id"],
        category=category,
        tone_style=tone_style,
        project_complexity=project_complexity,
        query=q,
        sort_by=sort_by,
        skip=skip,
        limit=limit,
    )
    return {"templates": templates, "count": len(templates)}


@router.post("", status_code=201)
async def create_template(
    request: TemplateCreateRequest,
    user: dict = Depends(verify_user),
    template_service: TemplateService = Depends(get_template_service)
):
    """Create a template; omitted metadata is inferred from the body."""
    return template_service.create_template(user["owner_id"], request.model_dump())


@router.get("/{template_id}")
async def get_template(
    template_id: str,
    user: dict = Depends(verify_user),
    template_service: TemplateService = Depends(get_template_service)
):
    template = template_service.get_template(user["owner_id"], template_id)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template {template_id} not found")
    return template


@router.put("/{template_id}")
async def update_template(
    template_id: str,
    request: TemplateUpdateRequest,
    user: dict = Depends(verify_user),
    template_service: TemplateService = Depends(get_template_service)
):
    template = template_service.update_template(
        user["owner_id"], template_id, request.model_dump(exclude_unset=True)
    )
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template {template_id} not found")
    return template


@router.delete("/{template_id}")
async def delete_template(
    template_id: str,
    user: dict = Depends(verify_user),
    template_service: TemplateService = Depends(get_template_service)
):
    if not template_service.delete_template(user["owner_id"], template_id):
        raise HTTPException(status_code=404, detail=f"Template {template_id} not found")
    return {"success": True, "template_id": template_id}


@router.post("/{template_id}/use")
async def use_template(
    template_id: str,
    request: Optional[TemplateUseRequest] = None,
    user: dict = Depends(verify_user),
    template_service: TemplateService = Depends(get_template_service)
):
    """Track a template use and return its body with variables filled in."""
    request = request or TemplateUseRequest()
    result = template_service.use_template(
        user["owner_id"],
        template_id,
        variables=request.variables,
        client_message_context=request.client_message_context,
    )
    if result is None:
        raise HTTPException(status_code=404, detail=f"Template {template_id} not found")
    return result
