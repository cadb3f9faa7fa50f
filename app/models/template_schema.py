"""
Pydantic schemas for templates, refined responses and profiles

Defines request models for:
- Template create/update
- Refined response capture
- Profile updates
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Dict, Optional

from app.domain.constants import TemplateCategory, ToneStyle, ProjectComplexity
from app.utils.text_analysis import normalize_terms


CATEGORY_VALUES = [c.value for c in TemplateCategory]
TONE_VALUES = [t.value for t in ToneStyle]
COMPLEXITY_VALUES = [c.value for c in ProjectComplexity]


def _check_choice(value: Optional[str], choices: List[str], label: str) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    if value not in choices:
        raise ValueError(f"Invalid {label} '{value}'. Must be one of: {', '.join(choices)}")
    return value


# ===================== TEMPLATES =====================

class TemplateFields(BaseModel):
    """Fields shared by template create and update"""

    category: Optional[str] = Field(None, description="Template category (auto-detected if omitted)")
    tone_style: Optional[str] = Field(None, description="Tone label (auto-detected if omitted)")
    project_complexity: Optional[str] = Field(None, description="simple | standard | complex")
    client_type: Optional[str] = Field(None, max_length=50)
    industry_tags: Optional[List[str]] = None
    matching_keywords: Optional[List[str]] = None
    success_rating: Optional[float] = Field(None, ge=1, le=5, description="User rating 1-5")

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return _check_choice(v, CATEGORY_VALUES, "category")

    @field_validator("tone_style")
    @classmethod
    def validate_tone(cls, v):
        return _check_choice(v, TONE_VALUES, "tone_style")

    @field_validator("project_complexity")
    @classmethod
    def validate_complexity(cls, v):
        return _check_choice(v, COMPLEXITY_VALUES, "project_complexity")

    @field_validator("client_type")
    @classmethod
    def clean_client_type(cls, v):
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

    @field_validator("industry_tags", "matching_keywords", mode="before")
    @classmethod
    def clean_terms(cls, v):
        """Accept a list or comma-separated string; strip, lower-case, de-duplicate"""
        if v is None:
            return None
        return normalize_terms(v)


class TemplateCreateRequest(TemplateFields):
    """Request model for creating a template"""

    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1, max_length=10000)

    @field_validator("title", "body")
    @classmethod
    def strip_whitespace(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v


class TemplateUpdateRequest(TemplateFields):
    """Request model for partial template updates"""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    body: Optional[str] = Field(None, min_length=1, max_length=10000)

    @field_validator("title", "body")
    @classmethod
    def strip_whitespace(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v


class TemplateUseRequest(BaseModel):
    """Record a template use and optionally fill its variables"""

    client_message_context: Optional[str] = Field(None, max_length=5000)
    variables: Dict[str, str] = Field(default_factory=dict)


# ===================== REFINED RESPONSES =====================

class RefinedResponseCreateRequest(BaseModel):
    """Request model for saving a human-refined reply"""

    original_client_message: str = Field(..., min_length=1, max_length=10000)
    original_response: str = Field(..., min_length=1, max_length=10000)
    refined_response: str = Field(..., min_length=1, max_length=10000)
    message_type: Optional[str] = None

    @field_validator("original_client_message", "original_response", "refined_response")
    @classmethod
    def strip_whitespace(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v


# ===================== PROFILE =====================

class ProfileUpdateRequest(BaseModel):
    """Editable profile fields"""

    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    marketplace_username: Optional[str] = Field(None, max_length=100)

    @field_validator("display_name", "marketplace_username")
    @classmethod
    def strip_whitespace(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v
