"""Email template schemas."""

from typing import Literal

from pydantic import BaseModel, Field

TemplateCategory = Literal["voting", "reminder", "notification"]


class TemplateCreate(BaseModel):
    """Request body for creating an email template."""

    name: str = Field(..., min_length=1, max_length=200)
    category: TemplateCategory
    subject: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    variables: list[str] = Field(default_factory=list)
    is_default: bool = False


class TemplateUpdate(BaseModel):
    """Partial template update."""

    name: str | None = Field(None, min_length=1, max_length=200)
    category: TemplateCategory | None = None
    subject: str | None = Field(None, min_length=1)
    content: str | None = Field(None, min_length=1)
    variables: list[str] | None = None
    is_default: bool | None = None


class TemplatePreviewRequest(BaseModel):
    """Sample values used to preview a template."""

    variables: dict[str, str] = Field(default_factory=dict)
