"""Email template endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from svj.dependencies import get_db_client, require_manager
from svj.schemas.template import TemplateCreate, TemplatePreviewRequest, TemplateUpdate
from svj.services.template_service import TemplateService
from supabase import Client

router = APIRouter()


@router.get("")
def list_templates(
    category: str | None = Query(default=None),
    _: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """List templates, optionally for one category."""
    return {"templates": TemplateService(client).list_templates(category)}


@router.post("")
def create_template(
    payload: TemplateCreate,
    _: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Create a template."""
    return {"template": TemplateService(client).create(payload.model_dump())}


@router.get("/{template_id}")
def get_template(
    template_id: str,
    _: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return one template."""
    return {"template": TemplateService(client).get(template_id)}


@router.patch("/{template_id}")
def update_template(
    template_id: str,
    payload: TemplateUpdate,
    _: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Update a template."""
    template = TemplateService(client).update(
        template_id,
        payload.model_dump(exclude_unset=True),
    )
    return {"template": template}


@router.delete("/{template_id}")
def delete_template(
    template_id: str,
    _: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Delete a template."""
    TemplateService(client).delete(template_id)
    return {"success": True}


@router.post("/{template_id}/duplicate")
def duplicate_template(
    template_id: str,
    _: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Copy a template."""
    return {"template": TemplateService(client).duplicate(template_id)}


@router.post("/{template_id}/preview")
def preview_template(
    template_id: str,
    payload: TemplatePreviewRequest,
    _: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Render a template with sample values."""
    return {"preview": TemplateService(client).preview(template_id, payload.variables)}
