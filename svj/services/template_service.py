"""Email template storage and ``{{variable}}`` rendering."""

from __future__ import annotations

import html
import re
from typing import Any

from svj.services.common import SupabaseService
from svj.utils.errors import TemplateNotFoundError
from svj.utils.time import now_utc
from supabase import Client

TEMPLATES_TABLE = "email_templates"
PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*\}\}")


def extract_variables(*texts: str) -> list[str]:
    """Return placeholder names in first-seen order."""
    names: list[str] = []
    for text in texts:
        for match in PLACEHOLDER_PATTERN.finditer(text or ""):
            if match.group(1) not in names:
                names.append(match.group(1))
    return names


def render_template(text: str, variables: dict[str, Any], escape: bool = False) -> str:
    """Substitute ``{{name}}`` placeholders that have a supplied value.

    Unknown placeholders are left untouched. With ``escape`` the values are
    HTML-escaped before insertion.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        value = "" if variables[name] is None else str(variables[name])
        return html.escape(value, quote=False) if escape else value

    return PLACEHOLDER_PATTERN.sub(_replace, text or "")


class TemplateService:
    """CRUD and default-selection for email templates."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def list_templates(self, category: str | None = None) -> list[dict[str, Any]]:
        """Return templates newest first, optionally for one category."""
        filters = {"category": category} if category else None
        return self.db.select_many(
            TEMPLATES_TABLE,
            filters=filters,
            order_by="created_at",
            descending=True,
        )

    def get(self, template_id: str) -> dict[str, Any]:
        """Return one template."""
        return self.db.select_one(
            TEMPLATES_TABLE,
            {"id": template_id},
            not_found_error=TemplateNotFoundError(),
        )

    def default_for_category(self, category: str) -> dict[str, Any] | None:
        """Return the default template of a category, if any."""
        return self.db.find_one(TEMPLATES_TABLE, {"category": category, "is_default": True})

    def resolve(self, template_id: str | None, category: str = "voting") -> dict[str, Any]:
        """Return the explicit template, else the category default."""
        if template_id:
            return self.get(template_id)
        template = self.default_for_category(category)
        if template is None:
            raise TemplateNotFoundError("No email template specified or found")
        return template

    def _clear_other_defaults(self, category: str, keep_id: str | None = None) -> None:
        # Two separate writes: concurrent callers can still leave two defaults.
        for template in self.db.select_many(
            TEMPLATES_TABLE,
            filters={"category": category, "is_default": True},
        ):
            if keep_id is not None and str(template["id"]) == str(keep_id):
                continue
            self.db.update(TEMPLATES_TABLE, {"id": template["id"]}, {"is_default": False})

    def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a template, deriving variables from the text when missing."""
        data = dict(payload)
        if not data.get("variables"):
            data["variables"] = extract_variables(data.get("subject", ""), data.get("content", ""))
        if data.get("is_default"):
            self._clear_other_defaults(data["category"])
        return self.db.insert_one(TEMPLATES_TABLE, data)

    def update(self, template_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Patch a template and keep at most one default per category."""
        current = self.get(template_id)
        data = dict(payload)
        if data.get("is_default"):
            self._clear_other_defaults(data.get("category") or current["category"], template_id)
        data["updated_at"] = now_utc().isoformat()
        rows = self.db.update(TEMPLATES_TABLE, {"id": template_id}, data)
        return rows[0] if rows else {**current, **data}

    def delete(self, template_id: str) -> None:
        """Delete a template."""
        self.get(template_id)
        self.db.delete(TEMPLATES_TABLE, {"id": template_id})

    def duplicate(self, template_id: str) -> dict[str, Any]:
        """Copy a template under a new name; the copy is never a default."""
        source = self.get(template_id)
        copy = {
            key: value
            for key, value in source.items()
            if key not in {"id", "created_at", "updated_at"}
        }
        copy["name"] = f"{source['name']} (kopie)"
        copy["is_default"] = False
        return self.db.insert_one(TEMPLATES_TABLE, copy)

    def preview(self, template_id: str, variables: dict[str, Any]) -> dict[str, str]:
        """Render subject and content with caller-supplied sample values."""
        template = self.get(template_id)
        return {
            "subject": render_template(template["subject"], variables),
            "content": render_template(template["content"], variables),
        }
