"""Member schemas."""

from typing import Literal

from pydantic import BaseModel, Field

MemberRole = Literal["admin", "chairman", "member"]


class MemberCreate(BaseModel):
    """Request body for adding a member to a building."""

    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: str | None = None
    unit_number: str = Field(..., min_length=1)
    ownership_share: float = Field(0, ge=0, le=100)
    role: MemberRole = "member"
    is_active: bool = True


class MemberUpdate(BaseModel):
    """Partial member update."""

    email: str | None = Field(None, min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str | None = Field(None, min_length=1)
    last_name: str | None = Field(None, min_length=1)
    phone: str | None = None
    unit_number: str | None = Field(None, min_length=1)
    ownership_share: float | None = Field(None, ge=0, le=100)
    role: MemberRole | None = None
    is_active: bool | None = None


class MemberImportRequest(BaseModel):
    """Raw CSV text with one member per line and no header."""

    csv_data: str
