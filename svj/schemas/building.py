"""Building schemas."""

from pydantic import BaseModel, Field


class BuildingCreate(BaseModel):
    """Request body for creating a building."""

    name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(..., min_length=1, max_length=300)
    description: str | None = Field(None, max_length=1000)
    is_active: bool = True


class BuildingUpdate(BaseModel):
    """Partial building update."""

    name: str | None = Field(None, min_length=1, max_length=200)
    address: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = Field(None, max_length=1000)
    is_active: bool | None = None
