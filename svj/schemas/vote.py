"""Vote (ballot) schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

QuestionType = Literal["single", "multiple"]


class VoteOption(BaseModel):
    """One selectable answer."""

    id: str | None = None
    text: str = ""


class VoteQuestion(BaseModel):
    """One question of a ballot."""

    id: str | None = None
    question: str = ""
    type: QuestionType = "single"
    options: list[VoteOption] = Field(default_factory=list)


class VoteCreate(BaseModel):
    """Request body for creating a draft vote."""

    title: str = Field(..., min_length=1, max_length=300)
    description: str = ""
    start_date: datetime
    end_date: datetime
    questions: list[VoteQuestion] = Field(..., min_length=1)
    observers: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _end_after_start(self) -> "VoteCreate":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class VoteUpdate(BaseModel):
    """Partial vote update."""

    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    questions: list[VoteQuestion] | None = None
    observers: list[str] | None = None

    @model_validator(mode="after")
    def _end_after_start(self) -> "VoteUpdate":
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self
