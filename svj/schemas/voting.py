"""Payloads of the token-based voting and email routes.

Field names on the wire are camelCase; Python attributes stay snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Base model accepting either camelCase aliases or field names."""

    model_config = ConfigDict(populate_by_name=True)


class VoteAnswer(CamelModel):
    """Options chosen for one question."""

    question_id: str = Field(..., alias="questionId", min_length=1)
    option_ids: list[str] = Field(default_factory=list, alias="optionIds")


class VotingDataRequest(CamelModel):
    """Body of ``get-voting-data``."""

    token: str | None = None


class EmailVoteRequest(CamelModel):
    """Body of ``process-email-vote``."""

    token: str = Field(..., min_length=1)
    answers: list[VoteAnswer] = Field(..., min_length=1)


class BallotSubmitRequest(CamelModel):
    """Answers submitted from the public voting page or the app."""

    answers: list[VoteAnswer] = Field(..., min_length=1)


class SendVotingEmailRequest(CamelModel):
    """Body of ``send-voting-email``."""

    vote_id: str = Field(..., alias="voteId")
    member_id: str = Field(..., alias="memberId")
    template_id: str | None = Field(None, alias="templateId")


class DistributeRequest(CamelModel):
    """Body of ``distribute-voting-emails``."""

    vote_id: str = Field(..., alias="voteId")
    member_ids: list[str] | None = Field(None, alias="memberIds")
    template_id: str | None = Field(None, alias="templateId")


def answers_to_rows(answers: list[VoteAnswer]) -> list[dict]:
    """Convert validated answers into service-level dictionaries."""
    return [
        {"question_id": answer.question_id, "option_ids": list(answer.option_ids)}
        for answer in answers
    ]
