"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "BrevoMailer": "svj.services.mailer",
    "BuildingService": "svj.services.building_service",
    "DistributionService": "svj.services.distribution_service",
    "EmailService": "svj.services.email_service",
    "LinkService": "svj.services.link_service",
    "MemberService": "svj.services.member_service",
    "SupabaseService": "svj.services.common",
    "TallyService": "svj.services.tally_service",
    "TemplateService": "svj.services.template_service",
    "VoteService": "svj.services.vote_service",
    "VotingService": "svj.services.voting_service",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
