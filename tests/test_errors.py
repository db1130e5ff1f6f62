"""Error payload tests."""

from __future__ import annotations

import pytest

from svj.utils.errors import (
    AlreadyVotedError,
    AppError,
    LinkExpiredError,
    LinkInvalidError,
    VoteNotActiveError,
    error_from_payload,
)


@pytest.mark.parametrize(
    ("code", "exc_type"),
    [
        ("LINK_INVALID", LinkInvalidError),
        ("LINK_EXPIRED", LinkExpiredError),
        ("VOTE_NOT_ACTIVE", VoteNotActiveError),
        ("ALREADY_VOTED", AlreadyVotedError),
    ],
)
def test_error_from_payload_rebuilds_domain_errors(code: str, exc_type: type[AppError]) -> None:
    """Known codes come back as their exception types with the wire status."""
    error = error_from_payload({"error": "x", "code": code}, 400)

    assert isinstance(error, exc_type)
    assert error.status_code == 400


def test_error_from_payload_keeps_unknown_codes() -> None:
    """Unknown codes keep their message and code."""
    error = error_from_payload({"error": "Template missing", "code": "TEMPLATE_X"}, 404)

    assert type(error) is AppError
    assert error.to_dict() == {"error": "Template missing", "code": "TEMPLATE_X"}
    assert error.status_code == 404


def test_error_from_payload_without_code() -> None:
    """Bodies without a code still yield a usable error."""
    error = error_from_payload({}, 418)

    assert error.code == "REQUEST_FAILED"
    assert error.message == "Request failed"


@pytest.mark.parametrize("payload", [["a", "b"], "Bad Gateway", None, 42])
def test_error_from_payload_tolerates_non_object_bodies(payload: object) -> None:
    """JSON bodies that are not objects fall back to a generic error."""
    error = error_from_payload(payload, 400)

    assert type(error) is AppError
    assert error.code == "REQUEST_FAILED"
    assert (error.message, error.status_code) == ("Request failed", 400)


def test_with_status_overrides_http_status_only() -> None:
    """Re-statusing keeps the code and message."""
    error = LinkInvalidError().with_status(400)

    assert error.status_code == 400
    assert error.to_dict() == {"error": "Invalid or expired voting link", "code": "LINK_INVALID"}
