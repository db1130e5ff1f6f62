"""Custom exception hierarchy for the SVJ voting API."""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Serialize the error in the API standard shape."""
        return {"error": self.message, "code": self.code}

    def with_status(self, status_code: int) -> AppError:
        """Report this error under another HTTP status and return it."""
        self.status_code = status_code
        return self


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str, code: str = "NOT_FOUND") -> None:
        super().__init__(message=f"{resource} not found", code=code, status_code=404)


class ForbiddenError(AppError):
    """Raised when the user lacks permission for the action."""

    def __init__(self, reason: str = "You don't have permission") -> None:
        super().__init__(message=reason, code="FORBIDDEN", status_code=403)


class ConflictError(AppError):
    """Raised on duplicate/conflicting operations."""

    def __init__(self, reason: str, code: str = "CONFLICT") -> None:
        super().__init__(message=reason, code=code, status_code=409)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        super().__init__(message=reason, code="UNAUTHORIZED", status_code=401)


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=reason, code="INVALID_INPUT", status_code=422)


class LinkInvalidError(AppError):
    """Raised when a voting token matches no active link."""

    def __init__(self) -> None:
        super().__init__(
            message="Invalid or expired voting link",
            code="LINK_INVALID",
            status_code=404,
        )


class LinkExpiredError(AppError):
    """Raised when a voting link is past its expiry."""

    def __init__(self) -> None:
        super().__init__(
            message="Voting link has expired",
            code="LINK_EXPIRED",
            status_code=410,
        )


class VoteNotActiveError(AppError):
    """Raised when the vote behind a link is not open for voting."""

    def __init__(self) -> None:
        super().__init__(
            message="Voting is not currently active",
            code="VOTE_NOT_ACTIVE",
            status_code=400,
        )


class AlreadyVotedError(AppError):
    """Raised when a member submits a second ballot for the same vote."""

    def __init__(self) -> None:
        super().__init__(message="You have already voted", code="ALREADY_VOTED")


class IssuanceFailedError(AppError):
    """Raised when a voting link cannot be persisted."""

    def __init__(self, reason: str = "Failed to create voting link") -> None:
        super().__init__(message=reason, code="ISSUANCE_FAILED")


class TemplateNotFoundError(NotFoundError):
    """Raised when no usable email template exists."""

    def __init__(self, resource: str = "Email template") -> None:
        super().__init__(resource, code="TEMPLATE_NOT_FOUND")


class MemberNotFoundError(NotFoundError):
    """Raised when a member lookup fails."""

    def __init__(self) -> None:
        super().__init__("Member", code="MEMBER_NOT_FOUND")


class VoteNotFoundError(NotFoundError):
    """Raised when a vote lookup fails."""

    def __init__(self) -> None:
        super().__init__("Vote", code="VOTE_NOT_FOUND")


class SendFailedError(AppError):
    """Raised when the email provider rejects or fails a delivery."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=reason, code="SEND_FAILED", status_code=502)


class StoreUnavailableError(AppError):
    """Raised when the database cannot be reached."""

    def __init__(self, reason: str = "Database is unavailable") -> None:
        super().__init__(message=reason, code="STORE_UNAVAILABLE", status_code=503)


_ERRORS_BY_CODE: dict[str, type[AppError]] = {
    "LINK_INVALID": LinkInvalidError,
    "LINK_EXPIRED": LinkExpiredError,
    "VOTE_NOT_ACTIVE": VoteNotActiveError,
    "ALREADY_VOTED": AlreadyVotedError,
    "MEMBER_NOT_FOUND": MemberNotFoundError,
    "VOTE_NOT_FOUND": VoteNotFoundError,
}


def error_from_payload(payload: Any, status_code: int) -> AppError:
    """Rebuild a domain error from an API error body."""
    if not isinstance(payload, dict):
        payload = {}
    code = str(payload.get("code") or "")
    message = str(payload.get("error") or "Request failed")
    error_type = _ERRORS_BY_CODE.get(code)
    if error_type is not None:
        return error_type().with_status(status_code)
    return AppError(message=message, code=code or "REQUEST_FAILED", status_code=status_code)
