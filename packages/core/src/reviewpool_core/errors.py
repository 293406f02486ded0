"""Error kinds raised by the engine.

Each class carries a stable ``code`` that the transport layer prints or
serialises as-is. Every failed operation raises exactly one of these.
"""

from __future__ import annotations


class ReviewPoolError(Exception):
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(ReviewPoolError):
    """A referenced user, team or PR does not exist."""

    code = "NOT_FOUND"


class AlreadyExistsError(ReviewPoolError):
    """Duplicate team name or PR id. ``code`` is TEAM_EXISTS or PR_EXISTS."""

    code = "ALREADY_EXISTS"


class AlreadyMergedError(ReviewPoolError):
    code = "PR_MERGED"


class NotAssignedError(ReviewPoolError):
    code = "NOT_ASSIGNED"


class NoCandidateError(ReviewPoolError):
    code = "NO_CANDIDATE"


class InternalError(ReviewPoolError):
    """Store failure, or directory state the engine cannot work with."""

    code = "INTERNAL_ERROR"
