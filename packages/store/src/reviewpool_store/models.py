"""Directory data models.

Decoupled from reviewpool_core so the store layer can be used independently.
The engine reads and returns these records; it never mutates them in place
to change persisted state — every change goes through a store call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string, the format every record uses."""
    return datetime.now(timezone.utc).isoformat()


class PRStatus(str, Enum):
    OPEN = "OPEN"
    MERGED = "MERGED"


@dataclass
class User:
    """A directory user. ``team_name`` is only filled when explicitly resolved."""

    user_id: str
    username: str
    is_active: bool = True
    team_name: str | None = None


@dataclass
class TeamMember:
    """A member record as supplied when creating a team."""

    user_id: str
    username: str
    is_active: bool = True


@dataclass
class Team:
    team_id: int
    name: str
    members: list[User] = field(default_factory=list)


@dataclass
class PullRequest:
    """A pull request and the ids of its currently bound reviewers.

    ``reviewers`` is kept in binding order and never holds more than two ids.
    """

    pr_id: str
    title: str
    author_id: str
    status: PRStatus = PRStatus.OPEN
    reviewers: list[str] = field(default_factory=list)
    created_at: str | None = None  # ISO-8601 UTC timestamp
    merged_at: str | None = None

    @property
    def is_merged(self) -> bool:
        return self.status == PRStatus.MERGED


@dataclass(frozen=True)
class AssignmentEvent:
    """One user becoming a reviewer of one PR. Append-only."""

    pr_id: str
    user_id: str
    assigned_at: str
