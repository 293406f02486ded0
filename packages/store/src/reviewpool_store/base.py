"""Abstract directory store interface.

Any storage backend (in-memory, SQLite, Gist, Postgres) implements this
interface. The engine depends on BaseStore — not on a concrete backend — so
backends are swappable without touching engine code.

Every method is a single read or a single write. There is no transaction
API: callers that chain several writes must accept partial completion.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reviewpool_store.models import AssignmentEvent, PRStatus, PullRequest, Team, User


class StoreError(Exception):
    """Raised by a backend when the underlying storage call fails.

    Absent entities are not errors: lookups return None or an empty list.
    """


class BaseStore(ABC):
    """Durable record of users, teams, membership, PRs, reviewer bindings and
    assignment events.

    Implementations must report missing entities as None / [] and raise
    StoreError only for genuine storage failures.
    """

    # ------------------------------------------------------------------ #
    # Users                                                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def get_user(self, user_id: str) -> User | None:
        """Return the user or None. ``team_name`` is left unset."""

    @abstractmethod
    def upsert_user(self, user_id: str, username: str) -> None:
        """Create the user (active) or update the display name of an existing one."""

    @abstractmethod
    def set_user_active(self, user_id: str, active: bool) -> None:
        """Set the active flag. Unknown ids are ignored."""

    # ------------------------------------------------------------------ #
    # Teams                                                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def team_exists(self, name: str) -> bool: ...

    @abstractmethod
    def create_team(self, name: str) -> int:
        """Create a team and return its surrogate id."""

    @abstractmethod
    def add_member(self, team_id: int, user_id: str) -> None:
        """Bind a user to a team. Re-adding an existing member is a no-op."""

    @abstractmethod
    def get_team(self, name: str) -> Team | None:
        """Return the team without its members, or None."""

    @abstractmethod
    def list_team_members(self, name: str) -> list[User]: ...

    @abstractmethod
    def list_active_members_except(self, name: str, exclude_user_id: str) -> list[User]:
        """Active members of ``name`` other than ``exclude_user_id``."""

    @abstractmethod
    def user_team(self, user_id: str) -> str | None:
        """Name of the (first) team the user belongs to, or None."""

    @abstractmethod
    def random_active_member(self, name: str, exclude_user_id: str) -> User | None:
        """One random active member of ``name`` other than ``exclude_user_id``."""

    @abstractmethod
    def deactivate_team_members(self, team_id: int) -> int:
        """Clear the active flag of every member in one operation; return how many."""

    # ------------------------------------------------------------------ #
    # Pull requests                                                        #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def pr_exists(self, pr_id: str) -> bool: ...

    @abstractmethod
    def create_pr(self, pr_id: str, title: str, author_id: str) -> None:
        """Persist a new OPEN pull request stamped with its creation time."""

    @abstractmethod
    def get_pr(self, pr_id: str) -> PullRequest | None:
        """Return the PR with its current reviewer ids, or None."""

    @abstractmethod
    def set_pr_status(self, pr_id: str, status: PRStatus) -> None:
        """Update the status; moving to MERGED stamps ``merged_at``."""

    @abstractmethod
    def add_reviewer(self, pr_id: str, user_id: str) -> None:
        """Bind a reviewer. Binding an already-bound user is a no-op."""

    @abstractmethod
    def remove_reviewer(self, pr_id: str, user_id: str) -> None: ...

    @abstractmethod
    def list_reviewers(self, pr_id: str) -> list[str]:
        """Reviewer ids bound to the PR, in binding order."""

    @abstractmethod
    def prs_by_reviewer(self, user_id: str) -> list[PullRequest]:
        """PRs (any status) on which the user is currently a reviewer."""

    # ------------------------------------------------------------------ #
    # Assignment events                                                    #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def add_assignment_event(self, pr_id: str, user_id: str) -> AssignmentEvent:
        """Append one immutable assignment event and return it."""

    @abstractmethod
    def assignment_counts(self) -> dict[str, int]:
        """Number of assignment events per user id, over the full history."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional — subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """
