"""Team membership controller: team creation, lookup, bulk deactivation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reviewpool_core.errors import AlreadyExistsError, NotFoundError

if TYPE_CHECKING:
    from reviewpool_store.base import BaseStore
    from reviewpool_store.models import Team, TeamMember, User

logger = logging.getLogger(__name__)


class TeamController:
    def __init__(self, store: BaseStore) -> None:
        self._store = store

    def create_team(self, name: str, members: list[TeamMember]) -> Team:
        """Create a team and bind its initial members.

        Each member is upserted, has its active flag set from the record, and
        is then bound to the team. This is a sequence of independent writes:
        a failure part-way through leaves the team and the members handled so
        far in place.
        """
        if self._store.team_exists(name):
            raise AlreadyExistsError(f"team {name!r} already exists", code="TEAM_EXISTS")

        team_id = self._store.create_team(name)
        for member in members:
            self._store.upsert_user(member.user_id, member.username)
            self._store.set_user_active(member.user_id, member.is_active)
            self._store.add_member(team_id, member.user_id)

        logger.info("Created team %r with %d member(s)", name, len(members))
        return self.get_team(name)

    def get_team(self, name: str) -> Team:
        team = self._store.get_team(name)
        if team is None:
            raise NotFoundError(f"team {name!r} not found")
        team.members = self._store.list_team_members(name)
        return team

    def bulk_deactivate_team(self, name: str, reassign_open_prs: bool = False) -> int:
        """Mark every member of the team inactive and return how many were updated.

        Existing reviewer bindings are left as they are; only future candidate
        selection sees the change. ``reassign_open_prs`` is accepted for
        compatibility with callers that send it, and does nothing.
        """
        team = self._store.get_team(name)
        if team is None:
            raise NotFoundError(f"team {name!r} not found")

        count = self._store.deactivate_team_members(team.team_id)
        logger.info("Deactivated %d member(s) of team %r", count, name)
        if reassign_open_prs:
            logger.info("reassign_open_prs requested for %r; open PRs are not reassigned", name)
        return count

    def set_user_active(self, user_id: str, active: bool) -> User:
        """Flip one user's active flag and return the user with its team resolved."""
        user = self._store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"user {user_id!r} not found")

        self._store.set_user_active(user_id, active)
        user.is_active = active
        user.team_name = self._store.user_team(user_id)
        logger.info("User %r is now %s", user_id, "active" if active else "inactive")
        return user
