"""ReviewService — the single entry point the transport layer calls.

Wires the selector, assignment engine, lifecycle controller, team controller
and stats aggregator around one injected store. Backend failures surface
here as InternalError so callers only ever handle ReviewPoolError.
"""

from __future__ import annotations

import functools
import logging
import random
from typing import TYPE_CHECKING

from reviewpool_core.assignment import AssignmentEngine, ReassignResult
from reviewpool_core.errors import InternalError
from reviewpool_core.lifecycle import LifecycleController
from reviewpool_core.selector import CandidateSelector
from reviewpool_core.stats import AssignmentStats, StatsAggregator
from reviewpool_core.teams import TeamController
from reviewpool_store.base import StoreError

if TYPE_CHECKING:
    from reviewpool_store.base import BaseStore
    from reviewpool_store.models import PullRequest, Team, TeamMember, User

logger = logging.getLogger(__name__)


def _store_errors_as_internal(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except StoreError as e:
            logger.error("%s failed in the store: %s", method.__name__, e)
            raise InternalError(str(e)) from e

    return wrapper


class ReviewService:
    """Usage:
        service = ReviewService(SQLiteStore(".reviewpool.db"))
        service.create_team("backend", [TeamMember("u1", "Alice"), TeamMember("u2", "Bob")])
        pr = service.create_pr("pr-1", "Add search", author_id="u1")
    """

    def __init__(self, store: BaseStore, rng: random.Random | None = None) -> None:
        self._store = store
        selector = CandidateSelector(store, rng=rng)
        self._teams = TeamController(store)
        self._assignment = AssignmentEngine(store, selector)
        self._lifecycle = LifecycleController(store)
        self._stats = StatsAggregator(store)

    # Teams and users

    @_store_errors_as_internal
    def create_team(self, name: str, members: list[TeamMember]) -> Team:
        return self._teams.create_team(name, members)

    @_store_errors_as_internal
    def get_team(self, name: str) -> Team:
        return self._teams.get_team(name)

    @_store_errors_as_internal
    def bulk_deactivate_team(self, name: str, reassign_open_prs: bool = False) -> int:
        return self._teams.bulk_deactivate_team(name, reassign_open_prs=reassign_open_prs)

    @_store_errors_as_internal
    def set_user_active(self, user_id: str, active: bool) -> User:
        return self._teams.set_user_active(user_id, active)

    @_store_errors_as_internal
    def pick_reviewer(self, team_name: str, exclude_user_id: str = "") -> User | None:
        """Suggest one random active member without binding anything."""
        self._teams.get_team(team_name)
        return self._store.random_active_member(team_name, exclude_user_id)

    # Pull requests

    @_store_errors_as_internal
    def create_pr(self, pr_id: str, title: str, author_id: str) -> PullRequest:
        return self._assignment.create_pr(pr_id, title, author_id)

    @_store_errors_as_internal
    def get_pr(self, pr_id: str) -> PullRequest:
        return self._assignment.get_pr(pr_id)

    @_store_errors_as_internal
    def merge_pr(self, pr_id: str) -> PullRequest:
        return self._lifecycle.merge_pr(pr_id)

    @_store_errors_as_internal
    def reassign_reviewer(self, pr_id: str, old_reviewer_id: str) -> ReassignResult:
        return self._assignment.reassign_reviewer(pr_id, old_reviewer_id)

    @_store_errors_as_internal
    def get_user_reviews(self, user_id: str) -> list[PullRequest]:
        return self._assignment.get_user_reviews(user_id)

    # Statistics

    @_store_errors_as_internal
    def get_stats(self) -> AssignmentStats:
        return self._stats.get_stats()
