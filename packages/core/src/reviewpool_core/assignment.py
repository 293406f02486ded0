"""Assignment engine: reviewer selection at PR creation and reviewer reassignment.

Writes are issued one at a time with no transaction around them. CreatePR
tolerates binding failures and reports the reviewers actually bound;
reassignment removes the old binding before adding the new one and does not
restore it if the addition fails. A failed assignment event is logged and
never undoes a binding that was made.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from reviewpool_core.errors import (
    AlreadyExistsError,
    AlreadyMergedError,
    InternalError,
    NoCandidateError,
    NotAssignedError,
    NotFoundError,
)
from reviewpool_store.base import StoreError

if TYPE_CHECKING:
    from reviewpool_core.selector import CandidateSelector
    from reviewpool_store.base import BaseStore
    from reviewpool_store.models import PullRequest

logger = logging.getLogger(__name__)

MAX_REVIEWERS = 2


@dataclass
class ReassignResult:
    pr: PullRequest
    replaced_by: str


class AssignmentEngine:
    def __init__(self, store: BaseStore, selector: CandidateSelector) -> None:
        self._store = store
        self._selector = selector

    def create_pr(self, pr_id: str, title: str, author_id: str) -> PullRequest:
        """Create an OPEN PR and bind up to two reviewers from the author's team.

        The author is never a candidate. An author without a team, or a team
        with no other active member, yields a PR with no reviewers. Callers
        must inspect ``pr.reviewers`` rather than assume two were bound.
        """
        if self._store.pr_exists(pr_id):
            raise AlreadyExistsError(f"PR {pr_id!r} already exists", code="PR_EXISTS")
        if self._store.get_user(author_id) is None:
            raise NotFoundError(f"author {author_id!r} not found")

        team_name = self._store.user_team(author_id)
        self._store.create_pr(pr_id, title, author_id)
        logger.info("Created PR %r by %r", pr_id, author_id)

        if team_name is None:
            logger.info("Author %r has no team; PR %r has no reviewers", author_id, pr_id)
            candidates = []
        else:
            candidates = self._selector.select(team_name, exclude_user_id=author_id, limit=MAX_REVIEWERS)

        for candidate in candidates:
            self._bind(pr_id, candidate.user_id)

        pr = self._store.get_pr(pr_id)
        if pr is None:
            raise InternalError(f"PR {pr_id!r} vanished after creation")
        return pr

    def _bind(self, pr_id: str, user_id: str) -> None:
        """Bind one reviewer and record the event. Failures are logged, not raised."""
        try:
            self._store.add_reviewer(pr_id, user_id)
        except StoreError as e:
            logger.warning("Could not bind reviewer %r to PR %r: %s", user_id, pr_id, e)
            return

        try:
            self._store.add_assignment_event(pr_id, user_id)
        except StoreError as e:
            logger.warning("Bound %r to PR %r but could not record the assignment: %s", user_id, pr_id, e)
        logger.debug("Bound reviewer %r to PR %r", user_id, pr_id)

    def reassign_reviewer(self, pr_id: str, old_reviewer_id: str) -> ReassignResult:
        """Replace one bound reviewer with a random active teammate of that reviewer."""
        pr = self._store.get_pr(pr_id)
        if pr is None:
            raise NotFoundError(f"PR {pr_id!r} not found")
        if pr.is_merged:
            raise AlreadyMergedError(f"cannot reassign on merged PR {pr_id!r}")

        if old_reviewer_id not in self._store.list_reviewers(pr_id):
            raise NotAssignedError(f"{old_reviewer_id!r} is not a reviewer of PR {pr_id!r}")

        team_name = self._store.user_team(old_reviewer_id)
        if team_name is None:
            raise InternalError(f"reviewer {old_reviewer_id!r} has no team to draw a replacement from")

        # The author and the reviewers still bound are never valid replacements.
        skip = {pr.author_id, *pr.reviewers}
        chosen = self._selector.select(team_name, exclude_user_id=old_reviewer_id, limit=1, skip=skip)
        if not chosen:
            raise NoCandidateError(f"no active replacement candidate in team {team_name!r}")
        new_reviewer_id = chosen[0].user_id

        self._store.remove_reviewer(pr_id, old_reviewer_id)
        self._store.add_reviewer(pr_id, new_reviewer_id)
        try:
            self._store.add_assignment_event(pr_id, new_reviewer_id)
        except StoreError as e:
            logger.warning("Bound %r to PR %r but could not record the assignment: %s", new_reviewer_id, pr_id, e)
        logger.info("PR %r: reviewer %r replaced by %r", pr_id, old_reviewer_id, new_reviewer_id)

        pr.reviewers = self._store.list_reviewers(pr_id)
        return ReassignResult(pr=pr, replaced_by=new_reviewer_id)

    def get_pr(self, pr_id: str) -> PullRequest:
        pr = self._store.get_pr(pr_id)
        if pr is None:
            raise NotFoundError(f"PR {pr_id!r} not found")
        return pr

    def get_user_reviews(self, user_id: str) -> list[PullRequest]:
        """PRs on which ``user_id`` is currently a bound reviewer."""
        if self._store.get_user(user_id) is None:
            raise NotFoundError(f"user {user_id!r} not found")
        return self._store.prs_by_reviewer(user_id)
