"""PR lifecycle: OPEN → MERGED, nothing else.

Merging is idempotent. Once merged, reviewer changes are refused by the
assignment engine's status check; nothing here locks the PR.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reviewpool_core.errors import InternalError, NotFoundError
from reviewpool_store.models import PRStatus

if TYPE_CHECKING:
    from reviewpool_store.base import BaseStore
    from reviewpool_store.models import PullRequest

logger = logging.getLogger(__name__)

# Allowed transitions. MERGED is terminal.
TRANSITIONS: dict[PRStatus, frozenset[PRStatus]] = {
    PRStatus.OPEN: frozenset({PRStatus.MERGED}),
    PRStatus.MERGED: frozenset(),
}


def can_transition(current: PRStatus, target: PRStatus) -> bool:
    return target in TRANSITIONS[current]


class LifecycleController:
    def __init__(self, store: BaseStore) -> None:
        self._store = store

    def merge_pr(self, pr_id: str) -> PullRequest:
        """Mark the PR merged and return it with its final reviewer set.

        Merging an already merged PR returns its current state unchanged.
        """
        pr = self._store.get_pr(pr_id)
        if pr is None:
            raise NotFoundError(f"PR {pr_id!r} not found")

        if pr.is_merged:
            logger.debug("PR %r already merged", pr_id)
            return pr

        if not can_transition(pr.status, PRStatus.MERGED):
            raise InternalError(f"PR {pr_id!r} cannot move from {pr.status.value} to MERGED")

        self._store.set_pr_status(pr_id, PRStatus.MERGED)
        logger.info("Merged PR %r", pr_id)

        merged = self._store.get_pr(pr_id)
        if merged is None:
            raise InternalError(f"PR {pr_id!r} vanished while merging")
        return merged
