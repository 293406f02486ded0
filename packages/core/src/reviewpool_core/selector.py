"""Candidate selector — uniform random pick from a team's active members.

The randomness source is pluggable: production uses the OS entropy pool,
tests and reproducible sessions pass a seeded ``random.Random``.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from reviewpool_store.base import BaseStore
    from reviewpool_store.models import User

logger = logging.getLogger(__name__)


class CandidateSelector:
    """Draws reviewers from a team's candidate pool.

    Usage:
        selector = CandidateSelector(store, rng=random.Random(7))
        reviewers = selector.select("backend", exclude_user_id="u1", limit=2)
    """

    def __init__(self, store: BaseStore, rng: random.Random | None = None) -> None:
        self._store = store
        self._rng = rng if rng is not None else random.SystemRandom()

    def candidate_pool(self, team_name: str, exclude_user_id: str) -> list[User]:
        """Active members of the team other than ``exclude_user_id``."""
        return self._store.list_active_members_except(team_name, exclude_user_id)

    def select(
        self,
        team_name: str,
        exclude_user_id: str,
        limit: int,
        skip: Iterable[str] = (),
    ) -> list[User]:
        """Return up to ``limit`` distinct candidates in random order.

        ``skip`` removes further ids from the pool (the PR author and the
        reviewers already bound, when replacing one of them). An empty pool
        yields an empty list; the caller decides whether that is fatal.
        """
        skipped = set(skip)
        pool = [u for u in self.candidate_pool(team_name, exclude_user_id) if u.user_id not in skipped]
        if not pool or limit <= 0:
            logger.debug("No candidates in %r excluding %r", team_name, exclude_user_id)
            return []

        # Full permutation so the draw does not depend on storage order.
        self._rng.shuffle(pool)
        chosen = pool[: min(limit, len(pool))]
        logger.debug(
            "Selected %s from %d candidate(s) in %r",
            [u.user_id for u in chosen],
            len(pool),
            team_name,
        )
        return chosen
