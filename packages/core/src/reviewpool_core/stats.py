"""Per-reviewer assignment counts over the full event history."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from reviewpool_store.models import utc_now

if TYPE_CHECKING:
    from reviewpool_store.base import BaseStore


@dataclass
class AssignmentStats:
    counts: dict[str, int]
    generated_at: str = field(default_factory=utc_now)

    def most_assigned(self, top: int | None = None) -> list[tuple[str, int]]:
        """(user_id, count) pairs, highest count first, ties by user id."""
        ranked = sorted(self.counts.items(), key=lambda item: (-item[1], item[0]))
        return ranked if top is None else ranked[:top]

    @property
    def total(self) -> int:
        return sum(self.counts.values())


class StatsAggregator:
    def __init__(self, store: BaseStore) -> None:
        self._store = store

    def get_stats(self) -> AssignmentStats:
        return AssignmentStats(counts=self._store.assignment_counts())
