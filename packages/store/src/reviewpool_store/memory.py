"""MemoryStore — the whole directory as one JSON-compatible document.

Used as the in-process fake for engine tests and for throwaway sessions
(`store: memory` in .reviewpool.yml). GistStore reuses the same document
layout and only swaps how the document is loaded and saved.

Document layout:
  users   — {user_id: {"username", "is_active"}}
  teams   — {name: {"id", "members": [user_id, ...]}}
  prs     — {pr_id: {"title", "author_id", "status", "reviewers", "created_at", "merged_at"}}
  events  — [{"pr_id", "user_id", "assigned_at"}, ...]  (append-only)
"""

from __future__ import annotations

import random
from collections import Counter

from reviewpool_store.base import BaseStore
from reviewpool_store.models import AssignmentEvent, PRStatus, PullRequest, Team, User, utc_now


def empty_document() -> dict:
    return {"users": {}, "teams": {}, "next_team_id": 1, "prs": {}, "events": []}


class MemoryStore(BaseStore):
    """Keeps the directory in a dict; nothing survives the process.

    Subclasses persist the document elsewhere by overriding _read() and
    _write(). Every public method reads the document once and, if it
    mutates it, writes it back once.
    """

    def __init__(self, rng: random.Random | None = None):
        self._doc = empty_document()
        self._rng = rng or random.Random()

    def _read(self) -> dict:
        return self._doc

    def _write(self, doc: dict) -> None:
        self._doc = doc

    # Users

    def get_user(self, user_id: str) -> User | None:
        row = self._read()["users"].get(user_id)
        if row is None:
            return None
        return User(user_id=user_id, username=row["username"], is_active=row["is_active"])

    def upsert_user(self, user_id: str, username: str) -> None:
        doc = self._read()
        row = doc["users"].setdefault(user_id, {"username": username, "is_active": True})
        row["username"] = username
        self._write(doc)

    def set_user_active(self, user_id: str, active: bool) -> None:
        doc = self._read()
        if user_id in doc["users"]:
            doc["users"][user_id]["is_active"] = active
            self._write(doc)

    # Teams

    def team_exists(self, name: str) -> bool:
        return name in self._read()["teams"]

    def create_team(self, name: str) -> int:
        doc = self._read()
        team_id = doc["next_team_id"]
        doc["next_team_id"] = team_id + 1
        doc["teams"][name] = {"id": team_id, "members": []}
        self._write(doc)
        return team_id

    def add_member(self, team_id: int, user_id: str) -> None:
        doc = self._read()
        for team in doc["teams"].values():
            if team["id"] == team_id:
                if user_id not in team["members"]:
                    team["members"].append(user_id)
                    self._write(doc)
                return

    def get_team(self, name: str) -> Team | None:
        team = self._read()["teams"].get(name)
        if team is None:
            return None
        return Team(team_id=team["id"], name=name)

    def list_team_members(self, name: str) -> list[User]:
        doc = self._read()
        team = doc["teams"].get(name)
        if team is None:
            return []
        return [self._to_user(doc, user_id) for user_id in team["members"] if user_id in doc["users"]]

    def list_active_members_except(self, name: str, exclude_user_id: str) -> list[User]:
        return [u for u in self.list_team_members(name) if u.is_active and u.user_id != exclude_user_id]

    def user_team(self, user_id: str) -> str | None:
        teams = self._read()["teams"]
        for name, team in sorted(teams.items(), key=lambda item: item[1]["id"]):
            if user_id in team["members"]:
                return name
        return None

    def random_active_member(self, name: str, exclude_user_id: str) -> User | None:
        candidates = self.list_active_members_except(name, exclude_user_id)
        if not candidates:
            return None
        return self._rng.choice(candidates)

    def deactivate_team_members(self, team_id: int) -> int:
        doc = self._read()
        count = 0
        for team in doc["teams"].values():
            if team["id"] != team_id:
                continue
            for user_id in team["members"]:
                if user_id in doc["users"]:
                    doc["users"][user_id]["is_active"] = False
                    count += 1
        self._write(doc)
        return count

    # Pull requests

    def pr_exists(self, pr_id: str) -> bool:
        return pr_id in self._read()["prs"]

    def create_pr(self, pr_id: str, title: str, author_id: str) -> None:
        doc = self._read()
        doc["prs"][pr_id] = {
            "title": title,
            "author_id": author_id,
            "status": PRStatus.OPEN.value,
            "reviewers": [],
            "created_at": utc_now(),
            "merged_at": None,
        }
        self._write(doc)

    def get_pr(self, pr_id: str) -> PullRequest | None:
        row = self._read()["prs"].get(pr_id)
        if row is None:
            return None
        return self._to_pr(pr_id, row)

    def set_pr_status(self, pr_id: str, status: PRStatus) -> None:
        doc = self._read()
        row = doc["prs"].get(pr_id)
        if row is None:
            return
        row["status"] = PRStatus(status).value
        if row["status"] == PRStatus.MERGED.value:
            row["merged_at"] = utc_now()
        self._write(doc)

    def add_reviewer(self, pr_id: str, user_id: str) -> None:
        doc = self._read()
        row = doc["prs"].get(pr_id)
        if row is not None and user_id not in row["reviewers"]:
            row["reviewers"].append(user_id)
            self._write(doc)

    def remove_reviewer(self, pr_id: str, user_id: str) -> None:
        doc = self._read()
        row = doc["prs"].get(pr_id)
        if row is not None and user_id in row["reviewers"]:
            row["reviewers"].remove(user_id)
            self._write(doc)

    def list_reviewers(self, pr_id: str) -> list[str]:
        row = self._read()["prs"].get(pr_id)
        return list(row["reviewers"]) if row else []

    def prs_by_reviewer(self, user_id: str) -> list[PullRequest]:
        prs = self._read()["prs"]
        return [self._to_pr(pr_id, row) for pr_id, row in prs.items() if user_id in row["reviewers"]]

    # Assignment events

    def add_assignment_event(self, pr_id: str, user_id: str) -> AssignmentEvent:
        doc = self._read()
        event = AssignmentEvent(pr_id=pr_id, user_id=user_id, assigned_at=utc_now())
        doc["events"].append({"pr_id": event.pr_id, "user_id": event.user_id, "assigned_at": event.assigned_at})
        self._write(doc)
        return event

    def assignment_counts(self) -> dict[str, int]:
        return dict(Counter(e["user_id"] for e in self._read()["events"]))

    @staticmethod
    def _to_user(doc: dict, user_id: str) -> User:
        row = doc["users"][user_id]
        return User(user_id=user_id, username=row["username"], is_active=row["is_active"])

    @staticmethod
    def _to_pr(pr_id: str, row: dict) -> PullRequest:
        return PullRequest(
            pr_id=pr_id,
            title=row["title"],
            author_id=row["author_id"],
            status=PRStatus(row["status"]),
            reviewers=list(row["reviewers"]),
            created_at=row.get("created_at"),
            merged_at=row.get("merged_at"),
        )
