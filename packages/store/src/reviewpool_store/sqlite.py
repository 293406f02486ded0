"""SQLiteStore — local file-based directory, the default backend.

Why SQLite as the default:
- Batteries included: ships with Python, no extra dependencies.
- Every write is one statement committed on its own, which is exactly the
  atomicity the engine assumes — nothing more.
- A single file can be shared between CLI invocations or CI jobs.

Schema:
  teams              — surrogate id + unique name
  users              — opaque id, display name, active flag
  team_members       — (team_id, user_id) link
  prs                — id, title, author, status, created/merged timestamps
  pr_reviewers       — current reviewer bindings, (pr_id, user_id) unique
  assignment_events  — append-only history used for statistics
"""

from __future__ import annotations

import logging
import sqlite3

from reviewpool_store.base import BaseStore, StoreError
from reviewpool_store.models import AssignmentEvent, PRStatus, PullRequest, Team, User, utc_now

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS teams (
    id    INTEGER PRIMARY KEY AUTOINCREMENT,
    name  TEXT UNIQUE NOT NULL
);
CREATE TABLE IF NOT EXISTS users (
    id         TEXT PRIMARY KEY,
    name       TEXT NOT NULL,
    is_active  INTEGER NOT NULL DEFAULT 1
);
CREATE TABLE IF NOT EXISTS team_members (
    team_id  INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
    user_id  TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    PRIMARY KEY (team_id, user_id)
);
CREATE TABLE IF NOT EXISTS prs (
    id         TEXT PRIMARY KEY,
    title      TEXT NOT NULL,
    author_id  TEXT NOT NULL REFERENCES users(id),
    status     TEXT NOT NULL DEFAULT 'OPEN' CHECK (status IN ('OPEN', 'MERGED')),
    created_at TEXT,
    merged_at  TEXT
);
CREATE TABLE IF NOT EXISTS pr_reviewers (
    pr_id    TEXT NOT NULL REFERENCES prs(id) ON DELETE CASCADE,
    user_id  TEXT NOT NULL REFERENCES users(id),
    PRIMARY KEY (pr_id, user_id)
);
CREATE TABLE IF NOT EXISTS assignment_events (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    pr_id        TEXT NOT NULL REFERENCES prs(id) ON DELETE CASCADE,
    user_id      TEXT NOT NULL REFERENCES users(id),
    assigned_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_team_members_team ON team_members (team_id);
CREATE INDEX IF NOT EXISTS idx_users_active      ON users (is_active);
CREATE INDEX IF NOT EXISTS idx_pr_reviewers_pr   ON pr_reviewers (pr_id);
CREATE INDEX IF NOT EXISTS idx_prs_status        ON prs (status);
"""

_MEMBER_COLUMNS = """
    SELECT u.id, u.name, u.is_active
    FROM users u
    JOIN team_members tm ON u.id = tm.user_id
    JOIN teams t ON t.id = tm.team_id
"""


class SQLiteStore(BaseStore):
    """Stores the directory in a local SQLite database file.

    The database file path defaults to `.reviewpool.db` in the current
    working directory. Configure via .reviewpool.yml: `store_path: /path/to/db`.
    """

    def __init__(self, db_path: str = ".reviewpool.db"):
        try:
            self._conn = sqlite3.connect(db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"could not open {db_path}: {e}") from e

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Run one write statement and commit it."""
        try:
            cursor = self._conn.execute(sql, params)
            self._conn.commit()
            return cursor
        except sqlite3.Error as e:
            self._conn.rollback()
            logger.debug("SQLite write failed: %s", sql.strip().splitlines()[0])
            raise StoreError(str(e)) from e

    def _fetch(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    # Users

    def get_user(self, user_id: str) -> User | None:
        rows = self._fetch("SELECT id, name, is_active FROM users WHERE id=?", (user_id,))
        return self._row_to_user(rows[0]) if rows else None

    def upsert_user(self, user_id: str, username: str) -> None:
        self._execute(
            "INSERT INTO users (id, name) VALUES (?, ?) ON CONFLICT (id) DO UPDATE SET name=excluded.name",
            (user_id, username),
        )

    def set_user_active(self, user_id: str, active: bool) -> None:
        self._execute("UPDATE users SET is_active=? WHERE id=?", (int(active), user_id))

    # Teams

    def team_exists(self, name: str) -> bool:
        rows = self._fetch("SELECT COUNT(*) AS n FROM teams WHERE name=?", (name,))
        return rows[0]["n"] > 0

    def create_team(self, name: str) -> int:
        cursor = self._execute("INSERT INTO teams (name) VALUES (?)", (name,))
        return cursor.lastrowid

    def add_member(self, team_id: int, user_id: str) -> None:
        self._execute(
            "INSERT OR IGNORE INTO team_members (team_id, user_id) VALUES (?, ?)",
            (team_id, user_id),
        )

    def get_team(self, name: str) -> Team | None:
        rows = self._fetch("SELECT id, name FROM teams WHERE name=?", (name,))
        if not rows:
            return None
        return Team(team_id=rows[0]["id"], name=rows[0]["name"])

    def list_team_members(self, name: str) -> list[User]:
        rows = self._fetch(_MEMBER_COLUMNS + " WHERE t.name=? ORDER BY tm.rowid", (name,))
        return [self._row_to_user(r) for r in rows]

    def list_active_members_except(self, name: str, exclude_user_id: str) -> list[User]:
        rows = self._fetch(
            _MEMBER_COLUMNS + " WHERE t.name=? AND u.is_active=1 AND u.id!=? ORDER BY tm.rowid",
            (name, exclude_user_id),
        )
        return [self._row_to_user(r) for r in rows]

    def user_team(self, user_id: str) -> str | None:
        rows = self._fetch(
            """
            SELECT t.name FROM teams t
            JOIN team_members tm ON t.id = tm.team_id
            WHERE tm.user_id=?
            ORDER BY t.id
            LIMIT 1
            """,
            (user_id,),
        )
        return rows[0]["name"] if rows else None

    def random_active_member(self, name: str, exclude_user_id: str) -> User | None:
        rows = self._fetch(
            _MEMBER_COLUMNS + " WHERE t.name=? AND u.is_active=1 AND u.id!=? ORDER BY RANDOM() LIMIT 1",
            (name, exclude_user_id),
        )
        return self._row_to_user(rows[0]) if rows else None

    def deactivate_team_members(self, team_id: int) -> int:
        cursor = self._execute(
            "UPDATE users SET is_active=0 WHERE id IN (SELECT user_id FROM team_members WHERE team_id=?)",
            (team_id,),
        )
        return cursor.rowcount

    # Pull requests

    def pr_exists(self, pr_id: str) -> bool:
        rows = self._fetch("SELECT COUNT(*) AS n FROM prs WHERE id=?", (pr_id,))
        return rows[0]["n"] > 0

    def create_pr(self, pr_id: str, title: str, author_id: str) -> None:
        self._execute(
            "INSERT INTO prs (id, title, author_id, status, created_at) VALUES (?, ?, ?, ?, ?)",
            (pr_id, title, author_id, PRStatus.OPEN.value, utc_now()),
        )

    def get_pr(self, pr_id: str) -> PullRequest | None:
        rows = self._fetch("SELECT * FROM prs WHERE id=?", (pr_id,))
        if not rows:
            return None
        return self._row_to_pr(rows[0], self.list_reviewers(pr_id))

    def set_pr_status(self, pr_id: str, status: PRStatus) -> None:
        status = PRStatus(status)
        if status == PRStatus.MERGED:
            self._execute("UPDATE prs SET status=?, merged_at=? WHERE id=?", (status.value, utc_now(), pr_id))
        else:
            self._execute("UPDATE prs SET status=? WHERE id=?", (status.value, pr_id))

    def add_reviewer(self, pr_id: str, user_id: str) -> None:
        self._execute(
            "INSERT OR IGNORE INTO pr_reviewers (pr_id, user_id) VALUES (?, ?)",
            (pr_id, user_id),
        )

    def remove_reviewer(self, pr_id: str, user_id: str) -> None:
        self._execute("DELETE FROM pr_reviewers WHERE pr_id=? AND user_id=?", (pr_id, user_id))

    def list_reviewers(self, pr_id: str) -> list[str]:
        rows = self._fetch("SELECT user_id FROM pr_reviewers WHERE pr_id=? ORDER BY rowid", (pr_id,))
        return [r["user_id"] for r in rows]

    def prs_by_reviewer(self, user_id: str) -> list[PullRequest]:
        rows = self._fetch(
            """
            SELECT p.* FROM prs p
            JOIN pr_reviewers r ON p.id = r.pr_id
            WHERE r.user_id=?
            ORDER BY p.created_at
            """,
            (user_id,),
        )
        return [self._row_to_pr(r, self.list_reviewers(r["id"])) for r in rows]

    # Assignment events

    def add_assignment_event(self, pr_id: str, user_id: str) -> AssignmentEvent:
        event = AssignmentEvent(pr_id=pr_id, user_id=user_id, assigned_at=utc_now())
        self._execute(
            "INSERT INTO assignment_events (pr_id, user_id, assigned_at) VALUES (?, ?, ?)",
            (event.pr_id, event.user_id, event.assigned_at),
        )
        return event

    def assignment_counts(self) -> dict[str, int]:
        rows = self._fetch("SELECT user_id, COUNT(*) AS n FROM assignment_events GROUP BY user_id")
        return {r["user_id"]: r["n"] for r in rows}

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(user_id=row["id"], username=row["name"], is_active=bool(row["is_active"]))

    @staticmethod
    def _row_to_pr(row: sqlite3.Row, reviewers: list[str]) -> PullRequest:
        return PullRequest(
            pr_id=row["id"],
            title=row["title"],
            author_id=row["author_id"],
            status=PRStatus(row["status"]),
            reviewers=reviewers,
            created_at=row["created_at"],
            merged_at=row["merged_at"],
        )
