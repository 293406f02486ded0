"""Output helpers shared by all commands.

Two renderings of every result: rich tables for people, and JSON payloads in
the service's wire shape (`--json`) for scripts. Engine errors become a
ClickException that prints `CODE: message` (or an error object in JSON mode)
and exits 1, or 3 for internal failures.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

from reviewpool_core.errors import ReviewPoolError

if TYPE_CHECKING:
    from reviewpool_core.service import ReviewService
    from reviewpool_store.models import PullRequest, Team, User

console = Console()

INTERNAL_EXIT_CODE = 3

_STATUS_STYLE = {"OPEN": "yellow", "MERGED": "green"}


class EngineCommandError(click.ClickException):
    def __init__(self, error: ReviewPoolError, as_json: bool = False):
        super().__init__(error.message)
        self.code = error.code
        self.as_json = as_json
        self.exit_code = INTERNAL_EXIT_CODE if error.code == "INTERNAL_ERROR" else 1

    def show(self, file=None) -> None:
        if self.as_json:
            click.echo(json.dumps({"error": {"code": self.code, "message": self.message}}), file=file)
        else:
            console.print(f"[red]{self.code}[/red]: {self.message}")


def service_from(ctx: click.Context) -> ReviewService:
    return ctx.obj["service"]


def wants_json(ctx: click.Context) -> bool:
    return bool(ctx.obj and ctx.obj.get("json"))


@contextmanager
def reporting_errors(ctx: click.Context):
    """Turn engine errors raised inside the block into a CLI failure."""
    try:
        yield
    except ReviewPoolError as e:
        raise EngineCommandError(e, as_json=wants_json(ctx)) from e


def emit_json(payload: dict) -> None:
    click.echo(json.dumps(payload, indent=2))


# ---------------------------------------------------------------------------
# Wire payloads
# ---------------------------------------------------------------------------


def user_payload(user: User) -> dict:
    return {
        "user_id": user.user_id,
        "username": user.username,
        "team_name": user.team_name,
        "is_active": user.is_active,
    }


def team_payload(team: Team) -> dict:
    return {
        "team_name": team.name,
        "members": [{"user_id": m.user_id, "username": m.username, "is_active": m.is_active} for m in team.members],
    }


def pr_payload(pr: PullRequest) -> dict:
    return {
        "pull_request_id": pr.pr_id,
        "pull_request_name": pr.title,
        "author_id": pr.author_id,
        "status": pr.status.value,
        "assigned_reviewers": list(pr.reviewers),
        "createdAt": pr.created_at,
        "mergedAt": pr.merged_at,
    }


def pr_short_payload(pr: PullRequest) -> dict:
    return {
        "pull_request_id": pr.pr_id,
        "pull_request_name": pr.title,
        "author_id": pr.author_id,
        "status": pr.status.value,
    }


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def print_team(team: Team) -> None:
    table = Table(title=f"Team {team.name}", show_header=True, header_style="bold cyan")
    table.add_column("User", style="bold")
    table.add_column("Name")
    table.add_column("Active", justify="center")
    for member in team.members:
        active = "[green]yes[/green]" if member.is_active else "[dim]no[/dim]"
        table.add_row(member.user_id, member.username, active)
    console.print(table)


def print_pr(pr: PullRequest) -> None:
    style = _STATUS_STYLE.get(pr.status.value, "white")
    reviewers = ", ".join(pr.reviewers) if pr.reviewers else "[dim]none[/dim]"
    console.print(f"[bold]{pr.pr_id}[/bold]  {pr.title}")
    console.print(f"  Author:    {pr.author_id}")
    console.print(f"  Status:    [{style}]{pr.status.value}[/{style}]")
    console.print(f"  Reviewers: {reviewers}")
    if pr.created_at:
        console.print(f"  Created:   {pr.created_at[:19].replace('T', ' ')}")
    if pr.merged_at:
        console.print(f"  Merged:    {pr.merged_at[:19].replace('T', ' ')}")
