"""user commands — active flag and review load of a single user."""

from __future__ import annotations

import click
from rich.table import Table

from reviewpool_cli.render import (
    console,
    emit_json,
    pr_short_payload,
    reporting_errors,
    service_from,
    user_payload,
    wants_json,
)


@click.group("user")
def user_group():
    """Inspect and update individual users."""


@user_group.command("set-active")
@click.argument("user_id")
@click.option("--active/--inactive", "active", required=True, help="New value of the active flag.")
@click.pass_context
def user_set_active_cmd(ctx, user_id: str, active: bool):
    """Set whether USER_ID can be picked as a reviewer."""
    with reporting_errors(ctx):
        user = service_from(ctx).set_user_active(user_id, active)

    if wants_json(ctx):
        emit_json({"user": user_payload(user)})
        return
    state = "[green]active[/green]" if user.is_active else "[dim]inactive[/dim]"
    team = f" (team {user.team_name})" if user.team_name else ""
    console.print(f"{user.user_id}{team} is now {state}.")


@user_group.command("reviews")
@click.argument("user_id")
@click.pass_context
def user_reviews_cmd(ctx, user_id: str):
    """List the pull requests USER_ID is currently reviewing."""
    with reporting_errors(ctx):
        prs = service_from(ctx).get_user_reviews(user_id)

    if wants_json(ctx):
        emit_json({"user_id": user_id, "pull_requests": [pr_short_payload(pr) for pr in prs]})
        return
    if not prs:
        console.print(f"[yellow]{user_id} is not reviewing any pull requests.[/yellow]")
        return

    table = Table(title=f"Reviews assigned to {user_id}", show_header=True, header_style="bold cyan")
    table.add_column("PR", style="bold")
    table.add_column("Title", max_width=40)
    table.add_column("Author")
    table.add_column("Status")
    for pr in prs:
        table.add_row(pr.pr_id, pr.title[:40], pr.author_id, pr.status.value)
    console.print(table)
