"""team commands — create, inspect and deactivate teams."""

from __future__ import annotations

from pathlib import Path

import click
import yaml

from reviewpool_cli.render import (
    console,
    emit_json,
    print_team,
    reporting_errors,
    service_from,
    team_payload,
    user_payload,
    wants_json,
)
from reviewpool_store.models import TeamMember


def _parse_member(value: str) -> TeamMember:
    """`ID:NAME` → TeamMember. A bare `ID` doubles as the display name."""
    user_id, _, username = value.partition(":")
    user_id = user_id.strip()
    if not user_id:
        raise click.BadParameter(f"member {value!r} has no user id", param_hint="--member")
    return TeamMember(user_id=user_id, username=username.strip() or user_id)


def _members_from_file(path: str) -> list[TeamMember]:
    """Read members from a YAML file shaped like the team payload:

    members:
      - user_id: u1
        username: Alice
        is_active: true
    """
    data = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must contain a mapping with a members list", param_hint="--from-file")
    members = []
    for entry in data.get("members", []):
        if not isinstance(entry, dict) or not entry.get("user_id"):
            raise click.BadParameter(f"every member in {path} needs a user_id", param_hint="--from-file")
        members.append(
            TeamMember(
                user_id=str(entry["user_id"]),
                username=str(entry.get("username") or entry["user_id"]),
                is_active=bool(entry.get("is_active", True)),
            )
        )
    return members


@click.group("team")
def team_group():
    """Create and manage review teams."""


@team_group.command("add")
@click.argument("name")
@click.option("--member", "members", multiple=True, help="Team member as ID:NAME. Repeatable.")
@click.option("--inactive", "inactive_ids", multiple=True, help="Member ID to create as inactive. Repeatable.")
@click.option(
    "--from-file",
    "from_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file with a `members` list (user_id, username, is_active).",
)
@click.pass_context
def team_add_cmd(ctx, name: str, members: tuple[str, ...], inactive_ids: tuple[str, ...], from_file: str | None):
    """Create team NAME with its initial members.

    Existing users are moved onto the team with their display name and active
    flag updated from the member records.
    """
    records = _members_from_file(from_file) if from_file else []
    records.extend(_parse_member(m) for m in members)
    for record in records:
        if record.user_id in inactive_ids:
            record.is_active = False

    with reporting_errors(ctx):
        team = service_from(ctx).create_team(name, records)

    if wants_json(ctx):
        emit_json({"team": team_payload(team)})
        return
    console.print(f"[green]Created team {team.name} with {len(team.members)} member(s).[/green]")
    print_team(team)


@team_group.command("get")
@click.argument("name")
@click.pass_context
def team_get_cmd(ctx, name: str):
    """Show team NAME and the current state of its members."""
    with reporting_errors(ctx):
        team = service_from(ctx).get_team(name)

    if wants_json(ctx):
        emit_json(team_payload(team))
        return
    print_team(team)


@team_group.command("deactivate")
@click.argument("name")
@click.option(
    "--reassign-open-prs",
    is_flag=True,
    help="Accepted for compatibility. Open PRs keep their current reviewers either way.",
)
@click.pass_context
def team_deactivate_cmd(ctx, name: str, reassign_open_prs: bool):
    """Mark every member of team NAME inactive.

    Deactivated members stop being picked for new reviews and replacements;
    PRs they already review keep them as reviewers.
    """
    with reporting_errors(ctx):
        count = service_from(ctx).bulk_deactivate_team(name, reassign_open_prs=reassign_open_prs)

    if wants_json(ctx):
        emit_json({"team_name": name, "deactivated": count})
        return
    console.print(f"[yellow]Deactivated {count} member(s) of {name}.[/yellow]")
    if reassign_open_prs:
        console.print("[dim]Open PRs were left unchanged; use `reviewpool pr reassign` per reviewer.[/dim]")


@team_group.command("pick")
@click.argument("name")
@click.option("--exclude", "exclude_id", default="", help="User ID that must not be suggested.")
@click.pass_context
def team_pick_cmd(ctx, name: str, exclude_id: str):
    """Suggest one random active member of team NAME without assigning anything."""
    with reporting_errors(ctx):
        user = service_from(ctx).pick_reviewer(name, exclude_user_id=exclude_id)

    if wants_json(ctx):
        emit_json({"team_name": name, "user": user_payload(user) if user else None})
        return
    if user is None:
        console.print(f"[yellow]No active candidate in {name}.[/yellow]")
        return
    console.print(f"Suggested reviewer: [bold]{user.user_id}[/bold] ({user.username})")
