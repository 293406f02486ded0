"""pr commands — create with automatic reviewers, merge, reassign."""

from __future__ import annotations

import click

from reviewpool_cli.render import console, emit_json, pr_payload, print_pr, reporting_errors, service_from, wants_json


@click.group("pr")
def pr_group():
    """Create pull requests and manage their reviewers."""


@pr_group.command("create")
@click.argument("pr_id")
@click.option("--title", required=True, help="Pull request title.")
@click.option("--author", "author_id", required=True, help="User ID of the author.")
@click.pass_context
def pr_create_cmd(ctx, pr_id: str, title: str, author_id: str):
    """Create PR_ID and assign up to two reviewers from the author's team.

    Fewer than two reviewers are assigned when the team does not have enough
    other active members.
    """
    with reporting_errors(ctx):
        pr = service_from(ctx).create_pr(pr_id, title, author_id)

    if wants_json(ctx):
        emit_json({"pr": pr_payload(pr)})
        return
    console.print(f"[green]Created {pr.pr_id} with {len(pr.reviewers)} reviewer(s).[/green]")
    print_pr(pr)


@pr_group.command("get")
@click.argument("pr_id")
@click.pass_context
def pr_get_cmd(ctx, pr_id: str):
    """Show PR_ID with its current reviewers."""
    with reporting_errors(ctx):
        pr = service_from(ctx).get_pr(pr_id)

    if wants_json(ctx):
        emit_json({"pr": pr_payload(pr)})
        return
    print_pr(pr)


@pr_group.command("merge")
@click.argument("pr_id")
@click.pass_context
def pr_merge_cmd(ctx, pr_id: str):
    """Mark PR_ID as merged. Merging twice is not an error."""
    with reporting_errors(ctx):
        pr = service_from(ctx).merge_pr(pr_id)

    if wants_json(ctx):
        emit_json({"pr": pr_payload(pr)})
        return
    print_pr(pr)


@pr_group.command("reassign")
@click.argument("pr_id")
@click.option("--old-reviewer", "old_reviewer_id", required=True, help="User ID of the reviewer to replace.")
@click.pass_context
def pr_reassign_cmd(ctx, pr_id: str, old_reviewer_id: str):
    """Replace one reviewer of PR_ID with an active member of that reviewer's team."""
    with reporting_errors(ctx):
        result = service_from(ctx).reassign_reviewer(pr_id, old_reviewer_id)

    if wants_json(ctx):
        emit_json({"pr": pr_payload(result.pr), "replaced_by": result.replaced_by})
        return
    console.print(f"[green]{old_reviewer_id} replaced by {result.replaced_by}.[/green]")
    print_pr(result.pr)
