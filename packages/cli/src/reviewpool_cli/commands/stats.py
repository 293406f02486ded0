"""stats command — how often each user has been made a reviewer."""

from __future__ import annotations

import click
from rich.table import Table

from reviewpool_cli.render import console, emit_json, reporting_errors, service_from, wants_json


@click.command("stats")
@click.option("--top", default=None, type=click.IntRange(min=1), help="Only show the N most assigned reviewers.")
@click.pass_context
def stats_cmd(ctx, top: int | None):
    """Show assignment counts per reviewer over the full history.

    Every initial assignment and every reassignment target counts once.
    """
    with reporting_errors(ctx):
        stats = service_from(ctx).get_stats()

    if wants_json(ctx):
        emit_json({"assignment_stats": stats.counts, "timestamp": stats.generated_at})
        return
    if not stats.counts:
        console.print("[yellow]No assignments recorded yet.[/yellow]")
        return

    console.print(f"\n[bold]Assignment stats[/bold]  ({stats.total} assignment(s))")
    table = Table(show_header=True)
    table.add_column("Reviewer", style="bold")
    table.add_column("Assignments", justify="right")
    table.add_column("% of total", justify="right")
    for user_id, count in stats.most_assigned(top):
        table.add_row(user_id, str(count), f"{count / stats.total * 100:.1f}%")
    console.print(table)
