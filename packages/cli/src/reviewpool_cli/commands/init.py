"""init command — interactive setup wizard.

Why an init wizard:
- Runs once per checkout and writes the config file (`--config`, default
  .reviewpool.yml), so every later command finds the same directory.
- Creates the team Gist with an empty directory in it, so a distributed team
  can share one directory without touching the GitHub API.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import tempfile
from pathlib import Path

import click
import yaml
from rich.console import Console

from reviewpool_store.gist import GIST_FILENAME
from reviewpool_store.memory import empty_document

console = Console()
logger = logging.getLogger(__name__)

_STORE_HELP = {
    "sqlite": "local SQLite file (default)",
    "gist": "shared GitHub Gist, no server needed (for distributed teams)",
    "memory": "nothing is saved (try-out only)",
}


@click.command("init")
@click.option("--name", "directory_name", default=None, help="Label for the team Gist. Defaults to this directory's name.")
@click.pass_context
def init_cmd(ctx: click.Context, directory_name: str | None):
    """Choose where the team directory lives and write the config file."""
    config_path = Path((ctx.obj or {}).get("config_path") or ".reviewpool.yml")
    console.print("\n[bold cyan]reviewpool init[/bold cyan]\n")

    for name, help_text in _STORE_HELP.items():
        console.print(f"  [bold]{name:<7}[/bold] {help_text}")
    store_type = click.prompt("Store backend", type=click.Choice(list(_STORE_HELP)), default="sqlite")

    updates: dict = {"store": store_type}

    if store_type == "sqlite":
        db_path = click.prompt("SQLite database path", default=".reviewpool.db")
        if db_path != ".reviewpool.db":
            updates["store_path"] = db_path

    elif store_type == "gist":
        console.print("[yellow]The Gist store needs a token with gist scope (GITHUB_TOKEN or `gh auth login`).[/yellow]")
        gist_id = _create_team_gist(directory_name or Path.cwd().name)
        if gist_id:
            updates["gist_id"] = gist_id
            console.print(f"[green]Team Gist {gist_id} created.[/green]")
        else:
            console.print(f"[yellow]Gist creation failed — set gist_id in {config_path} by hand.[/yellow]")

    if click.confirm("Make reviewer picks reproducible with a fixed seed?", default=False):
        updates["selection_seed"] = click.prompt("Seed", type=int, default=0)

    _merge_into_config(config_path, updates)
    console.print(f"[green]Wrote {config_path}[/green]")
    console.print("Next: [bold]reviewpool team add <name> --member <id>:<name>[/bold]")


def _create_team_gist(label: str) -> str | None:
    """Create a secret Gist holding an empty directory and return its ID."""
    # gh names the Gist file after the local file, so give it the exact name.
    with tempfile.TemporaryDirectory() as tmp_dir:
        seed_file = os.path.join(tmp_dir, GIST_FILENAME)
        with open(seed_file, "w") as f:
            json.dump(empty_document(), f, indent=2)

        cmd = ["gh", "gist", "create", "--public=false", "--desc", f"reviewpool directory: {label}", seed_file]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=15)
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return None

    if result.returncode != 0:
        logger.warning("gh gist create failed: %s", result.stderr.strip())
        return None
    # gh prints the Gist URL; its last path segment is the ID.
    return result.stdout.strip().rstrip("/").rsplit("/", 1)[-1] or None


def _merge_into_config(path: Path, updates: dict) -> None:
    """Apply ``updates`` on top of whatever the config file already holds."""
    current = yaml.safe_load(path.read_text()) if path.exists() else None
    if not isinstance(current, dict):
        current = {}
    current.update(updates)
    path.write_text(yaml.dump(current, default_flow_style=False, sort_keys=False))
