"""CLI entry point for reviewpool.

Commands:
  team   — create teams, inspect them, bulk-deactivate, suggest a reviewer
  user   — toggle a user's active flag, list the PRs they review
  pr     — create (with automatic reviewers), show, merge, reassign a reviewer
  stats  — assignment counts per reviewer
  init   — interactive setup wizard writing .reviewpool.yml
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from reviewpool_cli.commands.init import init_cmd
from reviewpool_cli.commands.pr import pr_group
from reviewpool_cli.commands.stats import stats_cmd
from reviewpool_cli.commands.team import team_group
from reviewpool_cli.commands.user import user_group

console = Console()


def _build_store(config: dict, rng=None):
    """Instantiate the configured store from .reviewpool.yml settings.

    Store selection hierarchy:
      store: gist   → GistStore   (requires gist_id and github_token)
      store: memory → MemoryStore (nothing persists past this invocation)
      store: sqlite → SQLiteStore (store_path or .reviewpool.db)
      anything else → SQLiteStore, after a warning

    This factory lives in cli.py so neither reviewpool_core nor
    reviewpool_store know about the CLI config format.
    """
    from reviewpool_core.config import VALID_STORES
    from reviewpool_store.memory import MemoryStore

    store_type = config.get("store") or "sqlite"
    if store_type not in VALID_STORES:
        console.print(f"[yellow]Unknown store {store_type!r}; using SQLite.[/yellow]")

    if store_type == "gist":
        from reviewpool_store.gist import GistStore

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            console.print(
                "[yellow]GistStore requires gist_id and a GitHub token. "
                "Falling back to an in-memory store; changes will not be saved.[/yellow]"
            )
            return MemoryStore(rng=rng)
        return GistStore(gist_id=gist_id, token=token, rng=rng)

    if store_type == "memory":
        return MemoryStore(rng=rng)

    from reviewpool_store.sqlite import SQLiteStore

    db_path = config.get("store_path") or ".reviewpool.db"
    return SQLiteStore(db_path=db_path)


def _configure_logging(level: str | int) -> None:
    # log_level may be a name ("info") or a number (20) in .reviewpool.yml
    logging.basicConfig(
        level=level.upper() if isinstance(level, str) else level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("reviewpool"),
    prog_name="reviewpool",
)
@click.option(
    "--config",
    "config_path",
    default=".reviewpool.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVIEWPOOL_CONFIG",
)
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON instead of tables.")
@click.option("--verbose", "-v", is_flag=True, help="Log engine decisions to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, as_json: bool, verbose: bool):
    """Assign and rotate code reviewers within teams."""
    from reviewpool_core.config import build_rng, load_config
    from reviewpool_core.service import ReviewService
    from reviewpool_cli.auth import resolve_github_token

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e
    _configure_logging("DEBUG" if verbose else config.get("log_level") or "WARNING")

    # Only the Gist backend needs a token; avoid shelling out to gh otherwise.
    if config.get("store") == "gist":
        config["github_token"] = resolve_github_token(config)

    rng = build_rng(config)
    store = _build_store(config, rng=rng)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path
    ctx.obj["json"] = as_json
    ctx.obj["service"] = ReviewService(store, rng=rng)
    ctx.call_on_close(store.close)


main.add_command(team_group)
main.add_command(user_group)
main.add_command(pr_group)
main.add_command(stats_cmd)
main.add_command(init_cmd)
