"""GitHub credentials for the Gist-backed directory.

Local stores never touch GitHub, so this is only consulted when
`store: gist` is configured. Lookup order:
  1. github_token already in the loaded config (GITHUB_TOKEN at load time)
  2. GITHUB_TOKEN in the current environment
  3. the session stored by `gh auth login`
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_GH_TOKEN_CMD = ["gh", "auth", "token"]


def token_from_gh_cli(timeout: float = 5) -> str | None:
    """Token of the current GitHub CLI session, or None without one."""
    try:
        result = subprocess.run(_GH_TOKEN_CMD, capture_output=True, text=True, timeout=timeout)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def resolve_github_token(config: dict | None = None) -> str | None:
    """Return a token for the team Gist, or None when none is available.

    Never raises; _build_store falls back to an in-memory directory when
    the token is missing.
    """
    token = (config or {}).get("github_token") or os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    token = token_from_gh_cli()
    if token:
        logger.debug("Using the GitHub token from the gh CLI session.")
    else:
        logger.debug("No GitHub token in config, GITHUB_TOKEN or gh; the Gist store is unavailable.")
    return token
