import os
import random
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "store": "sqlite",  # memory | sqlite | gist
    "store_path": ".reviewpool.db",
    "gist_id": None,  # written by `reviewpool init` when the Gist store is chosen
    "selection_seed": None,  # None = OS entropy; set an int for reproducible reviewer picks
    "log_level": "WARNING",
}

VALID_STORES = ("memory", "sqlite", "gist")


def load_config(config_path: str = ".reviewpool.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Build the effective configuration. Later sources win:
      1. DEFAULT_CONFIG
      2. the YAML file at ``config_path``, when it exists
      3. non-None entries of ``cli_overrides``

    ``github_token`` always comes from the GITHUB_TOKEN environment variable,
    never from the file, so the file can be committed.
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_path} must contain a YAML mapping, got {type(file_config).__name__}")
        config.update(file_config)

    config.update({k: v for k, v in (cli_overrides or {}).items() if v is not None})

    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config


def build_rng(config: dict) -> random.Random:
    """Random source for candidate selection, seeded when ``selection_seed`` is set."""
    seed = config.get("selection_seed")
    if seed is None:
        return random.SystemRandom()
    return random.Random(seed)
