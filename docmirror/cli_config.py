"""Locate and load the ``.env`` file the CLI reads its defaults from."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

CONFIG_DIR = Path.home() / ".config" / "docmirror"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"
EXAMPLE_ENV_FILE = Path(__file__).parent.parent / ".env.example"


def load_config(
    *,
    config_dir: Path,
    config_env_file: Path,
    cwd: Path,
    load_env: Callable[[Path], bool],
    copy_file: Callable[[Path, Path], str],
    example_file: Path = EXAMPLE_ENV_FILE,
) -> Optional[Path]:
    """Load the first ``.env`` found and return its path.

    Search order:
    1. .env in current working directory
    2. ~/.config/docmirror/.env

    When neither exists, the bundled .env.example (source checkouts only) is
    copied into the user config directory and loaded. Variables already set
    in the environment are never overridden.
    """
    for candidate in (cwd / ".env", config_env_file):
        if candidate.is_file():
            load_env(candidate)
            return candidate

    if not example_file.is_file():
        return None

    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        copy_file(example_file, config_env_file)
    except OSError as exc:
        logging.debug("Could not create %s: %s", config_env_file, exc)
        return None

    logging.info(
        "Created config file at %s from .env.example. "
        "Set DOCMIRROR_START_URL there to skip --start-url.",
        config_env_file,
    )
    load_env(config_env_file)
    return config_env_file
