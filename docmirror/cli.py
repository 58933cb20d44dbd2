"""Command-line interface for docmirror."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .cli_auth import add_auth_args, build_cli_auth
from .cli_config import CONFIG_DIR, CONFIG_ENV_FILE, load_config
from .cli_output import format_result
from .cli_parsers import parse_run_args
from .config import (
    DEFAULT_CHECKPOINT,
    DEFAULT_OUTPUT_DIR,
    ENV_CHECKPOINT,
    ENV_OUTPUT_DIR,
    ENV_START_URL,
    SettingsOverrides,
    build_settings,
)
from .errors import ConfigurationError, DocMirrorError
from .pipeline import PipelineOptions, run_pipeline_async, split_start_urls


def _load_config() -> None:
    loaded = load_config(
        config_dir=CONFIG_DIR,
        config_env_file=CONFIG_ENV_FILE,
        cwd=Path.cwd(),
        load_env=load_dotenv,
        copy_file=shutil.copy,
    )
    if loaded:
        logging.debug("Loaded settings from %s", loaded)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return parse_run_args(argv, add_auth_args)


def build_options(args: argparse.Namespace) -> PipelineOptions:
    """Merge CLI flags with environment defaults."""
    start_urls = split_start_urls(args.start_url or os.getenv(ENV_START_URL))
    overrides = SettingsOverrides(
        path_filter=args.path_filter,
        include_subdomains=True if args.include_subdomains else None,
        headless=False if args.headful else None,
        wait_until=args.wait_until,
        navigation_timeout_ms=args.timeout,
        pacing_delay=args.delay,
        index_title=args.index_title,
    )
    return PipelineOptions(
        start_urls=start_urls,
        stage=args.stage,
        output_dir=Path(args.output or os.getenv(ENV_OUTPUT_DIR) or DEFAULT_OUTPUT_DIR),
        checkpoint_path=Path(
            args.checkpoint or os.getenv(ENV_CHECKPOINT) or DEFAULT_CHECKPOINT
        ),
        incremental=args.incremental,
        dry_run=args.dry_run,
        settings=build_settings(overrides),
        auth=build_cli_auth(args),
    )


async def _run_async(args: argparse.Namespace) -> int:
    """Main async entry point."""
    options = build_options(args)
    options.validate()
    logging.info(
        "Stage: %s | start URL(s): %s | output: %s",
        options.stage.value,
        ", ".join(options.start_urls) or "-",
        options.output_dir,
    )

    result = await run_pipeline_async(options)
    report = format_result(result)
    if report:
        print(report)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the docmirror command."""
    args = _parse_args(argv)
    _setup_logging(args.verbose)
    _load_config()

    try:
        return asyncio.run(_run_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except ConfigurationError as exc:
        logging.error("Configuration error: %s", exc)
        return 2
    except DocMirrorError as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1
    except Exception as exc:
        logging.error("Unexpected error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
