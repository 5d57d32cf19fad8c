"""Shared utilities for featuresync CLI commands."""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click

from ..config import CONFIG_FILENAME, DEFAULT_BASE_PATH, SyncConfig, load_config

# Verbosity levels
VERBOSITY_QUIET = 0
VERBOSITY_NORMAL = 1
VERBOSITY_VERBOSE = 2

_LOG_LEVELS = {
    VERBOSITY_QUIET: logging.ERROR,
    VERBOSITY_NORMAL: logging.WARNING,
    VERBOSITY_VERBOSE: logging.DEBUG,
}


def get_base_path(ctx_data_dir: Optional[Path] = None) -> Path:
    """Get the base path for featuresync data.

    Priority: --data-dir flag > FEATURESYNC_BASE_PATH env var > default path.
    """
    if ctx_data_dir:
        return Path(ctx_data_dir)
    env_path = os.getenv("FEATURESYNC_BASE_PATH")
    if env_path:
        return Path(env_path)
    return DEFAULT_BASE_PATH


def configure_logging(verbosity: int) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=_LOG_LEVELS.get(verbosity, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def require_config(ctx) -> SyncConfig:
    """Load config.yaml for the current data dir or exit with an error."""
    base_path = get_base_path(ctx.obj.get('data_dir'))
    config_path = base_path / CONFIG_FILENAME
    if not config_path.exists():
        click.echo("Error: featuresync not initialized. Run 'featuresync init' first.", err=True)
        sys.exit(1)
    try:
        return load_config(config_path)
    except ValueError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(1)


def echo_verbose(message: str, verbosity: int) -> None:
    """Print a message only in verbose mode."""
    if verbosity >= VERBOSITY_VERBOSE:
        click.echo(message, err=False)


def echo_normal(message: str, verbosity: int) -> None:
    """Print a message in normal and verbose modes."""
    if verbosity >= VERBOSITY_NORMAL:
        click.echo(message, err=False)


def echo_quiet(message: str, verbosity: int) -> None:
    """Print a message that is shown even in quiet mode."""
    click.echo(message, err=False)
