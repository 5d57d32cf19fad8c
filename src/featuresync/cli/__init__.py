"""featuresync CLI

Command groups:
- config.py: config set, get, show
- sync.py: sync run, status, add
- common.py: shared utilities
"""
from pathlib import Path
import click

from ..config import CONFIG_FILENAME, CONFIG_TEMPLATE
from .common import (
    VERBOSITY_NORMAL,
    VERBOSITY_QUIET,
    VERBOSITY_VERBOSE,
    configure_logging,
    get_base_path,
)
from .config import config_group
from .sync import sync_group

# CLI version - matches project version
__version__ = "0.1.0"


@click.group()
@click.version_option(version=__version__, prog_name="featuresync")
@click.option('--data-dir', type=click.Path(), default=None, envvar='FEATURESYNC_BASE_PATH',
              help='Base directory for featuresync data (default: ~/.featuresync)')
@click.option('--verbose', '-v', is_flag=True, default=False,
              help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, default=False,
              help='Suppress non-essential output')
@click.pass_context
def cli(ctx, data_dir, verbose, quiet):
    """featuresync - multi-feature data sync client

    \b
    Examples:
        featuresync init
        featuresync config set server.url https://sync.example.com
        featuresync sync add bookmarks '{"id": "1", "title": "Example"}'
        featuresync sync run
        featuresync sync status
    """
    ctx.ensure_object(dict)

    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")

    if quiet:
        ctx.obj['verbosity'] = VERBOSITY_QUIET
    elif verbose:
        ctx.obj['verbosity'] = VERBOSITY_VERBOSE
    else:
        ctx.obj['verbosity'] = VERBOSITY_NORMAL

    ctx.obj['data_dir'] = Path(data_dir) if data_dir else None
    configure_logging(ctx.obj['verbosity'])


@cli.command()
@click.pass_context
def init(ctx) -> None:
    """Initialize the data directory and default config.yaml."""
    base_path = get_base_path(ctx.obj.get('data_dir'))

    click.echo(click.style("Initializing featuresync...", fg="cyan", bold=True))

    (base_path / "data").mkdir(parents=True, exist_ok=True)
    click.echo(f" ✓ Created directory: {base_path}")

    config_path = base_path / CONFIG_FILENAME
    if not config_path.exists():
        config_path.write_text(CONFIG_TEMPLATE)
        click.echo(f" ✓ Created config: {config_path}")
    else:
        click.echo(f" ⚠ Config exists: {config_path}")


cli.add_command(config_group, name='config')
cli.add_command(sync_group, name='sync')


def main():
    """Entry point for the CLI."""
    cli()


__all__ = [
    '__version__',
    'cli',
    'main',
    'get_base_path',
]
