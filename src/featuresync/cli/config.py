"""Configuration management commands for featuresync CLI."""
import sys
import click
import yaml

from ..config import CONFIG_FILENAME
from .common import get_base_path, echo_quiet, echo_normal


@click.group()
def config_group():
    """Configuration management commands."""
    pass


def _load(ctx):
    base_path = get_base_path(ctx.obj.get('data_dir'))
    config_path = base_path / CONFIG_FILENAME
    if not config_path.exists():
        click.echo(click.style("Error: featuresync not initialized. Run 'featuresync init' first.", fg="red"), err=True)
        sys.exit(1)
    try:
        config_data = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        click.echo(f"Error: Invalid {config_path}: {e}", err=True)
        sys.exit(1)
    if not isinstance(config_data, dict):
        click.echo(f"Error: Invalid {config_path}: expected a mapping", err=True)
        sys.exit(1)
    return config_path, config_data


@config_group.command('set')
@click.argument('key')
@click.argument('value')
@click.pass_context
def config_set(ctx, key: str, value: str) -> None:
    """Set a configuration value.

    VALUE is parsed as YAML, so numbers and lists keep their type.

    \b
    Examples:
        featuresync config set server.url https://sync.example.com
        featuresync config set server.timeout 10
        featuresync config set features "[bookmarks, settings]"
    """
    verbosity = ctx.obj.get('verbosity', 1)
    config_path, config_data = _load(ctx)

    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError:
        parsed = value

    keys = key.split('.')
    current = config_data
    for k in keys[:-1]:
        if not isinstance(current.get(k), dict):
            current[k] = {}
        current = current[k]
    current[keys[-1]] = parsed

    config_path.write_text(yaml.dump(config_data, default_flow_style=False))
    echo_normal(click.style(f"✓ Set {key} = {parsed}", fg="green"), verbosity)


@config_group.command('get')
@click.argument('key')
@click.pass_context
def config_get(ctx, key: str) -> None:
    """Get a configuration value.

    \b
    Examples:
        featuresync config get server.url
        featuresync config get features
    """
    verbosity = ctx.obj.get('verbosity', 1)
    _, config_data = _load(ctx)

    current = config_data
    for k in key.split('.'):
        if not isinstance(current, dict) or k not in current:
            click.echo(click.style(f"Key '{key}' not found", fg="yellow"), err=True)
            sys.exit(1)
        current = current[k]

    if isinstance(current, (dict, list)):
        echo_quiet(yaml.dump(current, default_flow_style=False).rstrip(), verbosity)
    else:
        echo_quiet(str(current), verbosity)


@config_group.command('show')
@click.pass_context
def config_show(ctx) -> None:
    """Display full configuration."""
    verbosity = ctx.obj.get('verbosity', 1)
    config_path, _ = _load(ctx)

    echo_normal(click.style("Current configuration:", fg="cyan", bold=True), verbosity)
    echo_quiet(config_path.read_text(), verbosity)
