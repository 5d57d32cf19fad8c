"""Sync commands for featuresync CLI."""
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import click

from ..engine import SyncEngine
from ..errors import describe
from ..events import SyncCompletedEvent
from ..models import SyncResult
from ..providers.file import JsonFileProvider
from ..transport import Endpoints, HttpxRemoteAPI
from .common import get_base_path, require_config, echo_verbose, echo_normal, echo_quiet


def _providers(base_path: Path, features: List[str]) -> List[JsonFileProvider]:
    data_dir = base_path / "data"
    return [JsonFileProvider(name, data_dir) for name in features]


async def _run_cycle(config, base_path: Path) -> Optional[List[SyncResult]]:
    completed: List[SyncResult] = []

    def on_results(event: SyncCompletedEvent) -> None:
        completed.extend(event.results)

    async with HttpxRemoteAPI(token=config.token, timeout=config.timeout) as api:
        engine = SyncEngine(
            data_providers=_providers(base_path, config.features),
            api=api,
            endpoints=Endpoints(config.server_url),
        )
        engine.subscribe_results(on_results)
        engine.start_sync()
        await engine.wait_idle()

    if engine.last_error is not None:
        raise engine.last_error
    return completed


@click.group()
def sync_group():
    """Synchronization commands."""
    pass


@sync_group.command('run')
@click.pass_context
def sync_run(ctx):
    """Run one sync cycle for all configured features."""
    verbosity = ctx.obj.get('verbosity', 1)
    base_path = get_base_path(ctx.obj.get('data_dir'))
    config = require_config(ctx)

    if not config.features:
        click.echo("Error: No features configured. Run 'featuresync config set features \"[bookmarks]\"'.", err=True)
        sys.exit(1)
    if not config.server_url:
        click.echo("Error: server.url is not set.", err=True)
        sys.exit(1)

    echo_verbose(f"Server: {config.server_url}", verbosity)
    echo_verbose(f"Features: {', '.join(config.features)}", verbosity)

    try:
        results = asyncio.run(_run_cycle(config, base_path))
    except Exception as e:
        info = describe(e)
        click.echo(f"Error: Sync failed: {info['error']}", err=True)
        echo_verbose(f"  Code: {info['syncError']} (server error: {info['server_error']})", verbosity)
        sys.exit(1)

    echo_normal(click.style("✓ Sync completed", fg="green"), verbosity)
    for result in sorted(results, key=lambda r: r.feature.name):
        echo_quiet(
            f"  {result.feature.name}: sent={len(result.sent)} "
            f"received={len(result.received)} cursor={result.last_sync_timestamp}",
            verbosity,
        )


@sync_group.command('status')
@click.pass_context
def sync_status(ctx):
    """Show sync cursor and pending changes per feature."""
    verbosity = ctx.obj.get('verbosity', 1)
    base_path = get_base_path(ctx.obj.get('data_dir'))
    config = require_config(ctx)

    echo_normal("=== Sync Status ===\n", verbosity)
    echo_normal(f"Server: {config.server_url or 'not set'}", verbosity)
    echo_verbose(f"Token: {'set' if config.token else 'not set'}", verbosity)

    if not config.features:
        echo_normal("No features configured.", verbosity)
        return

    try:
        providers = _providers(base_path, config.features)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for provider in providers:
        echo_quiet(
            f"{provider.feature.name}: cursor={provider.last_sync_timestamp or 'never synced'} "
            f"pending={len(provider.pending)} records={len(provider.records)}",
            verbosity,
        )


@sync_group.command('add')
@click.argument('feature')
@click.argument('payload')
@click.pass_context
def sync_add(ctx, feature, payload):
    """Queue a local change for FEATURE.

    PAYLOAD is a JSON object sent verbatim in the next cycle.

    \b
    Examples:
        featuresync sync add bookmarks '{"id": "1", "title": "Example"}'
    """
    verbosity = ctx.obj.get('verbosity', 1)
    base_path = get_base_path(ctx.obj.get('data_dir'))
    config = require_config(ctx)

    if feature not in config.features:
        click.echo(f"Error: Unknown feature '{feature}'. Configured: {', '.join(config.features) or 'none'}", err=True)
        sys.exit(1)

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON payload: {e}", err=True)
        sys.exit(1)
    if not isinstance(data, dict):
        click.echo("Error: Payload must be a JSON object", err=True)
        sys.exit(1)

    try:
        provider = JsonFileProvider(feature, base_path / "data")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    asyncio.run(provider.add_change(data))
    echo_normal(click.style(f"✓ Queued change for {feature} ({len(provider.pending)} pending)", fg="green"), verbosity)
