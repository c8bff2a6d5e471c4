"""
Handles the 'status' command: compare vendored commits with upstream.

Each module is reported as Current, UpdateAvailable or Unknown. Lookups
that fail (no squash marker, unreachable remote) give Unknown rather than
an error, so the command exits 0 whenever it could read the manifest.
"""

import click

from ..cli_utils import add_common_options, get_config, get_host, standard_command, use_table
from ..render import render_status_table
from ..services.status_service import StatusOptions, StatusService


@click.command(name='status')
@click.argument('pattern', default='*', required=False)
@click.option('--updates-only', is_flag=True, help='Only show modules with an update available')
@click.option('--parallel', type=click.IntRange(min=1), default=None,
              help='Number of concurrent lookups (default: general.max_concurrent_operations)')
@add_common_options('verbose', 'quiet', 'format', 'fields', 'table')
@standard_command
def status_handler(pattern, updates_only, parallel, table, progress, **kwargs):
    """Show whether vendored modules matching PATTERN are up to date.

    Examples:

    \b
        subtree-modules status
        subtree-modules status 'PS*' --updates-only
        subtree-modules status --parallel 8 --no-table
    """
    config = get_config()
    host = get_host()
    host.require_repository()

    if parallel is None:
        parallel = config.get('general', {}).get('max_concurrent_operations') or 1

    manifest = host.load_manifest()
    options = StatusOptions(name_pattern=pattern, only_updates=updates_only, parallel=parallel)

    progress(f"Checking {len(manifest.match(pattern))} modules against upstream...")
    statuses = StatusService(host, config).status_of(manifest, options)

    if use_table(table):
        render_status_table(statuses)
        return None
    return [s.to_dict() for s in statuses]
