"""
Handles the 'remove' command: stop vendoring a module.
"""

import click

from ..cli_utils import add_common_options, get_config, get_host, standard_command
from ..services.lifecycle_service import LifecycleService


@click.command(name='remove')
@click.argument('name')
@click.option('--force', is_flag=True, help='Do not ask for confirmation')
@add_common_options('dry_run', 'verbose', 'quiet', 'format')
@standard_command
def remove_handler(name, force, dry_run, progress, **kwargs):
    """Remove NAME: delete its directory and manifest entry, then commit.

    Asks for confirmation unless --force or --dry-run is given.

    Examples:

    \b
        subtree-modules remove Pester
        subtree-modules remove Pester --force
    """
    service = LifecycleService(get_host(), get_config())

    # Validate before prompting so an untracked name fails without a question
    preview = service.remove(name, dry_run=True)
    if dry_run:
        return preview.to_dict()
    if not force:
        click.confirm(f"Remove module '{name}' ({preview.prefix}) and commit?", abort=True, err=True)

    result = service.remove(name)
    progress.success(f"Removed {name}")
    return result.to_dict()
