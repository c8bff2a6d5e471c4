"""
Handles the 'init' command: prepare a host repository for vendored modules.

Creates the modules directory, an empty manifest, README, .gitignore
entries and an update-check workflow, and (unless --no-profile) adds the
modules directory to the shell profile's module search path.
"""

import click

from ..cli_utils import add_common_options, get_config, get_host, standard_command, use_table
from ..render import render_operation_table
from ..services.scaffold_service import ScaffoldService


@click.command(name='init')
@click.option('--force', is_flag=True, help='Re-run on an initialized repository and replace the profile block')
@click.option('--profile', 'profile_path', type=click.Path(dir_okay=False),
              help='Profile file to update (default: profile.path from config)')
@click.option('--no-profile', is_flag=True, help='Do not touch the shell profile')
@add_common_options('dry_run', 'verbose', 'quiet', 'format', 'table')
@standard_command
def init_handler(force, profile_path, no_profile, dry_run, table, progress, **kwargs):
    """Initialize the current repository for subtree modules.

    Nothing is committed; review and commit the generated files yourself.

    Examples:

    \b
        subtree-modules init
        subtree-modules init --no-profile
        subtree-modules -C ~/src/tools init --profile ~/.config/powershell/profile.ps1
        subtree-modules init --force --dry-run
    """
    config = get_config()
    host = get_host()

    if no_profile:
        profile_path = None
    elif not profile_path:
        profile_path = config.get('profile', {}).get('path')

    progress(f"Initializing {host.root}")
    results = ScaffoldService(host, config).init(force=force, profile_path=profile_path, dry_run=dry_run)

    if use_table(table):
        render_operation_table(results, "Initialize")
        return None
    return [r.to_dict() for r in results]
