"""
Handles the 'add' command: vendor a module with git subtree.
"""

import click

from ..cli_utils import add_common_options, get_config, get_host, standard_command
from ..services.lifecycle_service import LifecycleService


@click.command(name='add')
@click.argument('name')
@click.argument('repository')
@click.option('--ref', default=None, help='Branch, tag or commit to track (default: main)')
@click.option('--force', is_flag=True, help='Overwrite an existing manifest entry')
@add_common_options('dry_run', 'verbose', 'quiet', 'format')
@standard_command
def add_handler(name, repository, ref, force, dry_run, progress, **kwargs):
    """Add NAME from REPOSITORY under the modules directory.

    Runs `git subtree add --squash`, records the module in the manifest and
    commits both.

    Examples:

    \b
        subtree-modules add Pester https://github.com/pester/Pester.git
        subtree-modules add PSReadLine https://github.com/PowerShell/PSReadLine.git --ref v2.3.4
        subtree-modules add Pester https://github.com/pester/Pester.git --dry-run
    """
    service = LifecycleService(get_host(), get_config())
    result = service.add(name, repository, ref=ref, force=force, dry_run=dry_run)
    progress.success(f"Added {name} at {result.new_ref}")
    return result.to_dict()
