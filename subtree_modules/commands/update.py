"""
Handles the 'update' command: pull upstream changes into vendored modules.

With --all every tracked module is updated independently; failures are
reported per module and the exit code is 71 (partial success) when some
modules failed.
"""

import click

from ..cli_utils import add_common_options, get_config, get_host, set_exit_code, standard_command, use_table
from ..exit_codes import GENERAL_ERROR, PARTIAL_SUCCESS
from ..render import render_operation_table
from ..services.lifecycle_service import LifecycleService


@click.command(name='update')
@click.argument('name', required=False)
@click.option('--all', 'update_all', is_flag=True, help='Update every tracked module')
@click.option('--ref', default=None, help='Switch to this branch, tag or commit')
@add_common_options('dry_run', 'verbose', 'quiet', 'format', 'table')
@standard_command
def update_handler(name, update_all, ref, dry_run, table, progress, **kwargs):
    """Update NAME (or every module with --all) from upstream.

    Examples:

    \b
        subtree-modules update Pester
        subtree-modules update Pester --ref v5.6.0
        subtree-modules update --all
        subtree-modules update --all --dry-run
    """
    if bool(name) == bool(update_all):
        raise click.UsageError("Specify exactly one of NAME or --all")

    service = LifecycleService(get_host(), get_config())

    if name:
        result = service.update(name, ref=ref, dry_run=dry_run)
        if result.changed:
            progress.success(f"Updated {name} at {result.new_ref}")
        else:
            progress(f"{name}: nothing changed")
        return result.to_dict()

    summary = service.update_all(ref=ref, dry_run=dry_run)
    if summary.failed:
        progress.error(f"{summary.failed} of {summary.total} modules failed to update")
        set_exit_code(PARTIAL_SUCCESS if summary.successful or summary.skipped else GENERAL_ERROR)
    else:
        progress.success(f"Updated {summary.successful} modules")

    if use_table(table):
        render_operation_table(summary.details, "Update", summary)
        return None
    return [d.to_dict() for d in summary.details] + [summary.to_dict()]
