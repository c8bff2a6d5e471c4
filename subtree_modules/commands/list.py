"""
Handles the 'list' command: show tracked modules.
"""

import click

from ..cli_utils import add_common_options, get_config, get_host, standard_command, use_table
from ..render import render_module_table
from ..services.lifecycle_service import LifecycleService


@click.command(name='list')
@click.argument('pattern', default='*', required=False)
@add_common_options('verbose', 'quiet', 'format', 'fields', 'table')
@standard_command
def list_handler(pattern, table, progress, **kwargs):
    """List tracked modules whose names match PATTERN (* and ? wildcards).

    Examples:

    \b
        subtree-modules list
        subtree-modules list 'PS*'
        subtree-modules list -f csv --fields name,ref
    """
    modules = LifecycleService(get_host(), get_config()).list_modules(pattern)
    progress(f"{len(modules)} modules")

    if use_table(table):
        render_module_table(modules)
        return None
    return (m.to_dict() for m in modules)
