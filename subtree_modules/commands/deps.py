"""
Handles the 'check-dependencies' command.

Reads each vendored module's data-file manifest and reports whether its
declared dependencies are present (vendored or on the module search path)
and within version bounds. Exits 1 when any module has unmet dependencies.
"""

import click

from ..cli_utils import add_common_options, get_config, get_host, set_exit_code, standard_command, use_table
from ..exit_codes import GENERAL_ERROR, PathNotFound
from ..render import render_dependency_table
from ..services.dependency_service import DependencyCheckOptions, DependencyService


@click.command(name='check-dependencies')
@click.argument('pattern', default='*', required=False)
@click.option('--search-path', 'search_paths', multiple=True, type=click.Path(),
              help='Extra directory to search for modules (repeatable, searched before the env var)')
@add_common_options('verbose', 'quiet', 'format', 'table')
@standard_command
def deps_handler(pattern, search_paths, table, progress, **kwargs):
    """Check declared dependencies of vendored modules matching PATTERN.

    Examples:

    \b
        subtree-modules check-dependencies
        subtree-modules check-dependencies Pester
        subtree-modules check-dependencies --search-path ~/.local/share/powershell/Modules
    """
    config = get_config()
    host = get_host()
    if not host.root.is_dir():
        raise PathNotFound(host.root)

    options = DependencyCheckOptions.from_config(config, extra_paths=search_paths)
    service = DependencyService(host, config, options)
    reports = service.validate(host.load_manifest(), pattern)

    unmet = [r.name for r in reports if not r.all_dependencies_met]
    if unmet:
        progress.error(f"Unmet dependencies: {', '.join(unmet)}")
        set_exit_code(GENERAL_ERROR)
    else:
        progress.success(f"All dependencies met for {len(reports)} modules")

    if use_table(table):
        render_dependency_table(reports)
        return None
    return [r.to_dict() for r in reports]
