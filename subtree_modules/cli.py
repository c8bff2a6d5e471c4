#!/usr/bin/env python3

import click

from subtree_modules import __version__
from subtree_modules.config import configure_logging, load_config
from subtree_modules.commands.init import init_handler
from subtree_modules.commands.add import add_handler
from subtree_modules.commands.remove import remove_handler
from subtree_modules.commands.update import update_handler
from subtree_modules.commands.list import list_handler
from subtree_modules.commands.status import status_handler
from subtree_modules.commands.deps import deps_handler
from subtree_modules.commands.config import config_cmd

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


@click.group()
@click.version_option(version=__version__, prog_name='subtree-modules')
@click.option('-C', '--path', default='.', type=click.Path(file_okay=False),
              help='Host repository (default: current directory)')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False), default=None,
              help='Logging level (default: logging.level from config)')
@click.pass_context
def cli(ctx, path, log_level):
    """subtree-modules - Vendor PowerShell modules into a repository with git subtree.

    Modules live under modules/<Name>, are tracked in subtree-modules.yaml,
    and can be checked against upstream, updated and removed.
    """
    config = load_config()
    configure_logging(config, log_level)
    ctx.obj = {'path': path, 'config': config}


cli.add_command(init_handler)
cli.add_command(add_handler)
cli.add_command(remove_handler)
cli.add_command(update_handler)
cli.add_command(list_handler)
cli.add_command(status_handler)
cli.add_command(deps_handler)
cli.add_command(config_cmd)


def main():
    cli()


if __name__ == "__main__":
    main()
