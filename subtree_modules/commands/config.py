import json

import click

from ..config import get_config_path, load_config


@click.group("config")
def config_cmd():
    """Configuration commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as indented JSON instead of a single line")
@click.option("--path", is_flag=True, help="Show the config file path being used")
def show_config(pretty, path):
    """Show the effective configuration (defaults, file, environment).

    Set SUBTREE_MODULES_CONFIG to use a specific file, or override single
    keys with SUBTREE_MODULES_<SECTION>_<KEY>.
    """
    if path:
        config_path = get_config_path()
        print(json.dumps({"config_path": str(config_path), "exists": config_path.exists()}))
        return

    config = load_config()
    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))
