import click
import json

from ..cli_utils import standard_command
from ..config import load_config, get_config_path, resolve_repository_root


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@standard_command
def show_config(pretty, path, **kwargs):
    """Show the current configuration with all merges applied.

    The effective repository root is included as "repository_root".
    """
    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    config = load_config()
    config["repository_root"] = str(resolve_repository_root(config))

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))
