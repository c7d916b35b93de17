"""
Handles the 'info' command: where an image lives and whether it is there.
"""

import click

from ..cli_utils import standard_command, add_common_options, open_repository
from ..domain import Hypervisor
from ..exit_codes import ImageNotFoundError
from ..render import render_image_status


@click.command(name='info')
@click.argument('name', required=False)
@click.option('-p', '--hypervisor', type=click.Choice([h.value for h in Hypervisor]),
              multiple=True, help='Limit to these hypervisors (default: all)')
@click.option('--table/--no-table', default=None, help='Display as formatted table (auto-detected by default)')
@add_common_options('quiet', 'debug', 'format')
@standard_command
def info_handler(name, hypervisor, table, progress, debug, format, **kwargs):
    """Show paths, existence and metadata of an image.

    NAME defaults to the current directory's name when it holds a Capstanfile.
    """
    repo = open_repository(progress=progress, debug=debug)

    if not name:
        name = repo.default_image()
        if not name:
            raise ImageNotFoundError("No image name given and no Capstanfile in the current directory")

    hypervisors = hypervisor or tuple(h.value for h in Hypervisor)
    statuses = {h: repo.image_status(h, name) for h in hypervisors}
    record = repo.image_info(name)

    if table is None:
        import sys
        table = sys.stdout.isatty() and not format

    if table:
        render_image_status(name, statuses, record)
        return None

    return {
        'name': name,
        'images': {h: status.to_dict() for h, status in statuses.items()},
        'metadata': record.to_dict() if record is not None else None,
    }
