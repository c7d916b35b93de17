"""
Handles the 'import' command for adding a disk image to the repository.
"""

import click

from ..cli_utils import standard_command, add_common_options, open_repository
from ..core import now_friendly


@click.command(name='import')
@click.argument('name')
@click.argument('file', type=click.Path(dir_okay=False))
@click.option('--version', 'image_version', default='', help='Version stored in the image metadata')
@click.option('--created', default=None, help='Creation time (default: now, "YYYY-MM-DD HH:MM")')
@click.option('--description', default='', help='Free-text description')
@click.option('--build', default='', help='Build identifier')
@add_common_options('quiet', 'debug')
@standard_command
def import_handler(name, file, image_version, created, description, build, progress, debug, **kwargs):
    """Import a disk image into the repository.

    NAME: Image name, optionally namespaced (e.g. cloudius/osv-base)

    FILE: QCOW2, VDI or VMDK image; the format is detected from its content

    Examples:

    \b
        capstan import osv-base ./osv.qcow2
        capstan import cloudius/osv-base osv.vmdk --version v0.24 --build 42
    """
    repo = open_repository(progress=progress, debug=debug)
    if created is None:
        created = now_friendly()

    destination = repo.import_image(name, file, image_version, created, description, build)
    progress.success(f"Imported {name} to {destination}")
