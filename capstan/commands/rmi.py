"""
Handles the 'rmi' command for deleting an image from the repository.
"""

import click

from ..cli_utils import standard_command, add_common_options, open_repository


@click.command(name='rmi')
@click.argument('name')
@add_common_options('quiet', 'debug')
@standard_command
def rmi_handler(name, progress, debug, **kwargs):
    """Remove an image and all of its hypervisor variants.

    NAME: Image name as shown by 'capstan images'
    """
    repo = open_repository(progress=progress, debug=debug)
    repo.remove_image(name)
