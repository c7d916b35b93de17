#!/usr/bin/env python3

import click

from capstan.commands.import_image import import_handler
from capstan.commands.rmi import rmi_handler
from capstan.commands.images import images_handler
from capstan.commands.info import info_handler
from capstan.commands.config import config_cmd


@click.group()
@click.version_option(package_name='capstan')
def cli():
    """capstan - Local repository of unikernel disk images.

    Imports QCOW2, VDI and VMDK images under a per-hypervisor layout,
    keeps their metadata in index.yaml and lists what is stored.
    """
    pass


cli.add_command(import_handler, name='import')
cli.add_command(rmi_handler, name='rmi')
cli.add_command(images_handler, name='images')
cli.add_command(info_handler, name='info')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
