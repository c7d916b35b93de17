"""
Handles the 'images' command for listing the repository contents.

Output:
- Default: a fixed-width listing with a header line
- --table: rich table
- --format json|jsonl|yaml: one record per image
"""

import click

from ..cli_utils import standard_command, add_common_options, open_repository
from ..format_utils import get_format_from_env
from ..render import print_image_listing, render_images_table


@click.command(name='images')
@click.option('--table/--no-table', default=False, help='Display as a formatted table')
@click.option('--strict', is_flag=True, help='Fail if any directory could not be read')
@add_common_options('quiet', 'debug', 'format')
@standard_command
def images_handler(table, strict, progress, debug, format, **kwargs):
    """List images stored in the local repository.

    Unreadable directories are skipped with a warning on stderr.
    """
    repo = open_repository(progress=progress, debug=debug)
    listing = repo.list_images()

    for warning in listing.warnings:
        progress.warning(f"Could not read {warning}")
    if strict and not listing.complete:
        raise click.ClickException(f"{len(listing.warnings)} director(ies) could not be read")

    output_format = format or get_format_from_env()
    if output_format:
        return [entry.to_dict() for entry in listing.entries]

    if table:
        render_images_table(listing)
    else:
        print_image_listing(listing)
    return None
