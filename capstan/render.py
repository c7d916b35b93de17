"""
Rendering functions for capstan output.

This module handles all pretty-printing of image listings.
The repository returns data, this module makes it human-readable.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import yaml
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .domain import ImageEntry, ImageListing, ImageStatus
from .infra.metadata_codec import INDEX_FILE, read_image_record

console = Console()
logger = logging.getLogger(__name__)

LINE_FORMAT = "{:<50} {:<50} {:<15} {:<20}"


def make_image_entry(root: Union[str, Path], namespace: str, name: str) -> Optional[ImageEntry]:
    """
    Build a listing entry from root/namespace/name/index.yaml.

    Returns None when the metadata is missing or unreadable, so the caller
    can fall back to the bare image name.
    """
    index_path = Path(root) / namespace / name / INDEX_FILE
    try:
        record = read_image_record(index_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.debug(f"No usable metadata at {index_path}: {e}")
        return None
    return ImageEntry(name=name, namespace=namespace, record=record)


def image_list_header() -> str:
    return LINE_FORMAT.format("Name", "Description", "Version", "Created")


def format_image_entry(entry: ImageEntry) -> str:
    """One listing line; entries without metadata show only their name."""
    if entry.record is None:
        return entry.full_name
    record = entry.record
    return LINE_FORMAT.format(entry.full_name, record.description, record.version, record.created)


def print_image_listing(listing: ImageListing) -> None:
    """Print the header followed by one line per image to stdout."""
    print(image_list_header())
    for entry in listing.entries:
        print(format_image_entry(entry))


def render_images_table(listing: ImageListing) -> None:
    """
    Render the repository contents as a rich table.

    Args:
        listing: Result of Repository.list_images()
    """
    if not listing.entries:
        console.print("[yellow]No images found.[/yellow]")
        return

    table = Table(
        title="Images",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Version", style="green")
    table.add_column("Created", style="dim")

    for entry in listing.entries:
        record = entry.record
        if record is None:
            table.add_row(escape(entry.full_name), "", "", "")
        else:
            table.add_row(escape(entry.full_name), escape(record.description),
                          escape(record.version), escape(record.created))

    console.print(table)


def render_image_status(name: str, statuses: Dict[str, ImageStatus], record=None) -> None:
    """
    Render per-hypervisor paths and existence for one image.

    Args:
        name: Image name
        statuses: Mapping of hypervisor tag to ImageStatus
        record: Optional ImageRecord read from index.yaml
    """
    table = Table(
        title=name,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Hypervisor", style="cyan")
    table.add_column("State")
    table.add_column("Path", style="dim")

    styles = {"exists": "green", "absent": "yellow", "inaccessible": "red"}
    for hypervisor, status in statuses.items():
        state = status.state.value
        if status.error:
            state = f"{state} ({status.error})"
        table.add_row(hypervisor, f"[{styles[status.state.value]}]{state}[/]", str(status.path))

    console.print(table)

    if record is not None:
        for key, value in record.to_dict().items():
            console.print(f"[bold]{key}[/bold]: {escape(value)}")
