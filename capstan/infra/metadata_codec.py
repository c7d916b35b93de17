"""
YAML persistence for image metadata (index.yaml).

Writes are atomic: the record goes to a temp file in the target directory
and is renamed over index.yaml, so readers see either the old file or the
complete new one.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

import yaml

from ..domain import ImageRecord

logger = logging.getLogger(__name__)

INDEX_FILE = "index.yaml"
INDEX_FILE_MODE = 0o644


def dump_image_record(record: ImageRecord) -> str:
    """Serialize a record as block-style YAML, keeping field order."""
    return yaml.safe_dump(record.to_dict(), default_flow_style=False, sort_keys=False)


def load_image_record(text: str) -> ImageRecord:
    """
    Parse index.yaml content.

    Raises:
        yaml.YAMLError: malformed YAML
        ValueError: YAML that is not a mapping
    """
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("image metadata must be a mapping")
    return ImageRecord.from_dict(data)


def write_image_record(path: Union[str, Path], record: ImageRecord) -> None:
    """
    Write a record to path atomically with mode 0644.

    Args:
        path: Destination file (normally <image dir>/index.yaml)
        record: Metadata to store
    """
    path = Path(path)
    content = dump_image_record(record)

    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(fd, 'w') as f:
            f.write(content)
        os.chmod(temp_path, INDEX_FILE_MODE)

        # Atomic rename
        os.replace(temp_path, path)

    except Exception:
        # Clean up temp file on error
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise

    logger.debug(f"Wrote image metadata to {path}")


def read_image_record(path: Union[str, Path]) -> ImageRecord:
    """
    Read a record written by write_image_record.

    Raises:
        OSError: file missing or unreadable
        yaml.YAMLError / ValueError: content is not a metadata mapping
    """
    with open(path, 'r') as f:
        return load_image_record(f.read())
