"""
Infrastructure layer for capstan.

Contains the pieces that touch file contents:
- image_probe: content-based disk image format detection
- metadata_codec: index.yaml persistence with atomic writes

These provide clean interfaces that can be mocked for testing.
"""

from .image_probe import probe, detect_format
from .metadata_codec import (
    INDEX_FILE,
    write_image_record,
    read_image_record,
    dump_image_record,
    load_image_record,
)

__all__ = [
    'probe',
    'detect_format',
    'INDEX_FILE',
    'write_image_record',
    'read_image_record',
    'dump_image_record',
    'load_image_record',
]
