"""
Disk image format detection.

Formats are recognized from the file header, never from the extension:

- QCOW2: "QFI\\xfb" at offset 0
- VDI:   little-endian 0xbeda107f at offset 0x40
- VMDK:  "KDMV" sparse extent magic at offset 0, or a text descriptor
"""

import logging
import struct
from pathlib import Path
from typing import Union

from ..domain import ImageFormat

logger = logging.getLogger(__name__)

QCOW2_MAGIC = b"QFI\xfb"
VMDK_MAGIC = b"KDMV"
VMDK_DESCRIPTOR = b"# Disk DescriptorFile"
VDI_SIGNATURE = 0xbeda107f
VDI_SIGNATURE_OFFSET = 0x40

HEADER_SIZE = 512


def detect_format(header: bytes) -> ImageFormat:
    """Classify a file header."""
    if header.startswith(QCOW2_MAGIC):
        return ImageFormat.QCOW2
    if header.startswith(VMDK_MAGIC) or header.startswith(VMDK_DESCRIPTOR):
        return ImageFormat.VMDK
    if len(header) >= VDI_SIGNATURE_OFFSET + 4:
        (signature,) = struct.unpack_from("<I", header, VDI_SIGNATURE_OFFSET)
        if signature == VDI_SIGNATURE:
            return ImageFormat.VDI
    return ImageFormat.UNKNOWN


def probe(path: Union[str, Path]) -> ImageFormat:
    """
    Detect the container format of a disk image file.

    Args:
        path: File to inspect

    Returns:
        The detected ImageFormat, UNKNOWN when nothing matches

    Raises:
        OSError: if the file cannot be opened or read
    """
    with open(path, 'rb') as f:
        header = f.read(HEADER_SIZE)
    image_format = detect_format(header)
    logger.debug(f"Probed {path}: {image_format.value}")
    return image_format
