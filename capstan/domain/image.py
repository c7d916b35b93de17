"""
Image domain objects for capstan.

These describe what the repository stores: the hypervisor a payload
targets, the container format detected in its bytes, the metadata record
written next to it, and the results of listing and existence checks.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..exit_codes import UnsupportedFormatError

FORMAT_VERSION = "1"


class Hypervisor(Enum):
    """Virtualization backend a stored image targets; the value is the file extension."""
    QEMU = "qemu"
    VBOX = "vbox"
    VMWARE = "vmware"


class ImageFormat(Enum):
    """Disk image container formats recognized by content."""
    VDI = "vdi"
    QCOW2 = "qcow2"
    VMDK = "vmdk"
    UNKNOWN = "unknown"


_FORMAT_HYPERVISORS = {
    ImageFormat.VDI: Hypervisor.VBOX,
    ImageFormat.QCOW2: Hypervisor.QEMU,
    ImageFormat.VMDK: Hypervisor.VMWARE,
}


def hypervisor_for_format(image_format: ImageFormat, path: str = "") -> Hypervisor:
    """
    Map a detected format to the hypervisor that runs it.

    Raises:
        UnsupportedFormatError: for UNKNOWN or any unmapped format
    """
    try:
        return _FORMAT_HYPERVISORS[image_format]
    except KeyError:
        raise UnsupportedFormatError(path) from None


@dataclass(frozen=True)
class ImageRecord:
    """
    Metadata stored in index.yaml beside an image payload.

    The keys written to disk are exactly the field names, including the
    snake-case format_version.
    """
    version: str = ""
    created: str = ""
    description: str = ""
    build: str = ""
    format_version: str = FORMAT_VERSION

    def to_dict(self) -> Dict[str, str]:
        return {
            'format_version': self.format_version,
            'version': self.version,
            'created': self.created,
            'description': self.description,
            'build': self.build,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ImageRecord':
        def text(key: str) -> str:
            value = data.get(key)
            return "" if value is None else str(value)

        return cls(
            format_version=text('format_version'),
            version=text('version'),
            created=text('created'),
            description=text('description'),
            build=text('build'),
        )


@dataclass(frozen=True)
class ImageEntry:
    """One image found while listing the repository."""
    name: str
    namespace: Optional[str] = None
    record: Optional[ImageRecord] = None

    @property
    def full_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'name': self.full_name,
            'namespace': self.namespace,
        }
        if self.record is not None:
            data.update(self.record.to_dict())
        return data


@dataclass
class ImageListing:
    """Images found by a listing, plus one warning per unreadable directory."""
    entries: List[ImageEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return len(self.warnings) == 0


class ExistenceState(Enum):
    """Outcome of looking up an image path."""
    EXISTS = "exists"
    ABSENT = "absent"
    INACCESSIBLE = "inaccessible"


@dataclass(frozen=True)
class ImageStatus:
    """Existence of one image payload, separating absence from access errors."""
    state: ExistenceState
    path: Path
    error: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.state is ExistenceState.EXISTS

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': str(self.path),
            'state': self.state.value,
            'error': self.error,
        }
