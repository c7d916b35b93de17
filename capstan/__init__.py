"""
capstan - Local repository of unikernel disk images.

Quick Start:
    from capstan import Repository, resolve_repository_root

    repo = Repository(resolve_repository_root())

    # Import an image (format detected from content)
    repo.import_image("cloudius/osv-base", "osv.qcow2",
                      version="v0.24", created="2015-03-01 10:00",
                      description="OSv base image", build="42")

    # Where it went
    repo.image_path("qemu", "cloudius/osv-base")
    # -> <root>/cloudius/osv-base/osv-base.qemu

    # What is stored
    for entry in repo.list_images().entries:
        print(entry.full_name)

    repo.remove_image("cloudius/osv-base")

Repository layout:
    <root>/<name>/<basename(name)>.<qemu|vbox|vmware>
    <root>/<name>/index.yaml

The root is $CAPSTAN_ROOT, the configured repository.root, or
~/.capstan/repository.
"""

__version__ = "0.1.0"

from .domain import (
    Hypervisor,
    ImageFormat,
    ImageRecord,
    ImageEntry,
    ImageListing,
    ImageStatus,
    ExistenceState,
)
from .exit_codes import (
    CommandError,
    UnsupportedFormatError,
    ImageNotFoundError,
    DirectoryCreateError,
)
from .services import Repository
from .config import load_config, save_config, resolve_repository_root

__all__ = [
    "__version__",
    "Repository",
    "Hypervisor",
    "ImageFormat",
    "ImageRecord",
    "ImageEntry",
    "ImageListing",
    "ImageStatus",
    "ExistenceState",
    "CommandError",
    "UnsupportedFormatError",
    "ImageNotFoundError",
    "DirectoryCreateError",
    "load_config",
    "save_config",
    "resolve_repository_root",
]
