"""
Local disk image repository.

Images live under the repository root as

    <root>/<name>/<basename(name)>.<hypervisor>
    <root>/<name>/index.yaml

where <name> may contain a namespace ("cloudius/osv-base") and
<hypervisor> is one of qemu, vbox or vmware, chosen from the format
detected in the image bytes.

There is no locking. Two processes importing or removing the same image
at once may leave it in any state; the repository assumes a single user
running one command at a time. An import that fails after the payload is
copied leaves the payload without index.yaml.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Optional, Union

from ..core import CAPSTANFILE, is_template_file
from ..domain import (
    ExistenceState,
    Hypervisor,
    ImageEntry,
    ImageFormat,
    ImageListing,
    ImageRecord,
    ImageStatus,
    hypervisor_for_format,
)
from ..exit_codes import (
    DirectoryCreateError,
    ImageNotFoundError,
    InvalidImageNameError,
    UnsupportedFormatError,
)
from ..infra.image_probe import probe
from ..infra.metadata_codec import INDEX_FILE, read_image_record, write_image_record
from ..progress import get_progress
from ..render import make_image_entry

logger = logging.getLogger(__name__)

IMAGE_DIR_MODE = 0o775

EntryPresenter = Callable[[Path, str, str], Optional[ImageEntry]]


class Repository:
    """
    Stores disk images by name and hypervisor under a root directory.

    The root is resolved by the caller (see config.resolve_repository_root)
    and never touched at construction; it need not exist yet.

    Example:
        repo = Repository(resolve_repository_root())
        repo.import_image("cloudius/osv-base", "osv.qcow2", "v0.24",
                          "2015-03-01 10:00", "OSv base image", "b42")
        repo.image_exists("qemu", "cloudius/osv-base")   # True
        repo.remove_image("cloudius/osv-base")
    """

    def __init__(
        self,
        root: Union[str, Path],
        progress: Optional[Callable[[str], None]] = None,
        presenter: Optional[EntryPresenter] = None,
    ):
        """
        Initialize Repository.

        Args:
            root: Repository root directory
            progress: Callable receiving human-readable notices
            presenter: Builds listing entries from stored metadata
        """
        self.root = Path(root)
        self.progress = progress or get_progress()
        self.presenter = presenter or make_image_entry

    def image_path(self, hypervisor: Union[Hypervisor, str], name: str) -> Path:
        """Path of an image payload: <root>/<name>/<basename(name)>.<hypervisor>."""
        if isinstance(hypervisor, Hypervisor):
            hypervisor = hypervisor.value
        return self.root / name / f"{Path(name).name}.{hypervisor}"

    def _check_name(self, name: str) -> None:
        """Reject names that resolve to the root itself or to a path outside it."""
        root = os.path.abspath(self.root)
        target = os.path.abspath(os.path.join(root, name))
        if target == root or os.path.commonpath([root, target]) != root:
            raise InvalidImageNameError(name)

    def import_image(
        self,
        name: str,
        source: Union[str, Path],
        version: str,
        created: str,
        description: str,
        build: str,
    ) -> Path:
        """
        Copy a disk image into the repository and write its metadata.

        Args:
            name: Image name, optionally namespaced ("ns/app")
            source: Image file to import
            version, created, description, build: stored in index.yaml

        Returns:
            Path of the stored payload

        Raises:
            UnsupportedFormatError: source is not QCOW2, VDI or VMDK
            ImageNotFoundError: source does not exist
            InvalidImageNameError: name is empty or leaves the repository
            DirectoryCreateError: image directory cannot be created
            OSError, yaml.YAMLError: copy or metadata write failed
        """
        self._check_name(name)
        source = str(source)

        try:
            image_format = probe(source)
        except FileNotFoundError:
            raise ImageNotFoundError(f"{source}: no such file") from None
        except OSError as e:
            raise UnsupportedFormatError(source, e.strerror or str(e)) from e

        if image_format is ImageFormat.UNKNOWN:
            raise UnsupportedFormatError(source)
        hypervisor = hypervisor_for_format(image_format, source)

        if not os.path.exists(source):
            raise ImageNotFoundError(f"{source}: no such file")

        self.progress(f"Importing {name}...")

        destination = self.image_path(hypervisor, name)
        directory = destination.parent
        try:
            _make_image_dirs(directory)
        except OSError as e:
            raise DirectoryCreateError(str(directory)) from e

        logger.debug(f"Copying {source} to {destination}")
        shutil.copyfile(source, destination)

        record = ImageRecord(
            version=version,
            created=created,
            description=description,
            build=build,
        )
        write_image_record(directory / INDEX_FILE, record)

        logger.info(f"Imported {name} as {hypervisor.value} image")
        return destination

    def image_status(self, hypervisor: Union[Hypervisor, str], name: str) -> ImageStatus:
        """Look up an image payload, telling absence apart from access errors."""
        path = self.image_path(hypervisor, name)
        try:
            os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return ImageStatus(ExistenceState.ABSENT, path)
        except OSError as e:
            logger.debug(f"Cannot stat {path}: {e}")
            return ImageStatus(ExistenceState.INACCESSIBLE, path, e.strerror or str(e))
        return ImageStatus(ExistenceState.EXISTS, path)

    def image_exists(self, hypervisor: Union[Hypervisor, str], name: str) -> bool:
        return self.image_status(hypervisor, name).exists

    def image_info(self, name: str) -> Optional[ImageRecord]:
        """Metadata stored for an image, or None when it has no index.yaml."""
        try:
            return read_image_record(self.root / name / INDEX_FILE)
        except (FileNotFoundError, NotADirectoryError):
            return None

    def remove_image(self, name: str) -> None:
        """
        Delete <root>/<name> with every hypervisor variant and its metadata.

        Raises:
            InvalidImageNameError: name is empty or leaves the repository
            ImageNotFoundError: nothing is stored under name
            OSError: deletion failed partway
        """
        self._check_name(name)
        path = self.root / name
        if not os.path.lexists(path):
            raise ImageNotFoundError(f"{name}: no such image")

        self.progress(f"Removing {name}...")

        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
        logger.debug(f"Removed {path}")

    def list_images(self) -> ImageListing:
        """
        Scan the repository.

        Every directory below a namespace is an image. A namespace that
        holds files but no image directories is itself an image stored
        directly at the root. Unreadable directories become warnings.
        """
        listing = ImageListing()

        try:
            namespaces = _sorted_entries(self.root)
        except OSError as e:
            listing.warnings.append(f"{self.root}: {e.strerror or e}")
            return listing

        for namespace in namespaces:
            if not namespace.is_dir():
                continue

            try:
                children = _sorted_entries(namespace.path)
            except OSError as e:
                logger.debug(f"Skipping unreadable namespace {namespace.path}: {e}")
                listing.warnings.append(f"{namespace.name}: {e.strerror or e}")
                continue

            images = 0
            files = 0
            for child in children:
                if child.is_dir():
                    entry = self.presenter(self.root, namespace.name, child.name)
                    if entry is None:
                        entry = ImageEntry(name=child.name, namespace=namespace.name)
                    listing.entries.append(entry)
                    images += 1
                else:
                    files += 1

            if images == 0 and files != 0:
                listing.entries.append(ImageEntry(name=namespace.name))

        return listing

    def default_image(self, cwd: Optional[Union[str, Path]] = None) -> str:
        """
        Image name implied by the working directory.

        Returns the directory's base name when it holds a Capstanfile,
        otherwise an empty string.
        """
        if not is_template_file(CAPSTANFILE, cwd):
            return ""
        if cwd is None:
            try:
                cwd = os.getcwd()
            except OSError:
                return ""
        return Path(cwd).name


def _sorted_entries(path: Union[str, Path]) -> list:
    with os.scandir(path) as it:
        return sorted(it, key=lambda entry: entry.name)


def _make_image_dirs(directory: Path) -> None:
    """Create directory and every missing parent, each with IMAGE_DIR_MODE."""
    missing = []
    path = Path(directory)
    while not path.exists() and path != path.parent:
        missing.append(path)
        path = path.parent

    for path in reversed(missing):
        try:
            os.mkdir(path, IMAGE_DIR_MODE)
        except FileExistsError:
            if not os.path.isdir(path):
                raise
