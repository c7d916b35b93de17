"""
Shared fixtures: a repository rooted in tmp_path and small files carrying
real disk image headers.
"""

import struct

import pytest

from capstan.services import Repository


def qcow2_bytes() -> bytes:
    return b"QFI\xfb" + struct.pack(">I", 3) + b"\0" * 504


def vdi_bytes() -> bytes:
    banner = b"<<< Oracle VM VirtualBox Disk Image >>>\n"
    header = banner.ljust(0x40, b"\0")
    return header + struct.pack("<I", 0xbeda107f) + b"\0" * 444


def vmdk_bytes() -> bytes:
    return b"KDMV" + struct.pack("<I", 1) + b"\0" * 504


@pytest.fixture
def notices():
    """Collects progress notices emitted by the repository."""
    return []


@pytest.fixture
def repo(tmp_path, notices):
    return Repository(tmp_path / "repository", progress=notices.append)


@pytest.fixture
def image_files(tmp_path):
    """One file per supported format, named without a telling extension."""
    src = tmp_path / "src"
    src.mkdir()
    files = {
        "qemu": src / "disk-a.img",
        "vbox": src / "disk-b.img",
        "vmware": src / "disk-c.img",
    }
    files["qemu"].write_bytes(qcow2_bytes())
    files["vbox"].write_bytes(vdi_bytes())
    files["vmware"].write_bytes(vmdk_bytes())
    return files
